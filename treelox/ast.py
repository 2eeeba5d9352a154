"""Abstract Syntax Tree (AST) definitions for Lox.

The parser builds these nodes once and nothing mutates them afterwards, so
every class is a frozen dataclass and every sequence is a tuple. Names and
operators keep their originating token so the interpreter can report the
source line of a runtime error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .scanner import Token


@dataclass(frozen=True)
class Expr:
    """Base class for expression nodes."""
    pass


@dataclass(frozen=True)
class Assign(Expr):
    name: Token
    value: Expr


@dataclass(frozen=True)
class Binary(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Call(Expr):
    callee: Expr
    paren: Token  # closing paren, for error lines
    arguments: Tuple[Expr, ...]


@dataclass(frozen=True)
class Grouping(Expr):
    expression: Expr


@dataclass(frozen=True)
class Literal(Expr):
    value: Any  # None, bool, float or str


@dataclass(frozen=True)
class Logical(Expr):
    left: Expr
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Unary(Expr):
    operator: Token
    right: Expr


@dataclass(frozen=True)
class Variable(Expr):
    name: Token


@dataclass(frozen=True)
class Stmt:
    """Base class for statement nodes."""
    pass


@dataclass(frozen=True)
class Block(Stmt):
    statements: Tuple[Stmt, ...]


@dataclass(frozen=True)
class Expression(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Function(Stmt):
    name: Token
    params: Tuple[Token, ...]
    body: Tuple[Stmt, ...]


@dataclass(frozen=True)
class If(Stmt):
    condition: Expr
    then_branch: Stmt
    else_branch: Optional[Stmt]


@dataclass(frozen=True)
class Print(Stmt):
    expression: Expr


@dataclass(frozen=True)
class Var(Stmt):
    name: Token
    initializer: Optional[Expr]


@dataclass(frozen=True)
class While(Stmt):
    condition: Expr
    body: Stmt
