"""JSON serialization/deserialization for the Lox AST.

This module converts between the AST dataclasses and plain Python dict/list
structures suitable for JSON encoding. Tokens are kept whole (kind, lexeme
and line) so a reloaded tree reports runtime errors on the same lines.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Expression,
    Function,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Unary,
    Var,
    Variable,
    While,
)
from .scanner import Token, TokenKind


def token_to_obj(t: Token) -> Dict[str, Any]:
    return {"kind": t.kind.name, "lexeme": t.text, "line": t.line}


def token_from_obj(o: Dict[str, Any]) -> Token:
    return Token(TokenKind[o["kind"]], o["lexeme"].encode('utf-8', errors='surrogateescape'), o["line"])


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None
    if isinstance(node, list):
        return [ast_to_obj(n) for n in node]

    # Statements
    if isinstance(node, Block):
        return {"type": "Block", "statements": [ast_to_obj(s) for s in node.statements]}
    if isinstance(node, Expression):
        return {"type": "Expression", "expression": ast_to_obj(node.expression)}
    if isinstance(node, Function):
        return {
            "type": "Function",
            "name": token_to_obj(node.name),
            "params": [token_to_obj(p) for p in node.params],
            "body": [ast_to_obj(s) for s in node.body],
        }
    if isinstance(node, If):
        return {
            "type": "If",
            "condition": ast_to_obj(node.condition),
            "then_branch": ast_to_obj(node.then_branch),
            "else_branch": ast_to_obj(node.else_branch),
        }
    if isinstance(node, Print):
        return {"type": "Print", "expression": ast_to_obj(node.expression)}
    if isinstance(node, Var):
        return {"type": "Var", "name": token_to_obj(node.name), "initializer": ast_to_obj(node.initializer)}
    if isinstance(node, While):
        return {"type": "While", "condition": ast_to_obj(node.condition), "body": ast_to_obj(node.body)}

    # Expressions
    if isinstance(node, Assign):
        return {"type": "Assign", "name": token_to_obj(node.name), "value": ast_to_obj(node.value)}
    if isinstance(node, (Binary, Logical)):
        return {
            "type": type(node).__name__,
            "left": ast_to_obj(node.left),
            "operator": token_to_obj(node.operator),
            "right": ast_to_obj(node.right),
        }
    if isinstance(node, Call):
        return {
            "type": "Call",
            "callee": ast_to_obj(node.callee),
            "paren": token_to_obj(node.paren),
            "arguments": [ast_to_obj(a) for a in node.arguments],
        }
    if isinstance(node, Grouping):
        return {"type": "Grouping", "expression": ast_to_obj(node.expression)}
    if isinstance(node, Literal):
        return {"type": "Literal", "value": node.value}
    if isinstance(node, Unary):
        return {"type": "Unary", "operator": token_to_obj(node.operator), "right": ast_to_obj(node.right)}
    if isinstance(node, Variable):
        return {"type": "Variable", "name": token_to_obj(node.name)}

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None:
        return None
    if isinstance(obj, list):
        return [ast_from_obj(o) for o in obj]
    if not isinstance(obj, dict):
        raise TypeError("Invalid AST object")
    t = obj.get("type")
    if t == "Block":
        return Block(statements=tuple(ast_from_obj(s) for s in obj["statements"]))
    if t == "Expression":
        return Expression(expression=ast_from_obj(obj["expression"]))
    if t == "Function":
        return Function(
            name=token_from_obj(obj["name"]),
            params=tuple(token_from_obj(p) for p in obj["params"]),
            body=tuple(ast_from_obj(s) for s in obj["body"]),
        )
    if t == "If":
        return If(
            condition=ast_from_obj(obj["condition"]),
            then_branch=ast_from_obj(obj["then_branch"]),
            else_branch=ast_from_obj(obj.get("else_branch")),
        )
    if t == "Print":
        return Print(expression=ast_from_obj(obj["expression"]))
    if t == "Var":
        return Var(name=token_from_obj(obj["name"]), initializer=ast_from_obj(obj.get("initializer")))
    if t == "While":
        return While(condition=ast_from_obj(obj["condition"]), body=ast_from_obj(obj["body"]))
    if t == "Assign":
        return Assign(name=token_from_obj(obj["name"]), value=ast_from_obj(obj["value"]))
    if t in ("Binary", "Logical"):
        node_type = Binary if t == "Binary" else Logical
        return node_type(
            left=ast_from_obj(obj["left"]),
            operator=token_from_obj(obj["operator"]),
            right=ast_from_obj(obj["right"]),
        )
    if t == "Call":
        return Call(
            callee=ast_from_obj(obj["callee"]),
            paren=token_from_obj(obj["paren"]),
            arguments=tuple(ast_from_obj(a) for a in obj["arguments"]),
        )
    if t == "Grouping":
        return Grouping(expression=ast_from_obj(obj["expression"]))
    if t == "Literal":
        value = obj["value"]
        # JSON has no separate float type; numbers are always floats in Lox
        if isinstance(value, int) and not isinstance(value, bool):
            value = float(value)
        return Literal(value=value)
    if t == "Unary":
        return Unary(operator=token_from_obj(obj["operator"]), right=ast_from_obj(obj["right"]))
    if t == "Variable":
        return Variable(name=token_from_obj(obj["name"]))

    raise ValueError(f"Unknown AST node type: {t}")


def program_to_obj(statements: List[Any]) -> Dict[str, Any]:
    return {"type": "Program", "body": [ast_to_obj(s) for s in statements]}


def program_from_obj(obj: Dict[str, Any]) -> List[Any]:
    if obj.get("type") != "Program":
        raise ValueError("Invalid AST object: expected a Program")
    return [ast_from_obj(s) for s in obj["body"]]
