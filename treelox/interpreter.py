"""Tree-walking interpreter for Lox.

The interpreter executes the statement list produced by
:func:`treelox.parser.parse_program` directly, keeping track of the active
scope and writing the output of every `print` statement to its output
stream. Runtime errors are raised as :class:`LoxRuntimeError` subclasses and
unwind to the caller of :meth:`Interpreter.run`; whatever the program did
before the error stays in effect.
"""

from __future__ import annotations

import math
import sys
from typing import Callable, List, Optional, Sequence, TextIO

from .ast import (
    Assign, Binary, Block, Call, Expr, Expression, Function, Grouping, If,
    Literal, Logical, Print, Stmt, Unary, Var, Variable, While,
)
from .environment import Environment
from .errors import (
    ArityMismatchError, NotCallableError, StackOverflowError, TypeMismatchError,
)
from .objects import LoxObject
from .parser import parse_program
from .scanner import Token, TokenKind
from .std import populate_std_environment

# Python frames available to a run; a Lox call nests six to eight of them.
MAX_RECURSION_DEPTH = 10000


def divide(a: float, b: float) -> float:
    """IEEE division: a zero divisor gives an infinity or NaN."""
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


class Interpreter:
    """Core interpreter that executes a Lox AST."""
    def __init__(self, output: Optional[TextIO] = None, debug_level: int = 0,
                 debug_file: str = 'debug.txt'):
        self.globals = Environment()
        self.environment = self.globals
        self.output = output
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None
        self.load_standard_module()

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def load_standard_module(self):
        std_env = populate_std_environment()
        for name, value in std_env.values.items():
            self.globals.define(name, value)

    def define_builtin(self, name: str, arity: int, fn: Callable[[List[LoxObject]], LoxObject]):
        """Register a host function in the global scope."""
        self.globals.define(name, LoxObject.new_builtin_function(arity, fn, name))

    # Public API
    def run(self, statements: Sequence[Stmt]) -> None:
        if self.debug_level >= 1:
            self.debug(f"run {len(statements)} statement(s)")
        previous_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(previous_limit, MAX_RECURSION_DEPTH))
        try:
            for stmt in statements:
                self.execute(stmt)
        except Exception as e:
            if self.debug_level >= 1:
                self.debug(f"runtime error: {e}")
            raise
        finally:
            sys.setrecursionlimit(previous_limit)
        if self.debug_level >= 1:
            self.debug("run finished")

    def write(self, text: str):
        print(text, file=self.output if self.output is not None else sys.stdout)

    # Statements

    def execute_block(self, statements: Sequence[Stmt], environment: Environment):
        previous = self.environment
        try:
            self.environment = environment
            for stmt in statements:
                self.execute(stmt)
        finally:
            self.environment = previous

    def execute(self, stmt: Stmt):
        if isinstance(stmt, Expression):
            self.evaluate(stmt.expression)
            return
        if isinstance(stmt, Print):
            value = self.evaluate(stmt.expression)
            self.write(value.as_string())
            return
        if isinstance(stmt, Var):
            value = self.evaluate(stmt.initializer) if stmt.initializer is not None else LoxObject.nil()
            self.environment.define(stmt.name.text, value)
            if self.debug_level >= 2:
                self.debug(f"declare {stmt.name.text} = {value!r}")
            return
        if isinstance(stmt, Block):
            self.execute_block(stmt.statements, Environment.new_enclosed(self.environment))
            return
        if isinstance(stmt, If):
            truthy = self.evaluate(stmt.condition).as_bool()
            if self.debug_level >= 3:
                self.debug(f"if condition -> {truthy}")
            if truthy:
                self.execute(stmt.then_branch)
            elif stmt.else_branch is not None:
                self.execute(stmt.else_branch)
            return
        if isinstance(stmt, While):
            while True:
                truthy = self.evaluate(stmt.condition).as_bool()
                if self.debug_level >= 3:
                    self.debug(f"while condition -> {truthy}")
                if not truthy:
                    break
                self.execute(stmt.body)
            return
        if isinstance(stmt, Function):
            self.environment.define(stmt.name.text, LoxObject.new_function(stmt))
            if self.debug_level >= 2:
                self.debug(f"define function {stmt.name.text}")
            return
        raise NotImplementedError(f"execute: unexpected node type {type(stmt)}")

    # Expressions

    def evaluate(self, expr: Expr) -> LoxObject:
        if isinstance(expr, Literal):
            return self.literal_value(expr.value)
        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)
        if isinstance(expr, Variable):
            return self.environment.get(expr.name)
        if isinstance(expr, Assign):
            value = self.evaluate(expr.value)
            self.environment.assign(expr.name, value)
            return value
        if isinstance(expr, Unary):
            right = self.evaluate(expr.right)
            if expr.operator.kind == TokenKind.BANG:
                return LoxObject.new_bool(not right.as_bool())
            if expr.operator.kind == TokenKind.MINUS:
                self.check_number_operand(expr.operator, right)
                return LoxObject.new_number(-right.as_number())
            raise NotImplementedError(f"unsupported unary operator {expr.operator}")
        if isinstance(expr, Logical):
            left = self.evaluate(expr.left)
            if expr.operator.kind == TokenKind.OR:
                if left.as_bool():
                    return left
            elif not left.as_bool():
                return left
            return self.evaluate(expr.right)
        if isinstance(expr, Binary):
            left = self.evaluate(expr.left)
            right = self.evaluate(expr.right)
            return self.apply_binary_op(expr.operator, left, right)
        if isinstance(expr, Call):
            callee = self.evaluate(expr.callee)
            arguments = [self.evaluate(argument) for argument in expr.arguments]
            return self.call_function(callee, arguments, expr.paren)
        raise NotImplementedError(f"evaluate: unexpected node type {type(expr)}")

    def literal_value(self, value) -> LoxObject:
        if value is None:
            return LoxObject.nil()
        if isinstance(value, bool):
            return LoxObject.new_bool(value)
        if isinstance(value, (int, float)):
            return LoxObject.new_number(value)
        return LoxObject.new_string(value)

    def call_function(self, callee: LoxObject, arguments: List[LoxObject], paren: Token) -> LoxObject:
        if not callee.is_callable():
            raise NotCallableError(paren, "Can only call functions.")
        arity = callee.arity()
        if len(arguments) != arity:
            raise ArityMismatchError(paren, f"Expected {arity} arguments but got {len(arguments)}.")
        if self.debug_level >= 2:
            self.debug(f"call {callee.as_string()} with {len(arguments)} argument(s)")
        try:
            return callee.call(self, arguments)
        except RecursionError:
            raise StackOverflowError(paren, "Stack overflow.") from None

    def apply_binary_op(self, operator: Token, left: LoxObject, right: LoxObject) -> LoxObject:
        kind = operator.kind
        if kind == TokenKind.EQUAL_EQUAL:
            return LoxObject.new_bool(left.equals(right))
        if kind == TokenKind.BANG_EQUAL:
            return LoxObject.new_bool(not left.equals(right))
        if kind == TokenKind.PLUS:
            if left.is_number() and right.is_number():
                return LoxObject.new_number(left.as_number() + right.as_number())
            if left.is_string() and right.is_string():
                return LoxObject.new_string(left.as_string() + right.as_string())
            raise TypeMismatchError(operator, "Operands must be two numbers or two strings.")

        self.check_number_operands(operator, left, right)
        a = left.as_number()
        b = right.as_number()
        if kind == TokenKind.MINUS:
            return LoxObject.new_number(a - b)
        if kind == TokenKind.STAR:
            return LoxObject.new_number(a * b)
        if kind == TokenKind.SLASH:
            return LoxObject.new_number(divide(a, b))
        if kind == TokenKind.GREATER:
            return LoxObject.new_bool(a > b)
        if kind == TokenKind.GREATER_EQUAL:
            return LoxObject.new_bool(a >= b)
        if kind == TokenKind.LESS:
            return LoxObject.new_bool(a < b)
        if kind == TokenKind.LESS_EQUAL:
            return LoxObject.new_bool(a <= b)
        raise NotImplementedError(f"unknown operator {operator}")

    def check_number_operand(self, operator: Token, operand: LoxObject):
        if not operand.is_number():
            raise TypeMismatchError(operator, "Operand must be a number.")

    def check_number_operands(self, operator: Token, left: LoxObject, right: LoxObject):
        if not (left.is_number() and right.is_number()):
            raise TypeMismatchError(operator, "Operands must be numbers.")


def run_program(source, output: Optional[TextIO] = None, debug_level: int = 0) -> Interpreter:
    """Convenience function to parse and run a Lox program from source."""
    statements = parse_program(source)
    interpreter = Interpreter(output=output, debug_level=debug_level)
    try:
        interpreter.run(statements)
    finally:
        interpreter.close()
    return interpreter


def run_file(file_path: str, output: Optional[TextIO] = None, debug_level: int = 0) -> Interpreter:
    """Parse and run a Lox file, returning the interpreter instance."""
    with open(file_path, 'rb') as f:
        source = f.read()
    return run_program(source, output=output, debug_level=debug_level)
