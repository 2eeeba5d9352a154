from typing import Optional

from treelox.scanner import Token


class LoxError(Exception):
    """Base class for every error the interpreter reports."""


class LoxParseError(LoxError):
    """A diagnostic produced while turning tokens into statements.

    `location` is `" at 'lexeme'"`, `" at end"` or empty for errors that came
    from the scanner itself.
    """
    def __init__(self, line: int, message: str, location: str = ''):
        super().__init__(f"[line {line}] Error{location}: {message}")
        self.line = line
        self.message = message
        self.location = location


class LoxRuntimeError(LoxError):
    """Exception type used to propagate Lox runtime errors."""
    kind = 'RuntimeError'

    def __init__(self, token: Optional[Token], message: str):
        super().__init__(message)
        self.token = token
        self.message = message

    @property
    def line(self) -> int:
        return self.token.line if self.token is not None else 0

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


class UndefinedVariableError(LoxRuntimeError):
    kind = 'UndefinedVariable'


class TypeMismatchError(LoxRuntimeError):
    kind = 'TypeMismatch'


class NotCallableError(LoxRuntimeError):
    kind = 'NotCallable'


class ArityMismatchError(LoxRuntimeError):
    kind = 'ArityMismatch'


class StackOverflowError(LoxRuntimeError):
    kind = 'StackOverflow'
