# Lox language package
# This package provides a scanner, parser and tree-walking interpreter for Lox.
from .errors import LoxError, LoxParseError, LoxRuntimeError
from .interpreter import Interpreter, run_file, run_program
from .parser import parse_program
from .scanner import Scanner, Token, TokenKind, scan_tokens

__all__ = [
    'Interpreter',
    'LoxError',
    'LoxParseError',
    'LoxRuntimeError',
    'Scanner',
    'Token',
    'TokenKind',
    'parse_program',
    'run_file',
    'run_program',
    'scan_tokens',
]
