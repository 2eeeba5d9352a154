"""Scanner for the Lox language.

The scanner turns raw source bytes into a stream of tokens, one token per
call to :meth:`Scanner.scan_token`. Lexical failures do not raise: they are
reported as ``ERROR`` tokens whose lexeme is the diagnostic message, and it
is up to the parser to surface them.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator, List, Union


class TokenKind(Enum):
    """All lexical categories recognized by the scanner."""

    # Single-character tokens.
    LEFT_PAREN = auto()
    RIGHT_PAREN = auto()
    LEFT_BRACE = auto()
    RIGHT_BRACE = auto()
    COMMA = auto()
    DOT = auto()
    MINUS = auto()
    PLUS = auto()
    SEMICOLON = auto()
    SLASH = auto()
    STAR = auto()

    # One or two character tokens.
    BANG = auto()
    BANG_EQUAL = auto()
    EQUAL = auto()
    EQUAL_EQUAL = auto()
    GREATER = auto()
    GREATER_EQUAL = auto()
    LESS = auto()
    LESS_EQUAL = auto()

    # Literals.
    IDENTIFIER = auto()
    STRING = auto()
    NUMBER = auto()

    # Keywords.
    AND = auto()
    CLASS = auto()
    ELSE = auto()
    FALSE = auto()
    FOR = auto()
    FUN = auto()
    IF = auto()
    NIL = auto()
    OR = auto()
    PRINT = auto()
    RETURN = auto()
    SUPER = auto()
    THIS = auto()
    TRUE = auto()
    VAR = auto()
    WHILE = auto()

    ERROR = auto()
    EOF = auto()


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: bytes
    line: int

    @property
    def text(self) -> str:
        """The lexeme decoded for display and for use as a name."""
        return self.lexeme.decode('utf-8', errors='surrogateescape')

    def __str__(self) -> str:
        return f"{self.kind.name} {self.text!r} (line {self.line})"


SINGLE_CHAR_TOKENS = {
    ord('('): TokenKind.LEFT_PAREN,
    ord(')'): TokenKind.RIGHT_PAREN,
    ord('{'): TokenKind.LEFT_BRACE,
    ord('}'): TokenKind.RIGHT_BRACE,
    ord(';'): TokenKind.SEMICOLON,
    ord(','): TokenKind.COMMA,
    ord('.'): TokenKind.DOT,
    ord('-'): TokenKind.MINUS,
    ord('+'): TokenKind.PLUS,
    ord('/'): TokenKind.SLASH,
    ord('*'): TokenKind.STAR,
}

# first byte -> (kind without '=', kind with '=')
EQUAL_SUFFIX_TOKENS = {
    ord('!'): (TokenKind.BANG, TokenKind.BANG_EQUAL),
    ord('='): (TokenKind.EQUAL, TokenKind.EQUAL_EQUAL),
    ord('<'): (TokenKind.LESS, TokenKind.LESS_EQUAL),
    ord('>'): (TokenKind.GREATER, TokenKind.GREATER_EQUAL),
}

UNTERMINATED_STRING = "Unterminated string."
UNEXPECTED_CHARACTER = "Unexpected character."


def is_digit(c: int) -> bool:
    return ord('0') <= c <= ord('9')


def is_alpha(c: int) -> bool:
    return (ord('a') <= c <= ord('z')) or (ord('A') <= c <= ord('Z')) or c == ord('_')


class Scanner:
    """On-demand tokenizer over a byte buffer.

    Usage:
        scanner = Scanner(b'print 1 + 2;')
        token = scanner.scan_token()

    Or to drain everything up to and including EOF:
        for token in Scanner(source):
            ...
    """

    def __init__(self, source: Union[bytes, str]):
        if isinstance(source, str):
            source = source.encode('utf-8', errors='surrogateescape')
        self.source = source
        self.start = 0
        self.current = 0
        self.line = 1

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.scan_token()
            yield token
            if token.kind == TokenKind.EOF:
                return

    def scan_token(self) -> Token:
        self.skip_whitespace()
        self.start = self.current

        if self.is_at_end():
            return self.make_token(TokenKind.EOF)

        c = self.advance()
        if is_alpha(c):
            return self.identifier()
        if is_digit(c):
            return self.number()

        kind = SINGLE_CHAR_TOKENS.get(c)
        if kind is not None:
            return self.make_token(kind)
        pair = EQUAL_SUFFIX_TOKENS.get(c)
        if pair is not None:
            return self.make_token(pair[1] if self.match(ord('=')) else pair[0])
        if c == ord('"'):
            return self.string()

        return self.error_token(UNEXPECTED_CHARACTER)

    # Character helpers

    def is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def advance(self) -> int:
        self.current += 1
        return self.source[self.current - 1]

    def peek(self) -> int:
        if self.is_at_end():
            return 0
        return self.source[self.current]

    def peek_next(self) -> int:
        if self.current + 1 >= len(self.source):
            return 0
        return self.source[self.current + 1]

    def match(self, expected: int) -> bool:
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.current += 1
        return True

    def skip_whitespace(self) -> None:
        while not self.is_at_end():
            c = self.peek()
            if c in (ord(' '), ord('\r'), ord('\t')):
                self.advance()
            elif c == ord('\n'):
                self.line += 1
                self.advance()
            elif c == ord('/') and self.peek_next() == ord('/'):
                # the newline is left for the next pass so it is counted once
                while self.peek() != ord('\n') and not self.is_at_end():
                    self.advance()
            else:
                return

    # Token construction

    def make_token(self, kind: TokenKind) -> Token:
        return Token(kind, self.source[self.start:self.current], self.line)

    def error_token(self, message: str) -> Token:
        return Token(TokenKind.ERROR, message.encode('utf-8'), self.line)

    # Literal scanners

    def string(self) -> Token:
        while self.peek() != ord('"') and not self.is_at_end():
            if self.peek() == ord('\n'):
                self.line += 1
            self.advance()

        if self.is_at_end():
            return self.error_token(UNTERMINATED_STRING)

        self.advance()  # closing quote
        return self.make_token(TokenKind.STRING)

    def number(self) -> Token:
        while is_digit(self.peek()):
            self.advance()

        # A fractional part needs at least one digit after the dot.
        if self.peek() == ord('.') and is_digit(self.peek_next()):
            self.advance()
            while is_digit(self.peek()):
                self.advance()

        return self.make_token(TokenKind.NUMBER)

    def identifier(self) -> Token:
        while is_alpha(self.peek()) or is_digit(self.peek()):
            self.advance()
        return self.make_token(self.identifier_kind())

    def identifier_kind(self) -> TokenKind:
        """Classify the current lexeme as a keyword or an identifier."""
        lexeme = self.source[self.start:self.current]
        first = chr(lexeme[0])
        if first == 'a':
            return self.check_keyword(1, b'nd', TokenKind.AND)
        if first == 'c':
            return self.check_keyword(1, b'lass', TokenKind.CLASS)
        if first == 'e':
            return self.check_keyword(1, b'lse', TokenKind.ELSE)
        if first == 'f' and len(lexeme) > 1:
            second = chr(lexeme[1])
            if second == 'a':
                return self.check_keyword(2, b'lse', TokenKind.FALSE)
            if second == 'o':
                return self.check_keyword(2, b'r', TokenKind.FOR)
            if second == 'u':
                return self.check_keyword(2, b'n', TokenKind.FUN)
        if first == 'i':
            return self.check_keyword(1, b'f', TokenKind.IF)
        if first == 'n':
            return self.check_keyword(1, b'il', TokenKind.NIL)
        if first == 'o':
            return self.check_keyword(1, b'r', TokenKind.OR)
        if first == 'p':
            return self.check_keyword(1, b'rint', TokenKind.PRINT)
        if first == 'r':
            return self.check_keyword(1, b'eturn', TokenKind.RETURN)
        if first == 's':
            return self.check_keyword(1, b'uper', TokenKind.SUPER)
        if first == 't' and len(lexeme) > 1:
            second = chr(lexeme[1])
            if second == 'h':
                return self.check_keyword(2, b'is', TokenKind.THIS)
            if second == 'r':
                return self.check_keyword(2, b'ue', TokenKind.TRUE)
        if first == 'v':
            return self.check_keyword(1, b'ar', TokenKind.VAR)
        if first == 'w':
            return self.check_keyword(1, b'hile', TokenKind.WHILE)
        return TokenKind.IDENTIFIER

    def check_keyword(self, offset: int, rest: bytes, kind: TokenKind) -> TokenKind:
        if self.source[self.start + offset:self.current] == rest:
            return kind
        return TokenKind.IDENTIFIER


def scan_tokens(source: Union[bytes, str]) -> List[Token]:
    """Scan the whole source, returning every token including the final EOF."""
    return list(Scanner(source))
