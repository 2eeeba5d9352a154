"""Parser for the Lox language.

Parsing is done by a Lark LALR parser whose lexer is the hand-written
:class:`~treelox.scanner.Scanner`: :class:`ScannerLexer` adapts each Lox
token into a Lark token named after its :class:`TokenKind`. The resulting
parse tree is turned into the immutable AST by :class:`ASTTransformer`.

`for` loops have no statement node of their own; the transformer desugars
them into `Var`, `While` and `Block` nodes.

The `parse_program` function is the public entry point and returns the list
of top-level statements, or raises :class:`LoxParseError`.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Union

from lark import Lark, Transformer
from lark import Token as LarkToken
from lark.exceptions import UnexpectedInput, VisitError
from lark.lexer import Lexer

from .ast import (
    Assign, Binary, Block, Call, Expr, Expression, Function, Grouping, If,
    Literal, Logical, Print, Stmt, Unary, Var, Variable, While,
)
from .errors import LoxParseError
from .scanner import Scanner, Token, TokenKind

MAX_ARGUMENTS = 255

# Terminals that can only follow a complete expression.
EXPRESSION_END_FOLLOWERS = frozenset({'STAR', 'SLASH', 'AND', 'OR'})


LOX_GRAMMAR = r"""
    start: declaration*

    // Statements
    ?declaration: fun_decl
                | var_decl
                | statement

    fun_decl: FUN IDENTIFIER LEFT_PAREN [parameters] RIGHT_PAREN block
    parameters: IDENTIFIER (COMMA IDENTIFIER)*
    var_decl: VAR IDENTIFIER [EQUAL expression] SEMICOLON

    ?statement: expr_stmt
              | for_stmt
              | if_stmt
              | print_stmt
              | while_stmt
              | block

    expr_stmt: expression SEMICOLON
    for_stmt: FOR LEFT_PAREN for_init [expression] SEMICOLON [expression] RIGHT_PAREN statement
    for_init: var_decl | expr_stmt | SEMICOLON
    if_stmt: IF LEFT_PAREN expression RIGHT_PAREN statement [ELSE statement]
    print_stmt: PRINT expression SEMICOLON
    while_stmt: WHILE LEFT_PAREN expression RIGHT_PAREN statement
    block: LEFT_BRACE declaration* RIGHT_BRACE

    // Expressions with precedence
    ?expression: assignment
    ?assignment: assign
               | logic_or
    assign: IDENTIFIER EQUAL assignment
    ?logic_or: logic_and (OR logic_and)*
    ?logic_and: equality (AND equality)*
    ?equality: comparison ((BANG_EQUAL | EQUAL_EQUAL) comparison)*
    ?comparison: term ((GREATER | GREATER_EQUAL | LESS | LESS_EQUAL) term)*
    ?term: factor ((MINUS | PLUS) factor)*
    ?factor: unary ((SLASH | STAR) unary)*
    ?unary: (BANG | MINUS) unary
          | call
    ?call: primary
         | call LEFT_PAREN [arguments] RIGHT_PAREN
    arguments: expression (COMMA expression)*
    ?primary: literal
            | variable
            | grouping
    literal: TRUE | FALSE | NIL | NUMBER | STRING
    variable: IDENTIFIER
    grouping: LEFT_PAREN expression RIGHT_PAREN

    // Tokens come from the Lox scanner
    %declare LEFT_PAREN RIGHT_PAREN LEFT_BRACE RIGHT_BRACE COMMA SEMICOLON
    %declare MINUS PLUS SLASH STAR
    %declare BANG BANG_EQUAL EQUAL EQUAL_EQUAL GREATER GREATER_EQUAL LESS LESS_EQUAL
    %declare IDENTIFIER STRING NUMBER
    %declare AND ELSE FALSE FOR FUN IF NIL OR PRINT TRUE VAR WHILE
"""


class ScannerLexer(Lexer):
    """Feeds Lark with tokens produced by the Lox scanner.

    `ERROR` tokens are reported here, so lexical diagnostics surface as
    parse errors. The `EOF` token is not forwarded; Lark appends its own
    end marker.
    """

    def __init__(self, lexer_conf):
        pass

    def lex(self, data: str) -> Iterator[LarkToken]:
        for token in Scanner(data):
            if token.kind == TokenKind.EOF:
                return
            if token.kind == TokenKind.ERROR:
                raise LoxParseError(token.line, token.text)
            yield LarkToken(token.kind.name, token.text, line=token.line)


LOX_PARSER = Lark(
    LOX_GRAMMAR,
    parser='lalr',
    lexer=ScannerLexer,
    maybe_placeholders=True,
)


def to_token(token: LarkToken) -> Token:
    """Rebuild the Lox token a Lark token was made from."""
    return Token(TokenKind[token.type], token.value.encode('utf-8', errors='surrogateescape'), token.line)


def error_at(token: LarkToken, message: str) -> LoxParseError:
    return LoxParseError(token.line, message, f" at '{token.value}'")


class ASTTransformer(Transformer):
    """Transforms the raw parse tree into an AST.

    Grammar optionals are parsed with placeholders, so every rule sees its
    children at fixed positions, with `None` for an absent optional part.
    """

    def start(self, items):
        return list(items)

    # Declarations

    def fun_decl(self, items):
        name = to_token(items[1])
        params = items[3] if items[3] is not None else ()
        body = items[5]
        return Function(name, params, body.statements)

    def parameters(self, items):
        params = tuple(to_token(item) for item in items if item.type == 'IDENTIFIER')
        if len(params) > MAX_ARGUMENTS:
            raise error_at(items[-1], f"Can't have more than {MAX_ARGUMENTS} parameters.")
        return params

    def var_decl(self, items):
        return Var(to_token(items[1]), items[3])

    # Statements

    def expr_stmt(self, items):
        return Expression(items[0])

    def for_stmt(self, items):
        initializer: Optional[Stmt] = items[2]
        condition: Optional[Expr] = items[3]
        increment: Optional[Expr] = items[5]
        body: Stmt = items[7]

        if increment is not None:
            body = Block((body, Expression(increment)))
        if condition is None:
            condition = Literal(True)
        body = While(condition, body)
        if initializer is not None:
            body = Block((initializer, body))
        return body

    def for_init(self, items):
        init = items[0]
        return None if isinstance(init, LarkToken) else init

    def if_stmt(self, items):
        return If(items[2], items[4], items[6])

    def print_stmt(self, items):
        return Print(items[1])

    def while_stmt(self, items):
        return While(items[2], items[4])

    def block(self, items):
        return Block(tuple(items[1:-1]))

    # Expressions

    def assign(self, items):
        return Assign(to_token(items[0]), items[2])

    def fold_binary(self, items, node_type):
        # items pattern: expr (op expr)*
        left = items[0]
        i = 1
        while i < len(items):
            left = node_type(left, to_token(items[i]), items[i + 1])
            i += 2
        return left

    def logic_or(self, items):
        return self.fold_binary(items, Logical)

    def logic_and(self, items):
        return self.fold_binary(items, Logical)

    def equality(self, items):
        return self.fold_binary(items, Binary)

    def comparison(self, items):
        return self.fold_binary(items, Binary)

    def term(self, items):
        return self.fold_binary(items, Binary)

    def factor(self, items):
        return self.fold_binary(items, Binary)

    def unary(self, items):
        return Unary(to_token(items[0]), items[1])

    def call(self, items):
        callee = items[0]
        arguments = items[2] if items[2] is not None else ()
        if len(arguments) > MAX_ARGUMENTS:
            raise error_at(items[3], f"Can't have more than {MAX_ARGUMENTS} arguments.")
        return Call(callee, to_token(items[3]), tuple(arguments))

    def arguments(self, items):
        return [item for item in items if not isinstance(item, LarkToken)]

    def literal(self, items):
        token = items[0]
        if token.type == 'TRUE':
            return Literal(True)
        if token.type == 'FALSE':
            return Literal(False)
        if token.type == 'NIL':
            return Literal(None)
        if token.type == 'NUMBER':
            return Literal(float(token.value))
        if token.type == 'STRING':
            # no escapes in Lox; just drop the quotes
            return Literal(token.value[1:-1])
        raise NotImplementedError(f"unknown literal token {token}")

    def variable(self, items):
        return Variable(to_token(items[0]))

    def grouping(self, items):
        return Grouping(items[1])


def parse_program(source: Union[str, bytes]) -> List[Stmt]:
    """Parse Lox source code into a list of top-level statements.

    Any syntax or lexical error is raised as a LoxParseError.
    """
    if isinstance(source, bytes):
        source = source.decode('utf-8', errors='surrogateescape')
    try:
        tree = LOX_PARSER.parse(source)
    except UnexpectedInput as e:
        token = getattr(e, 'token', None)
        if token is None or token.type == '$END':
            line = getattr(token, 'line', None)
            raise LoxParseError(line if isinstance(line, int) else 0,
                                'Unexpected end of input.', ' at end') from None
        if token.type == 'EQUAL' and EXPRESSION_END_FOLLOWERS & set(getattr(e, 'expected', ())):
            raise error_at(token, 'Invalid assignment target.') from None
        raise error_at(token, 'Unexpected token.') from None
    try:
        return ASTTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, LoxParseError):
            raise e.orig_exc from None
        raise
