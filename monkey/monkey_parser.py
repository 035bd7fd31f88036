"""
Recursive-descent statement parser with Pratt (precedence climbing)
expression parsing.

Errors never abort a parse: they are collected on `Parser.errors` and the
parser moves on to the next statement.
"""
import enum
from typing import Callable, Dict, List, Optional, Tuple

from monkey.monkey_lexer import Lexer, Token, TokenKind
from monkey.monkey_ast import (
    Program, Statement, Expression, LetStatement, ReturnStatement, ExpressionStatement,
    BlockStatement, Identifier, IntegerLiteral, StringLiteral, Boolean,
    PrefixExpression, InfixExpression, IfExpression, FunctionLiteral, CallExpression,
    ArrayLiteral, IndexExpression, HashLiteral
)

INT64_MAX = 2**63 - 1


class Precedence(enum.IntEnum):
    LOWEST = 1
    EQUALS = 2       # ==
    LESSGREATER = 3  # > or <
    SUM = 4          # +
    PRODUCT = 5      # *
    PREFIX = 6       # -X or !X
    CALL = 7         # myFunction(X)
    INDEX = 8        # array[index]


PRECEDENCES: Dict[TokenKind, Precedence] = {
    TokenKind.EQ: Precedence.EQUALS,
    TokenKind.NOT_EQ: Precedence.EQUALS,
    TokenKind.LT: Precedence.LESSGREATER,
    TokenKind.GT: Precedence.LESSGREATER,
    TokenKind.PLUS: Precedence.SUM,
    TokenKind.MINUS: Precedence.SUM,
    TokenKind.SLASH: Precedence.PRODUCT,
    TokenKind.ASTERISK: Precedence.PRODUCT,
    TokenKind.LPAREN: Precedence.CALL,
    TokenKind.LBRACKET: Precedence.INDEX,
}

PrefixParseFn = Callable[[], Optional[Expression]]
InfixParseFn = Callable[[Expression], Optional[Expression]]


class Parser:
    """Builds a `Program` from a `Lexer`'s token stream."""

    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.errors: List[str] = []
        # Token each error was reported at, parallel to `errors`.
        self.error_tokens: List[Token] = []

        self.cur_token: Token = lexer.next_token()
        self.peek_token: Token = lexer.next_token()

        self.prefix_parse_fns: Dict[TokenKind, PrefixParseFn] = {
            TokenKind.IDENT: self._parse_identifier,
            TokenKind.INT: self._parse_integer_literal,
            TokenKind.STRING: self._parse_string_literal,
            TokenKind.TRUE: self._parse_boolean,
            TokenKind.FALSE: self._parse_boolean,
            TokenKind.BANG: self._parse_prefix_expression,
            TokenKind.MINUS: self._parse_prefix_expression,
            TokenKind.LPAREN: self._parse_grouped_expression,
            TokenKind.IF: self._parse_if_expression,
            TokenKind.FUNCTION: self._parse_function_literal,
            TokenKind.LBRACKET: self._parse_array_literal,
            TokenKind.LBRACE: self._parse_hash_literal,
        }
        self.infix_parse_fns: Dict[TokenKind, InfixParseFn] = {
            kind: self._parse_infix_expression
            for kind in (
                TokenKind.PLUS, TokenKind.MINUS, TokenKind.SLASH, TokenKind.ASTERISK,
                TokenKind.EQ, TokenKind.NOT_EQ, TokenKind.LT, TokenKind.GT,
            )
        }
        self.infix_parse_fns[TokenKind.LPAREN] = self._parse_call_expression
        self.infix_parse_fns[TokenKind.LBRACKET] = self._parse_index_expression

    # -----------------------------------------------------------------
    # Token cursor helpers
    # -----------------------------------------------------------------

    def _next_token(self):
        self.cur_token = self.peek_token
        self.peek_token = self.lexer.next_token()

    def _cur_token_is(self, kind: TokenKind) -> bool:
        return self.cur_token.kind is kind

    def _peek_token_is(self, kind: TokenKind) -> bool:
        return self.peek_token.kind is kind

    def _expect_peek(self, kind: TokenKind) -> bool:
        """Advances only when the next token has the expected kind."""
        if self._peek_token_is(kind):
            self._next_token()
            return True
        self._peek_error(kind)
        return False

    def _error(self, msg: str, token: Token):
        self.errors.append(msg)
        self.error_tokens.append(token)

    def _peek_error(self, kind: TokenKind):
        self._error(f"expected next token to be {kind}, got {self.peek_token.kind} instead", self.peek_token)

    def _no_prefix_parse_fn_error(self, token: Token):
        if token.kind is TokenKind.ILLEGAL:
            self._error(f'illegal character "{token.literal}"', token)
            return
        self._error(f"no prefix parse function for {token.kind} found", token)

    def _peek_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.peek_token.kind, Precedence.LOWEST)

    def _cur_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.cur_token.kind, Precedence.LOWEST)

    def _synchronize(self):
        # Skip the rest of a malformed statement. Stops on ';' or just before
        # '}', EOF or the start of the next let/return statement.
        while not self._cur_token_is(TokenKind.SEMICOLON):
            if self.peek_token.kind in (TokenKind.EOF, TokenKind.RBRACE, TokenKind.LET, TokenKind.RETURN):
                return
            self._next_token()

    # -----------------------------------------------------------------
    # Statements
    # -----------------------------------------------------------------

    def parse_program(self) -> Program:
        statements: List[Statement] = []
        while not self._cur_token_is(TokenKind.EOF):
            stmt = self._parse_statement()
            if stmt is not None:
                statements.append(stmt)
            self._next_token()
        return Program(tuple(statements))

    def _parse_statement(self) -> Optional[Statement]:
        match self.cur_token.kind:
            case TokenKind.LET:
                return self._parse_let_statement()
            case TokenKind.RETURN:
                return self._parse_return_statement()
            case _:
                return self._parse_expression_statement()

    def _parse_let_statement(self) -> Optional[LetStatement]:
        token = self.cur_token
        if not self._expect_peek(TokenKind.IDENT):
            self._synchronize()
            return None
        name = Identifier(self.cur_token, self.cur_token.literal)
        if not self._expect_peek(TokenKind.ASSIGN):
            self._synchronize()
            return None
        self._next_token()

        value = self._parse_expression(Precedence.LOWEST)
        if value is None:
            self._synchronize()
            return None
        if not self._expect_peek(TokenKind.SEMICOLON):
            self._synchronize()
            return None
        return LetStatement(token, name, value)

    def _parse_return_statement(self) -> Optional[ReturnStatement]:
        token = self.cur_token
        if self._peek_token_is(TokenKind.SEMICOLON):
            self._next_token()
            return ReturnStatement(token, None)
        if self._peek_token_is(TokenKind.RBRACE) or self._peek_token_is(TokenKind.EOF):
            return ReturnStatement(token, None)

        self._next_token()
        value = self._parse_expression(Precedence.LOWEST)
        if value is None:
            return None
        if self._peek_token_is(TokenKind.SEMICOLON):
            self._next_token()
        return ReturnStatement(token, value)

    def _parse_expression_statement(self) -> Optional[ExpressionStatement]:
        token = self.cur_token
        expression = self._parse_expression(Precedence.LOWEST)
        if expression is None:
            return None
        if self._peek_token_is(TokenKind.SEMICOLON):
            self._next_token()
        return ExpressionStatement(token, expression)

    def _parse_block_statement(self) -> BlockStatement:
        token = self.cur_token
        statements: List[Statement] = []
        self._next_token()
        while not self._cur_token_is(TokenKind.RBRACE):
            if self._cur_token_is(TokenKind.EOF):
                self._error(f"expected next token to be {TokenKind.RBRACE}, got {TokenKind.EOF} instead", self.cur_token)
                break
            stmt = self._parse_statement()
            if stmt is not None:
                statements.append(stmt)
            self._next_token()
        return BlockStatement(token, tuple(statements))

    # -----------------------------------------------------------------
    # Expressions
    # -----------------------------------------------------------------

    def _parse_expression(self, precedence: Precedence) -> Optional[Expression]:
        prefix = self.prefix_parse_fns.get(self.cur_token.kind)
        if prefix is None:
            self._no_prefix_parse_fn_error(self.cur_token)
            return None
        left = prefix()
        if left is None:
            return None

        while not self._peek_token_is(TokenKind.SEMICOLON) and precedence < self._peek_precedence():
            infix = self.infix_parse_fns.get(self.peek_token.kind)
            if infix is None:
                return left
            self._next_token()
            left = infix(left)
            if left is None:
                return None
        return left

    def _parse_identifier(self) -> Expression:
        return Identifier(self.cur_token, self.cur_token.literal)

    def _parse_integer_literal(self) -> Optional[Expression]:
        token = self.cur_token
        value = int(token.literal)
        if value > INT64_MAX:
            self._error(f'could not parse "{token.literal}" as integer', token)
            return None
        return IntegerLiteral(token, value)

    def _parse_string_literal(self) -> Expression:
        return StringLiteral(self.cur_token, self.cur_token.literal)

    def _parse_boolean(self) -> Expression:
        return Boolean(self.cur_token, self._cur_token_is(TokenKind.TRUE))

    def _parse_prefix_expression(self) -> Optional[Expression]:
        token = self.cur_token
        self._next_token()
        right = self._parse_expression(Precedence.PREFIX)
        if right is None:
            return None
        return PrefixExpression(token, token.literal, right)

    def _parse_infix_expression(self, left: Expression) -> Optional[Expression]:
        token = self.cur_token
        precedence = self._cur_precedence()
        self._next_token()
        right = self._parse_expression(precedence)
        if right is None:
            return None
        return InfixExpression(token, left, token.literal, right)

    def _parse_grouped_expression(self) -> Optional[Expression]:
        self._next_token()
        expression = self._parse_expression(Precedence.LOWEST)
        if expression is None:
            return None
        if not self._expect_peek(TokenKind.RPAREN):
            return None
        return expression

    def _parse_if_expression(self) -> Optional[Expression]:
        token = self.cur_token
        if not self._expect_peek(TokenKind.LPAREN):
            return None
        self._next_token()
        condition = self._parse_expression(Precedence.LOWEST)
        if condition is None:
            return None
        if not self._expect_peek(TokenKind.RPAREN):
            return None
        if not self._expect_peek(TokenKind.LBRACE):
            return None
        consequence = self._parse_block_statement()

        alternative = None
        if self._peek_token_is(TokenKind.ELSE):
            self._next_token()
            if not self._expect_peek(TokenKind.LBRACE):
                return None
            alternative = self._parse_block_statement()
        return IfExpression(token, condition, consequence, alternative)

    def _parse_function_literal(self) -> Optional[Expression]:
        token = self.cur_token
        if not self._expect_peek(TokenKind.LPAREN):
            return None
        parameters = self._parse_function_parameters()
        if parameters is None:
            return None
        if not self._expect_peek(TokenKind.LBRACE):
            return None
        body = self._parse_block_statement()
        return FunctionLiteral(token, parameters, body)

    def _parse_function_parameters(self) -> Optional[Tuple[Identifier, ...]]:
        identifiers: List[Identifier] = []
        if self._peek_token_is(TokenKind.RPAREN):
            self._next_token()
            return ()

        if not self._expect_peek(TokenKind.IDENT):
            return None
        identifiers.append(Identifier(self.cur_token, self.cur_token.literal))

        while self._peek_token_is(TokenKind.COMMA):
            self._next_token()
            if not self._expect_peek(TokenKind.IDENT):
                return None
            identifiers.append(Identifier(self.cur_token, self.cur_token.literal))

        if not self._expect_peek(TokenKind.RPAREN):
            return None
        return tuple(identifiers)

    def _parse_call_expression(self, function: Expression) -> Optional[Expression]:
        token = self.cur_token
        arguments = self._parse_expression_list(TokenKind.RPAREN)
        if arguments is None:
            return None
        return CallExpression(token, function, arguments)

    def _parse_expression_list(self, end: TokenKind) -> Optional[Tuple[Expression, ...]]:
        items: List[Expression] = []
        if self._peek_token_is(end):
            self._next_token()
            return ()

        self._next_token()
        item = self._parse_expression(Precedence.LOWEST)
        if item is None:
            return None
        items.append(item)

        while self._peek_token_is(TokenKind.COMMA):
            self._next_token()
            self._next_token()
            item = self._parse_expression(Precedence.LOWEST)
            if item is None:
                return None
            items.append(item)

        if not self._expect_peek(end):
            return None
        return tuple(items)

    def _parse_array_literal(self) -> Optional[Expression]:
        token = self.cur_token
        elements = self._parse_expression_list(TokenKind.RBRACKET)
        if elements is None:
            return None
        return ArrayLiteral(token, elements)

    def _parse_index_expression(self, left: Expression) -> Optional[Expression]:
        token = self.cur_token
        self._next_token()
        index = self._parse_expression(Precedence.LOWEST)
        if index is None:
            return None
        if not self._expect_peek(TokenKind.RBRACKET):
            return None
        return IndexExpression(token, left, index)

    def _parse_hash_literal(self) -> Optional[Expression]:
        token = self.cur_token
        pairs: List[Tuple[Expression, Expression]] = []
        if self._peek_token_is(TokenKind.RBRACE):
            self._next_token()
            return HashLiteral(token, ())

        while True:
            self._next_token()
            key = self._parse_expression(Precedence.LOWEST)
            if key is None:
                return None
            if not self._expect_peek(TokenKind.COLON):
                return None
            self._next_token()
            value = self._parse_expression(Precedence.LOWEST)
            if value is None:
                return None
            pairs.append((key, value))

            if not self._peek_token_is(TokenKind.COMMA):
                break
            self._next_token()

        if not self._expect_peek(TokenKind.RBRACE):
            return None
        return HashLiteral(token, tuple(pairs))


def parse(source: str) -> Tuple[Program, List[str]]:
    """Parses `source`, returning the program and the list of syntax errors."""
    parser = Parser(Lexer(source))
    program = parser.parse_program()
    return program, parser.errors
