"""
Tokenizer for the Monkey language.

The lexer reads the source one character at a time with a single character of
lookahead and hands out `Token` objects on demand.
"""
import enum
from dataclasses import dataclass
from string import ascii_letters, digits
from typing import Iterator


class TokenKind(enum.Enum):
    ILLEGAL = "ILLEGAL"
    EOF = "EOF"

    # Identifiers and literals
    IDENT = "IDENT"
    INT = "INT"
    STRING = "STRING"

    # Operators
    ASSIGN = "="
    PLUS = "+"
    MINUS = "-"
    BANG = "!"
    ASTERISK = "*"
    SLASH = "/"
    LT = "<"
    GT = ">"
    EQ = "=="
    NOT_EQ = "!="

    # Delimiters
    COMMA = ","
    SEMICOLON = ";"
    COLON = ":"
    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACKET = "["
    RBRACKET = "]"

    # Keywords
    FUNCTION = "FUNCTION"
    LET = "LET"
    TRUE = "TRUE"
    FALSE = "FALSE"
    IF = "IF"
    ELSE = "ELSE"
    RETURN = "RETURN"

    def __str__(self) -> str:
        return self.value


KEYWORDS = {
    "fn": TokenKind.FUNCTION,
    "let": TokenKind.LET,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "return": TokenKind.RETURN,
}

SINGLE_CHAR_TOKENS = {
    "=": TokenKind.ASSIGN,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "!": TokenKind.BANG,
    "*": TokenKind.ASTERISK,
    "/": TokenKind.SLASH,
    "<": TokenKind.LT,
    ">": TokenKind.GT,
    ",": TokenKind.COMMA,
    ";": TokenKind.SEMICOLON,
    ":": TokenKind.COLON,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "{": TokenKind.LBRACE,
    "}": TokenKind.RBRACE,
    "[": TokenKind.LBRACKET,
    "]": TokenKind.RBRACKET,
}

# Two-character operators keyed by their first character.
TWO_CHAR_TOKENS = {
    "=": ("==", TokenKind.EQ),
    "!": ("!=", TokenKind.NOT_EQ),
}

WHITESPACE = " \t\n\r"
IDENT_START = ascii_letters + "_"
IDENT_CHARS = IDENT_START + digits


def lookup_ident(ident: str) -> TokenKind:
    """Returns the keyword kind for `ident`, or IDENT for user names."""
    return KEYWORDS.get(ident, TokenKind.IDENT)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    literal: str
    line: int = 0
    col: int = 0

    def loc(self) -> dict:
        return {'line': self.line, 'col': self.col, 'tag': self.kind.value, 'text': self.literal}

    def __repr__(self) -> str:
        return f"Token({self.kind.name}, {self.literal!r}, {self.line}:{self.col})"


class Lexer:
    """Turns Monkey source text into a stream of tokens.

    `next_token()` may be called any number of times; once the input is used up it
    keeps returning EOF. A lexer cannot be rewound, build a new one to rescan.
    """
    def __init__(self, source: str):
        self.source = source
        self.position = 0       # index of self.ch
        self.read_position = 0  # index of the next character
        self.ch = ""
        self.line = 1
        self.col = 0
        self._read_char()

    def _read_char(self):
        if self.ch == "\n":
            self.line += 1
            self.col = 0
        if self.read_position >= len(self.source):
            self.ch = ""
        else:
            self.ch = self.source[self.read_position]
        self.position = self.read_position
        self.read_position += 1
        self.col += 1

    def _peek_char(self) -> str:
        if self.read_position >= len(self.source):
            return ""
        return self.source[self.read_position]

    def _skip_whitespace(self):
        while self.ch and self.ch in WHITESPACE:
            self._read_char()

    def _read_while(self, allowed: str) -> str:
        start = self.position
        while self.ch and self.ch in allowed:
            self._read_char()
        return self.source[start:self.position]

    def _read_string(self) -> str:
        # Opening quote is the current character.
        start = self.position + 1
        while True:
            self._read_char()
            if self.ch == '"' or self.ch == "":
                break
        return self.source[start:self.position]

    def next_token(self) -> Token:
        self._skip_whitespace()
        line, col = self.line, self.col
        ch = self.ch

        if ch == "":
            return Token(TokenKind.EOF, "", line, col)

        if ch in TWO_CHAR_TOKENS and self._peek_char() == TWO_CHAR_TOKENS[ch][0][1]:
            literal, kind = TWO_CHAR_TOKENS[ch]
            self._read_char()
            self._read_char()
            return Token(kind, literal, line, col)

        if ch in SINGLE_CHAR_TOKENS:
            self._read_char()
            return Token(SINGLE_CHAR_TOKENS[ch], ch, line, col)

        if ch == '"':
            literal = self._read_string()
            # Step past the closing quote (no-op at end of input).
            self._read_char()
            return Token(TokenKind.STRING, literal, line, col)

        if ch in IDENT_START:
            ident = self._read_while(IDENT_CHARS)
            return Token(lookup_ident(ident), ident, line, col)

        if ch in digits:
            return Token(TokenKind.INT, self._read_while(digits), line, col)

        self._read_char()
        return Token(TokenKind.ILLEGAL, ch, line, col)

    def __iter__(self) -> Iterator[Token]:
        """Yields tokens up to and including the first EOF."""
        while True:
            tok = self.next_token()
            yield tok
            if tok.kind is TokenKind.EOF:
                return


def tokenize(source: str) -> list:
    return list(Lexer(source))
