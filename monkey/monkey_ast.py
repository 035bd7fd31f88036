"""
AST node types produced by the parser and consumed by the evaluator.

Every node keeps the token it was built from and renders back to a
source-like string with `str()`. Operator nodes render fully parenthesised,
which makes precedence visible, e.g. `(1 + (2 * 3))`.
"""
from abc import ABC
from dataclasses import dataclass, field
from typing import Optional, Tuple

from monkey.monkey_lexer import Token


class Node(ABC):
    """Base class for all AST nodes."""
    token: Token

    def token_literal(self) -> str:
        return self.token.literal

    @property
    def loc(self) -> dict:
        return self.token.loc()


class Statement(Node):
    pass


class Expression(Node):
    pass


# =================================================================
# Expressions
# =================================================================

@dataclass(frozen=True)
class Identifier(Expression):
    token: Token = field(compare=False, repr=False)
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class IntegerLiteral(Expression):
    token: Token = field(compare=False, repr=False)
    value: int

    def __str__(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class StringLiteral(Expression):
    token: Token = field(compare=False, repr=False)
    value: str

    def __str__(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class Boolean(Expression):
    token: Token = field(compare=False, repr=False)
    value: bool

    def __str__(self) -> str:
        return self.token.literal


@dataclass(frozen=True)
class PrefixExpression(Expression):
    token: Token = field(compare=False, repr=False)
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"


@dataclass(frozen=True)
class InfixExpression(Expression):
    token: Token = field(compare=False, repr=False)
    left: Expression
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"


@dataclass(frozen=True)
class IfExpression(Expression):
    token: Token = field(compare=False, repr=False)
    condition: Expression
    consequence: 'BlockStatement'
    alternative: Optional['BlockStatement'] = None

    def __str__(self) -> str:
        out = f"if{self.condition} {self.consequence}"
        if self.alternative is not None:
            out += f"else{self.alternative}"
        return out


@dataclass(frozen=True)
class FunctionLiteral(Expression):
    token: Token = field(compare=False, repr=False)
    parameters: Tuple[Identifier, ...]
    body: 'BlockStatement'

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"{self.token_literal()}({params}) {self.body}"


@dataclass(frozen=True)
class CallExpression(Expression):
    token: Token = field(compare=False, repr=False)
    function: Expression
    arguments: Tuple[Expression, ...]

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.function}({args})"


@dataclass(frozen=True)
class ArrayLiteral(Expression):
    token: Token = field(compare=False, repr=False)
    elements: Tuple[Expression, ...]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"


@dataclass(frozen=True)
class IndexExpression(Expression):
    token: Token = field(compare=False, repr=False)
    left: Expression
    index: Expression

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


@dataclass(frozen=True)
class HashLiteral(Expression):
    """A `{k: v, ...}` literal. Pairs keep source order so later duplicates win."""
    token: Token = field(compare=False, repr=False)
    pairs: Tuple[Tuple[Expression, Expression], ...]

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}:{v}" for k, v in self.pairs) + "}"


# =================================================================
# Statements
# =================================================================

@dataclass(frozen=True)
class LetStatement(Statement):
    token: Token = field(compare=False, repr=False)
    name: Identifier
    value: Expression

    def __str__(self) -> str:
        return f"{self.token_literal()} {self.name} = {self.value};"


@dataclass(frozen=True)
class ReturnStatement(Statement):
    token: Token = field(compare=False, repr=False)
    return_value: Optional[Expression] = None

    def __str__(self) -> str:
        if self.return_value is None:
            return f"{self.token_literal()};"
        return f"{self.token_literal()} {self.return_value};"


@dataclass(frozen=True)
class ExpressionStatement(Statement):
    token: Token = field(compare=False, repr=False)
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)


@dataclass(frozen=True)
class BlockStatement(Statement):
    token: Token = field(compare=False, repr=False)
    statements: Tuple[Statement, ...]

    def __str__(self) -> str:
        return "".join(str(s) for s in self.statements)


@dataclass(frozen=True)
class Program(Node):
    """The root node: every top-level statement in source order."""
    statements: Tuple[Statement, ...] = ()

    def token_literal(self) -> str:
        if self.statements:
            return self.statements[0].token_literal()
        return ""

    @property
    def loc(self) -> dict:
        if self.statements:
            return self.statements[0].loc
        return {}

    def __str__(self) -> str:
        return "".join(str(s) for s in self.statements)
