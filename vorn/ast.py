"""Abstract Syntax Tree (AST) definitions for the Vorn language.

Every node keeps the token it was built from, which gives it a source
position for error messages. `string()` renders a node back to source
text; the rendering is fully parenthesised so that lexing and parsing it
again yields a tree that renders identically.

`Program`, `BlockStatement` and `ForStatement` are scopes: they link back
to the enclosing scope and expose the statements declared directly in
them, which the parser uses for its const and redeclaration checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from . import token as tok
from .token import Token


@dataclass(eq=False)
class Node:
    """Base class for all AST nodes."""
    token: Token

    def token_literal(self) -> str:
        return self.token.literal

    @property
    def line(self) -> int:
        return self.token.line

    @property
    def column(self) -> int:
        return self.token.column

    def string(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.string()


class Statement(Node):
    pass


class Expression(Node):
    pass


class Scope:
    """A region of the tree that can hold declarations."""
    parent_scope: Optional['Scope'] = None

    def scope_statements(self) -> List[Statement]:
        raise NotImplementedError


def _str(node: Optional[Node]) -> str:
    return node.string() if node is not None else ''


###############################################################################
# Program
###############################################################################


@dataclass(eq=False)
class Program(Scope):
    statements: List[Statement] = field(default_factory=list)
    parent_scope: Optional[Scope] = field(default=None, repr=False)

    def token_literal(self) -> str:
        if self.statements:
            return self.statements[0].token_literal()
        return ''

    @property
    def line(self) -> int:
        return self.statements[0].line if self.statements else 0

    @property
    def column(self) -> int:
        return self.statements[0].column if self.statements else 0

    def scope_statements(self) -> List[Statement]:
        return self.statements

    def string(self) -> str:
        return '\n'.join(s.string() for s in self.statements if s is not None)

    def __str__(self) -> str:
        return self.string()


###############################################################################
# Statements
###############################################################################


@dataclass(eq=False)
class ExpressionStatement(Statement):
    expression: Optional[Expression] = None

    def string(self) -> str:
        if self.expression is None:
            return ''
        return self.expression.string() + ';'


@dataclass(eq=False)
class VariableStatement(Statement):
    name: Optional['Identifier'] = None
    value: Optional[Expression] = None

    def is_const(self) -> bool:
        return self.token.type == tok.CONST

    def string(self) -> str:
        return f"{self.token_literal()} {_str(self.name)} = {_str(self.value)};"


@dataclass(eq=False)
class ReturnStatement(Statement):
    return_value: Optional[Expression] = None

    def string(self) -> str:
        if self.return_value is None:
            return 'return;'
        return f"return {self.return_value.string()};"


@dataclass(eq=False)
class BlockStatement(Statement, Scope):
    statements: List[Statement] = field(default_factory=list)
    parent_scope: Optional[Scope] = field(default=None, repr=False)
    # Set when the block is a function body; parameters shadow outer names
    parameters: List['Identifier'] = field(default_factory=list)

    def scope_statements(self) -> List[Statement]:
        return self.statements

    def string(self) -> str:
        inner = [s.string() for s in self.statements if s is not None]
        if not inner:
            return '{ }'
        return '{ ' + ' '.join(inner) + ' }'


@dataclass(eq=False)
class WhileStatement(Statement):
    condition: Optional[Expression] = None
    body: Optional[BlockStatement] = None

    def string(self) -> str:
        return f"while ({_str(self.condition)}) {_str(self.body)}"


@dataclass(eq=False)
class ForStatement(Statement, Scope):
    init: Optional[Statement] = None
    condition: Optional[Expression] = None
    update: Optional[Expression] = None
    body: Optional[BlockStatement] = None
    parent_scope: Optional[Scope] = field(default=None, repr=False)

    def scope_statements(self) -> List[Statement]:
        return [self.init] if self.init is not None else []

    def string(self) -> str:
        init = self.init.string() if self.init is not None else ';'
        return f"for ({init} {_str(self.condition)}; {_str(self.update)}) {_str(self.body)}"


@dataclass(eq=False)
class FunctionStatement(Statement):
    name: Optional['Identifier'] = None
    parameters: List['Identifier'] = field(default_factory=list)
    body: Optional[BlockStatement] = None

    def string(self) -> str:
        params = ', '.join(p.string() for p in self.parameters)
        return f"func {_str(self.name)}({params}) {_str(self.body)}"


###############################################################################
# Expressions
###############################################################################


@dataclass(eq=False)
class Identifier(Expression):
    value: str = ''

    def string(self) -> str:
        return self.value


@dataclass(eq=False)
class IntegerLiteral(Expression):
    value: int = 0

    def string(self) -> str:
        return self.token_literal()


@dataclass(eq=False)
class FloatLiteral(Expression):
    value: float = 0.0

    def string(self) -> str:
        return self.token_literal()


@dataclass(eq=False)
class BooleanLiteral(Expression):
    value: bool = False

    def string(self) -> str:
        return 'true' if self.value else 'false'


@dataclass(eq=False)
class NullLiteral(Expression):
    def string(self) -> str:
        return 'null'


@dataclass(eq=False)
class StringLiteral(Expression):
    value: str = ''

    def string(self) -> str:
        return '"' + self.value + '"'


@dataclass(eq=False)
class ArrayLiteral(Expression):
    elements: List[Expression] = field(default_factory=list)

    def string(self) -> str:
        return '[' + ', '.join(_str(e) for e in self.elements) + ']'


@dataclass(eq=False)
class HashLiteral(Expression):
    pairs: List[Tuple[Expression, Expression]] = field(default_factory=list)

    def string(self) -> str:
        return '{' + ', '.join(f"{_str(k)}: {_str(v)}" for k, v in self.pairs) + '}'


@dataclass(eq=False)
class FunctionLiteral(Expression):
    parameters: List[Identifier] = field(default_factory=list)
    body: Optional[BlockStatement] = None

    def string(self) -> str:
        params = ', '.join(p.string() for p in self.parameters)
        return f"func({params}) {_str(self.body)}"


@dataclass(eq=False)
class PrefixExpression(Expression):
    operator: str = ''
    right: Optional[Expression] = None

    def string(self) -> str:
        return f"({self.operator}{_str(self.right)})"


@dataclass(eq=False)
class InfixExpression(Expression):
    left: Optional[Expression] = None
    operator: str = ''
    right: Optional[Expression] = None

    def string(self) -> str:
        return f"({_str(self.left)} {self.operator} {_str(self.right)})"


@dataclass(eq=False)
class IfExpression(Expression):
    condition: Optional[Expression] = None
    consequence: Optional[BlockStatement] = None
    alternative: Optional[BlockStatement] = None

    def string(self) -> str:
        out = f"if ({_str(self.condition)}) {_str(self.consequence)}"
        if self.alternative is not None:
            out += f" else {self.alternative.string()}"
        return out


@dataclass(eq=False)
class CallExpression(Expression):
    function: Optional[Expression] = None
    arguments: List[Expression] = field(default_factory=list)

    def string(self) -> str:
        args = ', '.join(_str(a) for a in self.arguments)
        return f"{_str(self.function)}({args})"


@dataclass(eq=False)
class IndexExpression(Expression):
    left: Optional[Expression] = None
    index: Optional[Expression] = None

    def string(self) -> str:
        return f"({_str(self.left)}[{_str(self.index)}])"


@dataclass(eq=False)
class ChainingExpression(Expression):
    left: Optional[Expression] = None
    # Identifier for property-style access, CallExpression for method calls
    right: Optional[Expression] = None

    def string(self) -> str:
        return f"({_str(self.left)}.{_str(self.right)})"


@dataclass(eq=False)
class ReassignmentExpression(Expression):
    name: Optional[Identifier] = None
    value: Optional[Expression] = None

    def string(self) -> str:
        return f"{_str(self.name)} = {_str(self.value)}"


@dataclass(eq=False)
class IncrementDecrementExpression(Expression):
    target: Optional[Identifier] = None
    operator: str = ''
    prefix: bool = False

    def string(self) -> str:
        if self.prefix:
            return f"({self.operator}{_str(self.target)})"
        return f"({_str(self.target)}{self.operator})"


@dataclass(eq=False)
class BreakExpression(Expression):
    def string(self) -> str:
        return 'break'


@dataclass(eq=False)
class ContinueExpression(Expression):
    def string(self) -> str:
        return 'continue'
