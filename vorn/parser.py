"""Pratt parser for the Vorn language.

The parser pulls tokens from a `Lexer` one at a time, keeping the current
and the next token in view. Prefix and infix handlers are registered per
token kind and the binding power of an infix token decides how far an
expression extends.

Syntax errors are collected rather than raised so that one pass reports
every problem it can find. While statements are appended to their scope
the parser also rejects two semantic mistakes: declaring the same name
twice in one scope, and assigning to a name that resolves to a `const`.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Tuple

from . import token as tok
from .ast import (
    Program, Statement, Expression, Scope,
    ExpressionStatement, VariableStatement, ReturnStatement, BlockStatement,
    WhileStatement, ForStatement, FunctionStatement,
    Identifier, IntegerLiteral, FloatLiteral, BooleanLiteral, NullLiteral,
    StringLiteral, ArrayLiteral, HashLiteral, FunctionLiteral,
    PrefixExpression, InfixExpression, IfExpression, CallExpression,
    IndexExpression, ChainingExpression, ReassignmentExpression,
    IncrementDecrementExpression, BreakExpression, ContinueExpression,
)
from .errors import ParseError
from .lexer import Lexer
from .token import Token
from .types import parse_integer

###############################################################################
# Precedence
###############################################################################

LOWEST = 1
OR = 2
AND = 3
BITWISE_OR = 4
BITWISE_XOR = 5
BITWISE_AND = 6
EQUALS = 7
LESS_GREATER = 8
SHIFT = 9
SUM = 10
PRODUCT = 11
PREFIX = 12
CALL = 13
INDEX = 14
CHAIN = 15

PRECEDENCES: Dict[str, int] = {
    tok.OR: OR,
    tok.AND: AND,
    tok.BITWISE_OR: BITWISE_OR,
    tok.BITWISE_XOR: BITWISE_XOR,
    tok.BITWISE_AND: BITWISE_AND,
    tok.EQ: EQUALS,
    tok.NOT_EQ: EQUALS,
    tok.LT: LESS_GREATER,
    tok.GT: LESS_GREATER,
    tok.LTE: LESS_GREATER,
    tok.GTE: LESS_GREATER,
    tok.LEFT_SHIFT: SHIFT,
    tok.RIGHT_SHIFT: SHIFT,
    tok.PLUS: SUM,
    tok.MINUS: SUM,
    tok.ASTERISK: PRODUCT,
    tok.SLASH: PRODUCT,
    tok.PERCENT: PRODUCT,
    tok.LPAREN: CALL,
    tok.INCREMENT: CALL,
    tok.DECREMENT: CALL,
    tok.LBRACKET: INDEX,
    tok.DOT: CHAIN,
}

PrefixParseFn = Callable[[], Optional[Expression]]
InfixParseFn = Callable[[Expression], Optional[Expression]]


class Parser:
    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.errors: List[str] = []
        self.scope: Optional[Scope] = None

        self.cur_token: Token = lexer.next_token()
        self.peek_token: Token = lexer.next_token()

        self.prefix_parse_fns: Dict[str, PrefixParseFn] = {
            tok.IDENT: self.parse_identifier,
            tok.INT: self.parse_integer_literal,
            tok.FLOAT: self.parse_float_literal,
            tok.STRING: self.parse_string_literal,
            tok.TRUE: self.parse_boolean,
            tok.FALSE: self.parse_boolean,
            tok.NULL: self.parse_null,
            tok.EXCLAMATION: self.parse_prefix_expression,
            tok.MINUS: self.parse_prefix_expression,
            tok.BITWISE_NOT: self.parse_prefix_expression,
            tok.INCREMENT: self.parse_prefix_increment,
            tok.DECREMENT: self.parse_prefix_increment,
            tok.LPAREN: self.parse_grouped_expression,
            tok.IF: self.parse_if_expression,
            tok.FUNCTION: self.parse_function_literal,
            tok.LBRACKET: self.parse_array_literal,
            tok.LBRACE: self.parse_hash_literal,
            tok.BREAK: self.parse_break,
            tok.CONTINUE: self.parse_continue,
        }
        self.infix_parse_fns: Dict[str, InfixParseFn] = {
            kind: self.parse_infix_expression
            for kind, precedence in PRECEDENCES.items()
            if precedence < PREFIX
        }
        self.infix_parse_fns[tok.LPAREN] = self.parse_call_expression
        self.infix_parse_fns[tok.LBRACKET] = self.parse_index_expression
        self.infix_parse_fns[tok.DOT] = self.parse_chaining_expression
        self.infix_parse_fns[tok.INCREMENT] = self.parse_postfix_increment
        self.infix_parse_fns[tok.DECREMENT] = self.parse_postfix_increment

    ###########################################################################
    # Token helpers
    ###########################################################################

    def next_token(self) -> None:
        self.cur_token = self.peek_token
        self.peek_token = self.lexer.next_token()

    def cur_token_is(self, kind: str) -> bool:
        return self.cur_token.type == kind

    def peek_token_is(self, kind: str) -> bool:
        return self.peek_token.type == kind

    def expect_peek(self, kind: str) -> bool:
        if self.peek_token_is(kind):
            self.next_token()
            return True
        self.peek_error(kind)
        return False

    def peek_precedence(self) -> int:
        return PRECEDENCES.get(self.peek_token.type, LOWEST)

    def cur_precedence(self) -> int:
        return PRECEDENCES.get(self.cur_token.type, LOWEST)

    def add_error(self, message: str, at: Token) -> None:
        self.errors.append(f"[{at.line}:{at.column}]: {message}")

    def peek_error(self, kind: str) -> None:
        self.add_error(f"expected '{kind}', got {self.peek_token.type} instead", self.peek_token)

    def no_prefix_parse_fn_error(self, at: Token) -> None:
        shown = at.type
        if at.type == tok.ILLEGAL and at.literal:
            shown = at.literal
        self.add_error(f"unexpected token {shown}", at)

    def skip_to_semicolon(self) -> None:
        # Trailing tokens up to ';' belong to the statement; a closing
        # brace or end of input also ends it
        while not self.cur_token_is(tok.SEMICOLON):
            if self.peek_token_is(tok.EOF) or self.peek_token_is(tok.RBRACE):
                return
            self.next_token()

    ###########################################################################
    # Scope checks
    ###########################################################################

    def append_statement(self, scope: Scope, statement: Statement) -> None:
        self.check_const_reassignment(scope, statement)
        self.check_redefinition(scope, statement)
        scope.scope_statements().append(statement)

    def check_redefinition(self, scope: Scope, statement: Statement) -> None:
        if not isinstance(statement, VariableStatement) or statement.name is None:
            return
        name = statement.name.value
        for existing in scope.scope_statements():
            if isinstance(existing, VariableStatement) and existing.name is not None \
                    and existing.name.value == name:
                self.errors.append(f"[{statement.line}:{statement.column}] can not redefine variable {name}.")
                return

    def check_const_reassignment(self, scope: Scope, node) -> None:
        expression = node.expression if isinstance(node, ExpressionStatement) else node
        if isinstance(expression, ReassignmentExpression) and expression.name is not None:
            name = expression.name.value
        elif isinstance(expression, IncrementDecrementExpression) and expression.target is not None:
            name = expression.target.value
        else:
            return

        current: Optional[Scope] = scope
        while current is not None:
            for existing in current.scope_statements():
                if isinstance(existing, VariableStatement) and existing.name is not None \
                        and existing.name.value == name:
                    if existing.is_const():
                        at = expression.token
                        self.errors.append(f"[{at.line}:{at.column}] can not reassign constant {name}.")
                    return
            if isinstance(current, BlockStatement) and any(p.value == name for p in current.parameters):
                return
            current = current.parent_scope

    ###########################################################################
    # Statements
    ###########################################################################

    def parse_program(self) -> Program:
        program = Program()
        self.scope = program
        while not self.cur_token_is(tok.EOF):
            stmt = self.parse_statement()
            if stmt is not None:
                self.append_statement(program, stmt)
            self.next_token()
        return program

    def parse_statement(self) -> Optional[Statement]:
        kind = self.cur_token.type
        if kind in (tok.LET, tok.CONST):
            return self.parse_variable_statement()
        if kind == tok.RETURN:
            return self.parse_return_statement()
        if kind == tok.FUNCTION and self.peek_token_is(tok.IDENT):
            return self.parse_function_statement()
        if kind == tok.WHILE:
            return self.parse_while_statement()
        if kind == tok.FOR:
            return self.parse_for_statement()
        if kind == tok.SEMICOLON:
            return None
        return self.parse_expression_statement()

    def parse_variable_statement(self) -> Optional[VariableStatement]:
        stmt = VariableStatement(token=self.cur_token)
        if not self.expect_peek(tok.IDENT):
            return None
        stmt.name = Identifier(token=self.cur_token, value=self.cur_token.literal)
        if not self.expect_peek(tok.ASSIGN):
            return None
        self.next_token()
        stmt.value = self.parse_expression(LOWEST)
        self.skip_to_semicolon()
        if stmt.value is None:
            return None
        return stmt

    def parse_return_statement(self) -> ReturnStatement:
        stmt = ReturnStatement(token=self.cur_token)
        if self.peek_token_is(tok.SEMICOLON):
            self.next_token()
            return stmt
        if self.peek_token_is(tok.RBRACE) or self.peek_token_is(tok.EOF):
            return stmt
        self.next_token()
        stmt.return_value = self.parse_expression(LOWEST)
        self.skip_to_semicolon()
        return stmt

    def parse_expression_statement(self) -> Optional[ExpressionStatement]:
        stmt = ExpressionStatement(token=self.cur_token)
        stmt.expression = self.parse_expression(LOWEST)
        if self.peek_token_is(tok.SEMICOLON):
            self.next_token()
        if stmt.expression is None:
            return None
        return stmt

    def parse_block_statement(self, parameters: Optional[List[Identifier]] = None) -> BlockStatement:
        block = BlockStatement(token=self.cur_token, parent_scope=self.scope,
                               parameters=list(parameters or []))
        self.scope = block
        try:
            self.next_token()
            while not self.cur_token_is(tok.RBRACE) and not self.cur_token_is(tok.EOF):
                stmt = self.parse_statement()
                if stmt is not None:
                    self.append_statement(block, stmt)
                self.next_token()
            if self.cur_token_is(tok.EOF):
                self.add_error(f"expected '{tok.RBRACE}', got {tok.EOF} instead", self.cur_token)
        finally:
            self.scope = block.parent_scope
        return block

    def parse_function_statement(self) -> Optional[FunctionStatement]:
        stmt = FunctionStatement(token=self.cur_token)
        self.next_token()
        stmt.name = Identifier(token=self.cur_token, value=self.cur_token.literal)
        if not self.expect_peek(tok.LPAREN):
            return None
        parameters = self.parse_function_parameters()
        if parameters is None:
            return None
        stmt.parameters = parameters
        if not self.expect_peek(tok.LBRACE):
            return None
        stmt.body = self.parse_block_statement(parameters)
        return stmt

    def parse_while_statement(self) -> Optional[WhileStatement]:
        stmt = WhileStatement(token=self.cur_token)
        if not self.expect_peek(tok.LPAREN):
            return None
        self.next_token()
        stmt.condition = self.parse_expression(LOWEST)
        if not self.expect_peek(tok.RPAREN):
            return None
        if not self.expect_peek(tok.LBRACE):
            return None
        stmt.body = self.parse_block_statement()
        return stmt

    def parse_for_statement(self) -> Optional[ForStatement]:
        """Parse ``for (init; condition; update) { body }``.

        Every clause may be left empty. The loop is its own scope so that a
        variable declared by `init` is visible to the other clauses and the
        body but not after the loop.
        """
        stmt = ForStatement(token=self.cur_token, parent_scope=self.scope)
        self.scope = stmt
        try:
            if not self.expect_peek(tok.LPAREN):
                return None
            self.next_token()

            if not self.cur_token_is(tok.SEMICOLON):
                if self.cur_token_is(tok.LET) or self.cur_token_is(tok.CONST):
                    init = self.parse_variable_statement()
                else:
                    init = self.parse_expression_statement()
                if init is None:
                    return None
                self.check_const_reassignment(stmt, init)
                stmt.init = init
                if not self.cur_token_is(tok.SEMICOLON) and not self.expect_peek(tok.SEMICOLON):
                    return None

            self.next_token()
            if not self.cur_token_is(tok.SEMICOLON):
                stmt.condition = self.parse_expression(LOWEST)
                if not self.expect_peek(tok.SEMICOLON):
                    return None

            self.next_token()
            if not self.cur_token_is(tok.RPAREN):
                stmt.update = self.parse_expression(LOWEST)
                if stmt.update is not None:
                    self.check_const_reassignment(stmt, stmt.update)
                if not self.expect_peek(tok.RPAREN):
                    return None

            if not self.expect_peek(tok.LBRACE):
                return None
            stmt.body = self.parse_block_statement()
        finally:
            self.scope = stmt.parent_scope
        return stmt

    ###########################################################################
    # Expressions
    ###########################################################################

    def parse_expression(self, precedence: int) -> Optional[Expression]:
        prefix = self.prefix_parse_fns.get(self.cur_token.type)
        if prefix is None:
            self.no_prefix_parse_fn_error(self.cur_token)
            return None
        left = prefix()

        while left is not None and not self.peek_token_is(tok.SEMICOLON) \
                and precedence < self.peek_precedence():
            infix = self.infix_parse_fns.get(self.peek_token.type)
            if infix is None:
                return left
            self.next_token()
            left = infix(left)
        return left

    def parse_identifier(self) -> Optional[Expression]:
        ident = Identifier(token=self.cur_token, value=self.cur_token.literal)
        if self.peek_token.type in tok.ASSIGNMENT_OPERATORS:
            return self.parse_reassignment(ident)
        return ident

    def parse_reassignment(self, name: Identifier) -> Optional[ReassignmentExpression]:
        self.next_token()
        op_token = self.cur_token
        expr = ReassignmentExpression(token=op_token, name=name)
        self.next_token()
        value = self.parse_expression(LOWEST)
        if value is None:
            return None

        # `x += v` is stored as `x = (x + v)`
        operator = tok.ASSIGNMENT_OPERATORS[op_token.type]
        if operator:
            value = InfixExpression(
                token=Token(operator, operator, op_token.line, op_token.column),
                left=Identifier(token=name.token, value=name.value),
                operator=operator,
                right=value,
            )
        expr.value = value
        return expr

    def parse_integer_literal(self) -> Optional[IntegerLiteral]:
        literal = self.cur_token.literal
        try:
            value = parse_integer(literal)
        except ValueError:
            self.add_error(f'could not parse "{literal}" as integer', self.cur_token)
            return None
        return IntegerLiteral(token=self.cur_token, value=value)

    def parse_float_literal(self) -> Optional[FloatLiteral]:
        literal = self.cur_token.literal
        try:
            value = float(literal)
        except ValueError:
            self.add_error(f'could not parse "{literal}" as float', self.cur_token)
            return None
        return FloatLiteral(token=self.cur_token, value=value)

    def parse_string_literal(self) -> StringLiteral:
        return StringLiteral(token=self.cur_token, value=self.cur_token.literal)

    def parse_boolean(self) -> BooleanLiteral:
        return BooleanLiteral(token=self.cur_token, value=self.cur_token_is(tok.TRUE))

    def parse_null(self) -> NullLiteral:
        return NullLiteral(token=self.cur_token)

    def parse_break(self) -> BreakExpression:
        return BreakExpression(token=self.cur_token)

    def parse_continue(self) -> ContinueExpression:
        return ContinueExpression(token=self.cur_token)

    def parse_prefix_expression(self) -> Optional[PrefixExpression]:
        expr = PrefixExpression(token=self.cur_token, operator=self.cur_token.literal)
        self.next_token()
        expr.right = self.parse_expression(PREFIX)
        if expr.right is None:
            return None
        return expr

    def parse_prefix_increment(self) -> Optional[IncrementDecrementExpression]:
        op_token = self.cur_token
        self.next_token()
        if not self.cur_token_is(tok.IDENT):
            self.add_error(f"can not apply {op_token.literal} to non-identifier", self.cur_token)
            return None
        target = Identifier(token=self.cur_token, value=self.cur_token.literal)
        return IncrementDecrementExpression(token=op_token, target=target,
                                            operator=op_token.literal, prefix=True)

    def parse_postfix_increment(self, left: Expression) -> Optional[IncrementDecrementExpression]:
        if not isinstance(left, Identifier):
            self.add_error(f"can not apply {self.cur_token.literal} to non-identifier", self.cur_token)
            return None
        return IncrementDecrementExpression(token=self.cur_token, target=left,
                                            operator=self.cur_token.literal, prefix=False)

    def parse_infix_expression(self, left: Expression) -> Optional[InfixExpression]:
        expr = InfixExpression(token=self.cur_token, left=left, operator=self.cur_token.literal)
        precedence = self.cur_precedence()
        self.next_token()
        expr.right = self.parse_expression(precedence)
        if expr.right is None:
            return None
        return expr

    def parse_grouped_expression(self) -> Optional[Expression]:
        self.next_token()
        expr = self.parse_expression(LOWEST)
        if not self.expect_peek(tok.RPAREN):
            return None
        return expr

    def parse_if_expression(self) -> Optional[IfExpression]:
        expr = IfExpression(token=self.cur_token)
        if not self.expect_peek(tok.LPAREN):
            return None
        self.next_token()
        expr.condition = self.parse_expression(LOWEST)
        if not self.expect_peek(tok.RPAREN):
            return None
        if not self.expect_peek(tok.LBRACE):
            return None
        expr.consequence = self.parse_block_statement()

        if self.peek_token_is(tok.ELSE):
            self.next_token()
            if self.peek_token_is(tok.IF):
                self.next_token()
                expr.alternative = self.parse_else_if()
                if expr.alternative is None:
                    return None
            else:
                if not self.expect_peek(tok.LBRACE):
                    return None
                expr.alternative = self.parse_block_statement()
        return expr

    def parse_else_if(self) -> Optional[BlockStatement]:
        # `else if` becomes an else block holding a single if expression
        block = BlockStatement(token=self.cur_token, parent_scope=self.scope)
        self.scope = block
        try:
            stmt_token = self.cur_token
            nested = self.parse_if_expression()
            if nested is None:
                return None
            block.statements.append(ExpressionStatement(token=stmt_token, expression=nested))
        finally:
            self.scope = block.parent_scope
        return block

    def parse_function_literal(self) -> Optional[FunctionLiteral]:
        lit = FunctionLiteral(token=self.cur_token)
        if not self.expect_peek(tok.LPAREN):
            return None
        parameters = self.parse_function_parameters()
        if parameters is None:
            return None
        lit.parameters = parameters
        if not self.expect_peek(tok.LBRACE):
            return None
        lit.body = self.parse_block_statement(parameters)
        return lit

    def parse_function_parameters(self) -> Optional[List[Identifier]]:
        params: List[Identifier] = []
        if self.peek_token_is(tok.RPAREN):
            self.next_token()
            return params

        if not self.expect_peek(tok.IDENT):
            return None
        params.append(Identifier(token=self.cur_token, value=self.cur_token.literal))
        while self.peek_token_is(tok.COMMA):
            self.next_token()
            if not self.expect_peek(tok.IDENT):
                return None
            params.append(Identifier(token=self.cur_token, value=self.cur_token.literal))

        if not self.expect_peek(tok.RPAREN):
            return None
        return params

    def parse_expression_list(self, end: str) -> Optional[List[Expression]]:
        items: List[Expression] = []
        if self.peek_token_is(end):
            self.next_token()
            return items

        self.next_token()
        item = self.parse_expression(LOWEST)
        if item is None:
            return None
        items.append(item)
        while self.peek_token_is(tok.COMMA):
            self.next_token()
            self.next_token()
            item = self.parse_expression(LOWEST)
            if item is None:
                return None
            items.append(item)

        if not self.expect_peek(end):
            return None
        return items

    def parse_array_literal(self) -> Optional[ArrayLiteral]:
        lit = ArrayLiteral(token=self.cur_token)
        elements = self.parse_expression_list(tok.RBRACKET)
        if elements is None:
            return None
        lit.elements = elements
        return lit

    def parse_hash_literal(self) -> Optional[HashLiteral]:
        lit = HashLiteral(token=self.cur_token)
        pairs: List[Tuple[Expression, Expression]] = []
        while not self.peek_token_is(tok.RBRACE):
            self.next_token()
            key = self.parse_expression(LOWEST)
            if key is None:
                return None
            if not self.expect_peek(tok.COLON):
                return None
            self.next_token()
            value = self.parse_expression(LOWEST)
            if value is None:
                return None
            pairs.append((key, value))
            if not self.peek_token_is(tok.RBRACE) and not self.expect_peek(tok.COMMA):
                return None
        if not self.expect_peek(tok.RBRACE):
            return None
        lit.pairs = pairs
        return lit

    def parse_call_expression(self, function: Expression) -> Optional[CallExpression]:
        expr = CallExpression(token=self.cur_token, function=function)
        arguments = self.parse_expression_list(tok.RPAREN)
        if arguments is None:
            return None
        expr.arguments = arguments
        return expr

    def parse_index_expression(self, left: Expression) -> Optional[IndexExpression]:
        expr = IndexExpression(token=self.cur_token, left=left)
        self.next_token()
        expr.index = self.parse_expression(LOWEST)
        if expr.index is None:
            return None
        if not self.expect_peek(tok.RBRACKET):
            return None
        return expr

    def parse_chaining_expression(self, left: Expression) -> Optional[ChainingExpression]:
        expr = ChainingExpression(token=self.cur_token, left=left)
        if not self.expect_peek(tok.IDENT):
            return None
        method = Identifier(token=self.cur_token, value=self.cur_token.literal)
        if self.peek_token_is(tok.LPAREN):
            self.next_token()
            expr.right = self.parse_call_expression(method)
            if expr.right is None:
                return None
        else:
            expr.right = method
        return expr


def parse_program(source: str) -> Program:
    """Parse Vorn source into a Program, raising ParseError on syntax errors."""
    parser = Parser(Lexer(source))
    program = parser.parse_program()
    if parser.errors:
        raise ParseError(parser.errors)
    return program
