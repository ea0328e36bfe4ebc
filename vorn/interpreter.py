"""Tree-walking evaluator for the Vorn language.

`Interpreter.eval()` dispatches on the AST node class and returns a runtime
value from `vorn.types`. Runtime errors are `Error` values: every caller
checks its sub-results and hands an error straight back up, so the first
error ends evaluation of the whole program. `return`, `break` and
`continue` travel the same way as `ReturnValue`, `Break` and `Continue`
until a function call or loop consumes them.
"""

from __future__ import annotations

import math
import sys
from typing import Any, Dict, List, Optional, Tuple

from .ast import (
    Node, Program, ExpressionStatement, VariableStatement, ReturnStatement,
    BlockStatement, WhileStatement, ForStatement, FunctionStatement,
    Identifier, IntegerLiteral, FloatLiteral, BooleanLiteral, NullLiteral,
    StringLiteral, ArrayLiteral, HashLiteral, FunctionLiteral,
    PrefixExpression, InfixExpression, IfExpression, CallExpression,
    IndexExpression, ChainingExpression, ReassignmentExpression,
    IncrementDecrementExpression, BreakExpression, ContinueExpression,
)
from . import token as tok
from .builtin_function import BuiltinFunction
from .builtins import load_builtins, wrong_arguments
from .chaining import ARRAY_METHODS, STRING_METHODS, HASH_METHODS
from .environment import Environment
from .errors import VornError, ParseError
from .parser import parse_program
from .token import Token
from .types import (
    Value, Null, Integer, Float, Boolean, String, Array, Hash, Hashable,
    Function, ReturnValue, Break, Continue, Error,
    new_error, is_error, is_number, numeric_value, wrap_int64, same_key,
)

###############################################################################
# Shared values
###############################################################################

NULL = Null(node=NullLiteral(token=Token(tok.NULL, 'null', 1, 1)))
TRUE = Boolean(True, node=BooleanLiteral(token=Token(tok.TRUE, 'true', 1, 1), value=True))
FALSE = Boolean(False, node=BooleanLiteral(token=Token(tok.FALSE, 'false', 1, 1), value=False))

# Python frame budget while a program runs; each Vorn call nests about five frames
RECURSION_LIMIT = 10000


def divide_floats(a: float, b: float) -> float:
    # IEEE division: x/0 is a signed infinity, 0/0 is NaN
    if b == 0:
        if a == 0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def float_modulo(a: float, b: float) -> float:
    if b == 0 or math.isinf(a) or math.isnan(a) or math.isnan(b):
        return math.nan
    return math.fmod(a, b)


###############################################################################
# Interpreter
###############################################################################


class Interpreter:
    """Core interpreter that evaluates a Vorn AST."""

    NULL = NULL
    TRUE = TRUE
    FALSE = FALSE

    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt', output: Any = None):
        self.global_env = Environment()
        # None means the current sys.stdout, looked up at print time
        self.output = output
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w') if debug_level > 0 else None
        self.builtins: Dict[str, BuiltinFunction] = load_builtins(self)

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

    # Public API
    def run(self, program: Program, env: Optional[Environment] = None) -> Value:
        if env is None:
            env = self.global_env
        if self.debug_level >= 1:
            self.debug(f"run program ({len(program.statements)} statements)")
        saved_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(max(saved_limit, RECURSION_LIMIT))
        try:
            result = self.eval(program, env)
        finally:
            sys.setrecursionlimit(saved_limit)
        if self.debug_level >= 1:
            self.debug(f"program finished: {result.inspect()}")
        return result

    ###########################################################################
    # Helpers
    ###########################################################################

    def native_bool(self, value: bool) -> Boolean:
        return TRUE if value else FALSE

    def is_truthy(self, value: Value) -> bool:
        if isinstance(value, Null):
            return False
        if isinstance(value, Boolean):
            return value.value
        return True

    def coerce_bool(self, value: Value) -> Optional[bool]:
        """Bool coercion used by `bool()` and predicate callbacks.

        Returns None for values that have no boolean reading.
        """
        if isinstance(value, Null):
            return False
        if isinstance(value, Boolean):
            return value.value
        if isinstance(value, (Integer, Float)):
            return value.value != 0
        if isinstance(value, String):
            return value.value != ''
        if isinstance(value, Array):
            return len(value.elements) != 0
        if isinstance(value, Hash):
            return len(value) != 0
        return None

    def values_equal(self, a: Value, b: Value) -> bool:
        if isinstance(a, Integer) and isinstance(b, Integer):
            return a.value == b.value
        if is_number(a) and is_number(b):
            return numeric_value(a) == numeric_value(b)
        if isinstance(a, Hashable) and isinstance(b, Hashable) and a.type() == b.type():
            return same_key(a, b)
        if isinstance(a, Null) and isinstance(b, Null):
            return True
        return a is b

    ###########################################################################
    # Dispatch
    ###########################################################################

    def eval(self, node: Node, env: Environment) -> Value:
        # Statements
        if isinstance(node, Program):
            return self.eval_program(node, env)
        if isinstance(node, ExpressionStatement):
            return self.eval(node.expression, env)
        if isinstance(node, BlockStatement):
            return self.eval_block_statement(node, env)
        if isinstance(node, ReturnStatement):
            if node.return_value is None:
                return ReturnValue(NULL, node=node)
            value = self.eval(node.return_value, env)
            if is_error(value):
                return value
            return ReturnValue(value, node=node)
        if isinstance(node, VariableStatement):
            return self.eval_variable_statement(node, env)
        if isinstance(node, FunctionStatement):
            name = node.name.value
            if name in env:
                return new_error(node, f"variable already defined: {name}")
            env.set(name, Function(node.parameters, node.body, env, node=node))
            if self.debug_level >= 2:
                self.debug(f"define function {name}")
            return NULL
        if isinstance(node, WhileStatement):
            return self.eval_while_statement(node, env)
        if isinstance(node, ForStatement):
            return self.eval_for_statement(node, env)

        # Expressions
        if isinstance(node, IntegerLiteral):
            return Integer(node.value, node=node)
        if isinstance(node, FloatLiteral):
            return Float(node.value, node=node)
        if isinstance(node, BooleanLiteral):
            return self.native_bool(node.value)
        if isinstance(node, NullLiteral):
            return NULL
        if isinstance(node, StringLiteral):
            return String(node.value, node=node)
        if isinstance(node, ArrayLiteral):
            elements, err = self.eval_expressions(node.elements, env)
            if err is not None:
                return err
            return Array(elements, node=node)
        if isinstance(node, HashLiteral):
            return self.eval_hash_literal(node, env)
        if isinstance(node, Identifier):
            return self.eval_identifier(node, env)
        if isinstance(node, FunctionLiteral):
            return Function(node.parameters, node.body, env, node=node)
        if isinstance(node, PrefixExpression):
            right = self.eval(node.right, env)
            if is_error(right):
                return right
            return self.eval_prefix_expression(node, right)
        if isinstance(node, InfixExpression):
            return self.eval_infix_expression(node, env)
        if isinstance(node, IfExpression):
            return self.eval_if_expression(node, env)
        if isinstance(node, CallExpression):
            function = self.eval(node.function, env)
            if is_error(function):
                return function
            args, err = self.eval_expressions(node.arguments, env)
            if err is not None:
                return err
            return self.apply_function(node, function, args)
        if isinstance(node, IndexExpression):
            left = self.eval(node.left, env)
            if is_error(left):
                return left
            index = self.eval(node.index, env)
            if is_error(index):
                return index
            return self.eval_index_expression(left, index)
        if isinstance(node, ChainingExpression):
            return self.eval_chaining_expression(node, env)
        if isinstance(node, ReassignmentExpression):
            return self.eval_reassignment(node, env)
        if isinstance(node, IncrementDecrementExpression):
            return self.eval_increment_decrement(node, env)
        if isinstance(node, BreakExpression):
            return Break(node=node)
        if isinstance(node, ContinueExpression):
            return Continue(node=node)
        raise NotImplementedError(f"eval: unexpected node type {type(node)}")

    ###########################################################################
    # Statements
    ###########################################################################

    def eval_program(self, program: Program, env: Environment) -> Value:
        result: Value = NULL
        for statement in program.statements:
            result = self.eval(statement, env)
            if isinstance(result, ReturnValue):
                return result.value
            if isinstance(result, Error):
                return result
            if isinstance(result, Break):
                return new_error(result.node, "break outside of loop")
            if isinstance(result, Continue):
                return new_error(result.node, "continue outside of loop")
        return result

    def eval_block_statement(self, block: BlockStatement, parent_env: Environment) -> Value:
        env = parent_env.enclosed()
        for statement in block.statements:
            result = self.eval(statement, env)
            if isinstance(result, (ReturnValue, Error, Break, Continue)):
                return result
        return NULL

    def eval_variable_statement(self, node: VariableStatement, env: Environment) -> Value:
        name = node.name.value
        if name in env:
            return new_error(node, f"variable already defined: {name}")
        value = self.eval(node.value, env)
        if is_error(value):
            return value
        env.set(name, value)
        if self.debug_level >= 2:
            self.debug(f"declare {node.token_literal()} {name} = {value.inspect()}")
        return NULL

    def run_loop_body(self, body: BlockStatement, env: Environment) -> Tuple[bool, Optional[Value]]:
        """Run one iteration; returns (stop, result to propagate)."""
        result = self.eval_block_statement(body, env)
        if isinstance(result, Break):
            return True, None
        if isinstance(result, (ReturnValue, Error)):
            return True, result
        return False, None

    def eval_while_statement(self, node: WhileStatement, env: Environment) -> Value:
        iteration = 0
        while True:
            condition = self.eval(node.condition, env)
            if is_error(condition):
                return condition
            truthy = self.is_truthy(condition)
            if self.debug_level >= 3:
                self.debug(f"while condition {condition.inspect()} -> {truthy}")
            if not truthy:
                break
            iteration += 1
            if self.debug_level >= 3:
                self.debug(f"while iteration {iteration}")
            stop, result = self.run_loop_body(node.body, env)
            if stop:
                if result is not None:
                    return result
                break
        return NULL

    def eval_for_statement(self, node: ForStatement, env: Environment) -> Value:
        for_env = env.enclosed()
        if node.init is not None:
            init = self.eval(node.init, for_env)
            if is_error(init):
                return init

        iteration = 0
        while True:
            if node.condition is not None:
                condition = self.eval(node.condition, for_env)
                if is_error(condition):
                    return condition
                truthy = self.is_truthy(condition)
                if self.debug_level >= 3:
                    self.debug(f"for condition {condition.inspect()} -> {truthy}")
                if not truthy:
                    break
            iteration += 1
            if self.debug_level >= 3:
                self.debug(f"for iteration {iteration}")
            stop, result = self.run_loop_body(node.body, for_env)
            if stop:
                if result is not None:
                    return result
                break
            # `continue` lands here as well so the update always runs
            if node.update is not None:
                update = self.eval(node.update, for_env)
                if is_error(update):
                    return update
        return NULL

    ###########################################################################
    # Expressions
    ###########################################################################

    def eval_expressions(self, expressions, env: Environment) -> Tuple[List[Value], Optional[Error]]:
        result: List[Value] = []
        for expression in expressions:
            evaluated = self.eval(expression, env)
            if is_error(evaluated):
                return [], evaluated
            result.append(evaluated)
        return result, None

    def eval_identifier(self, node: Identifier, env: Environment) -> Value:
        value, _ = env.get(node.value)
        if value is not None:
            return value
        builtin = self.builtins.get(node.value)
        if builtin is not None:
            return builtin
        return new_error(node, f"identifier not found: {node.value}")

    def eval_hash_literal(self, node: HashLiteral, env: Environment) -> Value:
        result = Hash(node=node)
        for key_node, value_node in node.pairs:
            key = self.eval(key_node, env)
            if is_error(key):
                return key
            if not isinstance(key, Hashable):
                return new_error(key.node, f"unusable as hash key: {key.type()}")
            value = self.eval(value_node, env)
            if is_error(value):
                return value
            result.set(key, value)
        return result

    def eval_if_expression(self, node: IfExpression, env: Environment) -> Value:
        condition = self.eval(node.condition, env)
        if is_error(condition):
            return condition
        truthy = self.is_truthy(condition)
        if self.debug_level >= 3:
            self.debug(f"if condition {condition.inspect()} -> {truthy}")
        if truthy:
            return self.eval_block_statement(node.consequence, env)
        if node.alternative is not None:
            return self.eval_block_statement(node.alternative, env)
        return NULL

    def eval_prefix_expression(self, node: PrefixExpression, right: Value) -> Value:
        if node.operator == tok.EXCLAMATION:
            return self.native_bool(not self.is_truthy(right))
        if node.operator == tok.MINUS:
            if isinstance(right, Integer):
                return Integer(wrap_int64(-right.value), node=node)
            if isinstance(right, Float):
                return Float(-right.value, node=node)
            return new_error(right.node, f"unknown operator: -{right.type()}")
        if node.operator == tok.BITWISE_NOT and isinstance(right, Integer):
            return Integer(~right.value, node=node)
        return new_error(node, f"unknown operator: {node.operator}{right.type()}")

    def eval_infix_expression(self, node: InfixExpression, env: Environment) -> Value:
        left = self.eval(node.left, env)
        if is_error(left):
            return left

        # Logical operators only evaluate the right side when needed
        if node.operator == tok.AND:
            if not self.is_truthy(left):
                return FALSE
            right = self.eval(node.right, env)
            if is_error(right):
                return right
            return self.native_bool(self.is_truthy(right))
        if node.operator == tok.OR:
            if self.is_truthy(left):
                return TRUE
            right = self.eval(node.right, env)
            if is_error(right):
                return right
            return self.native_bool(self.is_truthy(right))

        right = self.eval(node.right, env)
        if is_error(right):
            return right
        return self.apply_infix_operator(node, node.operator, left, right)

    def apply_infix_operator(self, node: Node, op: str, left: Value, right: Value) -> Value:
        if is_number(left) and is_number(right):
            if isinstance(left, Integer) and isinstance(right, Integer):
                return self.eval_integer_infix(node, op, left, right)
            return self.eval_float_infix(node, op, left, right)
        if isinstance(left, String) and isinstance(right, String):
            if op == tok.PLUS:
                return String(left.value + right.value, node=node)
            if op == tok.EQ:
                return self.native_bool(left.value == right.value)
            if op == tok.NOT_EQ:
                return self.native_bool(left.value != right.value)
            return new_error(node, f"unknown operator: {left.type()} {op} {right.type()}")
        if op == tok.EQ:
            return self.native_bool(self.values_equal(left, right))
        if op == tok.NOT_EQ:
            return self.native_bool(not self.values_equal(left, right))
        if left.type() != right.type():
            return new_error(node, f"type mismatch: {left.type()} {op} {right.type()}")
        return new_error(node, f"unknown operator: {left.type()} {op} {right.type()}")

    def eval_integer_infix(self, node: Node, op: str, left: Integer, right: Integer) -> Value:
        a, b = left.value, right.value
        if op == tok.PLUS:
            return Integer(wrap_int64(a + b), node=node)
        if op == tok.MINUS:
            return Integer(wrap_int64(a - b), node=node)
        if op == tok.ASTERISK:
            return Integer(wrap_int64(a * b), node=node)
        if op == tok.SLASH:
            return Float(divide_floats(float(a), float(b)), node=node)
        if op == tok.PERCENT:
            if b == 0:
                return new_error(node, "division by zero")
            # Truncated remainder: the sign follows the dividend
            remainder = abs(a) % abs(b)
            return Integer(wrap_int64(-remainder if a < 0 else remainder), node=node)
        if op == tok.BITWISE_AND:
            return Integer(a & b, node=node)
        if op == tok.BITWISE_OR:
            return Integer(a | b, node=node)
        if op == tok.BITWISE_XOR:
            return Integer(a ^ b, node=node)
        if op in (tok.LEFT_SHIFT, tok.RIGHT_SHIFT):
            if b < 0:
                return new_error(node, "negative shift count")
            if op == tok.LEFT_SHIFT:
                return Integer(wrap_int64(a << b) if b < 64 else 0, node=node)
            return Integer(a >> min(b, 63), node=node)
        return self.compare(node, op, left, right, a, b)

    def eval_float_infix(self, node: Node, op: str, left: Value, right: Value) -> Value:
        a, b = numeric_value(left), numeric_value(right)
        if op == tok.PLUS:
            return Float(a + b, node=node)
        if op == tok.MINUS:
            return Float(a - b, node=node)
        if op == tok.ASTERISK:
            return Float(a * b, node=node)
        if op == tok.SLASH:
            return Float(divide_floats(a, b), node=node)
        if op == tok.PERCENT:
            return Float(float_modulo(a, b), node=node)
        return self.compare(node, op, left, right, a, b)

    def compare(self, node: Node, op: str, left: Value, right: Value, a, b) -> Value:
        if op == tok.LT:
            return self.native_bool(a < b)
        if op == tok.GT:
            return self.native_bool(a > b)
        if op == tok.LTE:
            return self.native_bool(a <= b)
        if op == tok.GTE:
            return self.native_bool(a >= b)
        if op == tok.EQ:
            return self.native_bool(a == b)
        if op == tok.NOT_EQ:
            return self.native_bool(a != b)
        return new_error(node, f"unknown operator: {left.type()} {op} {right.type()}")

    def eval_index_expression(self, left: Value, index: Value) -> Value:
        if isinstance(left, Array) and isinstance(index, Integer):
            i = index.value
            if i < 0:
                i += len(left.elements)
            if i < 0 or i >= len(left.elements):
                return NULL
            return left.elements[i]
        if isinstance(left, Hash):
            if not isinstance(index, Hashable):
                return new_error(index.node, f"unusable as hash key: {index.type()}")
            value = left.get(index)
            return value if value is not None else NULL
        return new_error(index.node, f"index operator not supported: {left.type()}")

    def eval_reassignment(self, node: ReassignmentExpression, env: Environment) -> Value:
        name = node.name.value
        _, defining_env = env.get(name)
        if defining_env is None:
            return new_error(node, f"variable {name} has not been initialized.")
        value = self.eval(node.value, env)
        if is_error(value):
            return value
        defining_env.set(name, value)
        if self.debug_level >= 2:
            self.debug(f"assign {name} = {value.inspect()}")
        return value

    def eval_increment_decrement(self, node: IncrementDecrementExpression, env: Environment) -> Value:
        name = node.target.value
        current, defining_env = env.get(name)
        if defining_env is None:
            return new_error(node, f"variable {name} has not been initialized.")

        step = 1 if node.operator == tok.INCREMENT else -1
        if isinstance(current, Integer):
            updated: Value = Integer(wrap_int64(current.value + step), node=node)
        elif isinstance(current, Float):
            updated = Float(current.value + step, node=node)
        elif node.prefix:
            return new_error(node, f"unknown operator: {node.operator}{current.type()}")
        else:
            return new_error(node, f"unknown operator: {current.type()}{node.operator}")

        defining_env.set(name, updated)
        return updated if node.prefix else current

    ###########################################################################
    # Calls and chaining
    ###########################################################################

    def apply_function(self, node: Optional[Node], function: Value, args: List[Value]) -> Value:
        if isinstance(function, Function):
            if len(args) != len(function.parameters):
                return new_error(node, f"wrong number of arguments: want={len(function.parameters)}, got={len(args)}")
            if self.debug_level >= 2:
                params = ", ".join(p.value for p in function.parameters)
                self.debug(f"call func({params}) with ({', '.join(a.inspect() for a in args)})")

            call_env = function.env.enclosed()
            for param, arg in zip(function.parameters, args):
                call_env.set(param.value, arg)
            try:
                result = self.eval(function.body, call_env)
            except RecursionError:
                return new_error(node, "stack overflow")

            if isinstance(result, ReturnValue):
                return result.value
            if isinstance(result, Break):
                return new_error(result.node, "break outside of loop")
            if isinstance(result, Continue):
                return new_error(result.node, "continue outside of loop")
            if isinstance(result, Error):
                return result
            return NULL
        if isinstance(function, BuiltinFunction):
            if function.arity is not None and len(args) != function.arity:
                return wrong_arguments(node, len(args), str(function.arity))
            if self.debug_level >= 2:
                self.debug(f"call builtin {function.name}")
            return function.fn(node, args)
        return new_error(node, f"not a function: {function.type()}")

    def eval_chaining_expression(self, node: ChainingExpression, env: Environment) -> Value:
        left = self.eval(node.left, env)
        if is_error(left):
            return left

        right = node.right
        if not isinstance(right, CallExpression):
            return new_error(right, f"chaining operator not supported: {left.type()}.{right.string()}")

        method_ident = right.function
        name = method_ident.token_literal()
        args, err = self.eval_expressions(right.arguments, env)
        if err is not None:
            return err

        if isinstance(left, Array):
            method = ARRAY_METHODS.get(name)
            if method is None:
                return new_error(method_ident, f"Array has no method {name}")
        elif isinstance(left, String):
            method = STRING_METHODS.get(name)
            if method is None:
                return new_error(method_ident, f"String has no method {name}")
        elif isinstance(left, Hash):
            method = HASH_METHODS.get(name)
            if method is None:
                return new_error(method_ident, f"Object has no method {name}")
        else:
            return new_error(method_ident, f"chaining operator not supported: {left.type()}.{name}")
        return method(self, left, args)


def run_program(source: str, debug_level: int = 0, output: Any = None) -> Value:
    """Parse and evaluate `source`.

    Raises ParseError when the program has syntax errors and VornError
    when evaluation ends in a runtime error.
    """
    program = parse_program(source)
    interp = Interpreter(debug_level=debug_level, output=output)
    try:
        result = interp.run(program)
    finally:
        interp.close()
    if isinstance(result, Error):
        raise VornError(result)
    return result


__all__ = [
    'Interpreter',
    'run_program',
    'parse_program',
    'ParseError',
    'VornError',
    'NULL',
    'TRUE',
    'FALSE',
]
