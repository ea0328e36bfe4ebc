"""Global builtin functions for the Vorn interpreter.

`load_builtins()` builds the table consulted when an identifier is not
bound in any environment. Each builtin receives the call node (for error
positions) and the already-evaluated argument list.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, List

from .builtin_function import BuiltinFunction
from .types import (
    Value, Integer, Float, String, Array, Function,
    new_error, is_error, is_number, numeric_value, clone, wrap_int64,
    parse_integer, format_float,
)

if TYPE_CHECKING:
    from .interpreter import Interpreter


def wrong_arguments(node, got: int, want: str):
    return new_error(node, f"wrong number of arguments. got {got}, want {want}")


def is_callable(value: Value) -> bool:
    return isinstance(value, (Function, BuiltinFunction))


def load_builtins(interp: 'Interpreter') -> Dict[str, BuiltinFunction]:
    """Return the builtin table bound to `interp`.

    `interp` supplies the output stream used by `print`, the truth helpers
    and `apply_function` for the higher-order builtins.
    """

    # Common

    def std_type(node, args: List[Value]) -> Value:
        return String(args[0].type(), node=node)

    def std_range(node, args: List[Value]) -> Value:
        if len(args) < 1 or len(args) > 2:
            return wrong_arguments(node, len(args), '1 or 2')
        first = args[0]
        if not isinstance(first, Integer):
            return new_error(node, f"first argument to `range` must be INTEGER, got {first.type()}")

        if len(args) == 1:
            if first.value < 0:
                return new_error(node, f"argument to `range` must be non-negative, got {first.value}")
            start, end = 0, first.value
        else:
            if not isinstance(args[1], Integer):
                return new_error(node, f"second argument to `range` must be INTEGER, got {args[1].type()}")
            start, end = first.value, args[1].value

        step = 1 if start <= end else -1
        return Array([Integer(i, node=first.node) for i in range(start, end, step)], node=first.node)

    # Conversion

    def std_int(node, args: List[Value]) -> Value:
        arg = args[0]
        if isinstance(arg, Integer):
            return arg
        if isinstance(arg, Float):
            if math.isnan(arg.value) or math.isinf(arg.value):
                return new_error(node, f"could not parse \"{arg.inspect()}\" as INTEGER")
            return Integer(wrap_int64(int(arg.value)), node=arg.node)
        if isinstance(arg, String):
            try:
                return Integer(parse_integer(arg.value), node=arg.node)
            except ValueError:
                return new_error(node, f"could not parse \"{arg.value}\" as INTEGER")
        return new_error(node, f"argument to `int` not supported, got {arg.type()}")

    def std_float(node, args: List[Value]) -> Value:
        arg = args[0]
        if isinstance(arg, Integer):
            return Float(float(arg.value), node=arg.node)
        if isinstance(arg, Float):
            return arg
        if isinstance(arg, String):
            try:
                return Float(float(arg.value), node=arg.node)
            except ValueError:
                return new_error(node, f"could not parse \"{arg.value}\" as FLOAT")
        return new_error(node, f"argument to `float` not supported, got {arg.type()}")

    def std_string(node, args: List[Value]) -> Value:
        return String(args[0].inspect(), node=node)

    def std_bool(node, args: List[Value]) -> Value:
        coerced = interp.coerce_bool(args[0])
        if coerced is None:
            return new_error(node, f"argument to `bool` not supported, got {args[0].type()}")
        return interp.native_bool(coerced)

    # String & Array

    def std_len(node, args: List[Value]) -> Value:
        arg = args[0]
        if isinstance(arg, Array):
            return Integer(len(arg.elements), node=arg.node)
        if isinstance(arg, String):
            return Integer(len(arg.value), node=arg.node)
        return new_error(node, f"argument to `len` not supported, got {arg.type()}")

    def std_first(node, args: List[Value]) -> Value:
        arg = args[0]
        if isinstance(arg, Array):
            return clone(arg.elements[0], node) if arg.elements else interp.NULL
        if isinstance(arg, String):
            return String(arg.value[0], node=node) if arg.value else interp.NULL
        return new_error(node, f"argument to `first` must be ARRAY or STRING, got {arg.type()}")

    def std_last(node, args: List[Value]) -> Value:
        arg = args[0]
        if isinstance(arg, Array):
            return clone(arg.elements[-1], node) if arg.elements else interp.NULL
        if isinstance(arg, String):
            return String(arg.value[-1], node=node) if arg.value else interp.NULL
        return new_error(node, f"argument to `last` must be ARRAY or STRING, got {arg.type()}")

    # Array

    def std_rest(node, args: List[Value]) -> Value:
        arr = args[0]
        if not isinstance(arr, Array):
            return new_error(node, f"argument to `rest` must be ARRAY, got {arr.type()}")
        if not arr.elements:
            return interp.NULL
        return Array([clone(e, node) for e in arr.elements[1:]], node=node)

    def std_push(node, args: List[Value]) -> Value:
        arr = args[0]
        if not isinstance(arr, Array):
            return new_error(node, f"first argument to `push` must be ARRAY, got {arr.type()}")
        elements = [clone(e, node) for e in arr.elements]
        elements.append(clone(args[1], node))
        return Array(elements, node=node)

    def std_pop(node, args: List[Value]) -> Value:
        arr = args[0]
        if not isinstance(arr, Array):
            return new_error(node, f"first argument to `pop` must be ARRAY, got {arr.type()}")
        if not arr.elements:
            return interp.NULL
        return Array([clone(e, node) for e in arr.elements[:-1]], node=node)

    def std_map(node, args: List[Value]) -> Value:
        arr, fn = args
        if not isinstance(arr, Array):
            return new_error(node, f"first argument to `map` must be ARRAY, got {arr.type()}")
        if not is_callable(fn):
            return new_error(node, f"second argument to `map` must be FUNCTION or BUILTIN, got {fn.type()}")

        result: List[Value] = []
        for element in arr.elements:
            mapped = interp.apply_function(node, fn, [element])
            if is_error(mapped):
                return mapped
            result.append(mapped)
        return Array(result, node=node)

    def std_filter(node, args: List[Value]) -> Value:
        arr, fn = args
        if not isinstance(arr, Array):
            return new_error(node, f"first argument to `filter` must be ARRAY, got {arr.type()}")
        if not is_callable(fn):
            return new_error(node, f"second argument to `filter` must be FUNCTION or BUILTIN, got {fn.type()}")

        result: List[Value] = []
        for element in arr.elements:
            keep = interp.apply_function(node, fn, [element])
            if is_error(keep):
                return keep
            coerced = interp.coerce_bool(keep)
            if coerced is None:
                return new_error(node, f"`filter` callback result can not be used as BOOLEAN, got {keep.type()}")
            if coerced:
                result.append(element)
        return Array(result, node=node)

    def std_reduce(node, args: List[Value]) -> Value:
        arr, accumulated, fn = args
        if not isinstance(arr, Array):
            return new_error(node, f"first argument to `reduce` must be ARRAY, got {arr.type()}")
        if not is_callable(fn):
            return new_error(node, f"third argument to `reduce` must be FUNCTION or BUILTIN, got {fn.type()}")

        for element in arr.elements:
            accumulated = interp.apply_function(node, fn, [accumulated, element])
            if is_error(accumulated):
                return accumulated
        return accumulated

    # IO

    def std_print(node, args: List[Value]) -> Value:
        for arg in args:
            print(arg.inspect(), file=interp.output)
        return interp.NULL

    # Math

    def std_abs(node, args: List[Value]) -> Value:
        arg = args[0]
        if isinstance(arg, Integer):
            return Integer(wrap_int64(abs(arg.value)), node=arg.node) if arg.value < 0 else arg
        if isinstance(arg, Float):
            return Float(-arg.value, node=arg.node) if arg.value < 0 else arg
        return new_error(node, f"argument to `abs` must be INTEGER or FLOAT, got {arg.type()}")

    def std_pow(node, args: List[Value]) -> Value:
        x, y = args
        if not is_number(x) or not is_number(y):
            return new_error(node, f"arguments to `pow` must be INTEGER or FLOAT, got {x.type()} and {y.type()}")
        if isinstance(x, Integer) and isinstance(y, Integer) and y.value >= 0:
            # Reducing modulo 2**64 keeps the same wrapped product
            return Integer(wrap_int64(pow(x.value, y.value, 1 << 64)), node=node)
        base, exponent = numeric_value(x), numeric_value(y)
        if base == 0 and exponent < 0:
            # Pole at zero: the sign of the base survives only for odd integer exponents
            odd = float(exponent).is_integer() and int(exponent) % 2 != 0
            return Float(math.copysign(math.inf, base) if odd else math.inf, node=node)
        try:
            return Float(math.pow(base, exponent), node=node)
        except OverflowError:
            return Float(math.inf, node=node)
        except ValueError:
            return Float(math.nan, node=node)

    def std_sqrt(node, args: List[Value]) -> Value:
        arg = args[0]
        if not is_number(arg):
            return new_error(node, f"argument to `sqrt` must be INTEGER or FLOAT, got {arg.type()}")
        x = numeric_value(arg)
        if x < 0:
            return new_error(node, f"argument to `sqrt` must be non-negative, got {format_float(x)}")
        return Float(math.sqrt(x), node=node)

    def trig(name, fn):
        def std_trig(node, args: List[Value]) -> Value:
            arg = args[0]
            if not is_number(arg):
                return new_error(node, f"argument to `{name}` must be INTEGER or FLOAT, got {arg.type()}")
            try:
                return Float(fn(numeric_value(arg)), node=node)
            except ValueError:
                return Float(math.nan, node=node)
        return std_trig

    def std_sum(node, args: List[Value]) -> Value:
        arr = args[0]
        if not isinstance(arr, Array):
            return new_error(node, f"argument to `sum` must be ARRAY, got {arr.type()}")
        total_int = 0
        total_float = 0.0
        saw_float = False
        for element in arr.elements:
            if isinstance(element, Integer):
                total_int = wrap_int64(total_int + element.value)
            elif isinstance(element, Float):
                total_float += element.value
                saw_float = True
            else:
                return new_error(node, f"elements of `sum` must be INTEGER or FLOAT, got {element.type()}")
        if saw_float:
            return Float(total_float + total_int, node=node)
        return Integer(total_int, node=node)

    def std_mean(node, args: List[Value]) -> Value:
        arr = args[0]
        if not isinstance(arr, Array):
            return new_error(node, f"argument to `mean` must be ARRAY, got {arr.type()}")
        if not arr.elements:
            return new_error(node, "argument to `mean` must not be empty")
        total = std_sum(node, args)
        if is_error(total):
            return total
        return Float(numeric_value(total) / len(arr.elements), node=node)

    table = [
        ('type', 1, std_type),
        ('range', None, std_range),
        ('int', 1, std_int),
        ('float', 1, std_float),
        ('string', 1, std_string),
        ('bool', 1, std_bool),
        ('len', 1, std_len),
        ('first', 1, std_first),
        ('last', 1, std_last),
        ('rest', 1, std_rest),
        ('push', 2, std_push),
        ('pop', 1, std_pop),
        ('map', 2, std_map),
        ('filter', 2, std_filter),
        ('reduce', 3, std_reduce),
        ('print', None, std_print),
        ('abs', 1, std_abs),
        ('pow', 2, std_pow),
        ('sqrt', 1, std_sqrt),
        ('sin', 1, trig('sin', math.sin)),
        ('cos', 1, trig('cos', math.cos)),
        ('tan', 1, trig('tan', math.tan)),
        ('sum', 1, std_sum),
        ('mean', 1, std_mean),
    ]
    return {name: BuiltinFunction(name=name, arity=arity, fn=fn) for name, arity, fn in table}
