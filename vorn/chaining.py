"""Method tables for the chaining operator (``receiver.method(args)``).

Arrays, strings and hashes have methods. Every method receives the
interpreter, the receiver and the evaluated arguments. Argument errors are
reported at the receiver's position; callback errors at the callback's.
"""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from .builtin_function import BuiltinFunction
from .types import (
    Value, Integer, Boolean, String, Array, Hash, HashPair, Function, Error,
    new_error, is_error, is_number, numeric_value,
)

if TYPE_CHECKING:
    from .interpreter import Interpreter

Method = Callable[['Interpreter', Value, List[Value]], Value]


def _plural(count: int, word: str = 'argument') -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


###############################################################################
# Callbacks
###############################################################################


class _CallbackFailed(Exception):
    """Carries an Error out of a comparison made by `sorted`."""
    def __init__(self, err: Error):
        super().__init__(err.message)
        self.err = err


def check_callback(method: str, callback: Value, min_params: int) -> Optional[Error]:
    if not isinstance(callback, (Function, BuiltinFunction)):
        return new_error(callback.node, f"Array.{method}() callback must be a function, got {callback.type()}")
    if isinstance(callback, Function) and len(callback.parameters) < min_params:
        return new_error(callback.node,
                         f"Array.{method}() callback must take at least {_plural(min_params)}")
    return None


def invoke(interp: 'Interpreter', receiver: Value, callback: Value, args: List[Value],
           builtin_count: int = 1) -> Value:
    """Call `callback` with as many of `args` as it declares parameters."""
    if isinstance(callback, Function):
        args = args[:len(callback.parameters)]
    else:
        args = args[:builtin_count]
    return interp.apply_function(receiver.node, callback, args)


def coerced_callback_result(interp: 'Interpreter', method: str, callback: Value, result: Value):
    """Return the bool value of a predicate result, or an Error."""
    coerced = interp.coerce_bool(result)
    if coerced is None:
        return new_error(callback.node, f"Array.{method}() callback result can not be used as BOOLEAN, got {result.type()}")
    return coerced


###############################################################################
# Array methods
###############################################################################


def array_length(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if args:
        return new_error(left.node, "Array.length() takes no arguments")
    return Integer(len(left.elements), node=left.node)


def array_push(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) != 1:
        return new_error(left.node, "Array.push() takes exactly 1 argument")
    left.elements.append(args[0])
    return left


def array_append(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) != 1:
        return new_error(left.node, "Array.append() takes exactly 1 argument")
    left.elements.append(args[0])
    return left


def array_prepend(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) != 1:
        return new_error(left.node, "Array.prepend() takes exactly 1 argument")
    left.elements.insert(0, args[0])
    return left


def array_shift(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if args:
        return new_error(left.node, "Array.shift() takes no arguments")
    if not left.elements:
        return new_error(left.node, "Array.shift() called on empty array")
    return left.elements.pop(0)


def array_pop(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) > 1:
        return new_error(left.node, "Array.pop() takes 0 or 1 argument")
    if not left.elements:
        return new_error(left.node, "Array.pop() called on empty array")
    if not args:
        return left.elements.pop()

    index = args[0]
    if not isinstance(index, Integer):
        return new_error(left.node, "Array.pop() argument must be an integer")
    if index.value < 0 or index.value >= len(left.elements):
        return new_error(left.node, "Array.pop() index out of range")
    return left.elements.pop(index.value)


def array_concat(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if not args:
        return new_error(left.node, "Array.concat() takes at least 1 argument")
    elements = list(left.elements)
    for arg in args:
        if not isinstance(arg, Array):
            return new_error(left.node, f"argument to `Array.concat()` must be ARRAY, got {arg.type()}")
        elements.extend(arg.elements)
    return Array(elements, node=left.node)


def array_map(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) != 1:
        return new_error(left.node, "Array.map() takes exactly 1 argument")
    callback = args[0]
    err = check_callback('map', callback, 1)
    if err is not None:
        return err

    result: List[Value] = []
    for i, element in enumerate(left.elements):
        mapped = invoke(interp, left, callback, [element, Integer(i, node=left.node), left])
        if is_error(mapped):
            return mapped
        result.append(mapped)
    return Array(result, node=left.node)


def _predicate_walk(interp: 'Interpreter', left: Array, args: List[Value], method: str):
    """Yield (element, keep) pairs; yields (Error, None) and stops on failure."""
    if len(args) != 1:
        yield new_error(left.node, f"Array.{method}() takes exactly 1 argument"), None
        return
    callback = args[0]
    err = check_callback(method, callback, 1)
    if err is not None:
        yield err, None
        return

    for i, element in enumerate(left.elements):
        result = invoke(interp, left, callback, [element, Integer(i, node=left.node), left])
        if is_error(result):
            yield result, None
            return
        keep = coerced_callback_result(interp, method, callback, result)
        if is_error(keep):
            yield keep, None
            return
        yield element, keep


def array_filter(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    result: List[Value] = []
    for element, keep in _predicate_walk(interp, left, args, 'filter'):
        if keep is None:
            return element
        if keep:
            result.append(element)
    return Array(result, node=left.node)


def array_find(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    for element, keep in _predicate_walk(interp, left, args, 'find'):
        if keep is None or keep:
            return element
    return interp.NULL


def array_any(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    for element, keep in _predicate_walk(interp, left, args, 'any'):
        if keep is None:
            return element
        if keep:
            return interp.TRUE
    return interp.FALSE


def array_every(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    for element, keep in _predicate_walk(interp, left, args, 'every'):
        if keep is None:
            return element
        if not keep:
            return interp.FALSE
    return interp.TRUE


def array_reduce(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) != 2:
        return new_error(left.node, f"Array.reduce() takes exactly 2 arguments, got {len(args)}")
    callback, accumulated = args
    err = check_callback('reduce', callback, 2)
    if err is not None:
        return err

    for i, element in enumerate(left.elements):
        accumulated = invoke(interp, left, callback,
                             [accumulated, element, Integer(i, node=left.node), left], builtin_count=2)
        if is_error(accumulated):
            return accumulated
    return accumulated


def array_contains(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) != 1:
        return new_error(left.node, "Array.contains() takes exactly 1 argument")
    return interp.native_bool(any(interp.values_equal(e, args[0]) for e in left.elements))


def array_index_of(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) != 1:
        return new_error(left.node, "Array.indexOf() takes exactly 1 argument")
    for i, element in enumerate(left.elements):
        if interp.values_equal(element, args[0]):
            return Integer(i, node=left.node)
    return Integer(-1, node=left.node)


def array_join(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if len(args) > 1:
        return new_error(left.node, f"Array.join() takes at most 1 argument, got {len(args)}")
    separator = ','
    if args:
        if not isinstance(args[0], String):
            return new_error(left.node, f"argument to `Array.join()` must be STRING, got {args[0].type()}")
        separator = args[0].value
    return String(separator.join(e.inspect() for e in left.elements), node=left.node)


def array_reverse(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    if args:
        return new_error(left.node, "Array.reverse() takes no arguments")
    return Array(list(reversed(left.elements)), node=left.node)


def _slice_bounds(method: str, node, length: int, args: List[Value]):
    """Resolve slice(start[, end]) against `length`; returns (start, end) or an Error."""
    if len(args) < 1 or len(args) > 2:
        return new_error(node, f"{method}() takes 1 or 2 arguments")
    start = args[0]
    if not isinstance(start, Integer):
        return new_error(node, f"first argument to `{method}()` must be INTEGER, got {start.type()}")
    if start.value < 0 or start.value > length:
        return new_error(node, f"first argument to `{method}()` out of range")

    end = length
    if len(args) == 2:
        stop = args[1]
        if not isinstance(stop, Integer):
            return new_error(node, f"second argument to `{method}()` must be INTEGER, got {stop.type()}")
        # Negative end counts back from the end
        end = stop.value + length if stop.value < 0 else stop.value
        if end < start.value or end > length:
            return new_error(node, f"second argument to `{method}()` out of range")
    return start.value, end


def array_slice(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    bounds = _slice_bounds('Array.slice', left.node, len(left.elements), args)
    if is_error(bounds):
        return bounds
    start, end = bounds
    return Array(left.elements[start:end], node=left.node)


def _natural_compare(a: Value, b: Value) -> int:
    if is_number(a) and is_number(b):
        x, y = numeric_value(a), numeric_value(b)
    elif isinstance(a, String) and isinstance(b, String):
        x, y = a.value, b.value
    else:
        raise _CallbackFailed(new_error(a.node, f"Array.sort() can not compare {a.type()} and {b.type()}"))
    return (x > y) - (x < y)


def array_sort(interp: 'Interpreter', left: Array, args: List[Value]) -> Value:
    """Return a sorted copy.

    With no argument elements are sorted ascending, `true` sorts them
    descending, and a function is used as a comparator returning a
    negative number when its first argument sorts first.
    """
    if len(args) > 1:
        return new_error(left.node, f"Array.sort() takes at most 1 argument, got {len(args)}")

    descending = False
    compare = _natural_compare
    if args:
        arg = args[0]
        if isinstance(arg, Boolean):
            descending = arg.value
        elif isinstance(arg, (Function, BuiltinFunction)):
            if isinstance(arg, Function) and len(arg.parameters) < 2:
                return new_error(arg.node, "Array.sort() callback must take at least 2 arguments")

            def compare(a: Value, b: Value) -> int:
                result = invoke(interp, left, arg, [a, b], builtin_count=2)
                if is_error(result):
                    raise _CallbackFailed(result)
                if not is_number(result):
                    raise _CallbackFailed(new_error(
                        arg.node, f"Array.sort() callback must return INTEGER or FLOAT, got {result.type()}"))
                value = numeric_value(result)
                return (value > 0) - (value < 0)
        else:
            return new_error(left.node,
                             f"argument to `Array.sort()` must be BOOLEAN, FUNCTION or BUILTIN, got {arg.type()}")

    try:
        ordered = sorted(left.elements, key=functools.cmp_to_key(compare), reverse=descending)
    except _CallbackFailed as failure:
        return failure.err
    return Array(ordered, node=left.node)


ARRAY_METHODS: Dict[str, Method] = {
    'length': array_length,
    'push': array_push,
    'append': array_append,
    'prepend': array_prepend,
    'shift': array_shift,
    'pop': array_pop,
    'concat': array_concat,
    'map': array_map,
    'filter': array_filter,
    'reduce': array_reduce,
    'contains': array_contains,
    'indexOf': array_index_of,
    'find': array_find,
    'join': array_join,
    'reverse': array_reverse,
    'slice': array_slice,
    'sort': array_sort,
    'any': array_any,
    'every': array_every,
}


###############################################################################
# String methods
###############################################################################


def _no_arguments(name: str, fn: Callable[[str], str]) -> Method:
    def method(interp: 'Interpreter', left: String, args: List[Value]) -> Value:
        if args:
            return new_error(left.node, f"String.{name}() takes no arguments")
        return String(fn(left.value), node=left.node)
    method.__name__ = f"string_{name}"
    return method


def _string_argument(name: str, fn: Callable[[str, str], Value]) -> Method:
    def method(interp: 'Interpreter', left: String, args: List[Value]) -> Value:
        if len(args) != 1:
            return new_error(left.node, f"String.{name}() takes exactly 1 argument")
        if not isinstance(args[0], String):
            return new_error(left.node, f"argument to `String.{name}()` must be STRING, got {args[0].type()}")
        return interp.native_bool(fn(left.value, args[0].value))
    method.__name__ = f"string_{name}"
    return method


def string_length(interp: 'Interpreter', left: String, args: List[Value]) -> Value:
    if args:
        return new_error(left.node, "String.length() takes no arguments")
    return Integer(len(left.value), node=left.node)


def string_split(interp: 'Interpreter', left: String, args: List[Value]) -> Value:
    if len(args) > 1:
        return new_error(left.node, f"String.split() takes at most 1 argument, got {len(args)}")
    separator = ' '
    if args:
        if not isinstance(args[0], String):
            return new_error(left.node, f"argument to `String.split()` must be STRING, got {args[0].type()}")
        separator = args[0].value

    parts = list(left.value) if separator == '' else left.value.split(separator)
    return Array([String(p, node=left.node) for p in parts], node=left.node)


def string_replace(interp: 'Interpreter', left: String, args: List[Value]) -> Value:
    if len(args) != 2:
        return new_error(left.node, "String.replace() takes exactly 2 arguments")
    old, new = args
    if not isinstance(old, String):
        return new_error(left.node, f"first argument to `String.replace()` must be STRING, got {old.type()}")
    if not isinstance(new, String):
        return new_error(left.node, f"second argument to `String.replace()` must be STRING, got {new.type()}")
    return String(left.value.replace(old.value, new.value), node=left.node)


def string_repeat(interp: 'Interpreter', left: String, args: List[Value]) -> Value:
    if len(args) != 1:
        return new_error(left.node, "String.repeat() takes exactly 1 argument")
    count = args[0]
    if not isinstance(count, Integer):
        return new_error(left.node, f"argument to `String.repeat()` must be INTEGER, got {count.type()}")
    return String(left.value * max(count.value, 0), node=left.node)


def string_slice(interp: 'Interpreter', left: String, args: List[Value]) -> Value:
    bounds = _slice_bounds('String.slice', left.node, len(left.value), args)
    if is_error(bounds):
        return bounds
    start, end = bounds
    return String(left.value[start:end], node=left.node)


STRING_METHODS: Dict[str, Method] = {
    'length': string_length,
    'upper': _no_arguments('upper', str.upper),
    'lower': _no_arguments('lower', str.lower),
    'split': string_split,
    'contains': _string_argument('contains', lambda s, sub: sub in s),
    'replace': string_replace,
    'trim': _no_arguments('trim', str.strip),
    'trimStart': _no_arguments('trimStart', str.lstrip),
    'trimEnd': _no_arguments('trimEnd', str.rstrip),
    'repeat': string_repeat,
    'reverse': _no_arguments('reverse', lambda s: s[::-1]),
    'slice': string_slice,
    'startsWith': _string_argument('startsWith', str.startswith),
    'endsWith': _string_argument('endsWith', str.endswith),
}


###############################################################################
# Hash methods
###############################################################################


def _hash_view(name: str, fn: Callable[[HashPair], Value]) -> Method:
    def method(interp: 'Interpreter', left: Hash, args: List[Value]) -> Value:
        if args:
            return new_error(left.node, f"Object.{name}() takes no arguments")
        return Array([fn(pair) for pair in left.pairs()], node=left.node)
    method.__name__ = f"hash_{name}"
    return method


HASH_METHODS: Dict[str, Method] = {
    'keys': _hash_view('keys', lambda pair: pair.key),
    'values': _hash_view('values', lambda pair: pair.value),
    'items': _hash_view('items', lambda pair: Array([pair.key, pair.value], node=pair.key.node)),
}
