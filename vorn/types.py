"""Runtime values for the Vorn interpreter.

Every value the evaluator produces is an instance of one of the classes
below. Each value remembers the AST node it came from (or None) so that
errors raised against it can be reported with a source position.

Runtime errors are ordinary values too: `Error` travels back up through
the evaluator like any other result and every caller checks for it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterator, List, Optional

from .ast import Node, BlockStatement, Identifier

INTEGER_OBJ = 'INTEGER'
FLOAT_OBJ = 'FLOAT'
BOOLEAN_OBJ = 'BOOLEAN'
STRING_OBJ = 'STRING'
ARRAY_OBJ = 'ARRAY'
HASH_OBJ = 'HASH'
NULL_OBJ = 'NULL'
FUNCTION_OBJ = 'FUNCTION'
BUILTIN_OBJ = 'BUILTIN'
ERROR_OBJ = 'ERROR'
RETURN_VALUE_OBJ = 'RETURN_VALUE'
BREAK_OBJ = 'BREAK'
CONTINUE_OBJ = 'CONTINUE'

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1
UINT64_MASK = (1 << 64) - 1

FNV64_OFFSET = 0xcbf29ce484222325
FNV64_PRIME = 0x100000001b3


def wrap_int64(value: int) -> int:
    """Wrap an arbitrary Python int into the signed 64-bit range."""
    value &= UINT64_MASK
    if value > INT64_MAX:
        value -= 1 << 64
    return value


def parse_integer(text: str) -> int:
    """Parse an integer literal with prefix-detected base.

    Accepts an optional sign, ``0x``/``0o``/``0b`` prefixes and treats a
    leading zero as octal. Raises ValueError for malformed text and for
    values outside the signed 64-bit range.
    """
    body = text[1:] if text[:1] in ('+', '-') else text
    if not body or body != body.strip():
        raise ValueError(f"invalid integer literal {text!r}")
    if len(body) > 1 and body[0] == '0' and body[1].isdigit():
        value = int(body[1:], 8)
    else:
        value = int(body, 0)
    if text.startswith('-'):
        value = -value
    if value < INT64_MIN or value > INT64_MAX:
        raise ValueError(f"integer literal {text!r} out of range")
    return value


def fnv1a_64(data: bytes) -> int:
    h = FNV64_OFFSET
    for byte in data:
        h ^= byte
        h = (h * FNV64_PRIME) & UINT64_MASK
    return h


def format_float(value: float) -> str:
    """Render a float in ``%g`` style.

    The shortest digit string that round-trips is used. Exponent notation
    is used when the decimal exponent is below -4 or at least 6, and the
    exponent always carries a sign and at least two digits.
    """
    if math.isnan(value):
        return 'NaN'
    if math.isinf(value):
        return '+Inf' if value > 0 else '-Inf'
    if value == 0:
        return '-0' if math.copysign(1.0, value) < 0 else '0'

    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = ''.join(str(d) for d in digit_tuple).rstrip('0') or '0'
    # Position of the decimal point relative to the start of `digits`
    point = len(digit_tuple) + exponent
    prefix = '-' if sign else ''
    exp = point - 1

    if exp < -4 or exp >= 6:
        mantissa = digits[0]
        if len(digits) > 1:
            mantissa += '.' + digits[1:]
        exp_sign = '-' if exp < 0 else '+'
        return f"{prefix}{mantissa}e{exp_sign}{abs(exp):02d}"

    if point <= 0:
        return f"{prefix}0.{'0' * -point}{digits}"
    if point >= len(digits):
        return prefix + digits + '0' * (point - len(digits))
    return f"{prefix}{digits[:point]}.{digits[point:]}"


@dataclass(frozen=True)
class HashKey:
    """Key under which a hashable value is stored inside a `Hash`."""
    type: str
    value: int


@dataclass(eq=False)
class Value:
    """Base class for all runtime values."""
    node: Optional[Node] = field(default=None, repr=False, kw_only=True)

    def type(self) -> str:
        raise NotImplementedError

    def inspect(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.inspect()


class Hashable:
    """Mixin for values that may be used as hash keys."""

    def hash_key(self) -> HashKey:
        raise NotImplementedError


@dataclass(eq=False)
class Null(Value):
    def type(self) -> str:
        return NULL_OBJ

    def inspect(self) -> str:
        return 'null'


@dataclass(eq=False)
class Integer(Value, Hashable):
    value: int = 0

    def type(self) -> str:
        return INTEGER_OBJ

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(INTEGER_OBJ, self.value & UINT64_MASK)


@dataclass(eq=False)
class Float(Value):
    value: float = 0.0

    def type(self) -> str:
        return FLOAT_OBJ

    def inspect(self) -> str:
        return format_float(self.value)


@dataclass(eq=False)
class Boolean(Value, Hashable):
    value: bool = False

    def type(self) -> str:
        return BOOLEAN_OBJ

    def inspect(self) -> str:
        return 'true' if self.value else 'false'

    def hash_key(self) -> HashKey:
        return HashKey(BOOLEAN_OBJ, 1 if self.value else 0)


@dataclass(eq=False)
class String(Value, Hashable):
    value: str = ''

    def type(self) -> str:
        return STRING_OBJ

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(STRING_OBJ, fnv1a_64(self.value.encode('utf-8')))


@dataclass(eq=False)
class Array(Value):
    elements: List[Value] = field(default_factory=list)

    def type(self) -> str:
        return ARRAY_OBJ

    def inspect(self) -> str:
        return '[' + ', '.join(e.inspect() for e in self.elements) + ']'


@dataclass
class HashPair:
    key: Value
    value: Value


@dataclass(eq=False)
class Hash(Value):
    """A key-value map.

    Pairs are bucketed by `HashKey`. Two different keys that happen to
    share a 64-bit payload land in the same bucket and are told apart by
    comparing the stored key itself.
    """
    buckets: Dict[HashKey, List[HashPair]] = field(default_factory=dict)

    def type(self) -> str:
        return HASH_OBJ

    def inspect(self) -> str:
        return '{' + ', '.join(f"{p.key.inspect()}: {p.value.inspect()}" for p in self.pairs()) + '}'

    def pairs(self) -> Iterator[HashPair]:
        for bucket in self.buckets.values():
            yield from bucket

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self.buckets.values())

    def get(self, key: Value) -> Optional[Value]:
        for pair in self.buckets.get(key.hash_key(), ()):
            if same_key(pair.key, key):
                return pair.value
        return None

    def set(self, key: Value, value: Value) -> None:
        bucket = self.buckets.setdefault(key.hash_key(), [])
        for pair in bucket:
            if same_key(pair.key, key):
                pair.value = value
                return
        bucket.append(HashPair(key, value))


def same_key(a: Value, b: Value) -> bool:
    return a.type() == b.type() and a.value == b.value


@dataclass(eq=False)
class Function(Value):
    parameters: List[Identifier] = field(default_factory=list)
    body: Optional[BlockStatement] = None
    env: Any = field(default=None, repr=False)

    def type(self) -> str:
        return FUNCTION_OBJ

    def inspect(self) -> str:
        params = ', '.join(p.string() for p in self.parameters)
        body = self.body.string() if self.body is not None else '{ }'
        return f"func({params}) {body}"


@dataclass(eq=False)
class ReturnValue(Value):
    value: Optional[Value] = None

    def type(self) -> str:
        return RETURN_VALUE_OBJ

    def inspect(self) -> str:
        return self.value.inspect() if self.value is not None else 'null'


@dataclass(eq=False)
class Break(Value):
    def type(self) -> str:
        return BREAK_OBJ

    def inspect(self) -> str:
        return 'break'


@dataclass(eq=False)
class Continue(Value):
    def type(self) -> str:
        return CONTINUE_OBJ

    def inspect(self) -> str:
        return 'continue'


@dataclass(eq=False)
class Error(Value):
    """A runtime error carrying a ``[line:column]``-prefixed message."""
    message: str = ''

    def type(self) -> str:
        return ERROR_OBJ

    def inspect(self) -> str:
        return 'ERROR: ' + self.message


def new_error(node: Optional[Node], message: str) -> Error:
    """Build an `Error` positioned at `node`."""
    line = node.line if node is not None else 0
    column = node.column if node is not None else 0
    return Error(message=f"[{line}:{column}] {message}", node=node)


def is_error(value: Optional[Value]) -> bool:
    return isinstance(value, Error)


def is_number(value: Value) -> bool:
    return isinstance(value, (Integer, Float))


def numeric_value(value: Value) -> float:
    return float(value.value)


def clone(value: Value, node: Optional[Node]) -> Value:
    """Copy `value` so it can be placed into a new collection at `node`.

    Scalars and collections are copied; functions, builtins and the
    control-flow signals are returned as they are.
    """
    if isinstance(value, Integer):
        return Integer(value.value, node=node)
    if isinstance(value, Float):
        return Float(value.value, node=node)
    if isinstance(value, String):
        return String(value.value, node=node)
    if isinstance(value, Array):
        return Array([clone(e, node) for e in value.elements], node=node)
    if isinstance(value, Hash):
        copy = Hash(node=node)
        for pair in value.pairs():
            copy.set(clone(pair.key, node), clone(pair.value, node))
        return copy
    return value
