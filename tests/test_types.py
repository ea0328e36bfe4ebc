import math

import pytest

from vorn.types import (
    Integer, Float, Boolean, String, Array, Hash, HashKey, Null, Error,
    format_float, parse_integer, wrap_int64, fnv1a_64, new_error, clone,
)
from vorn.lexer import tokenize
from vorn.ast import Identifier


@pytest.mark.parametrize('value, expected', [
    (2.5, '2.5'),
    (1.0, '1'),
    (-3.0, '-3'),
    (1e6, '1e+06'),
    (123456.0, '123456'),
    (1234567.0, '1.234567e+06'),
    (0.0001, '0.0001'),
    (0.00001, '1e-05'),
    (100.0, '100'),
    (0.1 + 0.2, '0.30000000000000004'),
    (math.inf, '+Inf'),
    (-math.inf, '-Inf'),
    (math.nan, 'NaN'),
])
def test_format_float(value, expected):
    assert format_float(value) == expected


@pytest.mark.parametrize('text, expected', [
    ('42', 42),
    ('-12', -12),
    ('0x1F', 31),
    ('0b101', 5),
    ('0o17', 15),
    ('017', 15),
    ('0', 0),
    ('9223372036854775807', 9223372036854775807),
])
def test_parse_integer(text, expected):
    assert parse_integer(text) == expected


@pytest.mark.parametrize('text', ['abc', '', '1.5', ' 1', '9223372036854775808', '09'])
def test_parse_integer_rejects(text):
    with pytest.raises(ValueError):
        parse_integer(text)


def test_wrap_int64():
    assert wrap_int64(2 ** 63) == -2 ** 63
    assert wrap_int64(-2 ** 63 - 1) == 2 ** 63 - 1
    assert wrap_int64(5) == 5


def test_inspect_forms():
    assert Integer(5).inspect() == '5'
    assert Float(2.0).inspect() == '2'
    assert Boolean(True).inspect() == 'true'
    assert Null().inspect() == 'null'
    assert String('raw text').inspect() == 'raw text'
    assert Array([Integer(1), String('a')]).inspect() == '[1, a]'
    assert Error(message='[1:2] boom').inspect() == 'ERROR: [1:2] boom'


def test_hash_keys():
    assert String('name').hash_key() == String('name').hash_key()
    assert String('name').hash_key() != String('other').hash_key()
    assert Integer(1).hash_key() != Boolean(True).hash_key()
    assert Integer(-1).hash_key() == HashKey('INTEGER', 2 ** 64 - 1)
    assert String('').hash_key().value == fnv1a_64(b'')


def test_hash_keeps_insertion_order_and_overwrites():
    h = Hash()
    h.set(String('b'), Integer(1))
    h.set(Integer(3), Integer(2))
    h.set(String('b'), Integer(4))
    assert h.inspect() == '{b: 4, 3: 2}'
    assert len(h) == 2
    assert h.get(String('missing')) is None


def test_hash_resolves_colliding_payloads():
    h = Hash()
    first, second = String('first'), String('second')
    # force both keys into one bucket
    first.hash_key = second.hash_key = lambda: HashKey('STRING', 1)
    h.set(first, Integer(1))
    h.set(second, Integer(2))
    assert len(h.buckets) == 1
    assert h.get(first).value == 1
    assert h.get(second).value == 2


def test_new_error_uses_node_position():
    tok = tokenize('\n  name')[0]
    node = Identifier(token=tok, value='name')
    assert new_error(node, 'boom').message == '[2:4] boom'
    assert new_error(None, 'boom').message == '[0:0] boom'


def test_clone_copies_collections():
    inner = Array([Integer(1)])
    copy = clone(Array([inner]), None)
    copy.elements[0].elements.append(Integer(2))
    assert inner.inspect() == '[1]'
