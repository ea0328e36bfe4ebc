import pytest

from vorn.interpreter import Interpreter, NULL, parse_program
from vorn.types import Error


def eval_source(source):
    return Interpreter().run(parse_program(source))


@pytest.mark.parametrize('source, expected', [
    ('"hello".upper()', 'HELLO'),
    ('"hello".upper().lower()', 'hello'),
    ('("hello" + "world").upper()', 'HELLOWORLD'),
    ('"hElLo".lower() + "world".lower().upper()', 'helloWORLD'),
    ('"hello".length()', '5'),
    ('"hello".split()', '[hello]'),
    ('"hello".split("l")', '[he, , o]'),
    ('"hello world".split()', '[hello, world]'),
    ('"abc".split("")', '[a, b, c]'),
    ('"hello world".contains("world")', 'true'),
    ('"hello world".contains("worlds")', 'false'),
    ('"hello world".replace("world", "you")', 'hello you'),
    ('"  hello\t".trim()', 'hello'),
    ('"  hello\t".trimStart()', 'hello\t'),
    ('"hello  ".trimEnd()', 'hello'),
    ('"hello".repeat(3)', 'hellohellohello'),
    ('"hello".repeat(-1)', ''),
    ('"hello".reverse()', 'olleh'),
    ('"hello".slice(1)', 'ello'),
    ('"hello".slice(1, 3)', 'el'),
    ('"hello".slice(1, 1)', ''),
    ('"hello".slice(1, -1)', 'ell'),
    ('"hello".startsWith("he")', 'true'),
    ('"hello".endsWith("he")', 'false'),
])
def test_string_methods(source, expected):
    result = eval_source(source)
    assert not isinstance(result, Error), result.inspect()
    assert result.inspect() == expected


@pytest.mark.parametrize('source, expected', [
    ('[1,2,3].length()', '3'),
    ('[1,2,3].append(4).length()', '4'),
    ('let a = [1,2,3]; a.append(4); a.length()', '4'),
    ('let a = [1,2,3]; a.push(4); a', '[1, 2, 3, 4]'),
    ('let a = [1,2,3]; a.prepend(0); a', '[0, 1, 2, 3]'),
    ('[1,2,3].shift()', '1'),
    ('let a = [1,2,3]; a.shift(); a.shift(); a', '[3]'),
    ('[1,2,3].pop()', '3'),
    ('let a = [1,2,3]; a.pop(); a.pop(); a', '[1]'),
    ('let a = [1,2,3]; a.pop(1)', '2'),
    ('[1,2,3].concat([4,5,6], [7])', '[1, 2, 3, 4, 5, 6, 7]'),
    ('[1, 2, 3, 4].map(sqrt)', '[1, 1.4142135623730951, 1.7320508075688772, 2]'),
    ('[1, 2, 3, 4].map(func(x, i) { return x + i; })', '[1, 3, 5, 7]'),
    ('[1, 2].map(func(x, i, arr) { return arr.length(); })', '[2, 2]'),
    ('[1, 2, 3, 4].filter(func(x) { return x > 2; })', '[3, 4]'),
    ('[1, 2, 3, 4].filter(func(x) { return 10; })', '[1, 2, 3, 4]'),
    ('[1, 2, 3, 4].reduce(func(x, y) { return x + y; }, 0)', '10'),
    ('[1, 2, 3, 4].reduce(func(x, y, i) { return x + y + i; }, 0)', '16'),
    ('[1, 2, 3, 4].contains(2)', 'true'),
    ('[1, 2, 3, 4].contains(5)', 'false'),
    ('[1, "a", true].contains("a")', 'true'),
    ('[1, 2, 3, 4].indexOf(2)', '1'),
    ('[1, 2, 3, 4].indexOf(5)', '-1'),
    ('[1, 2, 3, 4].find(func(x) { return x > 2; })', '3'),
    ('[1, 2, 3, 4].find(func(x) { return x > 5; })', 'null'),
    ('["a", "b", "c"].find(func(x) { return x == "c"; })', 'c'),
    ('["a", "b", "c", "d"].join()', 'a,b,c,d'),
    ('["a", "b", "c", "d"].join("")', 'abcd'),
    ('[1, 2, 3, 4].reverse()', '[4, 3, 2, 1]'),
    ('[1, 2, 3, 4].slice(1)', '[2, 3, 4]'),
    ('[1, 2, 3, 4].slice(1, 1)', '[]'),
    ('[1, 2, 3, 4].slice(1, -1)', '[2, 3]'),
    ('[3,6,8,3,1,2,4,6,3].sort()', '[1, 2, 3, 3, 3, 4, 6, 6, 8]'),
    ('[3,6,8,3,1,2,4,6,3].sort(false)', '[1, 2, 3, 3, 3, 4, 6, 6, 8]'),
    ('[3,6,8,3,1,2,4,6,3].sort(true)', '[8, 6, 6, 4, 3, 3, 3, 2, 1]'),
    ('[3,6,8,3,1].sort(func(a, b) { return b - a; })', '[8, 6, 3, 3, 1]'),
    ('["pear", "fig", "apple"].sort()', '[apple, fig, pear]'),
    ('[2, 1.5, 3].sort()', '[1.5, 2, 3]'),
    ('[].sort()', '[]'),
    ('[1,5,2,3].any(func(x) {return x > 4;})', 'true'),
    ('[1,5,2,3].any(func(x) {return x > 10;})', 'false'),
    ('[1,2,3,4].every(func(x) {return x != 0;})', 'true'),
    ('[1,2,0,4].every(func(x) { return 0; })', 'false'),
])
def test_array_methods(source, expected):
    result = eval_source(source)
    assert not isinstance(result, Error), result.inspect()
    assert result.inspect() == expected


def test_copying_methods_leave_receiver_alone():
    source = 'let a = [3, 1, 2]; a.sort(); a.reverse(); a.slice(1); a.concat([4]); a'
    assert eval_source(source).inspect() == '[3, 1, 2]'


def test_callbacks_see_enclosing_scope():
    source = 'let seen = 0; [1, 2, 3].map(func(x) { seen += x; return seen; }); seen'
    assert eval_source(source).value == 6


def test_find_without_match_is_null():
    assert eval_source('[].find(func(x) { return true; })') is NULL


@pytest.mark.parametrize('source, expected', [
    ('{"a": 1, "b": 2}.keys()', '[a, b]'),
    ('{"a": 1, "b": 2}.values()', '[1, 2]'),
    ('{"a": 1, "b": 2}.items()', '[[a, 1], [b, 2]]'),
    ('{}.keys()', '[]'),
    ('{2: "x", true: "y"}.keys()', '[2, true]'),
    ('let h = {"b": 1, "a": 2}; h.keys().sort()', '[a, b]'),
    ('{"a": 1, "b": 2}.values().reduce(func(acc, v) { return acc + v; }, 0)', '3'),
])
def test_hash_methods(source, expected):
    result = eval_source(source)
    assert not isinstance(result, Error), result.inspect()
    assert result.inspect() == expected


def test_hash_methods_keep_insertion_order():
    source = 'let g = {"z": 1, "a": 2, "m": 3, "a": 4}; g.items()'
    assert eval_source(source).inspect() == '[[z, 1], [a, 4], [m, 3]]'


@pytest.mark.parametrize('source, expected', [
    ('"hello".length(1)', '[1:2] String.length() takes no arguments'),
    ('"hello".upper(1)', '[1:2] String.upper() takes no arguments'),
    ('"hello".append(1)', '[1:10] String has no method append'),
    ('"hello".split(1)', '[1:2] argument to `String.split()` must be STRING, got INTEGER'),
    ('"hello".split("e", "l")', '[1:2] String.split() takes at most 1 argument, got 2'),
    ('"hello world".contains("world", 6)', '[1:2] String.contains() takes exactly 1 argument'),
    ('"hello world".replace(1, 2)', '[1:2] first argument to `String.replace()` must be STRING, got INTEGER'),
    ('"hello world".replace("world", 2)', '[1:2] second argument to `String.replace()` must be STRING, got INTEGER'),
    ('"hello".repeat("1")', '[1:2] argument to `String.repeat()` must be INTEGER, got STRING'),
    ('"hello".slice()', '[1:2] String.slice() takes 1 or 2 arguments'),
    ('"hello".slice(10, 10)', '[1:2] first argument to `String.slice()` out of range'),
    ('"hello".slice(0, 10)', '[1:2] second argument to `String.slice()` out of range'),
    ('"hello".startsWith(1)', '[1:2] argument to `String.startsWith()` must be STRING, got INTEGER'),
    ('[1,2,3].vorn', '[1:10] chaining operator not supported: ARRAY.vorn'),
    ('[1,2,3].upper()', '[1:10] Array has no method upper'),
    ('{}.upper()', '[1:5] Object has no method upper'),
    ('{"a": 1, "b": 2}.keys(1)', '[1:2] Object.keys() takes no arguments'),
    ('{"a": 1, "b": 2}.values(1)', '[1:2] Object.values() takes no arguments'),
    ('{"a": 1, "b": 2}.items(1)', '[1:2] Object.items() takes no arguments'),
    ('{}.upper("2" - "1")', '[1:15] unknown operator: STRING - STRING'),
    ('(5).length()', '[1:6] chaining operator not supported: INTEGER.length'),
    ('[1,2,3].length(1)', '[1:2] Array.length() takes no arguments'),
    ('[1,2,3].append()', '[1:2] Array.append() takes exactly 1 argument'),
    ('[].shift()', '[1:2] Array.shift() called on empty array'),
    ('[].pop()', '[1:2] Array.pop() called on empty array'),
    ('[1,2,3].pop(1,2)', '[1:2] Array.pop() takes 0 or 1 argument'),
    ('[1,2,3].pop("1")', '[1:2] Array.pop() argument must be an integer'),
    ('[1,2,3].pop(3)', '[1:2] Array.pop() index out of range'),
    ('[1,2,3].concat()', '[1:2] Array.concat() takes at least 1 argument'),
    ('[1,2,3].concat(1)', '[1:2] argument to `Array.concat()` must be ARRAY, got INTEGER'),
    ('[1, 2, 3, 4].map(2)', '[1:19] Array.map() callback must be a function, got INTEGER'),
    ('[1, 2, 3, 4].map(sqrt, sqrt)', '[1:2] Array.map() takes exactly 1 argument'),
    ('[1, 2, 3, 4].map(func() { return true; })', '[1:19] Array.map() callback must take at least 1 argument'),
    ('[1, 2, 3, 4].map(func(x) { if (x == 2) { return x + ""; } return x; })',
     '[1:52] type mismatch: INTEGER + STRING'),
    ('[1, 2, 3, 4].filter(2)', '[1:22] Array.filter() callback must be a function, got INTEGER'),
    ('[1, 2, 3, 4].filter()', '[1:2] Array.filter() takes exactly 1 argument'),
    ('[1, 2, 3, 4].reduce(2, 0)', '[1:22] Array.reduce() callback must be a function, got INTEGER'),
    ('[1, 2, 3, 4].reduce(func(x, y) { return x + y; }, 0, 0)',
     '[1:2] Array.reduce() takes exactly 2 arguments, got 3'),
    ('[1, 2, 3, 4].reduce(func (x) { return x; }, 0)',
     '[1:22] Array.reduce() callback must take at least 2 arguments'),
    ('[1, 2, 3, 4].find(func(){})', '[1:20] Array.find() callback must take at least 1 argument'),
    ('[1, 2, 3, 4].find(func(x){ return x + ""; })', '[1:38] type mismatch: INTEGER + STRING'),
    ('[1, 2].filter(func(x) { return len; })',
     '[1:16] Array.filter() callback result can not be used as BOOLEAN, got BUILTIN'),
    ('[1,2,3,4].join(1)', '[1:2] argument to `Array.join()` must be STRING, got INTEGER'),
    ('[1,2,3,4].join("", " ")', '[1:2] Array.join() takes at most 1 argument, got 2'),
    ('[1,2,3,4].reverse(1)', '[1:2] Array.reverse() takes no arguments'),
    ('[1,2,3,4].slice("")', '[1:2] first argument to `Array.slice()` must be INTEGER, got STRING'),
    ('[1,2,4,5].slice(-1)', '[1:2] first argument to `Array.slice()` out of range'),
    ('[1,2,4,5].slice(0, 20)', '[1:2] second argument to `Array.slice()` out of range'),
    ('[1,2,3,4].sort(1)', '[1:2] argument to `Array.sort()` must be BOOLEAN, FUNCTION or BUILTIN, got INTEGER'),
    ('[1,2,3,4].sort(func(){})', '[1:17] Array.sort() callback must take at least 2 arguments'),
    ('[1,2,3,4].sort(func(a, b) { return b + ""; })', '[1:39] type mismatch: INTEGER + STRING'),
    ('[1,2,3,4].any(1)', '[1:16] Array.any() callback must be a function, got INTEGER'),
    ('[1,2,3,4].every(func(){})', '[1:18] Array.every() callback must take at least 1 argument'),
    ('[1,2,3,4].every(func(x){return x + "";})', '[1:35] type mismatch: INTEGER + STRING'),
])
def test_method_errors(source, expected):
    result = eval_source(source)
    assert isinstance(result, Error), result.inspect()
    assert result.message == expected


def test_sort_rejects_mixed_elements():
    result = eval_source('[1, "a"].sort()')
    assert isinstance(result, Error)
    assert 'Array.sort() can not compare' in result.message
