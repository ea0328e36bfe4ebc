import math
import sys

import pytest

from vorn.interpreter import Interpreter, NULL, TRUE, FALSE, parse_program, run_program
from vorn.errors import VornError
from vorn.types import Integer, Float, String, Array, Hash, Function, Error


def eval_source(source):
    return Interpreter().run(parse_program(source))


def assert_error(result, message):
    assert isinstance(result, Error), result
    assert result.message == message


###############################################################################
# End-to-end scenarios
###############################################################################


def test_scenario_bindings():
    assert eval_source('let a = 5; let b = a; let c = a + b + 5; c;').value == 15


def test_scenario_closure():
    source = ('let newAdder = func(x) { return func(y) { return x + y; }; }; '
              'let addTwo = newAdder(2); addTwo(2);')
    assert eval_source(source).value == 4


def test_scenario_while_break():
    source = 'let i = 0; while (i < 10) { i = i + 1; if (i == 4) { break; } }; i;'
    assert eval_source(source).value == 4


def test_scenario_for_continue():
    source = 'let x = 0; for (let i = 0; i < 4; i = i + 1) { if (i != 3) { continue; } x = i; }; x;'
    assert eval_source(source).value == 3


def test_scenario_push_length():
    assert eval_source('[1,2,3].push(4).length()').value == 4


def test_scenario_split():
    result = eval_source('"hello world".split(" ")')
    assert [e.value for e in result.elements] == ['hello', 'world']


def test_scenario_missing_hash_key():
    assert eval_source('{"foo": 5}["bar"]') is NULL


def test_scenario_type_mismatch():
    assert_error(eval_source('5 + true;'), '[1:4] type mismatch: INTEGER + BOOLEAN')


def test_scenario_negative_index():
    assert eval_source('[1,2,3,4,5,6][-1]').value == 6


###############################################################################
# Expressions
###############################################################################


@pytest.mark.parametrize('source, expected', [
    ('5', 5),
    ('-10', -10),
    ('5 + 5 + 5 + 5 - 10', 10),
    ('2 * 2 * 2 * 2 * 2', 32),
    ('-50 + 100 + -50', 0),
    ('20 + 2 * -10', 0),
    ('2 * (5 + 10)', 30),
    ('3 * 3 * 3 + 10', 37),
    ('(5 + 10 * 2 + 15 * 3) * 2 + -10', 130),
    ('7 % 3', 1),
    ('-7 % 3', -1),
    ('7 % -3', 1),
    ('6 & 3', 2),
    ('6 | 3', 7),
    ('6 ^ 3', 5),
    ('~5', -6),
    ('1 << 4', 16),
    ('-16 >> 2', -4),
    ('1 << 64', 0),
    ('-1 >> 100', -1),
    ('9223372036854775807 + 1', -9223372036854775808),
])
def test_integer_expressions(source, expected):
    result = eval_source(source)
    assert isinstance(result, Integer)
    assert result.value == expected


@pytest.mark.parametrize('source, expected', [
    ('7 / 2', 3.5),
    ('4 / 2', 2.0),
    ('2.5 * 2', 5.0),
    ('1 + 0.5', 1.5),
    ('-2.5', -2.5),
    ('5.5 % 2', 1.5),
])
def test_float_expressions(source, expected):
    result = eval_source(source)
    assert isinstance(result, Float)
    assert result.value == expected


def test_division_by_zero_follows_ieee():
    assert eval_source('1 / 0').inspect() == '+Inf'
    assert eval_source('-1 / 0').inspect() == '-Inf'
    assert math.isnan(eval_source('0 / 0').value)
    assert math.isnan(eval_source('1.5 % 0').value)


@pytest.mark.parametrize('source, expected', [
    ('true', True),
    ('false', False),
    ('1 < 2', True),
    ('1 > 2', False),
    ('1 <= 1', True),
    ('2 >= 3', False),
    ('1 == 1.0', True),
    ('1 != 2', True),
    ('"a" == "a"', True),
    ('"a" != "b"', True),
    ('true == true', True),
    ('(1 < 2) == true', True),
    ('null == null', True),
    ('null == false', False),
    ('[1] == [1]', False),
    ('!true', False),
    ('!!5', True),
    ('!null', True),
    ('null && true', False),
    ('null || true', True),
    ('1 && "x"', True),
    ('false || null', False),
])
def test_boolean_expressions(source, expected):
    result = eval_source(source)
    assert result is (TRUE if expected else FALSE)


def test_logical_operators_short_circuit():
    assert eval_source('false && undefinedName') is FALSE
    assert eval_source('true || undefinedName') is TRUE


def test_string_concatenation():
    assert eval_source('"Hello" + " " + "World!"').value == 'Hello World!'


@pytest.mark.parametrize('source', [
    'if (true) { 10 }',
    'if (false) { 10 }',
    'if (1) { 10 }',
    'if (1 < 2) { 10 }',
    'if (1 > 2) { 10 }',
    'if (1 > 2) { 10 } else { 20 }',
    'if (1 < 2) { 10 } else { 20 }',
])
def test_if_blocks_evaluate_to_null(source):
    assert eval_source(source) is NULL


def test_if_else_branches():
    source = '''
    let pick = func(n) {
        if (n < 0) { return "negative"; } else if (n == 0) { return "zero"; } else { return "positive"; }
    };
    [pick(-1), pick(0), pick(1)]
    '''
    assert eval_source(source).inspect() == '[negative, zero, positive]'


def test_truthiness_in_conditions():
    source = 'let r = []; if (0) { r.push(1); } if ("") { r.push(2); } if (null) { r.push(3); } r'
    assert eval_source(source).inspect() == '[1, 2]'


###############################################################################
# Statements
###############################################################################


def test_return_statements():
    assert eval_source('return 10; 9;').value == 10
    assert eval_source('9; return 2 * 5; 9;').value == 10
    assert eval_source('if (10 > 1) { if (10 > 1) { return 10; } return 1; }').value == 10


def test_empty_program_is_null():
    assert eval_source('') is NULL
    assert eval_source('let a = 1;') is NULL


def test_reassignment_returns_value():
    assert eval_source('let x = 1;\nx = 4;\nx;').value == 4
    assert eval_source('let x = 1; x = 7').value == 7


def test_compound_assignment():
    assert eval_source('let x = 10; x -= 3; x *= 2; x %= 5; x').value == 4
    assert eval_source('let s = "a"; s += "b"; s').value == 'ab'
    assert eval_source('let b = 1; b <<= 3; b |= 1; b').value == 9


def test_reassignment_updates_defining_scope():
    source = 'let x = 1; let f = func() { x = x + 1; return x; }; f(); f(); x'
    assert eval_source(source).value == 3


def test_increment_and_decrement():
    assert eval_source('let i = 5; i++').value == 5
    assert eval_source('let i = 5; ++i').value == 6
    assert eval_source('let i = 5; i--; i').value == 4
    assert eval_source('let f = 1.5; f++; f').value == 2.5


def test_closures_share_state():
    source = '''
    let counter = func() {
        let n = 0;
        return func() { n++; return n; };
    }();
    counter(); counter(); counter();
    '''
    assert eval_source(source).value == 3


def test_recursion():
    source = 'func fact(n) { if (n <= 1) { return 1; } return n * fact(n - 1); } fact(10)'
    assert eval_source(source).value == 3628800


def test_deep_recursion():
    source = 'func down(n) { if (n == 0) { return 0; } return down(n - 1); } down(1000)'
    assert eval_source(source).value == 0


def test_runaway_recursion_is_an_error():
    limit = sys.getrecursionlimit()
    result = eval_source('func f(n) { return f(n + 1); } f(0)')
    assert isinstance(result, Error), result
    assert result.message.endswith('stack overflow')
    assert sys.getrecursionlimit() == limit


def test_function_object():
    result = eval_source('func(x) { x + 2; };')
    assert isinstance(result, Function)
    assert [p.value for p in result.parameters] == ['x']
    assert result.body.string() == '{ (x + 2); }'


@pytest.mark.parametrize('source, expected', [
    ('let identity = func(x) { return x; }; identity(5);', 5),
    ('let double = func(x) { return x * 2; }; double(5);', 10),
    ('let add = func(x, y) { return x + y; }; add(5, 5);', 10),
    ('let add = func(x, y) { return x + y; }; add(5 + 5, add(5, 5));', 20),
    ('func(x) { return x; }(5)', 5),
])
def test_function_application(source, expected):
    assert eval_source(source).value == expected


def test_function_without_return_yields_null():
    assert eval_source('let f = func() { 5; }; f()') is NULL
    assert eval_source('let f = func() { return; }; f()') is NULL


def test_break_only_leaves_innermost_loop():
    source = '''
    let hits = 0;
    for (let i = 0; i < 3; i++) {
        for (let j = 0; j < 3; j++) {
            if (j == 1) { break; }
            hits++;
        }
    }
    hits
    '''
    assert eval_source(source).value == 3


def test_return_inside_loop_leaves_function():
    source = '''
    func firstOver(items, limit) {
        for (let i = 0; i < len(items); i++) {
            if (items[i] > limit) { return items[i]; }
        }
        return null;
    }
    [firstOver([1, 5, 9], 4), firstOver([1], 4)]
    '''
    assert eval_source(source).inspect() == '[5, null]'


def test_loop_variable_is_scoped_to_loop():
    assert_error(eval_source('for (let i = 0; i < 1; i++) { } i'), '[1:34] identifier not found: i')


def test_while_with_continue():
    source = 'let i = 0; let odd = 0; while (i < 10) { i++; if (i % 2 == 0) { continue; } odd += 1; } odd'
    assert eval_source(source).value == 5


###############################################################################
# Collections
###############################################################################


def test_array_literals():
    result = eval_source('[1, 2 * 2, 3 + 3]')
    assert isinstance(result, Array)
    assert [e.value for e in result.elements] == [1, 4, 6]


@pytest.mark.parametrize('source, expected', [
    ('[1, 2, 3][0]', 1),
    ('[1, 2, 3][2]', 3),
    ('let i = 0; [1][i];', 1),
    ('[1, 2, 3][1 + 1];', 3),
    ('let myArray = [1, 2, 3]; myArray[0] + myArray[1] + myArray[2];', 6),
    ('let myArray = [1, 2, 3]; let i = myArray[0]; myArray[i]', 2),
    ('[1, 2, 3][3]', None),
    ('[1, 2, 3][-4]', None),
])
def test_array_index_expressions(source, expected):
    result = eval_source(source)
    if expected is None:
        assert result is NULL
    else:
        assert result.value == expected


def test_hash_literals():
    source = '''let two = "two";
    {
        "one": 10 - 9,
        two: 1 + 1,
        "thr" + "ee": -1 * -3,
        4: 4,
        true: 5,
        false: 6
    }'''
    result = eval_source(source)
    assert isinstance(result, Hash)
    assert result.inspect() == '{one: 1, two: 2, three: 3, 4: 4, true: 5, false: 6}'


@pytest.mark.parametrize('source, expected', [
    ('{"foo": 5}["foo"]', 5),
    ('let key = "foo"; {"foo": 5}[key]', 5),
    ('{}["foo"]', None),
    ('{5: 5}[5]', 5),
    ('{true: 5}[true]', 5),
    ('{false: 5}[false]', 5),
])
def test_hash_index_expressions(source, expected):
    result = eval_source(source)
    if expected is None:
        assert result is NULL
    else:
        assert result.value == expected


###############################################################################
# Errors
###############################################################################


@pytest.mark.parametrize('source, expected', [
    ('5 + true;', '[1:4] type mismatch: INTEGER + BOOLEAN'),
    ('5 + true; 5;', '[1:4] type mismatch: INTEGER + BOOLEAN'),
    ('-true', '[1:1] unknown operator: -BOOLEAN'),
    ('true + false;', '[1:7] unknown operator: BOOLEAN + BOOLEAN'),
    ('5; true + false; 5', '[1:10] unknown operator: BOOLEAN + BOOLEAN'),
    ('if (10 > 1) { true + false; }', '[1:21] unknown operator: BOOLEAN + BOOLEAN'),
    ('foobar', '[1:2] identifier not found: foobar'),
    ('"Hello" - "World"', '[1:10] unknown operator: STRING - STRING'),
    ('{"name": "Vorn"}[func(x) { x }];', '[1:19] unusable as hash key: FUNCTION'),
    ('{[1]: 2}', '[1:3] unusable as hash key: ARRAY'),
    ('5 % 0', '[1:4] division by zero'),
    ('1 << -1', '[1:4] negative shift count'),
    ('1.5 & 1', '[1:6] unknown operator: FLOAT & INTEGER'),
    ('~1.5', '[1:2] unknown operator: ~FLOAT'),
    ('5[0]', '[1:4] index operator not supported: INTEGER'),
    ('5()', '[1:3] not a function: INTEGER'),
    ('let f = func(a) { return a; }; f(1, 2)', '[1:34] wrong number of arguments: want=1, got=2'),
    ('y = 1', '[1:4] variable y has not been initialized.'),
    ('y++', '[1:3] variable y has not been initialized.'),
    ('let s = "a"; s++', '[1:16] unknown operator: STRING++'),
    ('let s = "a"; --s', '[1:15] unknown operator: --STRING'),
    ('break;', '[1:2] break outside of loop'),
    ('continue;', '[1:2] continue outside of loop'),
    ('let f = func() { break; }; f()', '[1:19] break outside of loop'),
    ('let f = 1; func f() { }', '[1:13] variable already defined: f'),
    ('len(1)', '[1:5] argument to `len` not supported, got INTEGER'),
])
def test_error_handling(source, expected):
    assert_error(eval_source(source), expected)


def test_error_in_nested_block_keeps_its_position():
    source = '''
if (10 > 1) {
	if (10 > 1) {
		return true + false;
	}

	return 1;
}
'''
    assert_error(eval_source(source), '[4:16] unknown operator: BOOLEAN + BOOLEAN')


def test_error_stops_loop():
    source = 'let i = 0; while (true) { i++; if (i == 3) { i + "x"; } } i'
    assert_error(eval_source(source), '[1:49] type mismatch: INTEGER + STRING')


def test_run_program_raises_on_error():
    with pytest.raises(VornError) as excinfo:
        run_program('1 + "a"')
    assert str(excinfo.value) == '[1:4] type mismatch: INTEGER + STRING'
    assert isinstance(excinfo.value.err, Error)
    assert run_program('1 + 2').value == 3


###############################################################################
# Output and debug logging
###############################################################################


def test_print_writes_to_output(capsys):
    eval_source('print("a", 1, [true, null]); print();')
    assert capsys.readouterr().out == 'a\n1\n[true, null]\n'


def test_debug_trace(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    interp = Interpreter(debug_level=3, debug_file=str(debug_file))
    interp.run(parse_program('let a = 1; let f = func(x) { return x; }; for (let i = 0; i < 1; i++) { f(i); }'))
    interp.close()
    trace = debug_file.read_text().splitlines()
    assert trace[0] == 'run program (3 statements)'
    assert 'declare let a = 1' in trace
    assert 'call func(x) with (0)' in trace
    assert 'for iteration 1' in trace
    assert trace[-1] == 'program finished: null'


def test_no_debug_file_without_debug_level(tmp_path):
    debug_file = tmp_path / 'debug.txt'
    Interpreter(debug_file=str(debug_file)).run(parse_program('1'))
    assert not debug_file.exists()


def test_interpreter_keeps_global_state_between_runs():
    interp = Interpreter()
    interp.run(parse_program('let total = 2;'))
    assert interp.run(parse_program('total * 21')).value == 42
    assert isinstance(interp.run(parse_program('"x"')), String)
    assert_error(interp.run(parse_program('let total = 3;')), '[1:2] variable already defined: total')
