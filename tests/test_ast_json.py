import json

import pytest

from vorn.ast_json import ast_to_obj
from vorn.parser import parse_program


SOURCE = '''
const limit = 3;
func add(a, b) { return a + b; }
let items = [1, 2.5, "s", true, null];
let lookup = {"k": items};
for (let i = 0; i < limit; i++) { if (i == 1) { continue; } else { break; } }
while (false) { }
lookup["k"].length();
items = push(items, add(1, 2));
let neg = func(x) { return -x; };
'''


def kinds(obj, found=None):
    found = set() if found is None else found
    if isinstance(obj, dict):
        found.add(obj.get('type'))
        for value in obj.values():
            kinds(value, found)
    elif isinstance(obj, list):
        for value in obj:
            kinds(value, found)
    return found


def test_every_node_kind_serializes():
    tree = ast_to_obj(parse_program(SOURCE))
    # the result must be plain JSON data
    json.dumps(tree)
    assert {
        'Program', 'VariableStatement', 'FunctionStatement', 'ReturnStatement',
        'ForStatement', 'WhileStatement', 'BlockStatement', 'ExpressionStatement',
        'IfExpression', 'InfixExpression', 'IncrementDecrementExpression',
        'ArrayLiteral', 'HashLiteral', 'IntegerLiteral', 'FloatLiteral',
        'StringLiteral', 'BooleanLiteral', 'NullLiteral', 'Identifier',
        'ChainingExpression', 'IndexExpression', 'CallExpression',
        'ContinueExpression', 'BreakExpression', 'ReassignmentExpression',
        'FunctionLiteral', 'PrefixExpression',
    } <= kinds(tree)


def test_for_statement_fields():
    tree = ast_to_obj(parse_program('for (;;) { break; }'))
    loop = tree['statements'][0]
    assert (loop['init'], loop['condition'], loop['update']) == (None, None, None)
    assert loop['line'] == 1 and loop['column'] == 2


def test_unknown_node_is_rejected():
    with pytest.raises(TypeError):
        ast_to_obj(object())
