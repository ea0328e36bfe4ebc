"""JSON serialization for the Vorn AST.

This module converts the AST dataclasses into plain Python dict/list
structures suitable for `json.dump`. It backs the `--ast --json` mode of
the command-line driver. Every node records its kind and source position.
"""

from __future__ import annotations

from typing import Any, Dict

from .ast import (
    Node,
    Program,
    ExpressionStatement,
    VariableStatement,
    ReturnStatement,
    BlockStatement,
    WhileStatement,
    ForStatement,
    FunctionStatement,
    Identifier,
    IntegerLiteral,
    FloatLiteral,
    BooleanLiteral,
    NullLiteral,
    StringLiteral,
    ArrayLiteral,
    HashLiteral,
    FunctionLiteral,
    PrefixExpression,
    InfixExpression,
    IfExpression,
    CallExpression,
    IndexExpression,
    ChainingExpression,
    ReassignmentExpression,
    IncrementDecrementExpression,
    BreakExpression,
    ContinueExpression,
)


def _node(kind: str, node: Node, **fields: Any) -> Dict[str, Any]:
    obj: Dict[str, Any] = {"type": kind, "line": node.line, "column": node.column}
    obj.update(fields)
    return obj


def ast_to_obj(node: Any) -> Any:
    if node is None:
        return None

    if isinstance(node, Program):
        return {"type": "Program", "statements": [ast_to_obj(s) for s in node.statements]}

    # Statements
    if isinstance(node, ExpressionStatement):
        return _node("ExpressionStatement", node, expression=ast_to_obj(node.expression))
    if isinstance(node, VariableStatement):
        return _node(
            "VariableStatement", node,
            name=node.name.value,
            is_const=node.is_const(),
            value=ast_to_obj(node.value),
        )
    if isinstance(node, ReturnStatement):
        return _node("ReturnStatement", node, value=ast_to_obj(node.return_value))
    if isinstance(node, BlockStatement):
        return _node("BlockStatement", node, statements=[ast_to_obj(s) for s in node.statements])
    if isinstance(node, WhileStatement):
        return _node("WhileStatement", node, condition=ast_to_obj(node.condition), body=ast_to_obj(node.body))
    if isinstance(node, ForStatement):
        return _node(
            "ForStatement", node,
            init=ast_to_obj(node.init),
            condition=ast_to_obj(node.condition),
            update=ast_to_obj(node.update),
            body=ast_to_obj(node.body),
        )
    if isinstance(node, FunctionStatement):
        return _node(
            "FunctionStatement", node,
            name=node.name.value,
            parameters=[p.value for p in node.parameters],
            body=ast_to_obj(node.body),
        )

    # Literals
    if isinstance(node, Identifier):
        return _node("Identifier", node, name=node.value)
    if isinstance(node, IntegerLiteral):
        return _node("IntegerLiteral", node, value=node.value)
    if isinstance(node, FloatLiteral):
        return _node("FloatLiteral", node, value=node.value)
    if isinstance(node, BooleanLiteral):
        return _node("BooleanLiteral", node, value=node.value)
    if isinstance(node, NullLiteral):
        return _node("NullLiteral", node)
    if isinstance(node, StringLiteral):
        return _node("StringLiteral", node, value=node.value)
    if isinstance(node, ArrayLiteral):
        return _node("ArrayLiteral", node, elements=[ast_to_obj(e) for e in node.elements])
    if isinstance(node, HashLiteral):
        return _node("HashLiteral", node, pairs=[[ast_to_obj(k), ast_to_obj(v)] for k, v in node.pairs])
    if isinstance(node, FunctionLiteral):
        return _node(
            "FunctionLiteral", node,
            parameters=[p.value for p in node.parameters],
            body=ast_to_obj(node.body),
        )

    # Operators
    if isinstance(node, PrefixExpression):
        return _node("PrefixExpression", node, operator=node.operator, right=ast_to_obj(node.right))
    if isinstance(node, InfixExpression):
        return _node(
            "InfixExpression", node,
            operator=node.operator,
            left=ast_to_obj(node.left),
            right=ast_to_obj(node.right),
        )
    if isinstance(node, ReassignmentExpression):
        return _node("ReassignmentExpression", node, name=node.name.value, value=ast_to_obj(node.value))
    if isinstance(node, IncrementDecrementExpression):
        return _node(
            "IncrementDecrementExpression", node,
            operator=node.operator,
            target=node.target.value,
            prefix=node.prefix,
        )

    # Control flow and access
    if isinstance(node, IfExpression):
        return _node(
            "IfExpression", node,
            condition=ast_to_obj(node.condition),
            consequence=ast_to_obj(node.consequence),
            alternative=ast_to_obj(node.alternative),
        )
    if isinstance(node, CallExpression):
        return _node(
            "CallExpression", node,
            function=ast_to_obj(node.function),
            arguments=[ast_to_obj(a) for a in node.arguments],
        )
    if isinstance(node, IndexExpression):
        return _node("IndexExpression", node, left=ast_to_obj(node.left), index=ast_to_obj(node.index))
    if isinstance(node, ChainingExpression):
        return _node("ChainingExpression", node, left=ast_to_obj(node.left), right=ast_to_obj(node.right))
    if isinstance(node, BreakExpression):
        return _node("BreakExpression", node)
    if isinstance(node, ContinueExpression):
        return _node("ContinueExpression", node)

    raise TypeError(f"Unsupported node for serialization: {type(node).__name__}")
