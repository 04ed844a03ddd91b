from __future__ import annotations

import logging
import sys

import pytest
from helpers import _Node

from treewarden.engine.kinds import NodeKind
from treewarden.engine.scope import ScopeTracker
from treewarden.engine.walker import VisitChildren, walk


def _ident(offset: int) -> _Node:
    return _Node("identifier", start_byte=offset, end_byte=offset + 1)


def _recorder(seen: list[int]):  # type: ignore[no-untyped-def]
    def on_identifier(node: _Node, visit_children: VisitChildren) -> None:
        seen.append(node.start_byte)

    return on_identifier


def test_walk_visits_in_document_order() -> None:
    root = _Node(
        "program",
        children=[
            _ident(0),
            _Node("expression_statement", children=[_ident(2), _Node("arguments", children=[_ident(4)])]),
            _ident(6),
        ],
    )
    seen: list[int] = []
    report = walk(root, {NodeKind.IDENTIFIER: _recorder(seen)})

    assert seen == [0, 2, 4, 6]
    assert report.faults == []


def test_anonymous_children_are_not_visited() -> None:
    root = _Node("program", children=[_Node("identifier", is_named=False), _ident(3)])
    seen: list[int] = []
    walk(root, {NodeKind.IDENTIFIER: _recorder(seen)})
    assert seen == [3]


def test_handler_controls_descent() -> None:
    call = _Node("call_expression", children=[_ident(1)])
    root = _Node("program", children=[call, _ident(9)])
    seen: list[int] = []

    def skip(node: _Node, visit_children: VisitChildren) -> None:
        return None

    walk(root, {NodeKind.CALL_EXPRESSION: skip, NodeKind.IDENTIFIER: _recorder(seen)})
    assert seen == [9]


def test_handler_may_visit_children_twice_or_a_subset() -> None:
    first, second = _ident(1), _ident(2)
    call = _Node("call_expression", children=[first, second])
    seen: list[int] = []

    def twice(node: _Node, visit_children: VisitChildren) -> None:
        visit_children()
        visit_children([second])

    walk(_Node("program", children=[call]), {NodeKind.CALL_EXPRESSION: twice, NodeKind.IDENTIFIER: _recorder(seen)})
    assert seen == [1, 2, 2]


def test_scope_boundaries_are_skipped_unless_requested() -> None:
    fn = _Node("function_declaration", children=[_ident(1)])
    cls = _Node("class_declaration", children=[_ident(2)])
    root = _Node("program", children=[fn, cls, _ident(3)])

    seen: list[int] = []
    report = walk(root, {NodeKind.IDENTIFIER: _recorder(seen)})
    assert seen == [3]
    assert report.skipped == 2

    seen.clear()
    report = walk(root, {NodeKind.IDENTIFIER: _recorder(seen)}, descend_into_scopes=True)
    assert seen == [1, 2, 3]
    assert report.skipped == 0


def test_fault_is_contained_at_the_failing_node() -> None:
    bad = _Node("call_expression", start_byte=5, end_byte=8, children=[_ident(6)])
    good = _Node("call_expression", start_byte=10, end_byte=12, children=[_ident(11)])
    root = _Node("program", children=[_Node("expression_statement", children=[bad]), good, _ident(20)])

    emitted: list[str] = []
    seen: list[int] = []

    def on_call(node: _Node, visit_children: VisitChildren) -> None:
        emitted.append(f"enter {node.start_byte}")
        visit_children()
        if node.start_byte == 5:
            raise ValueError("malformed node")

    report = walk(root, {NodeKind.CALL_EXPRESSION: on_call, NodeKind.IDENTIFIER: _recorder(seen)})

    # Work done before the fault is kept; siblings after it still run.
    assert emitted == ["enter 5", "enter 10"]
    assert seen == [6, 11, 20]
    assert len(report.faults) == 1
    fault = report.faults[0]
    assert fault.kind is NodeKind.CALL_EXPRESSION
    assert fault.start_byte == 5
    assert isinstance(fault.error, ValueError)


def test_fault_in_child_keeps_ancestor_work() -> None:
    child = _Node("identifier", start_byte=3, end_byte=4)
    parent = _Node("call_expression", children=[child, _ident(5)])
    log: list[str] = []

    def on_call(node: _Node, visit_children: VisitChildren) -> None:
        log.append("call")
        visit_children()
        log.append("call done")

    def on_identifier(node: _Node, visit_children: VisitChildren) -> None:
        if node is child:
            raise KeyError("nope")
        log.append(f"id {node.start_byte}")

    report = walk(_Node("program", children=[parent]), {NodeKind.CALL_EXPRESSION: on_call, NodeKind.IDENTIFIER: on_identifier})
    assert log == ["call", "id 5", "call done"]
    assert [f.start_byte for f in report.faults] == [3]


def test_scopes_entered_below_a_fault_are_unwound() -> None:
    scopes = ScopeTracker()
    bad = _Node("call_expression", start_byte=1)
    after = _ident(4)
    active_after: list[bool] = []

    def on_call(node: _Node, visit_children: VisitChildren) -> None:
        scopes.enter("describe")
        raise RuntimeError("left without leaving")

    def on_identifier(node: _Node, visit_children: VisitChildren) -> None:
        active_after.append(scopes.is_active("describe"))

    walk(
        _Node("program", children=[bad, after]),
        {NodeKind.CALL_EXPRESSION: on_call, NodeKind.IDENTIFIER: on_identifier},
        scopes=scopes,
    )
    assert active_after == [False]
    assert scopes.depth == 0


def test_walk_of_nothing_is_empty() -> None:
    report = walk(None, {})
    assert report.visited == 0
    assert report.faults == []


def _nested(depth: int, leaf: _Node) -> _Node:
    node = leaf
    for _ in range(depth):
        node = _Node("statement_block", children=[node])
    return node


def test_moderately_deep_nesting_is_walked_completely() -> None:
    seen: list[int] = []
    report = walk(_Node("program", children=[_nested(400, _ident(1))]), {NodeKind.IDENTIFIER: _recorder(seen)})
    assert seen == [1]
    assert report.faults == []


def test_subtree_beyond_recursion_limit_is_skipped_with_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="treewarden.engine.walker")
    deep = _nested(sys.getrecursionlimit() + 500, _ident(1))
    seen: list[int] = []

    report = walk(_Node("program", children=[deep, _ident(7)]), {NodeKind.IDENTIFIER: _recorder(seen)})

    assert seen == [7]
    assert any(isinstance(f.error, RecursionError) for f in report.faults)
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING and r.name == "treewarden.engine.walker"]
    assert len(warnings) == 1
    assert "nested too deeply" in warnings[0].getMessage()
