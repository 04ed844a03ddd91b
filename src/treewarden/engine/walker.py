"""
Fault-tolerant, kind-dispatched tree traversal.

`walk()` visits every named node under a root in document order. Rules plug
in through a table of handlers keyed by `NodeKind`:

    def on_call(node, visit_children):
        ...
        visit_children()          # descend (zero, one or many times)

    walk(tree.root_node, {NodeKind.CALL_EXPRESSION: on_call})

Kinds without a handler are traversed generically, except for scope
boundaries (function and class declarations), which are skipped unless the
caller passes `descend_into_scopes=True`.

Every node visit is contained: an exception raised while visiting a node is
recorded as a `FAULTED` result for that node, scopes entered below it are
unwound, and the walk continues with the next sibling.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from treewarden.engine.kinds import SCOPE_BOUNDARIES, NodeKind, kind_of
from treewarden.engine.nodes import named_children, span
from treewarden.engine.scope import ScopeTracker

logger = logging.getLogger(__name__)


class VisitChildren(Protocol):
    def __call__(self, nodes: Iterable[Any] | None = None) -> None: ...


Handler = Callable[[Any, VisitChildren], None]


class VisitOutcome(Enum):
    VISITED = "visited"
    SKIPPED = "skipped"
    FAULTED = "faulted"


@dataclass(frozen=True, slots=True)
class VisitResult:
    outcome: VisitOutcome
    kind: NodeKind
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is not VisitOutcome.FAULTED


@dataclass(frozen=True, slots=True)
class NodeFault:
    kind: NodeKind
    start_byte: int
    error: Exception


@dataclass(slots=True)
class WalkReport:
    visited: int = 0
    skipped: int = 0
    faults: list[NodeFault] = field(default_factory=list)


class _Traversal:
    __slots__ = ("_hooks", "_scopes", "_descend", "report")

    def __init__(self, hooks: Mapping[NodeKind, Handler], scopes: ScopeTracker, descend_into_scopes: bool) -> None:
        self._hooks = hooks
        self._scopes = scopes
        self._descend = descend_into_scopes
        self.report = WalkReport()

    def visit(self, node: Any) -> VisitResult:
        # One Python frame per tree level on the generic path.
        kind = kind_of(node)
        mark = self._scopes.mark()
        try:
            handler = self._hooks.get(kind)
            if handler is not None:
                handler(node, _Continuation(self, node))
            elif kind in SCOPE_BOUNDARIES and not self._descend:
                self.report.skipped += 1
                return VisitResult(VisitOutcome.SKIPPED, kind)
            else:
                for child in named_children(node):
                    self.visit(child)
        except Exception as exc:  # noqa: BLE001 - one bad subtree must not end the walk
            self._scopes.unwind(mark)
            start, _ = span(node)
            logger.debug("Contained fault visiting %s at byte %d: %r", kind.value, start, exc)
            self.report.faults.append(NodeFault(kind=kind, start_byte=start, error=exc))
            return VisitResult(VisitOutcome.FAULTED, kind, exc)

        self.report.visited += 1
        return VisitResult(VisitOutcome.VISITED, kind)

    def visit_children(self, node: Any, nodes: Iterable[Any] | None = None) -> None:
        targets = named_children(node) if nodes is None else nodes
        for child in targets:
            self.visit(child)


class _Continuation:
    __slots__ = ("_traversal", "_node")

    def __init__(self, traversal: _Traversal, node: Any) -> None:
        self._traversal = traversal
        self._node = node

    def __call__(self, nodes: Iterable[Any] | None = None) -> None:
        self._traversal.visit_children(self._node, nodes)


def walk(
    root: Any,
    hooks: Mapping[NodeKind, Handler] | None = None,
    *,
    scopes: ScopeTracker | None = None,
    descend_into_scopes: bool = False,
) -> WalkReport:
    """
    Traverse `root` depth-first in document order, dispatching to `hooks`.

    Returns a `WalkReport` with visit counts and any contained faults. The
    root itself is dispatched like any other node.
    """

    traversal = _Traversal(hooks or {}, scopes if scopes is not None else ScopeTracker(), descend_into_scopes)
    if root is not None:
        traversal.visit(root)
    faults = traversal.report.faults
    if faults:
        logger.debug("Walk finished with %d contained fault(s).", len(faults))
    too_deep = [f for f in faults if isinstance(f.error, RecursionError)]
    if too_deep:
        logger.warning(
            "Skipped %d subtree(s) nested too deeply to walk (first at byte %d).",
            len(too_deep),
            too_deep[0].start_byte,
        )
    return traversal.report
