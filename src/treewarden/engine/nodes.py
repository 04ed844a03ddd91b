from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from treewarden.engine.kinds import NodeKind, kind_of
from treewarden.engine.types import Location

# Structural helpers over tree-sitter nodes. Nodes are treated by attribute
# access only, so lightweight stand-ins work as long as they expose `type`,
# `children`, byte offsets and (optionally) `child_by_field_name`.


def children(node: Any) -> Sequence[Any]:
    return getattr(node, "children", None) or ()


def named_children(node: Any) -> list[Any]:
    named = getattr(node, "named_children", None)
    if named is not None:
        return list(named)
    return [c for c in children(node) if getattr(c, "is_named", True)]


def members(node: Any) -> list[Any]:
    """Named children without comments."""

    return [c for c in named_children(node) if kind_of(c) is not NodeKind.COMMENT]


def first_member(node: Any) -> Any | None:
    found = members(node)
    return found[0] if found else None


def field(node: Any, name: str) -> Any | None:
    getter = getattr(node, "child_by_field_name", None)
    if getter is None:
        return None
    return getter(name)


def has_token(node: Any, token: str) -> bool:
    """True if `node` has a direct (anonymous or named) child of type `token`."""

    return any(getattr(c, "type", None) == token for c in children(node))


def span(node: Any) -> tuple[int, int]:
    start = int(getattr(node, "start_byte", 0) or 0)
    end = int(getattr(node, "end_byte", start) or start)
    return start, max(end, start)


def node_text(node: Any, source: bytes) -> str:
    if node is None:
        return ""
    start, end = span(node)
    if end > start and end <= len(source):
        return source[start:end].decode("utf-8", errors="replace")
    raw = getattr(node, "text", None)
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return ""


def callee(node: Any) -> Any | None:
    """Return the target of a call (`function`) or `new` expression (`constructor`)."""

    kind = kind_of(node)
    if kind is NodeKind.CALL_EXPRESSION:
        return field(node, "function") or first_member(node)
    if kind is NodeKind.NEW_EXPRESSION:
        return field(node, "constructor") or first_member(node)
    return None


def function_name(node: Any, source: bytes) -> str | None:
    """
    Name of the function invoked by a call or `new` expression.

    `foo()` -> "foo", `a.b.foo()` -> "foo"; anything else (computed callees,
    immediately invoked functions) has no name.
    """

    target = callee(node)
    kind = kind_of(target)
    if kind is NodeKind.IDENTIFIER:
        return node_text(target, source)
    if kind is NodeKind.MEMBER_ACCESS:
        prop = field(target, "property")
        if prop is None:
            return None
        return node_text(prop, source)
    return None


def function_target(node: Any, source: bytes) -> str | None:
    """Source text of the receiver of a method call: `moment().add(1)` -> "moment()"."""

    if kind_of(node) is not NodeKind.CALL_EXPRESSION:
        return None
    target = callee(node)
    if kind_of(target) is not NodeKind.MEMBER_ACCESS:
        return None
    receiver = field(target, "object")
    if receiver is None:
        return None
    return node_text(receiver, source)


def location_of(node: Any, *, path: Any = None) -> Location:
    start = getattr(node, "start_point", None)
    end = getattr(node, "end_point", None)
    start_line = start_col = end_line = end_col = None
    if start is not None:
        start_line, start_col = int(start[0]) + 1, int(start[1]) + 1
    if end is not None:
        end_line, end_col = int(end[0]) + 1, int(end[1]) + 1
    return Location(path=path, start_line=start_line, start_col=start_col, end_line=end_line, end_col=end_col)
