from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from treewarden.engine.context import WalkContext
from treewarden.engine.kinds import NodeKind, kind_of
from treewarden.engine.nodes import field as node_field
from treewarden.engine.nodes import has_token, members, named_children, node_text
from treewarden.engine.walker import Handler, VisitChildren
from treewarden.rules.base import BaseRule, RuleMeta
from treewarden.rules.options import RuleOptions

FAILURE_STRING = "A stateless class was found. This indicates a failure in the object model: "

_STATIC_TOKENS = ("static", "static get")


def has_extends(class_node: Any) -> bool:
    """True when the class inherits (`extends`); `implements` alone does not count."""

    for child in named_children(class_node):
        if kind_of(child) is not NodeKind.CLASS_HERITAGE:
            continue
        # JavaScript: `extends` token directly under the heritage node.
        # TypeScript: an `extends_clause` child.
        if has_token(child, "extends"):
            return True
        if any(kind_of(c) is NodeKind.EXTENDS_CLAUSE for c in named_children(child)):
            return True
    return False


def class_members(class_node: Any) -> list[Any]:
    body = node_field(class_node, "body")
    if body is None:
        body = next((c for c in named_children(class_node) if kind_of(c) is NodeKind.CLASS_BODY), None)
    if body is None:
        return []
    # TypeScript places member decorators beside the member they decorate.
    return [m for m in members(body) if kind_of(m) is not NodeKind.DECORATOR]


def is_constructor(member: Any, source: bytes) -> bool:
    if kind_of(member) is not NodeKind.METHOD_DEFINITION:
        return False
    return node_text(node_field(member, "name"), source) == "constructor"


def is_static(member: Any) -> bool:
    if kind_of(member) is NodeKind.STATIC_BLOCK:
        return True
    return any(has_token(member, token) for token in _STATIC_TOKENS)


def default_exported_class(export_node: Any) -> Any | None:
    """The anonymous class of `export default class { ... }`, if that is what `export_node` exports."""

    if not has_token(export_node, "default"):
        return None
    value = node_field(export_node, "value")
    if value is None:
        value = next((c for c in named_children(export_node) if kind_of(c) is NodeKind.CLASS_EXPRESSION), None)
    if kind_of(value) is not NodeKind.CLASS_EXPRESSION:
        return None
    return value


def is_class_stateful(class_node: Any, source: bytes) -> bool:
    if has_extends(class_node):
        return True
    found = class_members(class_node)
    if not found:
        return True
    return any(not is_constructor(m, source) and not is_static(m) for m in found)


@dataclass(frozen=True, slots=True)
class NoStatelessClass(BaseRule):
    meta = RuleMeta(
        rule_id="no-stateless-class",
        title="Stateless class",
        description="A stateless class represents a failure in the object oriented design of the system.",
        category="maintainability",
        group="Correctness",
        issue_class="Non-SDL",
        issue_type="Warning",
        severity="Important",
        level="Opportunity for Excellence",
        cwe="398, 710",
    )
    # Nested classes (inside functions and methods) are checked too.
    descend_into_scopes = True

    options: RuleOptions = field(default_factory=RuleOptions)

    def hooks(self, run: WalkContext) -> Mapping[NodeKind, Handler]:
        def check(class_node: Any) -> None:
            if not is_class_stateful(class_node, run.source):
                name = node_field(class_node, "name")
                class_name = run.text(name) if name is not None else "<unknown>"
                self._report(run, class_node, message=FAILURE_STRING, detail=class_name)

        def on_class(node: Any, visit_children: VisitChildren) -> None:
            check(node)
            visit_children()

        def on_export(node: Any, visit_children: VisitChildren) -> None:
            # `export default class { ... }` declares a class through an expression.
            default = default_exported_class(node)
            if default is not None:
                check(default)
            visit_children()

        return {
            NodeKind.CLASS_DECLARATION: on_class,
            NodeKind.EXPORT_STATEMENT: on_export,
        }
