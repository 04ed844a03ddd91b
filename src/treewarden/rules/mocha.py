from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from treewarden.engine.classifier import SideEffectClassifier
from treewarden.engine.context import WalkContext
from treewarden.engine.kinds import NodeKind, kind_of
from treewarden.engine.nodes import callee, field as node_field, first_member, function_name, members, node_text
from treewarden.engine.walker import Handler, VisitChildren
from treewarden.rules.base import BaseRule, RuleMeta
from treewarden.rules.options import RuleOptions

FAILURE_STRING = "Mocha test contains dangerous variable initialization. Move to before()/beforeEach(): "

SUITE_CALLS = frozenset({"describe", "describe.only", "describe.skip"})
GROUPING_NAMES = frozenset({"describe"})
LIFECYCLE_NAMES = frozenset({"it", "before", "beforeEach", "after", "afterEach"})
LIFECYCLE_CALLS = frozenset({"it.only", "it.skip"})

DESCRIBE_SCOPE = "describe"
SUITE_FILE_SCOPE = "mocha-suite-file"


def is_describe_statement(statement: Any, source: bytes) -> bool:
    if kind_of(statement) is not NodeKind.EXPRESSION_STATEMENT:
        return False
    expression = first_member(statement)
    if kind_of(expression) is not NodeKind.CALL_EXPRESSION:
        return False
    return node_text(callee(expression), source) in SUITE_CALLS


def is_mocha_test(program: Any, source: bytes) -> bool:
    """A file is a Mocha test when one of its top-level statements is a describe call."""

    return any(is_describe_statement(s, source) for s in members(program))


def _is_top_level_declaration(statement: Any) -> bool:
    kind = kind_of(statement)
    if kind is NodeKind.VARIABLE_STATEMENT:
        return True
    if kind is NodeKind.EXPORT_STATEMENT:
        return kind_of(node_field(statement, "declaration")) is NodeKind.VARIABLE_STATEMENT
    return False


@dataclass(frozen=True, slots=True)
class MochaNoSideEffectCode(BaseRule):
    meta = RuleMeta(
        rule_id="mocha-no-side-effect-code",
        title="Side-effect code outside Mocha lifecycle hooks",
        description="All test logic in a Mocha test case should be within Mocha lifecycle method.",
        category="maintainability",
        group="Correctness",
        issue_class="Ignored",
        issue_type="Warning",
        severity="Moderate",
        level="Opportunity for Excellence",
    )

    options: RuleOptions = field(default_factory=RuleOptions)

    def hooks(self, run: WalkContext) -> Mapping[NodeKind, Handler]:
        classifier = SideEffectClassifier(self.options.ignore)
        scopes = run.scopes

        def validate(expression: Any, anchor: Any) -> None:
            if not classifier.is_safe(expression, run.source):
                self._report(run, anchor, message=FAILURE_STRING)

        def on_program(node: Any, visit_children: VisitChildren) -> None:
            if not is_mocha_test(node, run.source):
                return
            statements = [
                s for s in members(node) if _is_top_level_declaration(s) or is_describe_statement(s, run.source)
            ]
            with scopes.entered(SUITE_FILE_SCOPE):
                visit_children(statements)

        def on_call(node: Any, visit_children: VisitChildren) -> None:
            name = function_name(node, run.source)
            callee_text = run.text(callee(node))
            if name in GROUPING_NAMES or callee_text in SUITE_CALLS:
                with scopes.entered(DESCRIBE_SCOPE):
                    visit_children()
            elif name in LIFECYCLE_NAMES or callee_text in LIFECYCLE_CALLS:
                # Hook bodies run under the test runner's control.
                return
            elif scopes.is_active(DESCRIBE_SCOPE):
                validate(node, node)

        def on_declarator(node: Any, visit_children: VisitChildren) -> None:
            if scopes.is_active(DESCRIBE_SCOPE) or scopes.is_active(SUITE_FILE_SCOPE):
                validate(node_field(node, "value"), node)

        return {
            NodeKind.PROGRAM: on_program,
            NodeKind.CALL_EXPRESSION: on_call,
            NodeKind.VARIABLE_DECLARATOR: on_declarator,
        }
