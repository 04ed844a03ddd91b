from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from treewarden.engine.context import FileContext, WalkContext
from treewarden.engine.kinds import NodeKind
from treewarden.engine.nodes import location_of, span
from treewarden.engine.types import Diagnostic, Severity
from treewarden.engine.walker import Handler, walk
from treewarden.rules.options import RuleOptions
from treewarden.utils import trim_to

logger = logging.getLogger(__name__)

MAX_DETAIL_LENGTH = 30


@dataclass(frozen=True, slots=True)
class RuleMeta:
    rule_id: str
    title: str
    description: str
    category: str  # e.g. "maintainability"
    group: str  # e.g. "Correctness"
    issue_class: str = "Non-SDL"
    issue_type: str = "Warning"
    severity: str = "Moderate"
    level: str = "Opportunity for Excellence"
    default_severity: Severity = "warn"
    enabled_by_default: bool = True
    cwe: str | None = None


class BaseRule(ABC):
    """
    A rule is static metadata plus a table of per-kind walk handlers.

    Instances are immutable once built; all state of a run lives in the
    `WalkContext` handed to `hooks()`, so one instance can serve many files
    concurrently.
    """

    meta: ClassVar[RuleMeta]
    # Function and class declarations are opaque unless a rule opts in.
    descend_into_scopes: ClassVar[bool] = False

    options: RuleOptions

    @classmethod
    def with_options(cls, raw: Iterable[Any] | None) -> BaseRule:
        """Build a configured instance; malformed options fail here, before any walk."""

        return cls(options=RuleOptions.parse(raw))  # type: ignore[call-arg]

    @abstractmethod
    def hooks(self, run: WalkContext) -> Mapping[NodeKind, Handler]:
        raise NotImplementedError

    def apply(self, ctx: FileContext) -> list[Diagnostic]:
        if ctx.syntax_tree is None:
            return []
        run = WalkContext.for_file(ctx)
        report = walk(
            ctx.syntax_tree.root_node,
            self.hooks(run),
            scopes=run.scopes,
            descend_into_scopes=self.descend_into_scopes,
        )
        if report.faults:
            logger.debug("%s: %d node(s) skipped after faults in %s", self.meta.rule_id, len(report.faults), ctx.relative_path)
        return list(run.diagnostics)

    def _report(self, run: WalkContext, node: Any, *, message: str, detail: str | None = None) -> Diagnostic:
        """
        Record a diagnostic anchored at `node`.

        `detail` (the node's own source text by default) is trimmed and
        appended to `message`.
        """

        start, end = span(node)
        text = detail if detail is not None else run.text(node)
        diagnostic = Diagnostic(
            rule_id=self.meta.rule_id,
            severity=self.meta.default_severity,
            message=message + trim_to(text, MAX_DETAIL_LENGTH),
            start_offset=start,
            width=end - start,
            location=location_of(node, path=run.file.path),
        )
        run.diagnostics.append(diagnostic)
        return diagnostic
