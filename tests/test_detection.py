from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from types import MappingProxyType

from helpers import make_file_ctx, requires_tree_sitter

from treewarden.config import RuleOverride, RulesConfig, TreewardenConfig
from treewarden.engine.context import ProjectContext
from treewarden.engine.detection import detect
from treewarden.rules.registry import builtin_rules

pytestmark = requires_tree_sitter

_STATELESS = "class Util{n} {{\n    static run() {{}}\n}}\n"


def test_detect_keeps_file_order_with_workers(project_ctx: ProjectContext) -> None:
    files = [
        make_file_ctx(project_ctx, relpath=f"src/util{n}.ts", content=_STATELESS.format(n=n)) for n in range(6)
    ]
    rules = builtin_rules()

    serial = detect(project_ctx.config, rules, files, workers=1)
    parallel = detect(project_ctx.config, rules, files, workers=4)

    assert serial == parallel
    assert [d.location.path.name for d in serial if d.location and d.location.path] == [
        f"util{n}.ts" for n in range(6)
    ]


def test_severity_override_is_applied(project_ctx: ProjectContext) -> None:
    ctx = make_file_ctx(project_ctx, relpath="src/util.ts", content=_STATELESS.format(n=""))
    config = TreewardenConfig(
        rules=RulesConfig(overrides=MappingProxyType({"no-stateless-class": RuleOverride(severity="error")}))
    )

    diagnostics = detect(config, builtin_rules(), [ctx])
    assert [(d.rule_id, d.severity) for d in diagnostics] == [("no-stateless-class", "error")]


def test_files_without_tree_are_skipped(project_ctx: ProjectContext, tmp_path: Path) -> None:
    ctx = make_file_ctx(project_ctx, relpath="src/util.ts", content=_STATELESS.format(n=""))
    unparsed = replace(ctx, syntax_tree=None)
    assert detect(project_ctx.config, builtin_rules(), [unparsed]) == []


def test_on_file_done_is_called_per_file(project_ctx: ProjectContext) -> None:
    files = [make_file_ctx(project_ctx, relpath=f"src/a{n}.ts", content="const x = 1;\n") for n in range(3)]
    done: list[str] = []
    detect(project_ctx.config, builtin_rules(), files, workers=2, on_file_done=lambda p: done.append(p.name))
    assert done == ["a0.ts", "a1.ts", "a2.ts"]
