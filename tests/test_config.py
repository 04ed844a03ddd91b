from __future__ import annotations

from pathlib import Path

import pytest

from treewarden.config import (
    ConfigError,
    TreewardenConfig,
    compute_enabled_rule_ids,
    load_config,
    parse_config_table,
    path_is_ignored,
)


def test_load_config_defaults_when_no_pyproject(tmp_path: Path) -> None:
    config = load_config(tmp_path)
    assert isinstance(config, TreewardenConfig)
    assert config.fail_on == "error"
    assert config.languages == ("javascript", "typescript")
    assert config.rule_options("mocha-no-side-effect-code") is None


def test_load_config_reads_tool_table(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        """
[tool.treewarden]
languages = ["typescript"]
fail-on = "warning"

[tool.treewarden.rules]
enable = ["mocha"]
disable = []

[tool.treewarden.rules.mocha-no-side-effect-code]
severity = "error"
options = [{ ignore = "^fixture\\\\(" }]

[tool.treewarden.ignore]
paths = ["dist/", "*.min.js"]
""".lstrip(),
        encoding="utf-8",
    )

    config = load_config(tmp_path)
    assert config.languages == ("typescript",)
    assert config.fail_on == "warn"
    assert config.rules.enable == ("mocha",)
    override = config.rules.overrides["mocha-no-side-effect-code"]
    assert override.severity == "error"
    assert config.rule_options("mocha-no-side-effect-code") == ({"ignore": "^fixture\\("},)
    assert config.ignore.paths == ("dist/", "*.min.js")


def test_load_config_ignores_other_tools(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text('[tool.black]\nline-length = 100\n', encoding="utf-8")
    assert load_config(tmp_path) == TreewardenConfig()


@pytest.mark.parametrize(
    "table, message",
    [
        ({"languages": "typescript"}, "languages"),
        ({"fail-on": "fatal"}, "fail-on"),
        ({"rules": {"enable": 3}}, "rules.enable"),
        ({"rules": {"enable": ["no such rule!"]}}, "unknown rule group"),
        ({"rules": {"Bad_Id!": {"severity": "warn"}}}, "invalid"),
        ({"rules": {"no-stateless-class": {"options": "x"}}}, "options"),
        ({"rules": {"no-stateless-class": {"severity": "loud"}}}, "severity"),
        ({"ignore": {"paths": "dist/"}}, "ignore.paths"),
    ],
)
def test_invalid_tables_raise(table: dict, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        parse_config_table(table)


def test_enable_string_may_list_several_tokens() -> None:
    config = parse_config_table({"rules": {"enable": "mocha, no-stateless-class"}})
    assert config.rules.enable == ("mocha", "no-stateless-class")


def test_compute_enabled_rule_ids_groups_and_disable() -> None:
    available = {"mocha-no-side-effect-code", "no-stateless-class"}

    everything = compute_enabled_rule_ids(TreewardenConfig(), available_rule_ids=available)
    assert everything == available

    mocha_only = parse_config_table({"rules": {"enable": ["mocha"]}})
    assert compute_enabled_rule_ids(mocha_only, available_rule_ids=available) == {"mocha-no-side-effect-code"}

    minus = parse_config_table({"rules": {"disable": ["classes"]}})
    assert compute_enabled_rule_ids(minus, available_rule_ids=available) == {"mocha-no-side-effect-code"}

    off = compute_enabled_rule_ids(
        TreewardenConfig(),
        available_rule_ids=available,
        default_disabled={"no-stateless-class"},
    )
    assert off == {"mocha-no-side-effect-code"}


def test_path_is_ignored_patterns(tmp_path: Path) -> None:
    patterns = ("dist/", "*.min.js", "src/**/generated/*.ts")
    assert path_is_ignored(tmp_path / "dist" / "a.js", project_root=tmp_path, ignore_patterns=patterns)
    assert path_is_ignored(tmp_path / "lib" / "x.min.js", project_root=tmp_path, ignore_patterns=patterns)
    assert path_is_ignored(
        tmp_path / "src" / "a" / "generated" / "g.ts",
        project_root=tmp_path,
        ignore_patterns=patterns,
    )
    assert not path_is_ignored(tmp_path / "src" / "app.ts", project_root=tmp_path, ignore_patterns=patterns)
