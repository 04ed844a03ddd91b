from __future__ import annotations

import re
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, cast

from treewarden.engine.types import Severity


class ConfigError(ValueError):
    """Raised when a treewarden configuration file is invalid."""


RuleId = str
RuleGroup = str


RULE_ID_RE = re.compile(r"^[a-z][a-z0-9]*(?:-[a-z0-9]+)*$")

DEFAULT_LANGUAGES: tuple[str, ...] = ("javascript", "typescript")
DEFAULT_FAIL_ON: Severity = "error"


# Keep this list in config (not in rules) so configuration can be resolved
# without importing the rule modules.
DEFAULT_RULE_GROUPS: dict[RuleGroup, tuple[RuleId, ...]] = {
    # NOTE: Keep these in sync with `treewarden.rules.registry.builtin_rules()`.
    "mocha": ("mocha-no-side-effect-code",),
    "classes": ("no-stateless-class",),
}
DEFAULT_RULE_GROUPS["all"] = tuple(
    rule_id for group in ("mocha", "classes") for rule_id in DEFAULT_RULE_GROUPS[group]
)


def _normalize_group(value: str) -> str:
    return value.strip().lower().replace("_", "-")


def _normalize_rule_id(value: str) -> str:
    # Rule ids are case-insensitive in UX, but canonicalized internally.
    return value.strip().lower()


def _validate_str_list(value: Any, *, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or any(not isinstance(v, str) for v in value):
        raise ConfigError(f"`{field_name}` must be a list of strings.")
    return tuple(v.strip() for v in value)


def _validate_severity(value: Any, *, field_name: str) -> Severity:
    if not isinstance(value, str):
        raise ConfigError(f"`{field_name}` must be a string.")
    normalized = value.strip().lower()
    if normalized == "warning":
        normalized = "warn"
    if normalized not in {"info", "warn", "error"}:
        raise ConfigError(f"`{field_name}` must be one of: info, warn, error.")
    return cast(Severity, normalized)


@dataclass(frozen=True, slots=True)
class RuleOverride:
    severity: Severity | None = None
    options: tuple[Any, ...] | None = None


@dataclass(frozen=True, slots=True)
class RulesConfig:
    enable: str | tuple[str, ...] = "all"
    disable: tuple[str, ...] = ()
    overrides: Mapping[RuleId, RuleOverride] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True, slots=True)
class IgnoreConfig:
    paths: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class TreewardenConfig:
    languages: tuple[str, ...] = DEFAULT_LANGUAGES
    fail_on: Severity = DEFAULT_FAIL_ON
    rules: RulesConfig = field(default_factory=RulesConfig)
    ignore: IgnoreConfig = field(default_factory=IgnoreConfig)

    def rule_options(self, rule_id: RuleId) -> tuple[Any, ...] | None:
        override = self.rules.overrides.get(rule_id)
        return override.options if override is not None else None


def load_config(project_dir: Path | str = ".") -> TreewardenConfig:
    """
    Load treewarden configuration from `pyproject.toml` within `project_dir`.

    If no file / no `[tool.treewarden]` table exists, returns defaults.
    """

    project_dir_path = Path(project_dir)
    pyproject_path = project_dir_path / "pyproject.toml"
    if not pyproject_path.exists():
        return TreewardenConfig()

    try:
        data = tomllib.loads(pyproject_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:  # pragma: no cover (rare)
        raise ConfigError(f"Invalid TOML in {pyproject_path}: {exc}") from exc

    tool_table = data.get("tool", {})
    if not isinstance(tool_table, dict):
        return TreewardenConfig()

    treewarden_table = tool_table.get("treewarden", {})
    if not isinstance(treewarden_table, dict) or not treewarden_table:
        return TreewardenConfig()

    return parse_config_table(treewarden_table)


def parse_config_table(table: dict[str, Any]) -> TreewardenConfig:
    languages_value = table.get("languages", list(DEFAULT_LANGUAGES))
    if not isinstance(languages_value, list) or any(not isinstance(v, str) for v in languages_value):
        raise ConfigError("`tool.treewarden.languages` must be a list of strings.")
    languages = tuple(v.strip().lower() for v in languages_value)

    fail_on = _validate_severity(
        table.get("fail-on", table.get("fail_on", DEFAULT_FAIL_ON)),
        field_name="tool.treewarden.fail-on",
    )

    rules = _parse_rules_config(table.get("rules", {}))
    ignore = _parse_ignore_config(table.get("ignore", {}))

    return TreewardenConfig(languages=languages, fail_on=fail_on, rules=rules, ignore=ignore)


def _parse_rules_config(value: Any) -> RulesConfig:
    if value is None:
        return RulesConfig()
    if not isinstance(value, dict):
        raise ConfigError("`tool.treewarden.rules` must be a table.")

    enable: str | tuple[str, ...]
    enable_raw = value.get("enable", "all")
    if isinstance(enable_raw, str):
        stripped = enable_raw.strip()
        if "," in stripped or ";" in stripped:
            enable = _split_rule_tokens(stripped)
        else:
            enable = stripped or "all"
    elif isinstance(enable_raw, list) and all(isinstance(v, str) for v in enable_raw):
        enable = _split_rule_list(enable_raw)
    else:
        raise ConfigError("`tool.treewarden.rules.enable` must be a string or a list of strings.")

    disable_raw = _validate_str_list(value.get("disable", []), field_name="tool.treewarden.rules.disable")
    disable = _split_rule_list(disable_raw)

    _validate_rule_spec(enable, field_name="tool.treewarden.rules.enable")
    _validate_rule_tokens(disable, field_name="tool.treewarden.rules.disable")

    overrides: dict[RuleId, RuleOverride] = {}
    for key, sub in value.items():
        if key in {"enable", "disable"}:
            continue
        if not isinstance(sub, dict):
            continue
        normalized_key = _normalize_rule_id(str(key))
        field_name = f"tool.treewarden.rules.{key}"
        if not RULE_ID_RE.match(normalized_key):
            raise ConfigError(f"`{field_name}` is invalid; expected a rule id like no-stateless-class.")

        severity = sub.get("severity")
        options_raw = sub.get("options")
        if options_raw is not None and not isinstance(options_raw, list):
            raise ConfigError(f"`{field_name}.options` must be a list.")
        overrides[normalized_key] = RuleOverride(
            severity=_validate_severity(severity, field_name=f"{field_name}.severity") if severity is not None else None,
            options=tuple(options_raw) if options_raw is not None else None,
        )

    return RulesConfig(enable=enable, disable=disable, overrides=MappingProxyType(overrides))


def _split_rule_tokens(value: str) -> tuple[str, ...]:
    parts = []
    for raw in value.replace(";", ",").split(","):
        token = raw.strip()
        if token:
            parts.append(token)
    return tuple(parts)


def _split_rule_list(values: Iterable[str]) -> tuple[str, ...]:
    parts: list[str] = []
    for raw in values:
        parts.extend(_split_rule_tokens(raw))
    return tuple(parts)


def _validate_rule_spec(enable: str | tuple[str, ...], *, field_name: str) -> None:
    if isinstance(enable, str):
        _validate_rule_tokens((enable,), field_name=field_name)
    else:
        _validate_rule_tokens(enable, field_name=field_name)


def _validate_rule_tokens(tokens: Iterable[str], *, field_name: str) -> None:
    for token in tokens:
        stripped = token.strip()
        if not stripped:
            continue
        if _normalize_group(stripped) in DEFAULT_RULE_GROUPS:
            continue
        if RULE_ID_RE.match(_normalize_rule_id(stripped)):
            continue

        groups = ", ".join(sorted(DEFAULT_RULE_GROUPS))
        raise ConfigError(
            f"`{field_name}` contains unknown rule group or invalid rule id: {token!r}. "
            f"Valid groups: {groups}. Valid ids look like no-stateless-class."
        )


def _parse_ignore_config(value: Any) -> IgnoreConfig:
    if value is None:
        return IgnoreConfig()
    if not isinstance(value, dict):
        raise ConfigError("`tool.treewarden.ignore` must be a table.")
    paths = _validate_str_list(value.get("paths", []), field_name="tool.treewarden.ignore.paths")
    return IgnoreConfig(paths=paths)


def compute_enabled_rule_ids(
    config: TreewardenConfig,
    *,
    available_rule_ids: Iterable[RuleId] | None = None,
    default_disabled: Iterable[RuleId] = (),
) -> set[RuleId]:
    """
    Resolve the final enabled rules set from `rules.enable` + `rules.disable`.

    - `enable = "all"` enables every known rule except those disabled by default.
    - `enable = ["mocha", "no-stateless-class"]` enables group(s) and/or explicit ids.
    - `disable = ["no-stateless-class"]` disables specific ids (or groups).

    If `available_rule_ids` is provided, the result is intersected with it.
    """

    available: set[RuleId] | None = set(available_rule_ids) if available_rule_ids is not None else None
    off_by_default = set(default_disabled)

    enable_spec = config.rules.enable
    enable_tokens: tuple[str, ...]
    if isinstance(enable_spec, str):
        enable_tokens = (enable_spec,)
    else:
        enable_tokens = enable_spec

    enabled: set[RuleId] = set()
    for token in enable_tokens:
        stripped = token.strip()
        normalized_group = _normalize_group(stripped)
        if normalized_group == "all":
            everything = available if available is not None else set(DEFAULT_RULE_GROUPS["all"])
            enabled.update(everything - off_by_default)
        elif normalized_group in DEFAULT_RULE_GROUPS:
            enabled.update(DEFAULT_RULE_GROUPS[normalized_group])
        else:
            enabled.add(_normalize_rule_id(stripped))

    for token in config.rules.disable:
        stripped = token.strip()
        normalized_group = _normalize_group(stripped)
        if normalized_group == "all":
            enabled.clear()
        elif normalized_group in DEFAULT_RULE_GROUPS:
            enabled.difference_update(DEFAULT_RULE_GROUPS[normalized_group])
        else:
            enabled.discard(_normalize_rule_id(stripped))

    if available is not None:
        enabled.intersection_update(available)

    return enabled


def path_is_ignored(path: Path, *, project_root: Path, ignore_patterns: Iterable[str]) -> bool:
    """
    Return True if `path` matches any ignore patterns.

    Patterns are evaluated against the POSIX-style relative path from `project_root`.

    Supported patterns:
    - Directory prefixes: "dist/" matches "dist/..." under root.
    - Globs without slashes: "*.min.js" matches basenames.
    - Globs with slashes: "src/**/generated/*.ts" matches full relative paths.
    """

    import fnmatch

    try:
        relative = path.resolve().relative_to(project_root.resolve())
    except (ValueError, OSError, RuntimeError):
        # If the path isn't under root (or can't be resolved), don't ignore it implicitly.
        return False

    rel_posix = relative.as_posix()
    basename = relative.name

    for raw_pattern in ignore_patterns:
        pattern = raw_pattern.strip().replace("\\", "/")
        if not pattern:
            continue
        if pattern.startswith("./"):
            pattern = pattern[2:]

        if pattern.endswith("/"):
            if rel_posix.startswith(pattern):
                return True
            continue

        if "/" in pattern:
            if fnmatch.fnmatch(rel_posix, pattern):
                return True
        else:
            if fnmatch.fnmatch(basename, pattern) or fnmatch.fnmatch(rel_posix, pattern):
                return True

    return False
