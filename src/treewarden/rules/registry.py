from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from types import MappingProxyType

from treewarden.config import RULE_ID_RE, TreewardenConfig, compute_enabled_rule_ids
from treewarden.rules.base import BaseRule, RuleMeta
from treewarden.rules.classes import NoStatelessClass
from treewarden.rules.mocha import MochaNoSideEffectCode

BUILTIN_RULE_TYPES: tuple[type[BaseRule], ...] = (
    MochaNoSideEffectCode,
    NoStatelessClass,
)


@lru_cache(maxsize=1)
def builtin_rules() -> tuple[BaseRule, ...]:
    rules = [rule_type.with_options(None) for rule_type in BUILTIN_RULE_TYPES]

    by_id: dict[str, BaseRule] = {}
    for rule in rules:
        rule_id = rule.meta.rule_id
        if not RULE_ID_RE.match(rule_id):  # pragma: no cover
            raise RuntimeError(f"Rule id must match {RULE_ID_RE.pattern}: {rule_id!r}")
        if rule_id in by_id:  # pragma: no cover
            raise RuntimeError(f"Duplicate rule id: {rule_id}")
        by_id[rule_id] = rule

    return tuple(by_id[k] for k in sorted(by_id))


def rule_ids() -> set[str]:
    return {r.meta.rule_id for r in builtin_rules()}


@lru_cache(maxsize=1)
def rule_meta_by_id() -> Mapping[str, RuleMeta]:
    return MappingProxyType({r.meta.rule_id: r.meta for r in builtin_rules()})


def rule_by_id(rule_id: str) -> BaseRule | None:
    normalized = rule_id.strip().lower()
    for rule in builtin_rules():
        if rule.meta.rule_id == normalized:
            return rule
    return None


def enabled_rule_ids(config: TreewardenConfig) -> set[str]:
    rules = builtin_rules()
    return compute_enabled_rule_ids(
        config,
        available_rule_ids=(r.meta.rule_id for r in rules),
        default_disabled=(r.meta.rule_id for r in rules if not r.meta.enabled_by_default),
    )


def configured_rules(config: TreewardenConfig) -> list[BaseRule]:
    """
    Instantiate the enabled rules with their configured options.

    Raises `RuleOptionsError` for malformed options, before any file is walked.
    """

    enabled = enabled_rule_ids(config)
    out: list[BaseRule] = []
    for rule in builtin_rules():
        rule_id = rule.meta.rule_id
        if rule_id not in enabled:
            continue
        raw = config.rule_options(rule_id)
        out.append(rule if raw is None else type(rule).with_options(raw))
    return out
