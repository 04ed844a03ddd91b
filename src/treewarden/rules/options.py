from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from treewarden.config import ConfigError


class RuleOptionsError(ConfigError):
    """Raised when rule options are malformed (e.g. an ignore pattern that does not compile)."""


@dataclass(frozen=True, slots=True)
class RuleOptions:
    """
    Parsed rule options.

    `values` keeps the raw option list in order (tables frozen into read-only
    mappings). Scalars are carried through untouched; rules only read the
    named fields of table entries.
    """

    values: tuple[Any, ...] = ()
    ignore: re.Pattern[str] | None = None

    @classmethod
    def parse(cls, raw: Iterable[Any] | None) -> RuleOptions:
        if raw is None:
            return cls()
        if isinstance(raw, str | bytes | Mapping):
            raise RuleOptionsError("Rule options must be a list of values.")

        values: list[Any] = []
        ignore: re.Pattern[str] | None = None
        for item in raw:
            if isinstance(item, Mapping):
                frozen = MappingProxyType(dict(item))
                values.append(frozen)
                pattern = frozen.get("ignore")
                if pattern is not None:
                    ignore = _compile_ignore(pattern)
            else:
                values.append(item)
        return cls(values=tuple(values), ignore=ignore)


def _compile_ignore(pattern: Any) -> re.Pattern[str]:
    if not isinstance(pattern, str):
        raise RuleOptionsError(f"`ignore` must be a regular expression string, got {type(pattern).__name__}.")
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise RuleOptionsError(f"Invalid `ignore` pattern {pattern!r}: {exc}") from exc
