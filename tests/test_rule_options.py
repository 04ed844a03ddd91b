from __future__ import annotations

import pytest

from treewarden.config import ConfigError
from treewarden.rules.options import RuleOptions, RuleOptionsError


def test_no_options_means_no_ignore_pattern() -> None:
    options = RuleOptions.parse(None)
    assert options.values == ()
    assert options.ignore is None


def test_ignore_pattern_is_compiled() -> None:
    options = RuleOptions.parse([{"ignore": r"^fixture\("}])
    assert options.ignore is not None
    assert options.ignore.search("fixture('a')")


def test_last_ignore_entry_wins() -> None:
    options = RuleOptions.parse([{"ignore": "first"}, "flag", {"ignore": "second"}])
    assert options.ignore is not None
    assert options.ignore.pattern == "second"
    assert options.values[1] == "flag"


def test_option_tables_are_frozen() -> None:
    options = RuleOptions.parse([{"ignore": "x"}])
    with pytest.raises(TypeError):
        options.values[0]["ignore"] = "y"  # type: ignore[index]


def test_invalid_regex_is_a_config_error() -> None:
    with pytest.raises(RuleOptionsError, match="Invalid `ignore` pattern"):
        RuleOptions.parse([{"ignore": "(unclosed"}])
    assert issubclass(RuleOptionsError, ConfigError)


@pytest.mark.parametrize("raw", ["not-a-list", {"ignore": "x"}])
def test_options_must_be_a_list(raw: object) -> None:
    with pytest.raises(RuleOptionsError):
        RuleOptions.parse(raw)  # type: ignore[arg-type]


def test_ignore_must_be_a_string() -> None:
    with pytest.raises(RuleOptionsError, match="regular expression string"):
        RuleOptions.parse([{"ignore": 42}])
