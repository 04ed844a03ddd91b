from __future__ import annotations

import threading
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor

import pytest

import treewarden.engine.tree_sitter as ts


@pytest.fixture()
def _fresh_parser_state() -> Iterator[None]:
    def _clear() -> None:
        ts._get_language.cache_clear()
        if hasattr(ts._PARSER_LOCAL, "parsers"):
            ts._PARSER_LOCAL.parsers.clear()

    _clear()
    yield
    _clear()


@pytest.mark.usefixtures("_fresh_parser_state")
def test_tree_sitter_parser_is_thread_local(monkeypatch) -> None:
    class DummyParser:
        def __init__(self, language: object) -> None:
            self.language = language

        def parse(self, _source: bytes) -> int:
            return id(self)

    monkeypatch.setattr(ts, "_TREE_SITTER_AVAILABLE", True)
    monkeypatch.setattr(ts, "Parser", DummyParser)
    monkeypatch.setattr(ts, "Language", lambda raw: raw)
    monkeypatch.setattr(ts, "GRAMMARS", {"typescript": lambda: object()})

    # Same thread should reuse the same Parser instance.
    assert ts.parse("typescript", "const x = 1;") == ts.parse("typescript", "const x = 2;")

    barrier = threading.Barrier(2)

    def worker() -> int:
        barrier.wait()
        return int(ts.parse("typescript", "const x = 1;"))  # type: ignore[arg-type]

    with ThreadPoolExecutor(max_workers=2) as executor:
        a, b = list(executor.map(lambda _: worker(), range(2)))

    assert a != b


@pytest.mark.usefixtures("_fresh_parser_state")
def test_unknown_language_parses_to_none(monkeypatch) -> None:
    monkeypatch.setattr(ts, "_TREE_SITTER_AVAILABLE", True)
    monkeypatch.setattr(ts, "GRAMMARS", {})
    assert ts.parse("cobol", "MOVE 1 TO X.") is None
