from __future__ import annotations

import threading
from collections.abc import Callable
from functools import lru_cache
from typing import Protocol, cast

from treewarden.engine.context import SyntaxTree


class _ParserLike(Protocol):
    def parse(self, source: bytes) -> object: ...

_parser_cls: Callable[[object], _ParserLike] | None
_language_cls: Callable[[object], object] | None
_grammar_loaders: dict[str, Callable[[], object]]

try:  # pragma: no cover
    import tree_sitter_javascript as _ts_javascript
    import tree_sitter_typescript as _ts_typescript
    from tree_sitter import Language as _TreeSitterLanguage
    from tree_sitter import Parser as _TreeSitterParser
except (ImportError, OSError):  # pragma: no cover
    _parser_cls = None
    _language_cls = None
    _grammar_loaders = {}
else:  # pragma: no cover (depends on installed grammars)
    _parser_cls = cast(Callable[[object], _ParserLike], _TreeSitterParser)
    _language_cls = cast(Callable[[object], object], _TreeSitterLanguage)
    _grammar_loaders = {
        "javascript": _ts_javascript.language,
        "typescript": _ts_typescript.language_typescript,
        "tsx": _ts_typescript.language_tsx,
    }

_TREE_SITTER_AVAILABLE = _parser_cls is not None and _language_cls is not None

# Exposed for tests and light monkeypatching in downstream tooling.
Parser: Callable[[object], _ParserLike] | None = _parser_cls
Language: Callable[[object], object] | None = _language_cls
GRAMMARS: dict[str, Callable[[], object]] = _grammar_loaders


class TreeSitterError(RuntimeError):
    """Raised when tree-sitter cannot load a language or parse source."""


_MISSING_DEPS = (
    "tree-sitter dependencies are not installed. Install `tree-sitter`, `tree-sitter-javascript` and "
    "`tree-sitter-typescript` to enable JavaScript/TypeScript parsing."
)


@lru_cache(maxsize=8)
def _get_language(language: str) -> object:
    if not _TREE_SITTER_AVAILABLE:  # pragma: no cover
        raise TreeSitterError(_MISSING_DEPS)
    loader = GRAMMARS.get(language)
    if loader is None:
        raise TreeSitterError(f"tree-sitter language not available: {language!r}")
    try:
        assert Language is not None
        return Language(loader())
    except (AttributeError, TypeError, ValueError, RuntimeError) as exc:  # pragma: no cover (grammar ABI mismatch)
        raise TreeSitterError(f"tree-sitter language not loadable: {language!r}") from exc


_PARSER_LOCAL = threading.local()


def _get_parser(language: str) -> _ParserLike:
    """
    Return a per-thread Parser instance for the requested language.

    tree-sitter Parser objects are not thread-safe; sharing a single cached
    Parser across threads can lead to crashes or corrupted parse output.
    """

    if not _TREE_SITTER_AVAILABLE:  # pragma: no cover
        raise TreeSitterError(_MISSING_DEPS)

    parsers: dict[str, _ParserLike] | None = getattr(_PARSER_LOCAL, "parsers", None)
    if parsers is None:
        parsers = {}
        _PARSER_LOCAL.parsers = parsers

    parser = parsers.get(language)
    if parser is not None:
        return parser

    lang = _get_language(language)
    assert Parser is not None
    parser = Parser(lang)
    parsers[language] = parser
    return parser


def parse(language: str, source: str) -> SyntaxTree | None:
    """
    Parse source code with tree-sitter.

    Returns a Tree or None if parsing fails unexpectedly.
    """

    if not _TREE_SITTER_AVAILABLE:
        return None
    try:
        parser = _get_parser(language)
        tree = parser.parse(source.encode("utf-8", errors="replace"))
        return cast(SyntaxTree, tree)
    except (TreeSitterError, ValueError, TypeError, RuntimeError):
        return None


def is_available() -> bool:
    return _TREE_SITTER_AVAILABLE
