from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from treewarden.config import TreewardenConfig
from treewarden.engine.nodes import node_text
from treewarden.engine.scope import ScopeTracker
from treewarden.engine.types import Diagnostic


class SyntaxTree(Protocol):
    # tree-sitter Tree exposes `root_node`; we treat nodes structurally.
    root_node: Any


@dataclass(frozen=True, slots=True)
class ProjectContext:
    project_root: Path
    scan_path: Path
    files: tuple[Path, ...]
    config: TreewardenConfig


@dataclass(frozen=True, slots=True)
class FileContext:
    project_root: Path
    path: Path
    relative_path: str
    language: str
    text: str
    lines: tuple[str, ...]
    syntax_tree: SyntaxTree | None = None
    tree_sitter_language: str | None = None

    @property
    def source(self) -> bytes:
        # Same encoding the parser saw, so byte offsets line up.
        return self.text.encode("utf-8", errors="replace")


@dataclass(slots=True)
class WalkContext:
    """State of one rule applied to one file. Created per run, never shared."""

    file: FileContext
    source: bytes
    scopes: ScopeTracker = field(default_factory=ScopeTracker)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @classmethod
    def for_file(cls, ctx: FileContext) -> WalkContext:
        return cls(file=ctx, source=ctx.source)

    def text(self, node: Any) -> str:
        return node_text(node, self.source)
