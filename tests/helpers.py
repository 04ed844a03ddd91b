from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pytest

from treewarden.config import TreewardenConfig
from treewarden.engine.context import FileContext, ProjectContext
from treewarden.engine.tree_sitter import is_available
from treewarden.engine.tree_sitter import parse as ts_parse
from treewarden.scanner import build_file_context

requires_tree_sitter = pytest.mark.skipif(not is_available(), reason="tree-sitter grammars not installed")


def make_file_ctx(project_ctx: ProjectContext, *, relpath: str, content: str) -> FileContext:
    path = project_ctx.project_root / relpath
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    ctx = build_file_context(project_ctx, path)
    assert ctx is not None
    assert ctx.syntax_tree is not None
    return ctx


def parse_initializer(expression: str, *, language: str = "typescript") -> tuple[Any, bytes]:
    """Parse `const x = <expression>;` and return the initializer node with the source bytes."""

    text = f"const x = {expression};\n"
    tree = ts_parse(language, text)
    assert tree is not None
    declaration = tree.root_node.named_children[0]
    declarator = declaration.named_children[0]
    value = declarator.child_by_field_name("value")
    assert value is not None
    return value, text.encode("utf-8")


@dataclass
class _Tree:
    root_node: object


class _Node:
    def __init__(
        self,
        node_type: str,
        *,
        children: list[_Node] | None = None,
        fields: dict[str, _Node] | None = None,
        is_named: bool = True,
        start_point: tuple[int, int] = (0, 0),
        start_byte: int = 0,
        end_byte: int = 0,
    ) -> None:
        self.type = node_type
        self.children = children or []
        self.fields = fields or {}
        self.is_named = is_named
        self.start_point = start_point
        self.end_point = start_point
        self.start_byte = start_byte
        self.end_byte = end_byte

    def child_by_field_name(self, name: str) -> _Node | None:
        return self.fields.get(name)


def make_fake_ctx(tmp_path: Path, *, relpath: str, text: str, root: _Node) -> FileContext:
    project = ProjectContext(project_root=tmp_path, scan_path=tmp_path, files=(), config=TreewardenConfig())
    return FileContext(
        project_root=project.project_root,
        path=tmp_path / relpath,
        relative_path=relpath,
        language="typescript",
        text=text,
        lines=tuple(text.splitlines()),
        syntax_tree=_Tree(root_node=root),
        tree_sitter_language="typescript",
    )
