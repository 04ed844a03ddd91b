from __future__ import annotations

import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from treewarden.config import TreewardenConfig, load_config, path_is_ignored
from treewarden.engine.context import FileContext, ProjectContext
from treewarden.engine.tree_sitter import parse as ts_parse
from treewarden.languages.registry import (
    allowed_extensions,
    detect_language,
    tree_sitter_language_for_path,
)
from treewarden.utils import safe_relpath

DEFAULT_SKIP_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".idea",
    ".vscode",
    ".venv",
    "venv",
    "node_modules",
    "bower_components",
    "dist",
    "build",
    "coverage",
    "__pycache__",
}

TREEWARDEN_WORKERS_ENV = "TREEWARDEN_WORKERS"
DEFAULT_MAX_WORKERS = 32

_ROOT_MARKERS = ("pyproject.toml", "package.json")


@dataclass(frozen=True, slots=True)
class ScanTarget:
    project_root: Path
    scan_path: Path
    config: TreewardenConfig


def resolve_worker_count(
    raw_value: str | None,
    *,
    default: int | None = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> int:
    """
    Resolve a safe worker count from an env var-style string.

    - None/""/"auto" fall back to the default
    - Values <= 0 fall back to the default
    - Values above `max_workers` are clamped
    """

    cpu = os.cpu_count() or 1
    resolved_default = max(1, default if default is not None else (cpu * 2))
    if raw_value is None:
        return min(resolved_default, max_workers)

    normalized = raw_value.strip().lower()
    if not normalized or normalized in {"auto", "default"}:
        return min(resolved_default, max_workers)

    try:
        workers = int(normalized)
    except ValueError:
        return min(resolved_default, max_workers)

    if workers <= 0:
        return min(resolved_default, max_workers)
    return min(workers, max_workers)


def worker_count_from_env(*, default: int | None = None) -> int:
    return resolve_worker_count(os.environ.get(TREEWARDEN_WORKERS_ENV), default=default)


def prepare_target(scan_path: Path) -> ScanTarget:
    """Resolve the project root (closest pyproject.toml / package.json) and load configuration."""

    scan_path = scan_path.resolve()
    project_root = _detect_project_root(scan_path)
    config = load_config(project_root)
    return ScanTarget(project_root=project_root, scan_path=scan_path, config=config)


def discover_files(target: ScanTarget) -> list[Path]:
    scan_path = target.scan_path
    root = target.project_root
    ignore_patterns = target.config.ignore.paths
    allowed_exts = allowed_extensions(target.config.languages)

    if scan_path.is_file():
        if detect_language(scan_path) is None or scan_path.suffix.lower() not in allowed_exts:
            return []
        if path_is_ignored(scan_path, project_root=root, ignore_patterns=ignore_patterns):
            return []
        return [scan_path]

    files: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(scan_path, topdown=True):
        dirnames[:] = [d for d in dirnames if d not in DEFAULT_SKIP_DIRS]
        base = Path(dirpath)

        for filename in filenames:
            path = base / filename
            if path.suffix.lower() not in allowed_exts:
                continue
            if detect_language(path) is None:
                continue
            if path_is_ignored(path, project_root=root, ignore_patterns=ignore_patterns):
                continue
            files.append(path)

    return sorted(set(files))


def build_project_context(target: ScanTarget, files: list[Path]) -> ProjectContext:
    return ProjectContext(
        project_root=target.project_root,
        scan_path=target.scan_path,
        files=tuple(files),
        config=target.config,
    )


def build_file_context(project: ProjectContext, path: Path) -> FileContext | None:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return None

    return build_file_context_from_text(project, path, text)


def build_file_context_from_text(project: ProjectContext, path: Path, text: str) -> FileContext | None:
    language = detect_language(path)
    if language is None:
        return None

    tree_sitter_language = tree_sitter_language_for_path(path, detected_language=language)
    return FileContext(
        project_root=project.project_root,
        path=path,
        relative_path=safe_relpath(path, project.project_root),
        language=language,
        text=text,
        lines=tuple(text.splitlines()),
        syntax_tree=ts_parse(tree_sitter_language, text),
        tree_sitter_language=tree_sitter_language,
    )


def build_file_contexts(
    project: ProjectContext,
    paths: list[Path],
    *,
    workers: int = 1,
    on_path_done: Callable[[Path], None] | None = None,
) -> list[FileContext]:
    """
    Build FileContext objects for paths, optionally in parallel.

    Ordering is deterministic: returned contexts follow the input `paths` order,
    with unreadable/unsupported files filtered out (matching serial behavior).
    """

    contexts: list[FileContext] = []
    if workers <= 1 or len(paths) <= 1:
        for path in paths:
            ctx = build_file_context(project, path)
            if on_path_done is not None:
                on_path_done(path)
            if ctx is not None:
                contexts.append(ctx)
        return contexts

    max_workers = min(max(1, workers), len(paths))
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        build_ctx = partial(build_file_context, project)
        for path, ctx in zip(paths, executor.map(build_ctx, paths), strict=True):
            if on_path_done is not None:
                on_path_done(path)
            if ctx is not None:
                contexts.append(ctx)
    return contexts


def _detect_project_root(start: Path) -> Path:
    # Closest directory carrying project metadata wins.
    base = start if start.is_dir() else start.parent
    for candidate in [base, *base.parents]:
        if any((candidate / marker).exists() for marker in _ROOT_MARKERS):
            return candidate
    return base
