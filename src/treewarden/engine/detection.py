from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from functools import partial
from pathlib import Path

from treewarden.config import TreewardenConfig
from treewarden.engine.context import FileContext
from treewarden.engine.types import Diagnostic
from treewarden.rules.base import BaseRule

logger = logging.getLogger(__name__)


def detect(
    config: TreewardenConfig,
    rules: Sequence[BaseRule],
    files: Iterable[FileContext],
    *,
    workers: int | None = None,
    on_file_done: Callable[[Path], None] | None = None,
) -> list[Diagnostic]:
    """
    Apply `rules` to every file context.

    Files may be processed on a thread pool; results are returned per file in
    input order, and per rule in traversal order within each file.
    """

    file_list = list(files)
    effective_workers = workers or 1
    diagnostics: list[Diagnostic] = []

    if effective_workers <= 1 or len(file_list) <= 1:
        for file_ctx in file_list:
            diagnostics.extend(_detect_file(config, rules, file_ctx))
            if on_file_done is not None:
                on_file_done(file_ctx.path)
        return diagnostics

    max_workers = min(max(1, effective_workers), len(file_list))
    detect_file = partial(_detect_file, config, rules)
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        for file_ctx, file_diagnostics in zip(file_list, executor.map(detect_file, file_list), strict=True):
            diagnostics.extend(file_diagnostics)
            if on_file_done is not None:
                on_file_done(file_ctx.path)

    return diagnostics


def _detect_file(config: TreewardenConfig, rules: Sequence[BaseRule], file_ctx: FileContext) -> list[Diagnostic]:
    if file_ctx.syntax_tree is None:
        logger.debug("No syntax tree for %s; skipping.", file_ctx.relative_path)
        return []

    diagnostics: list[Diagnostic] = []
    for rule in rules:
        raw = rule.apply(file_ctx)
        diagnostics.extend(_apply_overrides(config, rule.meta.rule_id, raw))
    logger.debug("%s: %d diagnostic(s)", file_ctx.relative_path, len(diagnostics))
    return diagnostics


def _apply_overrides(config: TreewardenConfig, rule_id: str, diagnostics: list[Diagnostic]) -> list[Diagnostic]:
    override = config.rules.overrides.get(rule_id)
    if override is None or override.severity is None:
        return diagnostics
    return [replace(d, severity=override.severity) for d in diagnostics]
