from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from treewarden.engine.detection import detect
from treewarden.engine.types import ScanSummary
from treewarden.rules.registry import configured_rules
from treewarden.scanner import (
    ScanTarget,
    build_file_contexts,
    build_project_context,
    discover_files,
    prepare_target,
    worker_count_from_env,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AuditResult:
    target: ScanTarget
    files: tuple[Path, ...]
    summary: ScanSummary


@dataclass(frozen=True, slots=True)
class AuditCallbacks:
    on_context_built: Callable[[Path], None] | None = None
    on_file_contexts_ready: Callable[[int], None] | None = None
    on_file_scanned: Callable[[Path], None] | None = None


def audit_path(
    scan_path: Path,
    *,
    workers: int | None = None,
    callbacks: AuditCallbacks | None = None,
) -> AuditResult:
    target = prepare_target(scan_path)
    files = discover_files(target)
    return audit_files(target, files=files, workers=workers, callbacks=callbacks)


def audit_files(
    target: ScanTarget,
    *,
    files: list[Path],
    workers: int | None = None,
    callbacks: AuditCallbacks | None = None,
) -> AuditResult:
    # Malformed rule options raise here, before any file is read.
    rules = configured_rules(target.config)
    logger.debug("Enabled rules: %s", ", ".join(r.meta.rule_id for r in rules) or "(none)")
    logger.debug("Discovered %d file(s) under %s", len(files), target.scan_path)

    effective_workers = workers if workers is not None else worker_count_from_env()
    project = build_project_context(target, files)
    cb = callbacks or AuditCallbacks()
    contexts = build_file_contexts(project, files, workers=effective_workers, on_path_done=cb.on_context_built)
    if cb.on_file_contexts_ready is not None:
        cb.on_file_contexts_ready(len(contexts))

    unparsed = sum(1 for c in contexts if c.syntax_tree is None)
    if unparsed:
        logger.warning("%d file(s) could not be parsed and were skipped.", unparsed)

    diagnostics = detect(
        target.config,
        rules,
        contexts,
        workers=effective_workers,
        on_file_done=cb.on_file_scanned,
    )
    summary = ScanSummary(files_scanned=len(contexts), diagnostics=tuple(diagnostics))
    return AuditResult(target=target, files=tuple(files), summary=summary)
