from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import click
import typer
from rich.console import Console

from treewarden import __version__
from treewarden.audit import AuditCallbacks, AuditResult, audit_files
from treewarden.config import ConfigError
from treewarden.engine.types import ScanSummary, Severity
from treewarden.logging_utils import configure_logging
from treewarden.reporters.json_reporter import render_json
from treewarden.reporters.terminal import render_terminal
from treewarden.scanner import ScanTarget, discover_files, prepare_target

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="treewarden — scope-aware rule engine for JavaScript and TypeScript.",
)
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)

_FAIL_ON_CHOICES = ("info", "warn", "error", "never")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logs (printed to stderr)."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Reduce non-essential output."),
    ] = False,
    progress: Annotated[
        bool,
        typer.Option("--progress/--no-progress", help="Show a progress bar for long scans.", show_default=True),
    ] = True,
) -> None:
    """treewarden CLI."""

    if verbose and quiet:
        raise typer.BadParameter("Choose at most one: --verbose or --quiet.")
    configure_logging(verbose=verbose, quiet=quiet)
    ctx.obj = {"verbose": verbose, "quiet": quiet, "progress": progress}


def _cli_settings() -> dict[str, bool]:
    ctx = click.get_current_context(silent=True)
    if ctx is None or not isinstance(ctx.obj, dict):
        return {"verbose": False, "quiet": False, "progress": True}
    verbose = bool(ctx.obj.get("verbose", False))
    quiet = bool(ctx.obj.get("quiet", False))
    progress = bool(ctx.obj.get("progress", True))
    return {"verbose": verbose, "quiet": quiet, "progress": progress}


def _emit_output(fmt: str, *, summary: ScanSummary, project_root: Path) -> None:
    normalized = fmt.strip().lower()
    if normalized == "terminal":
        render_terminal(summary, project_root=project_root, console=console)
        return
    if normalized == "json":
        typer.echo(render_json(summary, project_root=project_root))
        return
    raise typer.BadParameter("Unsupported format. Use: terminal, json.")


def _audit_with_optional_progress(path: Path, *, workers: int | None, show_progress: bool) -> AuditResult:
    from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

    try:
        target = prepare_target(path)
    except ConfigError as exc:
        err_console.print(f"Invalid configuration: {exc}")
        raise typer.Exit(code=2) from exc

    files = discover_files(target)
    logger.debug("discovered %d candidate file(s)", len(files))

    if not show_progress:
        return _run_audit(target, files=files, workers=workers)

    progress_console = Console(stderr=True)
    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=progress_console,
        transient=True,
    )

    ctx_task = progress.add_task("Parse", total=len(files))
    scan_task = progress.add_task("Scan", total=1)

    def _on_context_built(_path: Path) -> None:
        progress.advance(ctx_task, 1)

    def _on_ready(total: int) -> None:
        progress.update(scan_task, total=total, completed=0)

    def _on_scanned(_path: Path) -> None:
        progress.advance(scan_task, 1)

    callbacks = AuditCallbacks(
        on_context_built=_on_context_built,
        on_file_contexts_ready=_on_ready,
        on_file_scanned=_on_scanned,
    )

    with progress:
        return _run_audit(target, files=files, workers=workers, callbacks=callbacks)


def _run_audit(
    target: ScanTarget,
    *,
    files: list[Path],
    workers: int | None,
    callbacks: AuditCallbacks | None = None,
) -> AuditResult:
    try:
        return audit_files(target, files=files, workers=workers, callbacks=callbacks)
    except ConfigError as exc:
        err_console.print(f"Invalid configuration: {exc}")
        raise typer.Exit(code=2) from exc


@app.command()
def scan(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=True,
            resolve_path=True,
            help="File or directory to scan (default: current directory).",
        ),
    ] = Path("."),
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: terminal, json.", show_default=True),
    ] = "terminal",
    workers: Annotated[
        int | None,
        typer.Option("--workers", min=1, help="Files analyzed in parallel (default: TREEWARDEN_WORKERS or auto)."),
    ] = None,
    fail_on: Annotated[
        str | None,
        typer.Option("--fail-on", help="Exit 1 when a diagnostic has at least this severity: info, warn, error, never."),
    ] = None,
) -> None:
    """Scan JavaScript/TypeScript files and report rule violations."""

    settings = _cli_settings()
    normalized_fail_on = fail_on.strip().lower() if fail_on else None
    if normalized_fail_on is not None and normalized_fail_on not in _FAIL_ON_CHOICES:
        raise typer.BadParameter(f"Unsupported --fail-on value. Use: {', '.join(_FAIL_ON_CHOICES)}.")

    result = _audit_with_optional_progress(
        path,
        workers=workers,
        show_progress=settings["progress"] and not settings["quiet"] and output_format.strip().lower() == "terminal",
    )
    _emit_output(output_format, summary=result.summary, project_root=result.target.project_root)

    effective: str = normalized_fail_on or result.target.config.fail_on
    if effective == "never":
        return
    severity: Severity = effective  # type: ignore[assignment]
    if result.summary.count_at_least(severity) > 0:
        raise typer.Exit(code=1)


@app.command()
def rules(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
            help="Project directory (default: current directory).",
        ),
    ] = Path("."),
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: terminal, json.", show_default=True),
    ] = "terminal",
    enabled_only: Annotated[
        bool,
        typer.Option("--enabled-only", help="Only show rules enabled by the current config."),
    ] = False,
) -> None:
    """
    List all available rules and their metadata.
    """

    from rich.table import Table

    from treewarden.rules.registry import builtin_rules, enabled_rule_ids

    try:
        target = prepare_target(path)
    except ConfigError as exc:
        err_console.print(f"Invalid configuration: {exc}")
        raise typer.Exit(code=2) from exc
    enabled_ids = enabled_rule_ids(target.config)

    rows = []
    for rule in builtin_rules():
        meta = rule.meta
        enabled = meta.rule_id in enabled_ids
        if enabled_only and not enabled:
            continue
        rows.append(
            {
                "rule_id": meta.rule_id,
                "enabled": enabled,
                "title": meta.title,
                "description": meta.description,
                "category": meta.category,
                "group": meta.group,
                "issue_class": meta.issue_class,
                "issue_type": meta.issue_type,
                "severity": meta.severity,
                "level": meta.level,
                "default_severity": meta.default_severity,
                "cwe": meta.cwe,
            }
        )

    normalized = output_format.strip().lower()
    if normalized == "json":
        typer.echo(json.dumps(rows, indent=2, sort_keys=True))
        return
    if normalized != "terminal":
        raise typer.BadParameter("Unsupported format. Use: terminal, json.")

    table = Table(title="treewarden rules")
    table.add_column("ID", style="bold")
    table.add_column("Enabled", justify="center")
    table.add_column("Severity")
    table.add_column("Category")
    table.add_column("Title")
    for row in rows:
        table.add_row(
            str(row["rule_id"]),
            "yes" if row["enabled"] else "no",
            str(row["default_severity"]),
            str(row["category"]),
            str(row["title"]),
        )
    console.print(table)


@app.command()
def explain(
    rule_id: Annotated[
        str,
        typer.Argument(help="Rule id to explain (e.g. no-stateless-class)."),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: terminal, json.", show_default=True),
    ] = "terminal",
) -> None:
    """
    Explain a single rule (metadata, configuration and an example).
    """

    from rich.panel import Panel
    from rich.syntax import Syntax
    from rich.text import Text

    from treewarden.rules.examples import EXAMPLES
    from treewarden.rules.registry import rule_by_id

    rule = rule_by_id(rule_id)
    if rule is None:
        raise typer.BadParameter(f"Unknown rule id: {rule_id!r}. Use `treewarden rules` to list available rules.")

    meta = rule.meta
    example = EXAMPLES.get(meta.rule_id)

    normalized = output_format.strip().lower()
    if normalized == "json":
        payload = {
            "rule_id": meta.rule_id,
            "title": meta.title,
            "description": meta.description,
            "category": meta.category,
            "default_severity": meta.default_severity,
            "example": (
                {
                    "language": example.language,
                    "bad": example.bad,
                    "good": example.good,
                    "notes": example.notes,
                }
                if example is not None
                else None
            ),
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return
    if normalized != "terminal":
        raise typer.BadParameter("Unsupported format. Use: terminal, json.")

    header = Text()
    header.append(meta.rule_id, style="bold")
    header.append(" — ", style="dim")
    header.append(meta.title)

    details = "\n".join(
        [
            meta.description,
            "",
            f"Default severity: {meta.default_severity}",
            f"Category: {meta.category} / {meta.group}",
            f"Issue: {meta.issue_class}, {meta.issue_type}, {meta.severity}",
            f"CWE: {meta.cwe or '-'}",
        ]
    )
    console.print(Panel(details, title=header, border_style="cyan"))

    console.print(Text("Config override (pyproject.toml):", style="bold"))
    console.print(
        Syntax(
            f"[tool.treewarden.rules.{meta.rule_id}]\nseverity = \"error\"  # or info/warn\noptions = []\n",
            "toml",
            word_wrap=True,
        )
    )

    if example is not None:
        console.print(Text("Example:", style="bold"))
        if example.notes:
            console.print(Text(example.notes, style="dim"))
        console.print(Text("Bad:", style="bold"))
        console.print(Syntax(example.bad, example.language, word_wrap=True))
        if example.good is not None:
            console.print(Text("Good:", style="bold"))
            console.print(Syntax(example.good, example.language, word_wrap=True))
