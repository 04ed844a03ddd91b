from __future__ import annotations

from collections import defaultdict
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from treewarden import __version__
from treewarden.engine.types import Diagnostic, ScanSummary
from treewarden.utils import safe_relpath

_SEVERITY_ICON = {"error": "✖", "warn": "⚠", "info": "ℹ"}
_SEVERITY_STYLE = {"error": "bold red", "warn": "yellow", "info": "dim"}


def render_terminal(summary: ScanSummary, *, project_root: Path, console: Console) -> None:
    header = Text()
    header.append("treewarden ", style="bold")
    header.append(f"v{__version__}", style="dim")

    console.print(
        Panel(
            header,
            subtitle=f"Scanned {summary.files_scanned} files",
            border_style="cyan",
        )
    )

    by_file: dict[str, list[Diagnostic]] = defaultdict(list)
    for d in summary.diagnostics:
        if d.location is None or d.location.path is None:
            by_file["<unknown>"].append(d)
            continue
        by_file[safe_relpath(d.location.path, project_root)].append(d)

    for file_path in sorted(by_file):
        console.print(Text(file_path, style="bold"))
        for d in by_file[file_path]:
            _print_diagnostic(console, d)
        console.print()

    _print_summary(summary, console=console)


def _print_diagnostic(console: Console, d: Diagnostic) -> None:
    icon = _SEVERITY_ICON.get(d.severity, "•")
    style = _SEVERITY_STYLE.get(d.severity, "")

    loc = ""
    if d.location is not None and d.location.start_line is not None:
        loc = f"{d.location.start_line}"
        if d.location.start_col is not None:
            loc += f":{d.location.start_col}"

    line = Text()
    line.append(f"  {icon} ", style=style)
    line.append(d.rule_id, style="bold")
    if loc:
        line.append(f"  ({loc})", style="dim")
    line.append(f"  {d.message}")
    console.print(line)


def _print_summary(summary: ScanSummary, *, console: Console) -> None:
    console.print(Text("─" * 60, style="dim"))
    counts = {sev: sum(1 for d in summary.diagnostics if d.severity == sev) for sev in ("error", "warn", "info")}
    total = len(summary.diagnostics)
    if total == 0:
        console.print(Text("No problems found.", style="bold green"))
    else:
        console.print(
            Text(
                f"{total} problem(s): {counts['error']} error, {counts['warn']} warn, {counts['info']} info",
                style="bold",
            )
        )
    console.print(Text("─" * 60, style="dim"))
