from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from treewarden import __version__
from treewarden.engine.types import Diagnostic, ScanSummary
from treewarden.utils import safe_relpath

REPORT_SCHEMA_VERSION = 1


def render_json(summary: ScanSummary, *, project_root: Path) -> str:
    payload = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "tool": {"name": "treewarden", "version": __version__},
        "files_scanned": summary.files_scanned,
        "diagnostics": [_diagnostic_to_dict(d, project_root=project_root) for d in summary.diagnostics],
    }
    return json.dumps(payload, indent=2, sort_keys=False)


def _diagnostic_to_dict(d: Diagnostic, *, project_root: Path) -> dict[str, Any]:
    loc = None
    if d.location is not None and d.location.path is not None:
        loc = {
            "path": safe_relpath(d.location.path, project_root),
            "start_line": d.location.start_line,
            "start_col": d.location.start_col,
            "end_line": d.location.end_line,
            "end_col": d.location.end_col,
        }

    return {
        "rule_id": d.rule_id,
        "severity": d.severity,
        "message": d.message,
        "start_offset": d.start_offset,
        "width": d.width,
        "location": loc,
    }
