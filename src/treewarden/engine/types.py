from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

Severity = Literal["info", "warn", "error"]

SEVERITY_RANK: dict[str, int] = {"info": 0, "warn": 1, "error": 2}


@dataclass(frozen=True, slots=True)
class Location:
    path: Path | None = None
    start_line: int | None = None  # 1-based
    start_col: int | None = None  # 1-based
    end_line: int | None = None  # 1-based
    end_col: int | None = None  # 1-based


@dataclass(frozen=True, slots=True)
class Diagnostic:
    rule_id: str
    severity: Severity
    message: str
    start_offset: int  # UTF-8 byte offset into the file
    width: int
    location: Location | None = None

    @property
    def end_offset(self) -> int:
        return self.start_offset + self.width


@dataclass(frozen=True, slots=True)
class ScanSummary:
    files_scanned: int
    diagnostics: tuple[Diagnostic, ...]

    def count_at_least(self, severity: Severity) -> int:
        threshold = SEVERITY_RANK[severity]
        return sum(1 for d in self.diagnostics if SEVERITY_RANK.get(d.severity, 0) >= threshold)
