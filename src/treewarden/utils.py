from __future__ import annotations

from pathlib import Path

ELLIPSIS = "..."


def safe_relpath(path: Path, root: Path) -> str:
    """
    Return a stable, POSIX-style path for reporting output.

    Prefer a path relative to `root` when possible.
    Fall back to `path.as_posix()` when the path is not under the root, or when
    either path cannot be resolved due to OS errors.
    """

    try:
        resolved_path = path.resolve()
    except OSError:
        resolved_path = path

    try:
        resolved_root = root.resolve()
    except OSError:
        resolved_root = root

    try:
        return resolved_path.relative_to(resolved_root).as_posix()
    except ValueError:
        return path.as_posix()


def trim_to(text: str | None, length: int) -> str:
    """
    Shorten `text` when it is longer than `length` characters.

    Long texts keep their first `length - 2` characters followed by "...",
    so a trimmed result is `length + 1` characters long.
    """

    if text is None:
        return ""
    if len(text) <= length:
        return text
    return text[: max(0, length - 2)] + ELLIPSIS
