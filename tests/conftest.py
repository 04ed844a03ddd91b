from __future__ import annotations

from pathlib import Path

import pytest

from treewarden.config import TreewardenConfig
from treewarden.engine.context import ProjectContext


@pytest.fixture()
def project_ctx(tmp_path: Path) -> ProjectContext:
    return ProjectContext(
        project_root=tmp_path,
        scan_path=tmp_path,
        files=(),
        config=TreewardenConfig(),
    )
