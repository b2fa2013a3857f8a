from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from gitsnap import settings as settings_module
from gitsnap.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    TreeFactory = Callable[[dict[str, str | bytes]], "Path"]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep GITSNAP_* variables and any `.env` file out of the tests, reset logging afterwards."""
    for name in ("GITSNAP_THRESHOLD", "GITSNAP_LOG_FILE", "GITSNAP_GIT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(settings_module, "ENV_FILE", "")
    yield
    setup_logging()


@pytest.fixture
def make_tree(tmp_path: Path) -> TreeFactory:
    """Create files under `tmp_path / "repo"` from a mapping of relative path to content."""

    def factory(files: dict[str, str | bytes]) -> Path:
        root = tmp_path / "repo"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_bytes(content.encode("utf-8"))
        return root

    return factory
