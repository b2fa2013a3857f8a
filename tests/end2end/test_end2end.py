from __future__ import annotations

import stat
import subprocess
import sys
from pathlib import Path

import pytest

from gitsnap import __version__, cli

pytestmark = [
    pytest.mark.end2end,
    pytest.mark.skipif(sys.platform == "win32", reason="fake git is a POSIX shell script"),
]

# Stands in for `git clone --depth 1 --quiet URL DEST` by copying $FIXTURE_REPO into DEST.
FAKE_GIT = """#!/bin/sh
if [ -n "$FAKE_GIT_FAIL" ]; then
    echo "fatal: repository '$5' not found" >&2
    exit 128
fi
mkdir -p "$6" && cp -R "$FIXTURE_REPO"/. "$6"
"""


@pytest.fixture
def fake_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    fixture = tmp_path / "fixture"
    (fixture / ".git").mkdir(parents=True)
    (fixture / ".git" / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")
    (fixture / "src").mkdir()
    (fixture / "src" / "main.rs").write_text('fn main() {\n    println!("hi");\n}\n', encoding="utf-8")
    (fixture / "Cargo.toml").write_text('[package]\nname = "tool"\n', encoding="utf-8")
    (fixture / "icon.ico").write_bytes(b"\x00\x00\x01\x00")
    monkeypatch.setenv("FIXTURE_REPO", str(fixture))

    git = tmp_path / "bin" / "git"
    git.parent.mkdir()
    git.write_text(FAKE_GIT, encoding="utf-8")
    git.chmod(git.stat().st_mode | stat.S_IXUSR)
    return git


def test_end_to_end_snapshot(fake_git: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output = tmp_path / "tool.txt"

    exit_code = cli.main(["user/tool", "-o", str(output), "--git", str(fake_git)])

    assert exit_code == 0
    content = output.read_text(encoding="utf-8")
    assert content.index("File: Cargo.toml") < content.index("File: src/main.rs")
    assert 'println!("hi");' in content
    assert "icon.ico" not in content
    assert "refs/heads/main" not in content
    assert "Skipped: 1 files (too-large=0, binary=1, unreadable=0)" in capsys.readouterr().out


def test_end_to_end_is_byte_identical_across_runs(fake_git: Path, tmp_path: Path) -> None:
    first, second = tmp_path / "first.txt", tmp_path / "second.txt"

    assert cli.main(["user/tool", "-o", str(first), "--git", str(fake_git)]) == 0
    assert cli.main(["user/tool", "-o", str(second), "--git", str(fake_git)]) == 0

    assert first.read_bytes() == second.read_bytes()


def test_end_to_end_clone_failure(
    fake_git: Path,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("FAKE_GIT_FAIL", "1")
    output = tmp_path / "tool.txt"

    exit_code = cli.main(["user/nope", "-o", str(output), "--git", str(fake_git)])

    assert exit_code == 1
    assert "not found" in capsys.readouterr().err
    assert not output.exists()


def test_module_entry_point_reports_version() -> None:
    out = subprocess.run(
        [sys.executable, "-m", "gitsnap", "--version"],
        capture_output=True,
        text=True,
        check=False,
    )

    assert out.returncode == 0
    assert __version__ in out.stdout
