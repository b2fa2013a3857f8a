from pathlib import Path

import pytest
from pydantic import ValidationError

from gitsnap import settings as settings_module
from gitsnap.exceptions import InvalidRepositoryError
from gitsnap.settings import Settings, env_default


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings(repository="octocat/hello-world")

    assert settings.repository == "https://github.com/octocat/hello-world"
    assert settings.threshold == pytest.approx(0.1)
    assert settings.threshold_bytes == 104_857
    assert settings.include_all is False
    assert settings.debug is False
    assert settings.exclude_dir == []
    assert settings.output_path == Path("hello-world.txt")


@pytest.mark.unit
def test_settings_explicit_output_wins() -> None:
    settings = Settings(repository="octocat/hello-world", output=Path("out/snap.txt"))

    assert settings.output_path == Path("out/snap.txt")


@pytest.mark.unit
def test_settings_threshold_bytes_in_mebibytes() -> None:
    settings = Settings(repository="a/b", threshold=2.5)

    assert settings.threshold_bytes == 2_621_440


@pytest.mark.unit
def test_settings_are_frozen() -> None:
    settings = Settings(repository="a/b")

    with pytest.raises(ValidationError):
        settings.threshold = 1.0  # type: ignore[misc]


@pytest.mark.unit
def test_settings_reject_negative_threshold() -> None:
    with pytest.raises(ValidationError):
        Settings(repository="a/b", threshold=-0.5)


@pytest.mark.unit
def test_settings_reject_malformed_repository() -> None:
    with pytest.raises(InvalidRepositoryError):
        Settings(repository="not a repository")


@pytest.mark.unit
def test_env_default_prefers_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("GITSNAP_THRESHOLD=0.25\n", encoding="utf-8")
    monkeypatch.setattr(settings_module, "ENV_FILE", str(env_file))

    assert env_default("GITSNAP_THRESHOLD", "0.1") == "0.25"

    monkeypatch.setenv("GITSNAP_THRESHOLD", "0.5")

    assert env_default("GITSNAP_THRESHOLD", "0.1") == "0.5"


@pytest.mark.unit
def test_env_default_falls_back_to_default() -> None:
    assert env_default("GITSNAP_LOG_FILE", "") == ""
