from __future__ import annotations

import os
from pathlib import Path

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from gitsnap.repository import normalize_github_url, repo_name_from_url

ENV_FILE = find_dotenv(usecwd=True)

BYTES_PER_MB = 1024 * 1024
DEFAULT_THRESHOLD_MB = 0.1


def env_default(name: str, default: str) -> str:
    """Look up a default value in the process environment, then in the `.env` file.

    Args:
        name (str): the variable name, e.g. `GITSNAP_THRESHOLD`
        default (str): the value used when neither source defines the variable

    Returns:
        str: the resolved value
    """
    if name in os.environ:
        return os.environ[name]
    if ENV_FILE:
        value = dotenv_values(ENV_FILE).get(name)
        if value is not None:
            return value
    return default


class Settings(BaseModel):
    """Resolved, read-only options for one snapshot run."""

    model_config = ConfigDict(frozen=True)

    repository: str = Field(..., description="GitHub URL or user/repo shorthand.")
    output: Path | None = Field(default=None, description="Output file (defaults to <repo_name>.txt).")
    threshold: float = Field(
        default=DEFAULT_THRESHOLD_MB,
        ge=0,
        description="Files above this size in MB are skipped unless include_all.",
    )
    include_all: bool = Field(default=False, description="Ignore the size threshold.")
    debug: bool = Field(default=False, description="Log every inclusion decision.")
    log_file: str = Field(default="", description="Log file path.")
    exclude_dir: list[str] = Field(default_factory=list, description="Extra directory names to prune.")
    git: str = Field(default="git", description="git executable.")

    @field_validator("repository")
    @classmethod
    def _normalize_repository(cls, value: str) -> str:
        return normalize_github_url(value)

    @computed_field
    @property
    def threshold_bytes(self) -> int:
        """Size threshold in bytes, rounded down."""
        return int(self.threshold * BYTES_PER_MB)

    @computed_field
    @property
    def repo_name(self) -> str:
        """Repository name derived from the normalized URL."""
        return repo_name_from_url(self.repository)

    @property
    def output_path(self) -> Path:
        """Where the snapshot is written."""
        return self.output if self.output is not None else Path(f"{self.repo_name}.txt")
