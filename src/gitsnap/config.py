from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

_ = Path()

# Version-control metadata and dependency folders are never walked.
DEFAULT_EXCLUDES = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
    },
)


class FileKind(StrEnum):
    """Content classification of a walked entry.

    Entries start as UNKNOWN when the walker finds them and receive their final kind
    from the inclusion filter.
    """

    UNKNOWN = auto()
    TEXT = auto()
    BINARY = auto()
    UNREADABLE = auto()


class SkipReason(StrEnum):
    """Why an entry was left out of the snapshot."""

    TOO_LARGE = "too-large"
    BINARY = "binary"
    UNREADABLE = "unreadable"


class FileEntry(BaseModel):
    """One file discovered under the repository root.

    Attributes:
        path: Absolute path to the entry on disk.
        parts: Path segments relative to the repository root.
        size: Size in bytes as reported by lstat (0 when unknown).
        kind: Content classification.
        included: Whether the content goes into the snapshot.
        skip_reason: Set when the entry is skipped.
        detail: Human readable explanation, used in debug logs.
    """

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute path")
    parts: tuple[str, ...] = Field(..., description="Path segments relative to the repository root")
    size: int = Field(default=0, ge=0, description="Size in bytes")
    kind: FileKind = Field(default=FileKind.UNKNOWN, description="Content classification")
    included: bool = Field(default=False, description="Written to the snapshot")
    skip_reason: SkipReason | None = Field(default=None, description="Reason for skipping")
    detail: str = Field(default="", description="Explanation for logs")

    @computed_field
    @property
    def rel(self) -> str:
        """Relative path with POSIX separators."""
        return "/".join(self.parts)

    def skip(self, reason: SkipReason, detail: str = "") -> FileEntry:
        """Return a copy marked as skipped for `reason`."""
        kind = {
            SkipReason.BINARY: FileKind.BINARY,
            SkipReason.UNREADABLE: FileKind.UNREADABLE,
        }.get(reason, self.kind)
        return self.model_copy(update={"kind": kind, "included": False, "skip_reason": reason, "detail": detail})

    def include(self) -> FileEntry:
        """Return a copy marked as included text."""
        return self.model_copy(update={"kind": FileKind.TEXT, "included": True, "skip_reason": None})


class SkippedEntry(BaseModel):
    """A skip decision as kept in the final result."""

    model_config = ConfigDict(frozen=True)

    rel: str
    reason: SkipReason
    detail: str = ""


class SnapshotResult(BaseModel):
    """Outcome of one snapshot run.

    Attributes:
        output: Path of the written artifact.
        included: Number of files written to the artifact.
        bytes_written: Size of the artifact in bytes, headers included.
        skipped: Every entry left out, in walk order.
    """

    model_config = ConfigDict(frozen=True)

    output: Path
    included: int = Field(default=0, ge=0)
    bytes_written: int = Field(default=0, ge=0)
    skipped: tuple[SkippedEntry, ...] = ()

    @computed_field
    @property
    def skipped_count(self) -> int:
        """Total number of skipped entries."""
        return len(self.skipped)

    @computed_field
    @property
    def skipped_by_reason(self) -> dict[SkipReason, int]:
        """Skip counts for every reason, including reasons that never occurred."""
        counts = dict.fromkeys(SkipReason, 0)
        for entry in self.skipped:
            counts[entry.reason] += 1
        return counts
