from dataclasses import dataclass
from pathlib import Path

# Not frozen: contextlib assigns __traceback__ on exceptions leaving a `with` block.


@dataclass(eq=False)
class GitSnapError(Exception):
    """Base exception for errors in the gitsnap package."""

    def __str__(self) -> str:
        return getattr(self, "message", "") or (self.__doc__ or "").strip()


@dataclass(eq=False)
class ArgumentError(GitSnapError):
    """Raised when command line input is invalid."""

    message: str


@dataclass(eq=False)
class InvalidRepositoryError(ArgumentError):
    """Raised when a repository identifier is neither a GitHub URL nor `user/repo`."""

    url: str = ""
    message: str = "Invalid GitHub repository URL format"

    def __str__(self) -> str:
        return f"{self.message}: {self.url!r}"


@dataclass(eq=False)
class FetchError(GitSnapError):
    """Raised when the repository cannot be downloaded."""

    url: str
    message: str


@dataclass(eq=False)
class GitCommandError(FetchError):
    """Raised when a git command fails."""

    command: str = ""
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


@dataclass(eq=False)
class TraversalError(GitSnapError):
    """Raised when a file or directory cannot be inspected during the walk."""

    path: Path
    message: str


@dataclass(eq=False)
class ClassificationError(GitSnapError):
    """Raised when file content cannot be decoded as text."""

    path: Path
    message: str


@dataclass(eq=False)
class WriteError(GitSnapError):
    """Raised when the snapshot artifact cannot be written."""

    path: Path
    message: str

    def __str__(self) -> str:
        return f"cannot write {self.path}: {self.message}"
