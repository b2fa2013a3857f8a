from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from gitsnap.config import DEFAULT_EXCLUDES, FileEntry, SkipReason
from gitsnap.exceptions import ClassificationError, TraversalError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gitsnap.settings import Settings

SIZE_UNITS = ("bytes", "KB", "MB", "GB", "TB")


def relparts(path: Path, root: Path) -> tuple[str, ...]:
    """Return the segments of `path` relative to `root`.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        tuple[str, ...]: the relative segments. If path is not under root, or is root
            itself, the last segment of path alone.
    """
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = ()
    return tuple(display_name(p) for p in parts or (path.name,))


def display_name(name: str) -> str:
    r"""Turn a file name into valid UTF-8 without merging distinct names.

    Undecodable bytes (surrogate escapes from `os` listings) become `\xNN` and literal
    backslashes are doubled, so two different names never render the same.

    Args:
        name (str): a single path segment as returned by `os`

    Returns:
        str: the printable, reversible segment
    """
    raw = name.encode("utf-8", "surrogateescape")
    return raw.replace(b"\\", b"\\\\").decode("utf-8", "backslashreplace")


def inspect_file(root: Path, path: Path) -> FileEntry:
    """Build an unclassified entry for a regular file without following links.

    Args:
        root (Path): the repository root
        path (Path): the file to inspect

    Raises:
        TraversalError: if the entry cannot be stat'ed, is a symbolic link or is not a
            regular file.

    Returns:
        FileEntry: the entry with its size filled in
    """
    try:
        st = path.lstat()
    except OSError as e:
        raise TraversalError(path=path, message=e.strerror or str(e)) from e
    if stat.S_ISLNK(st.st_mode):
        target = "broken symbolic link" if not path.exists() else "symbolic link not followed"
        raise TraversalError(path=path, message=target)
    if not stat.S_ISREG(st.st_mode):
        raise TraversalError(path=path, message="not a regular file")
    return FileEntry(path=path, parts=relparts(path, root), size=st.st_size)


def unreadable_entry(root: Path, error: TraversalError) -> FileEntry:
    """Turn a traversal error into a skipped entry."""
    return FileEntry(path=error.path, parts=relparts(error.path, root)).skip(
        SkipReason.UNREADABLE,
        error.message,
    )


def is_pruned(name: str, rel: str, excludes: set[str]) -> bool:
    """Check a directory against the exclusion set, by name or by relative path.

    Args:
        name (str): the directory name
        rel (str): the directory path relative to the root, POSIX separators
        excludes (set[str]): names and relative paths to prune

    Returns:
        bool: True if the directory must not be walked
    """
    return name in excludes or rel in excludes


def walk_entries(root: Path, *, exclude_dirs: Iterable[str] = ()) -> list[FileEntry]:
    """Collect every file under `root` in a stable order.

    Directories listed in `DEFAULT_EXCLUDES` or `exclude_dirs` are pruned silently.
    Symbolic links, special files and entries that cannot be read are returned as
    entries skipped with `SkipReason.UNREADABLE`; the walk never stops on them.

    Args:
        root (Path): the directory to walk
        exclude_dirs (Iterable[str]): extra directory names or relative paths to prune

    Returns:
        list[FileEntry]: entries sorted by their relative path segments
    """
    excludes = set(DEFAULT_EXCLUDES) | {d.strip().strip("/").replace("\\", "/") for d in exclude_dirs if d.strip()}
    entries: list[FileEntry] = []

    def on_error(err: OSError) -> None:
        path = Path(err.filename) if err.filename else root
        entries.append(unreadable_entry(root, TraversalError(path=path, message=err.strerror or str(err))))

    for dirpath, dirs, files in os.walk(root, onerror=on_error, followlinks=False):
        current = Path(dirpath)
        kept: list[str] = []
        for d in dirs:
            sub = current / d
            if is_pruned(d, "/".join(relparts(sub, root)), excludes):
                continue
            if sub.is_symlink():
                entries.append(
                    unreadable_entry(root, TraversalError(path=sub, message="symbolic link not followed")),
                )
                continue
            kept.append(d)
        dirs[:] = sorted(kept)

        for name in files:
            try:
                entries.append(inspect_file(root, current / name))
            except TraversalError as e:
                entries.append(unreadable_entry(root, e))

    return sorted(entries, key=lambda e: e.parts)


def decode_text(data: bytes, path: Path) -> str:
    """Decode file content as UTF-8 text.

    Args:
        data (bytes): the raw content
        path (Path): the file the content was read from, for error reporting

    Raises:
        ClassificationError: if the content holds a null byte or is not valid UTF-8.

    Returns:
        str: the decoded text, line endings untouched
    """
    if b"\x00" in data:
        raise ClassificationError(path=path, message="null byte in content")
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ClassificationError(path=path, message=f"invalid UTF-8 at byte {e.start}") from e


def classify_entry(entry: FileEntry, settings: Settings) -> tuple[FileEntry, str | None]:
    """Decide whether an entry's content goes into the snapshot.

    Rules, in order:
      1. entries already skipped by the walker stay skipped;
      2. without `include_all`, files larger than `threshold_bytes` are `too-large`
         (their content is not read);
      3. files that cannot be read are `unreadable`;
      4. files with a null byte or invalid UTF-8 are `binary`, even with `include_all`;
      5. everything else is included.

    Args:
        entry (FileEntry): the entry produced by `walk_entries`
        settings (Settings): threshold and include_all options

    Returns:
        tuple[FileEntry, str | None]: the classified entry and, when included, its text
    """
    if entry.skip_reason is not None:
        return entry, None
    if not settings.include_all and entry.size > settings.threshold_bytes:
        return entry.skip(SkipReason.TOO_LARGE, f"{entry.size} > {settings.threshold_bytes} bytes"), None
    try:
        data = entry.path.read_bytes()
    except OSError as e:
        return entry.skip(SkipReason.UNREADABLE, e.strerror or str(e)), None
    try:
        text = decode_text(data, entry.path)
    except ClassificationError as e:
        return entry.skip(SkipReason.BINARY, e.message), None
    return entry.include(), text


def format_file_size(size: int) -> str:
    """Format a byte count with two decimals and a binary unit, e.g. `1.50 KB`.

    Args:
        size (int): the size in bytes

    Returns:
        str: the human readable size
    """
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:  # noqa: PLR2004
        value /= 1024
        unit += 1
    return f"{value:.2f} {SIZE_UNITS[unit]}"
