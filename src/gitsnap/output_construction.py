from __future__ import annotations

import json
import os
import re
from typing import IO, TYPE_CHECKING

from gitsnap.exceptions import WriteError
from gitsnap.file_manipulation import format_file_size

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from gitsnap.config import FileEntry

SEPARATOR = "=" * 80
ENCODING = "utf-8"

_SEP = re.escape(SEPARATOR).encode(ENCODING)
_SECTION_RE = re.compile(
    rb"\n" + _SEP + rb"\nFile: (?P<rel>[^\n]*)\nSize: [^\n]*\((?P<length>\d+) bytes\)\n" + _SEP + rb"\n\n",
)
# Names that would break the one-line `File:` field, or read as already quoted.
_NEEDS_QUOTING_RE = re.compile(r'[\x00-\x1f\x7f]|^"')


def quote_rel(rel: str) -> str:
    """Render a relative path for the `File:` line, JSON-quoted when it holds control characters."""
    return json.dumps(rel, ensure_ascii=False) if _NEEDS_QUOTING_RE.search(rel) else rel


def unquote_rel(value: str) -> str:
    return json.loads(value) if value.startswith('"') else value


def section_header(entry: FileEntry, text: str) -> str:
    """Build the delimiter written before a file's content.

    The `Size:` line carries the exact UTF-8 length of `text`, which is what lets
    `split_snapshot` cut sections without searching for the next header.

    Args:
        entry (FileEntry): the included entry
        text (str): the content that follows the header

    Returns:
        str: the header block, ending with a blank line
    """
    length = len(text.encode(ENCODING))
    return (
        f"\n{SEPARATOR}\nFile: {quote_rel(entry.rel)}\n"
        f"Size: {format_file_size(length)} ({length} bytes)\n{SEPARATOR}\n\n"
    )


def split_snapshot(data: str | bytes) -> list[tuple[str, str]]:
    """Split a snapshot back into `(relative path, content)` pairs.

    Each header announces the byte length of its content, so content that happens
    to look like a header is never mistaken for one.

    Args:
        data (str | bytes): the full snapshot, as text or raw bytes

    Raises:
        ValueError: if a header is malformed or a section is truncated.

    Returns:
        list[tuple[str, str]]: one pair per section, in artifact order
    """
    raw = data.encode(ENCODING) if isinstance(data, str) else data
    sections: list[tuple[str, str]] = []
    pos = 0
    while pos < len(raw):
        m = _SECTION_RE.match(raw, pos)
        if m is None:
            msg = f"malformed section header at byte {pos}"
            raise ValueError(msg)
        end = m.end() + int(m["length"])
        if end > len(raw):
            msg = f"truncated section at byte {m.end()}"
            raise ValueError(msg)
        sections.append((unquote_rel(m["rel"].decode(ENCODING)), raw[m.end() : end].decode(ENCODING)))
        pos = end
    return sections


class SnapshotWriter:
    """Append-only writer for the snapshot artifact.

    Content goes to `<output>.part` and is moved onto `output` only when the `with`
    block exits cleanly. On any error the partial file is deleted, so a file at
    `output` is always a complete snapshot.

    Example:
        with SnapshotWriter(Path("repo.txt")) as writer:
            writer.write_section(entry, text)
    """

    def __init__(self, output: Path) -> None:
        self.output = output
        self.partial = output.with_name(f"{output.name}.part")
        self.bytes_written = 0
        self.sections = 0
        self._handle: IO[str] | None = None

    def _error(self, err: OSError) -> WriteError:
        return WriteError(path=self.output, message=err.strerror or str(err))

    def __enter__(self) -> SnapshotWriter:
        try:
            self._handle = self.partial.open("w", encoding=ENCODING, newline="")
        except OSError as e:
            raise self._error(e) from e
        return self

    def write_section(self, entry: FileEntry, text: str) -> int:
        """Append one file section.

        Args:
            entry (FileEntry): the included entry
            text (str): its decoded content

        Raises:
            WriteError: if the writer is not open or the write fails.

        Returns:
            int: number of bytes appended, header included
        """
        if self._handle is None:
            raise WriteError(path=self.output, message="writer is not open")
        chunk = section_header(entry, text) + text
        try:
            self._handle.write(chunk)
        except OSError as e:
            raise self._error(e) from e
        written = len(chunk.encode(ENCODING))
        self.bytes_written += written
        self.sections += 1
        return written

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.close()
        except OSError as e:
            self.partial.unlink(missing_ok=True)
            if exc is None:
                raise self._error(e) from e
            return
        if exc_type is not None:
            self.partial.unlink(missing_ok=True)
            return
        try:
            os.replace(self.partial, self.output)
        except OSError as e:
            self.partial.unlink(missing_ok=True)
            raise self._error(e) from e
