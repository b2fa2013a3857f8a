from __future__ import annotations

import time
from typing import TYPE_CHECKING

from gitsnap.config import SkippedEntry, SnapshotResult
from gitsnap.file_manipulation import classify_entry, walk_entries
from gitsnap.logging import logger
from gitsnap.output_construction import SnapshotWriter

if TYPE_CHECKING:
    from pathlib import Path

    from gitsnap.config import FileEntry
    from gitsnap.settings import Settings


def log_decision(entry: FileEntry) -> None:
    """Emit one DEBUG event describing an inclusion decision."""
    logger.debug(
        "file_included" if entry.included else "file_skipped",
        path=entry.rel,
        size=entry.size,
        kind=str(entry.kind),
        included=entry.included,
        reason=str(entry.skip_reason) if entry.skip_reason else None,
        detail=entry.detail,
    )


def build_snapshot(root: Path, settings: Settings, *, output: Path | None = None) -> SnapshotResult:
    """Serialize the text files under `root` into a single snapshot file.

    Files are walked in a stable order, classified one at a time and appended to the
    artifact in that same order. Per-file problems become skip decisions; only write
    failures abort the run.

    Args:
        root (Path): the checked out repository
        settings (Settings): threshold, include_all and exclusion options
        output (Path | None): artifact path; defaults to `settings.output_path`

    Raises:
        WriteError: if the artifact cannot be written. No file is left at `output`.

    Returns:
        SnapshotResult: counts, skip decisions and the artifact path
    """
    out = output if output is not None else settings.output_path
    skipped: list[SkippedEntry] = []
    write_seconds = 0.0

    with SnapshotWriter(out) as writer:
        for candidate in walk_entries(root, exclude_dirs=settings.exclude_dir):
            entry, text = classify_entry(candidate, settings)
            log_decision(entry)
            if text is None:
                skipped.append(SkippedEntry(rel=entry.rel, reason=entry.skip_reason, detail=entry.detail))
                continue
            started = time.perf_counter()
            writer.write_section(entry, text)
            write_seconds += time.perf_counter() - started
        started = time.perf_counter()  # closing flushes and renames the artifact
    write_seconds += time.perf_counter() - started
    logger.debug("phase_timing", phase="write", seconds=round(write_seconds, 3))

    if writer.sections == 0:
        logger.warning("no_files_processed", root=str(root))

    return SnapshotResult(
        output=out,
        included=writer.sections,
        bytes_written=writer.bytes_written,
        skipped=tuple(skipped),
    )
