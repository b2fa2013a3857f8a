from __future__ import annotations

from typing import TYPE_CHECKING

from gitsnap.logging import logger

if TYPE_CHECKING:
    from gitsnap.config import SnapshotResult


def render_summary(result: SnapshotResult) -> str:
    """Render the end-of-run summary shown to the user.

    Every skip reason is listed, even when its count is zero.

    Args:
        result (SnapshotResult): the finished run

    Returns:
        str: a three line summary
    """
    reasons = ", ".join(f"{reason}={count}" for reason, count in result.skipped_by_reason.items())
    return "\n".join(
        [
            f"Output saved to: {result.output}",
            f"Included: {result.included} files ({result.bytes_written} bytes written)",
            f"Skipped: {result.skipped_count} files ({reasons})",
        ],
    )


def log_summary(result: SnapshotResult) -> None:
    """Emit the run summary as a single structured INFO event."""
    logger.info(
        "snapshot_summary",
        output=str(result.output),
        included=result.included,
        skipped=result.skipped_count,
        bytes_written=result.bytes_written,
        **{f"skipped_{reason.name.lower()}": count for reason, count in result.skipped_by_reason.items()},
    )
