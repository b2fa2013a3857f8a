"""gitsnap: turn a GitHub repository into one readable text file.

Overview
--------
The repository is shallow-cloned into a temporary directory, every file is walked
in a stable order and text files below a size threshold are appended to a single
output file, each under a header naming its path:

    ================================================================================
    File: src/main.py
    Size: 1.21 KB (1239 bytes)
    ================================================================================

    <content>

Files above the threshold, binary files and unreadable entries are skipped and
counted in the summary. `--include-all` lifts the size threshold; binary files are
still skipped.

Usage
-----
    gitsnap user/repo
    gitsnap https://github.com/user/repo -o snapshot.txt -t 0.5
    gitsnap user/repo --include-all --debug --log-file gitsnap.log
"""

from __future__ import annotations

import argparse
import math
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from gitsnap import __version__
from gitsnap.exceptions import ArgumentError, GitSnapError
from gitsnap.logging import logger, setup_logging
from gitsnap.reporting import log_summary, render_summary
from gitsnap.repository import fetch_repository
from gitsnap.settings import DEFAULT_THRESHOLD_MB, Settings, env_default
from gitsnap.snapshot import build_snapshot

if TYPE_CHECKING:
    from collections.abc import Sequence


def threshold_mb(value: str) -> float:
    """Parse a `--threshold` value.

    Args:
        value (str): the raw command line value

    Raises:
        argparse.ArgumentTypeError: if the value is not a finite, non-negative number.

    Returns:
        float: the threshold in megabytes
    """
    try:
        mb = float(value)
    except ValueError as e:
        msg = f"invalid threshold value {value!r}, please provide a number"
        raise argparse.ArgumentTypeError(msg) from e
    if not math.isfinite(mb) or mb < 0:
        msg = f"threshold must be a non-negative number, got {value!r}"
        raise argparse.ArgumentTypeError(msg)
    return mb


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the `gitsnap` command.

    Returns:
        argparse.ArgumentParser: the configured parser
    """
    p = argparse.ArgumentParser(
        prog="gitsnap",
        description="Convert a GitHub repository into a single readable text file.",
    )
    p.add_argument(
        "repository",
        help="GitHub repository URL or user/repo format (e.g. 'user/repo' or 'https://github.com/user/repo').",
    )
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        metavar="FILE",
        help="Output file path (defaults to <repo_name>.txt).",
    )
    p.add_argument(
        "-t",
        "--threshold",
        type=threshold_mb,
        default=env_default("GITSNAP_THRESHOLD", str(DEFAULT_THRESHOLD_MB)),
        metavar="MB",
        help="File size threshold in MB (default: 0.1). Larger files are skipped unless --include-all is used.",
    )
    p.add_argument(
        "--include-all",
        action="store_true",
        help="Include files regardless of size. Overrides the threshold; binary files are still skipped.",
    )
    p.add_argument("--debug", action="store_true", help="Enable debug mode with verbose logging.")
    p.add_argument(
        "--log-file",
        type=str,
        default=env_default("GITSNAP_LOG_FILE", ""),
        help="Log file path (defaults to stderr).",
    )
    p.add_argument(
        "--exclude-dir",
        action="append",
        default=[],
        metavar="NAME",
        help="Directory name or relative path to skip (repeatable).",
    )
    p.add_argument(
        "--git",
        type=str,
        default=env_default("GITSNAP_GIT", "git"),
        help="git executable used to clone the repository.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse command line arguments into validated settings.

    Invalid input ends the process with a usage message and exit status 2.

    Args:
        argv (Sequence[str] | None): arguments, without the program name. Defaults to `sys.argv[1:]`.

    Returns:
        Settings: the resolved settings
    """
    p = build_parser()
    args = p.parse_args(argv)
    try:
        return Settings(**vars(args))
    except ArgumentError as e:
        p.error(str(e))
    except ValidationError as e:
        p.error("; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors()))


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    setup_logging(settings.log_file or None, debug=settings.debug)
    logger.debug("debug_mode_enabled", repository=settings.repository, output=str(settings.output_path))

    try:
        started = time.perf_counter()
        with fetch_repository(settings.repository, git=settings.git) as root:
            logger.debug("phase_timing", phase="fetch", seconds=round(time.perf_counter() - started, 3))
            started = time.perf_counter()
            # Includes the write phase, which build_snapshot also times on its own.
            result = build_snapshot(root, settings)
            logger.debug("phase_timing", phase="process", seconds=round(time.perf_counter() - started, 3))
    except GitSnapError as e:
        logger.error("snapshot_failed", error=str(e), error_type=type(e).__name__)  # noqa: TRY400
        print(f"Error: {e}", file=sys.stderr)
        return 1

    log_summary(result)
    print(render_summary(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
