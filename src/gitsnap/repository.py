from __future__ import annotations

import contextlib
import os
import re
import shutil
import subprocess  # noqa: S404
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from gitsnap.exceptions import FetchError, GitCommandError, InvalidRepositoryError
from gitsnap.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterator

GITHUB_SHORT_URL_REGEX = re.compile(r"^[\w.-]+/[\w.-]+$")
GITHUB_URL_PREFIXES = ("https://github.com/", "git@github.com:")

CLONE_FAILURE_HINTS = (
    "the repository exists and is public",
    "the repository URL is correct",
    "GitHub is accessible from your network",
    "git is installed and accessible from the command line",
)


def normalize_github_url(url: str) -> str:
    """Turn a repository identifier into a clonable GitHub URL.

    Full `https://github.com/...` and `git@github.com:...` URLs are kept as they are;
    `user/repo` shorthand is expanded to an https URL.

    Args:
        url (str): the identifier given on the command line

    Raises:
        InvalidRepositoryError: if the identifier matches none of the accepted forms.

    Returns:
        str: the normalized URL, without trailing slashes
    """
    url = url.strip().rstrip("/")
    if url.startswith(GITHUB_URL_PREFIXES) and url not in GITHUB_URL_PREFIXES:
        return url
    if GITHUB_SHORT_URL_REGEX.match(url):
        return f"https://github.com/{url}"
    raise InvalidRepositoryError(url=url)


def repo_name_from_url(url: str) -> str:
    """Return the repository name, i.e. the last URL segment without `.git`."""
    name = url.rstrip("/").split("/")[-1].split(":")[-1].removesuffix(".git")
    return name or "repo"


def clone_repository(url: str, dest: Path, *, git: str = "git") -> None:
    """Shallow-clone `url` into `dest`.

    Args:
        url (str): normalized repository URL
        dest (Path): target directory; must not exist yet
        git (str): git executable to run

    Raises:
        FetchError: if git is not available.
        GitCommandError: if `git clone` exits with a non-zero status.
    """
    if shutil.which(git) is None:
        raise FetchError(url=url, message=f"git executable not found: {git!r}")

    command = [git, "clone", "--depth", "1", "--quiet", url, str(dest)]
    logger.debug("git_clone", command=" ".join(command))
    # No credential prompt: private repositories fail instead of blocking the run.
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    out = subprocess.run(  # noqa: S603
        command,
        text=True,
        capture_output=True,
        check=False,
        env=env,
    )
    if out.returncode != 0:
        hints = "; ".join(CLONE_FAILURE_HINTS)
        raise GitCommandError(
            url=url,
            message=f"Failed to clone repository: {out.stderr.strip()} (please check that {hints})",
            command=" ".join(command),
            returncode=out.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
        )


@contextlib.contextmanager
def fetch_repository(url: str, *, git: str = "git") -> Iterator[Path]:
    """Download a repository into a temporary directory.

    The temporary directory is removed when the context exits, whether or not the
    body raised.

    Args:
        url (str): normalized repository URL
        git (str): git executable to run

    Raises:
        FetchError: if the clone fails or yields an empty directory.

    Yields:
        Path: the root of the cloned working tree
    """
    with tempfile.TemporaryDirectory(prefix="gitsnap-") as tmp:
        dest = Path(tmp) / repo_name_from_url(url)
        clone_repository(url, dest, git=git)
        if not dest.is_dir() or not any(dest.iterdir()):
            raise FetchError(url=url, message="Repository appears to be empty")
        logger.debug("repository_downloaded", url=url, path=str(dest))
        yield dest
        logger.debug("cleaning_up", path=tmp)
