"""
Git working copies -- clone, write, commit, push.

Drives the ``git`` binary through subprocess. The token never lands on
the command line or in ``.git/config``: it is handed to git as an
``http.extraheader`` through the ``GIT_CONFIG_*`` environment.
"""

from __future__ import annotations

import base64
import logging
import os
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .errors import CloneError, CommitError, PushError, WorkingCopyError

logger = logging.getLogger("ghm.git")

AUTHOR_NAME = "ghm"
AUTHOR_EMAIL = "ghm@example.com"
COMMIT_MESSAGE = "Add GitHub Actions workflow"
WORKFLOWS_DIR = Path(".github") / "workflows"

_UP_TO_DATE_MARKERS = ("up-to-date", "up to date")


def _auth_env(token: Optional[str]) -> dict[str, str]:
    env = os.environ.copy()
    env["GIT_TERMINAL_PROMPT"] = "0"
    if token:
        basic = base64.b64encode(f"x-access-token:{token}".encode()).decode("ascii")
        env["GIT_CONFIG_COUNT"] = "1"
        env["GIT_CONFIG_KEY_0"] = "http.extraheader"
        env["GIT_CONFIG_VALUE_0"] = f"AUTHORIZATION: basic {basic}"
    return env


def _run_git(
    args: list[str],
    error_cls: type[WorkingCopyError],
    cwd: Optional[Path] = None,
    token: Optional[str] = None,
    timeout: Optional[float] = None,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """Run one git command, raising ``error_cls`` on failure."""
    cmd = ["git", *args]
    try:
        result = subprocess.run(
            cmd, capture_output=True, text=True, check=False,
            cwd=str(cwd) if cwd else None, env=_auth_env(token), timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise error_cls(f"git {args[0]} timed out after {timeout}s") from exc
    except OSError as exc:
        raise error_cls(f"git {args[0]} could not run: {exc}") from exc

    if check and result.returncode != 0:
        logger.error("Git command failed: %s -> %s", " ".join(cmd), result.stderr.strip())
        raise error_cls(
            f"git {args[0]} failed: {result.stderr.strip() or result.stdout.strip()}"
        ) from subprocess.CalledProcessError(
            result.returncode, cmd, result.stdout, result.stderr,
        )
    return result


class GitWorkingCopy:
    """A local checkout that workflow files are committed into.

    Args:
        path: Root of the working copy.
        token: Token sent as HTTP auth on network operations.
        timeout: Seconds before a clone or push is abandoned.
    """

    def __init__(self, path: Path, token: Optional[str] = None, timeout: float = 120.0):
        self.path = Path(path)
        self._token = token
        self.timeout = timeout

    @classmethod
    def clone(
        cls, url: str, dest: Path, token: Optional[str] = None, timeout: float = 120.0,
    ) -> "GitWorkingCopy":
        """Clone ``url`` into ``dest``.

        Raises:
            CloneError: If git is missing or the clone fails.
        """
        if shutil.which("git") is None:
            raise CloneError("git executable not found on PATH")
        logger.info("Cloning %s into %s", url, dest)
        _run_git(["clone", url, str(dest)], CloneError, token=token, timeout=timeout)
        return cls(dest, token=token, timeout=timeout)

    def write_workflow(self, name: str, content: str) -> Path:
        """Write ``.github/workflows/<name>``, overwriting it.

        Returns:
            Path of the file relative to the working copy root.
        """
        relative = WORKFLOWS_DIR / name
        target = self.path / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise WorkingCopyError(f"Failed to write workflow file {target}: {exc}") from exc
        logger.debug("Wrote %s", target)
        return relative

    def commit_file(self, relative: Path, message: str = COMMIT_MESSAGE) -> Optional[str]:
        """Stage exactly ``relative`` and commit it.

        Returns:
            The new commit SHA, or None when the file had no changes.

        Raises:
            CommitError: If staging or committing fails.
        """
        pathspec = relative.as_posix()
        _run_git(["add", "--", pathspec], CommitError, cwd=self.path)

        diff = _run_git(
            ["diff", "--cached", "--quiet", "--", pathspec],
            CommitError, cwd=self.path, check=False,
        )
        if diff.returncode == 0:
            logger.info("No changes to %s, nothing to commit", pathspec)
            return None
        if diff.returncode != 1:
            raise CommitError(f"git diff failed: {diff.stderr.strip()}")

        _run_git(
            [
                "-c", f"user.name={AUTHOR_NAME}",
                "-c", f"user.email={AUTHOR_EMAIL}",
                "-c", "commit.gpgsign=false",
                "commit", "--no-verify", "-m", message, "--", pathspec,
            ],
            CommitError, cwd=self.path,
        )
        sha = _run_git(["rev-parse", "HEAD"], CommitError, cwd=self.path).stdout.strip()
        logger.info("Committed %s as %s", pathspec, sha[:12])
        return sha

    def push(self) -> bool:
        """Push the current branch to ``origin``.

        Returns:
            True if the remote moved, False if it was already up to date.

        Raises:
            PushError: On any other push failure.
        """
        result = _run_git(
            ["push", "origin", "HEAD"], PushError,
            cwd=self.path, token=self._token, timeout=self.timeout, check=False,
        )
        output = f"{result.stdout}\n{result.stderr}".lower()
        up_to_date = "rejected" not in output and any(
            marker in output for marker in _UP_TO_DATE_MARKERS
        )

        if result.returncode != 0 and not up_to_date:
            logger.error("Git push failed in %s: %s", self.path, result.stderr.strip())
            raise PushError(f"git push failed: {result.stderr.strip()}")

        if up_to_date:
            logger.info("Remote already up to date for %s", self.path)
            return False
        logger.info("Pushed %s", self.path)
        return True


def repository_url(base_url: str, owner: str, name: str) -> str:
    """HTTPS clone URL for ``owner/name`` under ``base_url``."""
    return f"{base_url.rstrip('/')}/{owner}/{name}.git"


@contextmanager
def acquire_working_copy(
    owner: str,
    name: str,
    token: Optional[str] = None,
    base_url: str = "https://github.com",
    workdir: Optional[Path] = None,
    timeout: float = 120.0,
) -> Iterator[GitWorkingCopy]:
    """Yield a working copy of ``owner/name``.

    - ``workdir`` itself is named ``name``: use it in place.
    - ``workdir/name`` exists: reuse it without cloning.
    - otherwise: clone into a temporary directory that is removed when
      the context exits, however it exits.

    Raises:
        CloneError: If a clone is needed and fails, or no temporary
            directory can be created for it.
    """
    workdir = Path(workdir or Path.cwd()).resolve()

    if workdir.name == name:
        logger.info("Using current directory %s as working copy", workdir)
        yield GitWorkingCopy(workdir, token=token, timeout=timeout)
        return

    existing = workdir / name
    if existing.exists():
        logger.info("Reusing existing working copy %s", existing)
        yield GitWorkingCopy(existing, token=token, timeout=timeout)
        return

    try:
        scratch = tempfile.TemporaryDirectory(prefix="ghm-repo-")
    except OSError as exc:
        raise CloneError(f"Cannot create a temporary directory for {owner}/{name}: {exc}") from exc

    with scratch as tmp:
        url = repository_url(base_url, owner, name)
        yield GitWorkingCopy.clone(url, Path(tmp) / name, token=token, timeout=timeout)
    logger.debug("Removed temporary clone of %s/%s", owner, name)
