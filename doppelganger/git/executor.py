"""
Git Executor — Thin wrapper around the system git binary.

Every operation runs ``git`` with a fixed argument list in a given working
directory. Failures are logged with full stderr and re-raised as a
``GitError`` with a sanitized message; read-only probes degrade to a
default value instead of failing.

A running subprocess is polled so that a fired ``Cancellation`` kills it.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

from ..cancellation import Cancellation, is_cancelled
from ..errors import CancelledError, ConfigError, ExecError, ExecExit, ExecSpawn, GitError
from ..models.repository import DEFAULT_MASTER, Commit

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# Matches `git log --date=format:%FT%T%z`, e.g. 2016-04-23T16:12:39+0000
GIT_DATE_LAYOUT = "%Y-%m-%dT%H:%M:%S%z"

GIT_PRETTY_FORMAT = "%H\n%an\n%cn\n%cd\n%s"
GIT_DATE_FORMAT = "format:%FT%T%z"
GIT_PRETTY_FIELDS = GIT_PRETTY_FORMAT.count("\n") + 1

HEADS_PREFIX = "refs/heads/"

POLL_INTERVAL = 0.2


class GitExecutor:
    """
    Owned handle on the git binary.

    The binary path is resolved once at construction; a missing binary
    is a startup error. When ``ssh_key`` is set, git over SSH offers only
    that identity, the same key the private-access page hands out.
    """

    def __init__(self, binary: Optional[str] = None, ssh_key: Optional[PathLike] = None):
        resolved = binary or shutil.which("git")
        if not resolved:
            raise ConfigError("git is not found in PATH")
        self.binary = resolved
        self.ssh_key = Path(ssh_key) if ssh_key else None

    def _env(self) -> Dict[str, str]:
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        if self.ssh_key is not None:
            env["GIT_SSH_COMMAND"] = f"ssh -i {shlex.quote(str(self.ssh_key))} -o IdentitiesOnly=yes"
        return env

    def exec(
        self,
        path: PathLike,
        *args: str,
        cancel: Optional[Cancellation] = None,
    ) -> str:
        """
        Run ``git <args>`` in ``path`` and return its stripped stdout.

        Raises:
            ExecExit: git returned a non-zero status (stderr attached)
            ExecSpawn: git could not be started
            CancelledError: the token fired while git was running
        """
        if is_cancelled(cancel):
            raise CancelledError()

        cmd = [self.binary, *args]
        env = self._env()
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(path),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                env=env,
            )
        except OSError as e:
            raise ExecSpawn(f"failed to start {' '.join(cmd)}: {e}") from e

        while True:
            try:
                stdout, stderr = proc.communicate(timeout=POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if is_cancelled(cancel):
                    proc.kill()
                    proc.communicate()
                    logger.warning(f"[git] killed `git {' '.join(args)}` in {path}: cancelled")
                    raise CancelledError()

        if proc.returncode != 0:
            raise ExecExit(["git", *args], proc.returncode, (stderr or "").strip())

        return (stdout or "").strip()

    # ─── Probes ─────────────────────────────────────────────

    def is_repository(self, path: PathLike, cancel: Optional[Cancellation] = None) -> bool:
        """True iff ``path`` is a directory and git considers it a git dir."""
        try:
            if not Path(path).is_dir():
                return False
        except OSError as e:
            logger.warning(f"[git] failed to stat {path} ({e})")
            return False

        try:
            output = self.exec(path, "rev-parse", "--is-inside-git-dir", cancel=cancel)
        except ExecSpawn as e:
            logger.warning(f"[git] rev-parse --is-inside-git-dir failed for {path} ({e})")
            return False
        except ExecExit:
            return False

        if output == "true":
            return True
        if output != "false":
            logger.warning(
                f"[git] rev-parse --is-inside-git-dir returned unexpected output for {path}: {output!r}"
            )
        return False

    def current_branch(self, path: PathLike, cancel: Optional[Cancellation] = None) -> str:
        """Name of the branch HEAD points at, or the default branch name."""
        try:
            ref_name = self.exec(path, "symbolic-ref", "HEAD", cancel=cancel)
        except ExecError as e:
            logger.warning(f"[git] symbolic-ref HEAD failed for {path} ({e})")
            return DEFAULT_MASTER

        if not ref_name.startswith(HEADS_PREFIX):
            logger.warning(f"[git] unexpected reference name for {path} ({ref_name!r})")
            return DEFAULT_MASTER

        return ref_name[len(HEADS_PREFIX):]

    def last_commit(self, path: PathLike, cancel: Optional[Cancellation] = None) -> Optional[Commit]:
        """
        Latest commit on HEAD.

        Returns None when git fails or prints something unparseable: a
        missing commit is not an error for callers.
        """
        try:
            output = self.exec(
                path,
                "log", "-n", "1",
                f"--pretty={GIT_PRETTY_FORMAT}",
                f"--date={GIT_DATE_FORMAT}",
                cancel=cancel,
            )
        except ExecError as e:
            logger.warning(f"[git] log failed for {path} ({e})")
            return None

        return parse_commit(output, source=str(path))

    # ─── Mutations ──────────────────────────────────────────

    def clone_mirror(
        self,
        git_url: str,
        dest: PathLike,
        cancel: Optional[Cancellation] = None,
    ) -> None:
        """``git clone --mirror`` into ``dest``, creating its parent directory."""
        self._clone(git_url, Path(dest), mirror=True, cancel=cancel)

    def clone(
        self,
        git_url: str,
        dest: PathLike,
        cancel: Optional[Cancellation] = None,
    ) -> None:
        """Plain ``git clone`` into ``dest`` (working tree checkout)."""
        self._clone(git_url, Path(dest), mirror=False, cancel=cancel)

    def update_remote(self, path: PathLike, cancel: Optional[Cancellation] = None) -> None:
        """``git remote update`` in ``path``."""
        try:
            self.exec(path, "remote", "update", cancel=cancel)
        except ExecError as e:
            logger.warning(f"[git] remote update failed for {path} ({e})")
            raise GitError("update failed") from e

    def _clone(
        self,
        git_url: str,
        dest: Path,
        mirror: bool,
        cancel: Optional[Cancellation],
    ) -> None:
        parent, project_name = dest.parent, dest.name
        sanitized = f"failed to clone {git_url} to {dest}"

        try:
            parent.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"[git] failed to create {parent} ({e})")
            raise GitError(sanitized) from e

        args = ["clone", "--mirror", git_url, project_name] if mirror else ["clone", git_url, project_name]
        try:
            self.exec(parent, *args, cancel=cancel)
        except ExecError as e:
            logger.error(f"[git] git {' '.join(args)} in {parent} failed ({e})")
            raise GitError(sanitized) from e


def parse_commit(output: str, source: str = "") -> Optional[Commit]:
    """Parse the ``GIT_PRETTY_FORMAT`` output of ``git log -n 1``."""
    lines = output.split("\n", GIT_PRETTY_FIELDS - 1)
    if len(lines) < GIT_PRETTY_FIELDS:
        logger.warning(f"[git] unexpected output from git log for {source} ({output!r})")
        return None

    sha, author, committer, date_str, message = lines
    try:
        date = datetime.strptime(date_str, GIT_DATE_LAYOUT)
    except ValueError:
        logger.warning(f"[git] unexpected date format from git log for {source} ({date_str})")
        date = None

    return Commit(sha=sha, author=author, committer=committer, message=message, date=date)
