"""
Mirrored Repositories — The on-disk tree of bare mirrors.

Each mirror lives at ``<mirror_root>/<owner>/<name>``. All state is derived
from the repositories themselves on every call; there are no sidecar
files. Git work is delegated to a ``GitExecutor``.

## Usage

    store = MirroredRepositories(Path("/srv/mirrors"), GitExecutor())
    store.create("octocat/hello", "git://github.com/octocat/hello.git")
    store.update("octocat/hello")
    repo = store.get("octocat/hello")
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import List, Optional

from ..cancellation import Cancellation
from ..errors import GitError, NotMirroredError
from ..models.repository import Repository
from .executor import GitExecutor

logger = logging.getLogger(__name__)


class MirroredRepositories:
    """
    Manages bare mirrors under a single root directory.

    No locking: concurrent ``update`` calls on one mirror are safe at the
    git level; concurrent ``create`` calls for one name are not supported.
    """

    def __init__(self, mirror_root: Path, git: GitExecutor):
        self.mirror_root = Path(mirror_root)
        self.git = git

    def path_for(self, full_name: str) -> Path:
        return self.mirror_root / full_name

    # ─── Lookup ─────────────────────────────────────────────

    def all(self, cancel: Optional[Cancellation] = None) -> List[Repository]:
        """Every mirror under the root, depth-first. Mirrors are leaves."""
        if not self.mirror_root.is_dir():
            logger.warning(f"[mirrors] mirror root {self.mirror_root} does not exist")
            return []
        return self._find_repositories(self.mirror_root, cancel)

    def get(self, full_name: str, cancel: Optional[Cancellation] = None) -> Repository:
        path = self.path_for(full_name)
        if not self.git.is_repository(path, cancel=cancel):
            raise NotMirroredError()

        repo = self._repository_from_dir(full_name, path, cancel)
        repo.latest_master_commit = self.git.last_commit(path, cancel=cancel)
        return repo

    # ─── Mutations ──────────────────────────────────────────

    def create(self, full_name: str, git_url: str, cancel: Optional[Cancellation] = None) -> None:
        """
        Mirror ``git_url`` as ``full_name``.

        Whatever already sits at the destination (a stale mirror, or the
        remains of a cancelled clone) is removed first.
        """
        path = self.path_for(full_name)
        if path.exists() or path.is_symlink():
            logger.info(f"[mirrors] removing existing {path} before cloning {full_name}")
            try:
                if path.is_dir() and not path.is_symlink():
                    shutil.rmtree(path)
                else:
                    path.unlink()
            except OSError as e:
                logger.error(f"[mirrors] failed to remove {path} ({e})")
                raise GitError(f"failed to clone {git_url} to {path}") from e

        self.git.clone_mirror(git_url, path, cancel=cancel)
        logger.info(f"[mirrors] mirrored {full_name} into {path}")

    def update(self, full_name: str, cancel: Optional[Cancellation] = None) -> None:
        self.git.update_remote(self.path_for(full_name), cancel=cancel)

    def clone(self, full_name: str, dest: Path, cancel: Optional[Cancellation] = None) -> None:
        """Check out a working tree of the mirror into ``dest``."""
        path = self.path_for(full_name)
        if not self.git.is_repository(path, cancel=cancel):
            raise NotMirroredError()
        self.git.clone(str(path), dest, cancel=cancel)

    # ─── Internals ──────────────────────────────────────────

    def _repository_from_dir(
        self,
        full_name: str,
        path: Path,
        cancel: Optional[Cancellation],
    ) -> Repository:
        return Repository(
            full_name=full_name,
            master=self.git.current_branch(path, cancel=cancel),
        )

    def _find_repositories(
        self,
        path: Path,
        cancel: Optional[Cancellation],
    ) -> List[Repository]:
        if self.git.is_repository(path, cancel=cancel):
            full_name = path.relative_to(self.mirror_root).as_posix()
            return [self._repository_from_dir(full_name, path, cancel)]

        repos: List[Repository] = []
        for entry in sorted(path.iterdir()):
            if not entry.is_dir() or entry.is_symlink():
                continue
            repos.extend(self._find_repositories(entry, cancel))
        return repos
