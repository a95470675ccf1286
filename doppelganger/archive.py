"""
Archive Exporter — Download a mirror as a .tar.gz of its working tree.

The mirror is cloned into a throwaway directory, the checkout is walked
depth-first and every entry is written to a streaming gzip'd tar. Chunks
are handed to the response as soon as the tar writer emits them, and the
throwaway directory is removed when the stream is closed, whether it was
fully consumed or not.
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
from pathlib import Path
from typing import Iterator, List, Optional

from .cancellation import Cancellation
from .git.mirrors import MirroredRepositories
from .models.repository import parse_repository_name

logger = logging.getLogger(__name__)


class _ChunkSink:
    """Write-only file object collecting what tarfile emits."""

    def __init__(self):
        self.chunks: List[bytes] = []

    def write(self, data: bytes) -> int:
        if data:
            self.chunks.append(bytes(data))
        return len(data)

    def drain(self) -> List[bytes]:
        chunks, self.chunks = self.chunks, []
        return chunks


class ArchiveStream:
    """
    Iterable of gzip'd tar bytes; ``close()`` removes the checkout.

    The stream is consumed after the request context is gone, so it is not
    bound to the request's cancellation; the server closes it when the
    client disconnects.
    """

    def __init__(self, workdir: Path):
        self.workdir = workdir
        self._closed = False

    def __iter__(self) -> Iterator[bytes]:
        sink = _ChunkSink()
        try:
            with tarfile.open(fileobj=sink, mode="w|gz") as tar:
                for path, arcname in _walk(self.workdir):
                    tar.add(str(path), arcname=arcname, recursive=False)
                    yield from sink.drain()
            yield from sink.drain()
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        shutil.rmtree(self.workdir, ignore_errors=True)
        logger.debug(f"[archive] removed {self.workdir}")


def _walk(root: Path) -> Iterator[tuple]:
    """
    Depth-first, sorted, paths relative to ``root``.

    Symlinks are emitted as entries of their own and never followed, including
    links to directories, which os.walk lists but does not descend into.
    """
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        linked_dirs = [d for d in dirnames if (current / d).is_symlink()]
        dirnames[:] = sorted(d for d in dirnames if d not in linked_dirs)
        if current != root:
            yield current, current.relative_to(root).as_posix()
        for name in sorted(filenames + linked_dirs):
            path = current / name
            yield path, path.relative_to(root).as_posix()


class ArchiveExporter:
    """Produces ``ArchiveStream``s for mirrors in a store."""

    def __init__(self, mirrors: MirroredRepositories, tmp_dir: Optional[Path] = None):
        self.mirrors = mirrors
        self.tmp_dir = tmp_dir

    def export(self, full_name: str, cancel: Optional[Cancellation] = None) -> ArchiveStream:
        """
        Check out ``full_name`` and return a stream over its tarball.

        The checkout happens before this returns, so a missing mirror or a
        failed clone raises here and the caller can still pick a status code.
        """
        _, name = parse_repository_name(full_name)
        workdir = Path(tempfile.mkdtemp(prefix="cloned", dir=self.tmp_dir))
        try:
            self.mirrors.clone(full_name, workdir / name, cancel=cancel)
        except BaseException:
            shutil.rmtree(workdir, ignore_errors=True)
            raise

        logger.info(f"[archive] checked out {full_name} into {workdir}")
        return ArchiveStream(workdir)
