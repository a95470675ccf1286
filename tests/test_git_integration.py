"""
End-to-end checks against the real git binary.

Builds a small upstream repository in a temp dir, mirrors it through the
store and reads it back. Skipped when git is not installed.
"""

from __future__ import annotations

import io
import shutil
import tarfile
from pathlib import Path

import pytest

from doppelganger.archive import ArchiveExporter
from doppelganger.errors import NotMirroredError
from doppelganger.git.executor import GitExecutor
from doppelganger.git.mirrors import MirroredRepositories

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

IDENTITY = ("-c", "user.name=Jon Doe", "-c", "user.email=jon@example.com", "-c", "commit.gpgsign=false")


@pytest.fixture
def git():
    return GitExecutor()


@pytest.fixture
def upstream(tmp_path, git) -> Path:
    """A work tree on branch ``trunk`` with a single commit."""
    src = tmp_path / "upstream"
    src.mkdir()
    git.exec(src, "init", "-q")
    git.exec(src, "symbolic-ref", "HEAD", "refs/heads/trunk")
    (src / "README.md").write_text("# hello\n")
    git.exec(src, "add", "README.md")
    git.exec(src, *IDENTITY, "commit", "-q", "-m", "HI MOM")
    return src


@pytest.fixture
def store(tmp_path, git) -> MirroredRepositories:
    return MirroredRepositories(tmp_path / "mirrors", git)


class TestMirrorRoundTrip:

    def test_work_tree_is_not_a_mirror(self, git, upstream):
        assert git.is_repository(upstream) is False

    def test_create_then_get(self, store, upstream):
        store.create("octo/hello", str(upstream))

        repo = store.get("octo/hello")

        assert repo.full_name == "octo/hello"
        assert repo.master == "trunk"
        assert repo.latest_master_commit.message == "HI MOM"
        assert repo.latest_master_commit.author == "Jon Doe"
        assert repo.latest_master_commit.date is not None

    def test_all_lists_mirror(self, store, upstream):
        store.create("octo/hello", str(upstream))
        assert [r.full_name for r in store.all()] == ["octo/hello"]

    def test_update_picks_up_new_commits(self, git, store, upstream):
        store.create("octo/hello", str(upstream))
        (upstream / "NEWS").write_text("news\n")
        git.exec(upstream, "add", "NEWS")
        git.exec(upstream, *IDENTITY, "commit", "-q", "-m", "second")

        store.update("octo/hello")

        assert store.get("octo/hello").latest_master_commit.message == "second"

    def test_get_unknown(self, store):
        with pytest.raises(NotMirroredError):
            store.get("octo/missing")


class TestArchiveFromMirror:

    def test_tarball_contains_checkout(self, tmp_path, store, upstream):
        store.create("octo/hello", str(upstream))
        exporter = ArchiveExporter(store, tmp_dir=tmp_path)

        stream = exporter.export("octo/hello")
        data = b"".join(stream)

        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as tar:
            names = tar.getnames()
            readme = tar.extractfile("hello/README.md").read()

        assert "hello" in names
        assert readme == b"# hello\n"
        assert not stream.workdir.exists()
