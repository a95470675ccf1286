"""
Shared fixtures for service and route tests.

Provides in-memory stand-ins for the GitHub catalog, the mirror store and
the tracker, plus a Flask test app wired to them through the service
container, so routes can be exercised without git or the network.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from doppelganger.config import Settings
from doppelganger.errors import NotFoundError, NotMirroredError
from doppelganger.models.repository import Commit, Repository


class StubCatalog:
    """GitHub-like catalog backed by a dict."""

    def __init__(self, repos: Optional[Dict[str, Repository]] = None):
        self.repos = repos or {}
        self.error: Optional[Exception] = None

    def all(self, cancel=None) -> List[Repository]:
        if self.error:
            raise self.error
        return list(self.repos.values())

    def get(self, full_name, cancel=None) -> Repository:
        if self.error:
            raise self.error
        if full_name not in self.repos:
            raise NotFoundError()
        return self.repos[full_name].model_copy()


class StubMirrors:
    """Mirror store that records calls instead of running git."""

    def __init__(self, repos: Optional[Dict[str, Repository]] = None):
        self.repos = repos or {}
        self.created: List[tuple] = []
        self.updated: List[str] = []
        self.update_error: Optional[Exception] = None
        self.files: Dict[str, bytes] = {"README.md": b"# hello\n", "src/main.py": b"print('hi')\n"}

    def all(self, cancel=None) -> List[Repository]:
        return list(self.repos.values())

    def get(self, full_name, cancel=None) -> Repository:
        if full_name not in self.repos:
            raise NotMirroredError()
        return self.repos[full_name].model_copy()

    def create(self, full_name, git_url, cancel=None) -> None:
        self.created.append((full_name, git_url))
        self.repos[full_name] = Repository(full_name=full_name)

    def update(self, full_name, cancel=None) -> None:
        if self.update_error:
            raise self.update_error
        self.updated.append(full_name)

    def clone(self, full_name, dest: Path, cancel=None) -> None:
        if full_name not in self.repos:
            raise NotMirroredError()
        for name, content in self.files.items():
            path = Path(dest) / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)


class StubTracker:
    def __init__(self):
        self.calls: List[tuple] = []
        self.error: Optional[Exception] = None

    def track(self, full_name, callback_url, cancel=None) -> None:
        if self.error:
            raise self.error
        self.calls.append((full_name, callback_url))


class StubKeys:
    PUBLIC_KEY = "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQ doppelganger\n"

    def __init__(self):
        self.error: Optional[Exception] = None

    def public_key(self) -> str:
        if self.error:
            raise self.error
        return self.PUBLIC_KEY


COMMIT = Commit(
    sha="abc123def4567890",
    message="HI MOM",
    author="Jon Doe",
    committer="Jon Doe",
    date=datetime(2016, 4, 23, 16, 12, 39, tzinfo=timezone.utc),
)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        github_token="secret",
        mirror_dir=tmp_path / "mirrors",
        private_key_path=tmp_path / "ssh" / "id_rsa",
    )


@pytest.fixture
def github() -> StubCatalog:
    return StubCatalog({
        "octo/hello": Repository(
            full_name="octo/hello",
            description="Hello world",
            master="main",
            html_url="https://github.com/octo/hello",
            git_url="git://github.com/octo/hello.git",
            latest_master_commit=COMMIT,
        ),
    })


@pytest.fixture
def mirrors() -> StubMirrors:
    return StubMirrors({
        "octo/hello": Repository(
            full_name="octo/hello",
            master="main",
            latest_master_commit=COMMIT,
        ),
    })


@pytest.fixture
def tracker() -> StubTracker:
    return StubTracker()


@pytest.fixture
def keys() -> StubKeys:
    return StubKeys()


@pytest.fixture
def services(settings, github, mirrors, tracker, keys):
    from doppelganger.container import Services

    return Services.build(settings, github, mirrors, tracker=tracker, keys=keys)


@pytest.fixture
def app(services):
    """Create a Flask test app around the stub services."""
    pytest.importorskip("flask")
    from doppelganger.admin.server import create_app

    app = create_app(services)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
