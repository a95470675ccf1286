"""
Service Contracts — Capabilities composed by the HTTP surface.

Three independent protocols instead of a class hierarchy:

- ``RepositoryCatalog``: list and look up repositories (GitHub or mirrors)
- ``MirrorService``: create and refresh local mirrors
- ``TrackingService``: register a push callback on the upstream

``GitHubRepositories`` satisfies the catalog and tracking contracts,
``MirroredRepositories`` the catalog and mirror contracts.
"""

from __future__ import annotations

from typing import List, Optional, Protocol

from .cancellation import Cancellation
from .models.repository import Repository


class RepositoryCatalog(Protocol):
    def all(self, cancel: Optional[Cancellation] = None) -> List[Repository]:
        ...

    def get(self, full_name: str, cancel: Optional[Cancellation] = None) -> Repository:
        ...


class MirrorService(Protocol):
    def get(self, full_name: str, cancel: Optional[Cancellation] = None) -> Repository:
        ...

    def create(self, full_name: str, git_url: str, cancel: Optional[Cancellation] = None) -> None:
        ...

    def update(self, full_name: str, cancel: Optional[Cancellation] = None) -> None:
        ...


class TrackingService(Protocol):
    def track(self, full_name: str, callback_url: str, cancel: Optional[Cancellation] = None) -> None:
        ...
