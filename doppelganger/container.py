"""
Service Container — Builds and holds the long-lived services.

Built once at startup from ``Settings`` and handed to the Flask app; tests
build one from stubs instead.

Dependency graph (→ means "uses"):
  actions  → github, mirrors, tracker, keys
  webhooks → mirrors
  archives → mirrors
  mirrors  → git
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .actions import ActionOrchestrator
from .archive import ArchiveExporter
from .config import Settings
from .git.executor import GitExecutor
from .git.github import GitHubRepositories
from .git.mirrors import MirroredRepositories
from .git.ssh import SSHKeyStore
from .services import RepositoryCatalog, TrackingService
from .webhook import WebhookDispatcher

logger = logging.getLogger(__name__)


@dataclass
class Services:
    settings: Settings
    github: RepositoryCatalog
    mirrors: MirroredRepositories
    tracker: Optional[TrackingService]
    keys: SSHKeyStore
    actions: ActionOrchestrator
    webhooks: WebhookDispatcher
    archives: ArchiveExporter

    @classmethod
    def build(
        cls,
        settings: Settings,
        github: RepositoryCatalog,
        mirrors: MirroredRepositories,
        tracker: Optional[TrackingService] = None,
        keys: Optional[SSHKeyStore] = None,
    ) -> "Services":
        keys = keys or SSHKeyStore(settings.private_key_path)
        return cls(
            settings=settings,
            github=github,
            mirrors=mirrors,
            tracker=tracker,
            keys=keys,
            actions=ActionOrchestrator(github, mirrors, tracker, keys),
            webhooks=WebhookDispatcher(mirrors),
            archives=ArchiveExporter(mirrors),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Services":
        """
        Wire the production services.

        Raises ConfigError when the token is empty or git is missing.
        """
        github = GitHubRepositories(settings.github_token, api_url=settings.github_api_url)
        git = GitExecutor(ssh_key=settings.private_key_path)
        mirrors = MirroredRepositories(settings.mirror_dir, git)
        tracker = github if settings.tracking_enabled else None

        logger.info(
            f"Services ready (git={git.binary}, mirrors={settings.mirror_dir}, "
            f"tracking={'on' if tracker else 'off'})"
        )
        return cls.build(settings, github, mirrors, tracker)
