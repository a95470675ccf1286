"""
Mirror Actions — create, update and track requested from the UI.

``ActionOrchestrator`` turns one user intent into calls across the GitHub
catalog, the local mirror store and the tracking service, then classifies
the result so the HTTP layer only has to render it:

    create:  remote.get → mirrors.create → [tracking] mirrors.get → tracker.track
    update:  mirrors.get → mirrors.update
    track:   mirrors.get → tracker.track

A 404 from GitHub during ``create`` most likely means a private repository
the token (or the server's SSH key) cannot see yet, so instead of an error
the user gets a page with the server's public key to authorize.
"""

from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .cancellation import Cancellation
from .errors import DoppelgangerError, NotFoundError, NotMirroredError
from .git.ssh import SSHKeyStore
from .models.repository import is_valid_full_name
from .services import MirrorService, RepositoryCatalog, TrackingService

logger = logging.getLogger(__name__)

ACTION_CREATE = "create"
ACTION_UPDATE = "update"
ACTION_TRACK = "track"

INTERNAL_ERROR = "Internal server error"
TRACK_FAILED = "Failed to set up push web hook, please check logs for details"


class Outcome(enum.Enum):
    REDIRECT = "redirect"
    PRIVATE_ACCESS = "private_access"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class ActionResult:
    """What the HTTP layer should render for an action."""

    outcome: Outcome
    status: int
    full_name: str = ""
    action: str = ""
    message: str = ""
    location: Optional[str] = None
    back_url: Optional[str] = None
    public_key: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.outcome in (Outcome.REDIRECT, Outcome.PRIVATE_ACCESS)


def _redirect(full_name: str, action: str) -> ActionResult:
    return ActionResult(Outcome.REDIRECT, 303, full_name, action, location=f"/{full_name}")


def _not_mirrored(full_name: str, action: str) -> ActionResult:
    return ActionResult(
        Outcome.NOT_FOUND,
        404,
        full_name,
        action,
        message=f"Repository {full_name} was not mirrored yet",
        back_url=f"/src/{full_name}",
    )


def _error(status: int, message: str, full_name: str = "", action: str = "") -> ActionResult:
    return ActionResult(Outcome.ERROR, status, full_name, action, message=message)


class ActionOrchestrator:
    """
    Composes the three service capabilities.

    ``tracker`` is optional; without it ``track`` answers 501 and ``create``
    skips webhook registration.
    """

    def __init__(
        self,
        remote: RepositoryCatalog,
        mirrors: MirrorService,
        tracker: Optional[TrackingService],
        keys: SSHKeyStore,
    ):
        self.remote = remote
        self.mirrors = mirrors
        self.tracker = tracker
        self.keys = keys

    @property
    def tracking_enabled(self) -> bool:
        return self.tracker is not None

    def execute(
        self,
        action: str,
        full_name: str,
        callback_url: str,
        notrack: bool = False,
        cancel: Optional[Cancellation] = None,
    ) -> ActionResult:
        """
        Run ``action`` against ``full_name``.

        Args:
            action: create, update or track (case-insensitive)
            full_name: owner/name of the repository
            callback_url: where GitHub should deliver push events
            notrack: skip webhook registration after create
            cancel: request-scoped cancellation
        """
        if not full_name:
            return _error(400, "Missing source repository name")
        if not is_valid_full_name(full_name):
            return _error(400, f"Invalid repository name {full_name!r}")

        action = (action or "").lower()
        start = time.monotonic()

        if action == ACTION_CREATE:
            result = self._create(full_name, callback_url, notrack, cancel)
        elif action == ACTION_UPDATE:
            result = self._update(full_name, cancel)
        elif action == ACTION_TRACK:
            result = self._track(full_name, callback_url, cancel)
        else:
            return _error(400, f"Unsupported action {action!r}", full_name, action)

        if result.outcome is Outcome.REDIRECT:
            logger.info(
                f"[action] {action} {full_name} done [{time.monotonic() - start:.2f}s]",
                extra={"repo": full_name, "action": action, "status": result.status},
            )
        return result

    # ─── Actions ────────────────────────────────────────────

    def _create(
        self,
        full_name: str,
        callback_url: str,
        notrack: bool,
        cancel: Optional[Cancellation],
    ) -> ActionResult:
        try:
            repo = self.remote.get(full_name, cancel=cancel)
            self.mirrors.create(repo.full_name, repo.git_url, cancel=cancel)
        except NotFoundError:
            return self._private_access(full_name)
        except (DoppelgangerError, OSError) as e:
            logger.error(f"[action] failed to create mirror {full_name}: {e}")
            return _error(500, INTERNAL_ERROR, full_name, ACTION_CREATE)

        if self.tracking_enabled and not notrack:
            result = self._track(full_name, callback_url, cancel)
            if result.outcome is not Outcome.REDIRECT:
                return result

        return _redirect(full_name, ACTION_CREATE)

    def _update(self, full_name: str, cancel: Optional[Cancellation]) -> ActionResult:
        try:
            repo = self.mirrors.get(full_name, cancel=cancel)
            self.mirrors.update(repo.full_name, cancel=cancel)
        except NotMirroredError:
            return _not_mirrored(full_name, ACTION_UPDATE)
        except (DoppelgangerError, OSError) as e:
            logger.error(f"[action] failed to update mirror {full_name}: {e}")
            return _error(500, INTERNAL_ERROR, full_name, ACTION_UPDATE)

        return _redirect(full_name, ACTION_UPDATE)

    def _track(
        self,
        full_name: str,
        callback_url: str,
        cancel: Optional[Cancellation],
    ) -> ActionResult:
        if self.tracker is None:
            return _error(501, "Tracking changes not supported", full_name, ACTION_TRACK)

        try:
            repo = self.mirrors.get(full_name, cancel=cancel)
            self.tracker.track(repo.full_name, callback_url, cancel=cancel)
        except NotMirroredError:
            return _not_mirrored(full_name, ACTION_TRACK)
        except (DoppelgangerError, OSError) as e:
            logger.error(f"[action] failed to track changes for mirror {full_name}: {e}")
            return _error(500, TRACK_FAILED, full_name, ACTION_TRACK)

        return _redirect(full_name, ACTION_TRACK)

    def _private_access(self, full_name: str) -> ActionResult:
        try:
            public_key = self.keys.public_key()
        except (OSError, ValueError) as e:
            logger.error(f"[action] failed to obtain public key: {e}")
            return _error(500, INTERNAL_ERROR, full_name, ACTION_CREATE)

        return ActionResult(
            Outcome.PRIVATE_ACCESS,
            200,
            full_name,
            ACTION_CREATE,
            public_key=public_key,
        )
