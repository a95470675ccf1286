"""
Webhook Dispatcher — Handle GitHub deliveries sent to /apihook.

## Supported events

- ``ping``: answered with ``PONG``
- ``push``: refresh the matching mirror when the default branch moved

## Payload Format (push, only the fields we read)

{
    "ref": "refs/heads/master",
    "repository": {
        "full_name": "octocat/hello"
    }
}

Deliveries for the same repository are not serialized. Each one runs its
own ``git remote update``; once the last one finishes the mirror matches
what upstream had at that point.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Optional

from .cancellation import Cancellation
from .errors import DoppelgangerError, NotFoundError, NotMirroredError
from .git.executor import HEADS_PREFIX
from .models.repository import is_valid_full_name
from .services import MirrorService

logger = logging.getLogger(__name__)

EVENT_HEADER = "X-GitHub-Event"


@dataclass
class WebhookResult:
    status: int
    body: str
    updated: bool = False


class WebhookDispatcher:
    """Routes a delivery by event type to the mirror store."""

    def __init__(self, mirrors: MirrorService):
        self.mirrors = mirrors

    def dispatch(
        self,
        event: Optional[str],
        payload: bytes,
        cancel: Optional[Cancellation] = None,
    ) -> WebhookResult:
        if event == "ping":
            return WebhookResult(200, "PONG")
        if event == "push":
            return self.handle_push(payload, cancel)
        return WebhookResult(400, f"Unsupported event {event or ''!r}")

    def handle_push(self, payload: bytes, cancel: Optional[Cancellation] = None) -> WebhookResult:
        start = time.monotonic()

        try:
            event = json.loads(payload)
            ref = event.get("ref") or ""
            full_name = (event.get("repository") or {}).get("full_name") or ""
        except (ValueError, AttributeError):
            logger.warning(f"[webhook] failed to parse push event payload {payload[:512]!r}")
            return WebhookResult(400, "Malformed payload")

        if not isinstance(ref, str) or not isinstance(full_name, str) or not is_valid_full_name(full_name):
            logger.warning(f"[webhook] push event without a usable repository name {payload[:512]!r}")
            return WebhookResult(400, "Malformed payload")

        try:
            repo = self.mirrors.get(full_name, cancel=cancel)
        except (NotFoundError, NotMirroredError):
            logger.info(f"[webhook] no mirrored copy of {full_name}")
            return WebhookResult(404, "Not found")
        except (DoppelgangerError, OSError) as e:
            logger.error(f"[webhook] failed to find mirrored copy of {full_name}: {e}")
            return WebhookResult(500, "Internal server error")

        updated_branch = ref[len(HEADS_PREFIX):] if ref.startswith(HEADS_PREFIX) else ref
        if repo.master != updated_branch:
            logger.info(
                f"[webhook] skip push event to {repo.full_name} "
                f"(mirrored ref {repo.master}, received {updated_branch})"
            )
            return WebhookResult(200, "OK")

        try:
            self.mirrors.update(repo.full_name, cancel=cancel)
        except (DoppelgangerError, OSError) as e:
            logger.error(f"[webhook] failed to update {repo.full_name}: {e}")
            return WebhookResult(500, "Internal server error")

        logger.info(
            f"[webhook] updated {repo.full_name} [{time.monotonic() - start:.2f}s]",
            extra={"repo": repo.full_name, "event": "push", "status": 200},
        )
        return WebhookResult(200, "OK", updated=True)
