"""
Admin server shared helpers.

Request-scoped lookups used across the route blueprints: the service
container, the per-request cancellation token, repository names taken
from the URL, and the webhook callback URL.
"""

from __future__ import annotations

from typing import Optional

from flask import current_app, g, request

from ..cancellation import Cancellation
from ..container import Services
from ..models.repository import is_valid_full_name


def services() -> Services:
    return current_app.config["SERVICES"]


def request_cancellation() -> Optional[Cancellation]:
    """The token created for this request in ``before_request``."""
    return g.get("cancel")


def full_name_from_path(owner: str, repo: str) -> Optional[str]:
    """``owner/repo`` from path parameters, or None if it is not a safe name."""
    if not owner or not repo:
        return None
    full_name = f"{owner}/{repo}"
    return full_name if is_valid_full_name(full_name) else None


def api_hook_url() -> str:
    """Where GitHub should deliver push events for this server."""
    public_url = services().settings.public_url
    if public_url:
        return public_url.rstrip("/") + "/apihook"

    scheme = "https" if request.is_secure else "http"
    return f"{scheme}://{request.host}/apihook"


def back_url() -> str:
    return request.referrer or ""
