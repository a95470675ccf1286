"""
GitHub webhook endpoint.

Blueprint: webhook_bp
Routes:
    POST /apihook   (X-GitHub-Event: ping | push)
"""

from __future__ import annotations

from flask import Blueprint, request

from ..webhook import EVENT_HEADER
from .helpers import request_cancellation, services

webhook_bp = Blueprint("webhook", __name__)


@webhook_bp.route("/apihook", methods=["POST"])
def apihook():
    result = services().webhooks.dispatch(
        request.headers.get(EVENT_HEADER),
        request.get_data(cache=False),
        cancel=request_cancellation(),
    )
    return result.body, result.status, {"Content-Type": "text/plain; charset=utf-8"}
