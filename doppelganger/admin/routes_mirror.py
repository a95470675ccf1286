"""
Admin UI — Mirror actions.

Blueprint: mirror_bp
Routes:
    POST /mirror   form fields: repo, action (create|update|track), notrack

    curl -d repo=octocat/hello -d action=create http://doppelganger/mirror
    curl -d repo=octocat/hello -d action=update http://doppelganger/mirror
    curl -d repo=octocat/hello -d action=track  http://doppelganger/mirror
"""

from __future__ import annotations

import logging

from flask import Blueprint, redirect, render_template, request

from ..actions import Outcome
from .errors import render_error, render_not_found
from .helpers import api_hook_url, back_url, request_cancellation, services

logger = logging.getLogger(__name__)

mirror_bp = Blueprint("mirror", __name__)


@mirror_bp.route("/mirror", methods=["POST"])
def mirror_action():
    """Create, update or track a mirror."""
    result = services().actions.execute(
        action=request.form.get("action", ""),
        full_name=request.form.get("repo", "").strip(),
        callback_url=api_hook_url(),
        notrack=bool(request.form.get("notrack")),
        cancel=request_cancellation(),
    )

    if result.outcome is Outcome.REDIRECT:
        return redirect(result.location, code=303)

    if result.outcome is Outcome.PRIVATE_ACCESS:
        return render_template(
            "mirror/private_repo_access.html",
            public_key=result.public_key,
            full_name=result.full_name,
            action=result.action,
        )

    if result.outcome is Outcome.NOT_FOUND:
        return render_not_found(result.message, result.back_url)

    return render_error(result.message, result.status, back_url())
