"""
Error pages rendered inside the shared layout.

Two entry points are used by the routes: ``render_error`` for any status
with a user-safe message, and ``render_not_found`` for 404s with a link
to follow instead.
"""

from __future__ import annotations

from typing import Optional

from flask import Response, make_response, render_template


def render_error(message: str, status: int, back_url: Optional[str] = None) -> Response:
    html = render_template("errors/internal_error.html", message=message, back_url=back_url)
    response = make_response(html, status)
    response.headers["Content-Type"] = "text/html; charset=utf-8"
    return response


def render_not_found(message: str, back_url: Optional[str] = None) -> Response:
    html = render_template("errors/not_found.html", message=message, back_url=back_url)
    response = make_response(html, 404)
    response.headers["Content-Type"] = "text/html; charset=utf-8"
    return response
