"""
Admin UI — Repository listing and detail pages.

Blueprint: repos_bp
Routes:
    /                     (local mirrors)
    /src/                 (GitHub repositories)
    /src/<owner>/<repo>   (single GitHub repository)
    /<owner>/<repo>       (single mirror, or the "create mirror" page)
    /<owner>/<repo>.tar.gz (mirror download, see routes_archive)
"""

from __future__ import annotations

import logging
import time

from flask import Blueprint, render_template, request

from ..errors import DoppelgangerError, NotFoundError, NotMirroredError
from ..models.repository import Repository
from ..services import RepositoryCatalog
from .errors import render_error, render_not_found
from .helpers import back_url, full_name_from_path, request_cancellation, services
from .routes_archive import ARCHIVE_SUFFIX, download_mirror

logger = logging.getLogger(__name__)

repos_bp = Blueprint("repos", __name__)


def _list(catalog: RepositoryCatalog, mirrors: bool):
    start = time.monotonic()
    try:
        repos = catalog.all(cancel=request_cancellation())
    except (DoppelgangerError, OSError) as e:
        logger.error(f"failed to get repos ({e})")
        return render_error("Internal server error", 500, back_url())

    html = render_template("repos/index.html", repositories=repos, mirrors=mirrors)
    logger.info(f"rendered repos/index with {len(repos)} entries [{time.monotonic() - start:.2f}s]")
    return html


def _show(catalog: RepositoryCatalog, full_name: str):
    start = time.monotonic()
    try:
        repo = catalog.get(full_name, cancel=request_cancellation())
    except NotFoundError:
        return render_not_found(f"No such repository {full_name}", "/src/")
    except NotMirroredError:
        # Offer to create the mirror instead
        html = render_template("repo/mirror.html", repo=Repository(full_name=full_name))
        logger.info(f"rendered repo/mirror {full_name} [{time.monotonic() - start:.2f}s]")
        return html
    except (DoppelgangerError, OSError) as e:
        logger.error(f"failed to fetch {full_name} ({e})")
        return render_error("Internal server error", 500, back_url())

    html = render_template("repo/show.html", repo=repo)
    logger.info(
        f"rendered repo/show {repo.full_name} with latest commit from {repo.master!r} "
        f"[{time.monotonic() - start:.2f}s]"
    )
    return html


@repos_bp.route("/", methods=["GET"])
def list_mirrors():
    """Local mirrors."""
    return _list(services().mirrors, mirrors=True)


@repos_bp.route("/src/", methods=["GET"])
def list_sources():
    """Repositories visible on GitHub."""
    return _list(services().github, mirrors=False)


@repos_bp.route("/src/<owner>/<repo>", methods=["GET"])
def show_source(owner: str, repo: str):
    full_name = full_name_from_path(owner, repo)
    if full_name is None:
        return render_not_found("No such repository", "/src/")
    return _show(services().github, full_name)


@repos_bp.route("/<owner>/<repo>", methods=["GET", "POST"])
def show_mirror(owner: str, repo: str):
    if request.method == "POST":
        return render_error("Not implemented", 501, back_url())

    if repo.endswith(ARCHIVE_SUFFIX):
        return download_mirror(owner, repo[: -len(ARCHIVE_SUFFIX)])

    full_name = full_name_from_path(owner, repo)
    if full_name is None:
        return render_not_found("No such repository", "/")
    return _show(services().mirrors, full_name)
