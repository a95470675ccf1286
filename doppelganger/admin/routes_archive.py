"""
Admin UI — Mirror download as a gzip'd tarball.

Served for ``GET /<owner>/<repo>.tar.gz``; the URL is matched by the
mirror detail route in routes_repos and handed over here.
"""

from __future__ import annotations

import logging

from flask import Response

from ..errors import DoppelgangerError, NotMirroredError
from .errors import render_error, render_not_found
from .helpers import back_url, full_name_from_path, request_cancellation, services

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar.gz"


def download_mirror(owner: str, repo: str):
    """Stream ``owner/repo`` as application/octet-stream."""
    full_name = full_name_from_path(owner, repo)
    if full_name is None:
        return render_not_found("No such repository", "/")

    try:
        stream = services().archives.export(full_name, cancel=request_cancellation())
    except NotMirroredError:
        return render_not_found(f"Repository {full_name} was not mirrored yet", f"/src/{full_name}")
    except (DoppelgangerError, OSError) as e:
        logger.error(f"[archive] failed to export {full_name}: {e}")
        return render_error("Internal server error", 500, back_url())

    logger.info(f"[archive] streaming {full_name}{ARCHIVE_SUFFIX}")
    return Response(
        stream,
        mimetype="application/octet-stream",
        headers={
            "Content-Disposition": f'attachment; filename="{repo}{ARCHIVE_SUFFIX}"',
        },
        direct_passthrough=True,
    )
