"""
Repository Models — Pydantic schemas for mirrored and remote repositories.

The same ``Repository`` type describes both a remote catalog entry and a
local mirror. A remote entry always carries ``html_url``; a mirror view
never does.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict

DEFAULT_MASTER = "master"

_NAME_SEGMENT_RE = re.compile(r"[A-Za-z0-9_.\-]+")


class Commit(BaseModel):
    """A single commit; immutable once built."""

    model_config = ConfigDict(frozen=True)

    sha: str = ""
    message: str = ""
    author: str = ""
    committer: Optional[str] = None
    date: Optional[datetime] = None


class Repository(BaseModel):
    """A repository identified by its ``owner/name`` full name."""

    full_name: str
    description: str = ""
    master: str = DEFAULT_MASTER
    html_url: str = ""
    git_url: str = ""
    latest_master_commit: Optional[Commit] = None

    @property
    def mirrored(self) -> bool:
        """True for local mirror views. Presentation only."""
        return self.html_url == ""


def parse_repository_name(full_name: str) -> Tuple[str, str]:
    """Split ``owner/name`` once on the first slash."""
    owner, name = full_name.split("/", 1)
    return owner, name


def is_valid_full_name(full_name: str) -> bool:
    """Exactly two safe path segments, neither of them ``.`` or ``..``."""
    parts = full_name.split("/")
    if len(parts) != 2:
        return False
    return all(
        _NAME_SEGMENT_RE.fullmatch(part) and part not in (".", "..")
        for part in parts
    )
