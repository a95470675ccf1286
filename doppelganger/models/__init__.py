"""Domain models."""

from .repository import (
    DEFAULT_MASTER,
    Commit,
    Repository,
    is_valid_full_name,
    parse_repository_name,
)

__all__ = [
    "DEFAULT_MASTER",
    "Commit",
    "Repository",
    "is_valid_full_name",
    "parse_repository_name",
]
