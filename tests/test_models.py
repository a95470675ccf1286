"""
Tests for repository models and name helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from doppelganger.models.repository import (
    DEFAULT_MASTER,
    Commit,
    Repository,
    is_valid_full_name,
    parse_repository_name,
)


class TestParseRepositoryName:

    def test_owner_and_name(self):
        assert parse_repository_name("test/me") == ("test", "me")

    def test_splits_on_first_slash_only(self):
        assert parse_repository_name("a/b/c") == ("a", "b/c")

    def test_without_slash_fails(self):
        with pytest.raises(ValueError):
            parse_repository_name("nope")


class TestIsValidFullName:

    @pytest.mark.parametrize("name", ["octo/hello", "a-b/c_d.e", "O1/R2"])
    def test_valid(self, name):
        assert is_valid_full_name(name) is True

    @pytest.mark.parametrize("name", [
        "", "octo", "octo/", "/hello", "a/b/c", "../etc", "octo/..", "./x", "octo/he llo",
        "octo/hello\n", "octo\n/hello", "octo/hello\r",
    ])
    def test_invalid(self, name):
        assert is_valid_full_name(name) is False


class TestRepository:

    def test_defaults(self):
        repo = Repository(full_name="octo/hello")
        assert repo.master == DEFAULT_MASTER
        assert repo.description == ""
        assert repo.latest_master_commit is None

    def test_mirrored_without_html_url(self):
        assert Repository(full_name="octo/hello").mirrored is True

    def test_remote_is_not_mirrored(self):
        repo = Repository(full_name="octo/hello", html_url="https://github.com/octo/hello")
        assert repo.mirrored is False


class TestCommit:

    def test_frozen(self):
        commit = Commit(sha="abc", message="m", author="a")
        with pytest.raises(ValidationError):
            commit.sha = "def"

    def test_date_optional(self):
        assert Commit(sha="abc").date is None

    def test_keeps_timezone(self):
        date = datetime(2016, 4, 23, 16, 12, 39, tzinfo=timezone.utc)
        assert Commit(sha="abc", date=date).date.utcoffset().total_seconds() == 0
