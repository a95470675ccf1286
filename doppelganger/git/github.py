"""
GitHub Repositories — Read-only catalog of upstream repos plus webhooks.

Uses the GitHub REST API through httpx to list the repositories visible to
the configured token, look up a single repository with its latest default
branch commit, and register a ``push`` webhook pointing back at this server.

## Configuration

- DOPPELGANGER_GITHUB_TOKEN: personal access token with ``repo`` or
  ``public_repo`` scope (required)
- DOPPELGANGER_GITHUB_API_URL: API root (default: https://api.github.com)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional

import httpx
from dateutil import parser as date_parser

from ..cancellation import Cancellation
from ..errors import ConfigError, NotFoundError, RemoteError
from ..models.repository import DEFAULT_MASTER, Commit, Repository, parse_repository_name

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
PAGE_SIZE = 50


def _get_headers(token: str) -> Dict[str, str]:
    """Get GitHub API headers."""
    return {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": "2022-11-28",
    }


class GitHubRepositories:
    """
    GitHub as a repository catalog and tracking service.

    The token is fixed at construction; an empty token is a startup error.
    """

    def __init__(
        self,
        token: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 15,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if not token:
            raise ConfigError("missing auth token")

        self.timeout = timeout
        self.client = httpx.Client(
            base_url=api_url,
            headers=_get_headers(token),
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    # ─── Catalog ────────────────────────────────────────────

    def all(self, cancel: Optional[Cancellation] = None) -> List[Repository]:
        """All repositories accessible with the token, across every page."""
        repos: List[Repository] = []

        for item in self._paginate("/user/repos", cancel):
            if not item.get("full_name"):
                logger.warning(f"[github] excluding repository without full_name {item}")
                continue

            if not item.get("ssh_url"):
                logger.warning(f"[github] excluding repository without ssh_url {item['full_name']}")
                continue

            repos.append(_repository_from_github(item))

        return repos

    def get(self, full_name: str, cancel: Optional[Cancellation] = None) -> Repository:
        """
        Look up one repository and attach its latest default branch commit.

        Raises:
            NotFoundError: GitHub answered 404 for the repository itself
            RemoteError: any other failure
        """
        owner, name = parse_repository_name(full_name)

        resp = self._request("GET", f"/repos/{owner}/{name}", cancel)
        if resp.status_code == 404:
            raise NotFoundError()
        data = self._json(resp, f"repository {full_name}")

        branch_name = data.get("default_branch") or DEFAULT_MASTER
        resp = self._request("GET", f"/repos/{owner}/{name}/branches/{branch_name}", cancel)
        branch = self._json(resp, f"branch {branch_name} of {full_name}")

        sha = branch["commit"]["sha"]
        resp = self._request("GET", f"/repos/{owner}/{name}/git/commits/{sha}", cancel)
        commit = self._json(resp, f"commit {sha} of {full_name}")

        repo = _repository_from_github(data)
        repo.latest_master_commit = _commit_from_github(commit)
        return repo

    # ─── Tracking ───────────────────────────────────────────

    def track(
        self,
        full_name: str,
        callback_url: str,
        cancel: Optional[Cancellation] = None,
    ) -> None:
        """
        Register a ``push`` webhook delivering JSON to ``callback_url``.

        Idempotent: when GitHub rejects the hook as a duplicate, succeed if
        an existing hook already posts push events to the same URL.
        """
        owner, name = parse_repository_name(full_name)
        hook = {
            "name": "web",
            "active": True,
            "events": ["push"],
            "config": {
                "url": callback_url,
                "content_type": "json",
            },
        }

        resp = self._request("POST", f"/repos/{owner}/{name}/hooks", cancel, json=hook)
        try:
            self._check(resp, f"hooks of {full_name}")
        except RemoteError as e:
            if not e.is_duplicate_hook:
                raise
            if self._push_hook_exists(owner, name, callback_url, cancel):
                logger.info(f"[github] push webhook to {callback_url} for {full_name} has already been set up")
                return
            raise

        logger.info(f"[github] registered push webhook to {callback_url} for {full_name}")

    def _push_hook_exists(
        self,
        owner: str,
        name: str,
        callback_url: str,
        cancel: Optional[Cancellation],
    ) -> bool:
        try:
            for hook in self._paginate(f"/repos/{owner}/{name}/hooks", cancel):
                config = hook.get("config") or {}
                if config.get("url") == callback_url and "push" in (hook.get("events") or []):
                    return True
        except RemoteError as e:
            logger.warning(f"[github] failed to list {owner}/{name} webhooks ({e})")
        return False

    # ─── HTTP plumbing ──────────────────────────────────────

    def _request(
        self,
        method: str,
        url: str,
        cancel: Optional[Cancellation],
        **kwargs: Any,
    ) -> httpx.Response:
        if cancel is not None:
            cancel.raise_if_cancelled()
            remaining = cancel.remaining()
            if remaining is not None:
                kwargs["timeout"] = min(self.timeout, remaining)

        try:
            return self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.warning(f"[github] {method} {url} failed: {e}")
            raise RemoteError(f"GitHub request {method} {url} failed") from e

    def _check(self, resp: httpx.Response, what: str) -> None:
        if resp.status_code < 400:
            return

        message, errors = None, []
        try:
            body = resp.json()
            message = body.get("message")
            errors = body.get("errors") or []
        except ValueError:
            pass

        logger.warning(f"[github] {resp.request.method} {resp.request.url} returned {resp.status_code}: {resp.text}")
        raise RemoteError(
            f"GitHub returned HTTP {resp.status_code} for {what}",
            status_code=resp.status_code,
            provider_message=message,
            errors=errors,
        )

    def _json(self, resp: httpx.Response, what: str) -> Dict[str, Any]:
        self._check(resp, what)
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteError(f"GitHub returned malformed JSON for {what}") from e

    def _paginate(self, url: str, cancel: Optional[Cancellation]) -> Iterator[Dict[str, Any]]:
        """Follow the ``Link: rel="next"`` cursor until it runs out."""
        params: Optional[Dict[str, Any]] = {"per_page": PAGE_SIZE, "page": 1}
        next_url: Optional[str] = url

        while next_url:
            resp = self._request("GET", next_url, cancel, params=params)
            page = self._json(resp, next_url)
            if not isinstance(page, list):
                raise RemoteError(f"GitHub returned an unexpected listing for {url}")
            yield from page

            # The next link already carries per_page and page
            next_url = resp.links.get("next", {}).get("url")
            params = None


def _repository_from_github(data: Dict[str, Any]) -> Repository:
    # git+ssh for private repos, anonymous git:// otherwise
    git_url = data.get("ssh_url") if data.get("private") else data.get("git_url")

    return Repository(
        full_name=data["full_name"],
        description=data.get("description") or "",
        master=data.get("default_branch") or DEFAULT_MASTER,
        html_url=data.get("html_url") or "",
        git_url=git_url or "",
    )


def _commit_from_github(data: Dict[str, Any]) -> Commit:
    author = data.get("author") or {}
    committer = data.get("committer") or {}
    date_str = committer.get("date") or author.get("date")

    return Commit(
        sha=data.get("sha", ""),
        message=data.get("message", ""),
        author=author.get("name", ""),
        committer=committer.get("name"),
        date=date_parser.isoparse(date_str) if date_str else None,
    )
