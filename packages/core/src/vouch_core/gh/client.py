"""Minimal GitHub API client built on PyGithub's requester.

Why not PyGithub's object model everywhere:
- vouch needs endpoints PyGithub does not wrap uniformly (collaborator
  ``role_name``, discussion GraphQL, team members by slug), and a single
  get/post/patch/paginate surface is easy to fake in tests.
- Retry policy is owned here rather than by urllib3: 5xx responses are retried
  with exponential backoff (1s, 2s, 4s, 8s, 16s) up to MAX_RETRIES times,
  4xx responses are raised immediately.

The token is passed in explicitly; this module never reads the environment.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from github import Auth, Github, GithubException

from vouch_core.errors import PermanentPlatformError, TransientPlatformError

logger = logging.getLogger(__name__)

_MAX_RETRIES = 5
_BACKOFF_BASE = 1.0
_PER_PAGE = 100


class GitHubClient:
    MAX_RETRIES: int = _MAX_RETRIES
    BACKOFF_BASE: float = _BACKOFF_BASE

    def __init__(self, token: str | None, base_url: str | None = None, sleep=time.sleep):
        kwargs: dict[str, Any] = {"retry": None}
        if token:
            kwargs["auth"] = Auth.Token(token)
        if base_url:
            kwargs["base_url"] = base_url
        self._gh = Github(**kwargs)
        self._sleep = sleep

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def get(self, endpoint: str, params: dict | None = None) -> Any:
        return self._request("GET", endpoint, params=params)

    def post(self, endpoint: str, body: dict | None = None) -> Any:
        return self._request("POST", endpoint, body=body)

    def patch(self, endpoint: str, body: dict | None = None) -> Any:
        return self._request("PATCH", endpoint, body=body)

    def paginate(self, endpoint: str, params: dict | None = None) -> list:
        """Fetch every page of a list endpoint, one request at a time."""
        items: list = []
        page = 1
        while True:
            data = self.get(endpoint, params={**(params or {}), "per_page": _PER_PAGE, "page": page})
            if not isinstance(data, list):
                raise PermanentPlatformError("GET", endpoint, None, "expected a JSON list")
            items.extend(data)
            if len(data) < _PER_PAGE:
                return items
            page += 1

    def graphql(self, query: str, variables: dict | None = None) -> dict:
        """Run a GraphQL query and return its ``data`` object.

        The endpoint comes from the requester: on Enterprise Server it lives at
        ``/api/graphql``, outside the ``/api/v3`` REST prefix.
        """
        endpoint = self._gh.requester.graphql_url
        result = self._request("POST", endpoint, body={"query": query, "variables": variables or {}})
        errors = (result or {}).get("errors")
        if errors:
            message = "; ".join(e.get("message", str(e)) for e in errors)
            raise PermanentPlatformError("POST", endpoint, 200, message)
        return (result or {}).get("data") or {}

    # ------------------------------------------------------------------ #
    # Internals                                                            #
    # ------------------------------------------------------------------ #

    def _request(self, method: str, endpoint: str, params: dict | None = None, body: dict | None = None) -> Any:
        for attempt in range(self.MAX_RETRIES + 1):
            try:
                _, data = self._gh.requester.requestJsonAndCheck(method, endpoint, parameters=params, input=body)
                return data
            except GithubException as e:
                status = e.status
                message = _error_message(e)
                if status is None or status < 500:
                    raise PermanentPlatformError(method, endpoint, status, message) from e
                if attempt == self.MAX_RETRIES:
                    logger.error("%s %s failed after %d attempts: %s", method, endpoint, attempt + 1, status)
                    raise TransientPlatformError(method, endpoint, status, message) from e
                delay = self.BACKOFF_BASE * 2**attempt
                logger.warning(
                    "%s %s returned %s (attempt %d/%d). Retrying in %ds...",
                    method,
                    endpoint,
                    status,
                    attempt + 1,
                    self.MAX_RETRIES + 1,
                    delay,
                )
                self._sleep(delay)


def _error_message(exc: GithubException) -> str:
    data = exc.data
    if isinstance(data, dict):
        return str(data.get("message", ""))
    return str(data or "")
