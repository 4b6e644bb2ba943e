"""GitHub token resolution for the gh commands.

Sources, first hit wins:
  1. GITHUB_TOKEN (injected by Actions; the workflow's own token)
  2. GH_TOKEN (the variable the GitHub CLI itself honours)
  3. `gh auth token`, scoped to the API host when GITHUB_API_URL points at
     GitHub Enterprise Server

Local commands never need a token, so a missing one is not an error here.
"""

from __future__ import annotations

import logging
import os
import subprocess
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
_PUBLIC_API_HOST = "api.github.com"


def gh_hostname(api_url: str | None) -> str | None:
    """Map an API base URL to the host `gh` knows it by; None for github.com."""
    if not api_url:
        return None
    host = urlparse(api_url).hostname
    if not host or host == _PUBLIC_API_HOST:
        return None
    return host


def resolve_github_token(api_url: str | None = None) -> str | None:
    for name in _ENV_VARS:
        token = os.environ.get(name)
        if token:
            logger.debug("Using GitHub token from %s.", name)
            return token

    command = ["gh", "auth", "token"]
    hostname = gh_hostname(api_url)
    if hostname:
        command += ["--hostname", hostname]
    try:
        result = subprocess.run(command, capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        logger.debug("gh CLI unavailable; no token resolved.")
        return None
    token = result.stdout.strip()
    if result.returncode == 0 and token:
        logger.debug("Resolved GitHub token via gh CLI session%s.", f" for {hostname}" if hostname else "")
        return token
    return None
