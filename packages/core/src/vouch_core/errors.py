"""Error taxonomy shared by every vouch package.

Everything raised on purpose derives from VouchError so the CLI can turn it
into a clean ``click.ClickException`` without catching unrelated bugs.

Outcomes that are *not* errors (a comment with no recognised command, an
actor without permission to manage the list) are reported as ordinary
``unchanged`` results by the workflows instead.
"""

from __future__ import annotations


class VouchError(Exception):
    """Base class for all expected vouch failures."""


class ConfigurationError(VouchError):
    """A required setting is missing or invalid (e.g. no target repository)."""


class PlatformError(VouchError):
    """A platform API call failed.

    Carries the HTTP method, endpoint and status so the message printed by the
    CLI is enough to reproduce the failing request.
    """

    def __init__(self, method: str, endpoint: str, status: int | None, message: str = ""):
        self.method = method
        self.endpoint = endpoint
        self.status = status
        detail = f": {message}" if message else ""
        super().__init__(f"{method} {endpoint} failed with status {status}{detail}")


class TransientPlatformError(PlatformError):
    """5xx response that kept failing after every retry."""


class PermanentPlatformError(PlatformError):
    """4xx response or malformed request: never retried."""


class MissingTrustFileError(VouchError):
    """The trust file does not exist on a read-only path."""

    def __init__(self, path: str, where: str = ""):
        self.path = path
        location = f" in {where}" if where else ""
        super().__init__(f"Trust file not found: {path}{location}")


class GitError(VouchError):
    """A git subprocess exited non-zero."""

    def __init__(self, args: list[str], returncode: int, stderr: str):
        self.args_list = args
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"git {' '.join(args)} failed (exit={returncode}): {stderr.strip()}")


class DivergedPushError(VouchError):
    """Pushing the trust file kept failing after re-applying the change."""

    def __init__(self, attempts: int, last_error: Exception | None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Push failed after {attempts} attempt(s); last error: {last_error}")
