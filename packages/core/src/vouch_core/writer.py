"""Commit and push the trust file without losing concurrent changes.

Several workflow runs may edit the same trust file at once (two maintainers
commenting on two issues within seconds). Pushing blindly would make the
second push fail, and force-pushing would drop the first change. Instead:

    commit -> push
      └─ rejected: fetch remote tip, hard-reset onto it, re-run the mutation
         against the fresh file (``reapply``), commit, push again

up to ``attempts`` times. Re-running the mutation rather than rebasing the
old commit means the change is always computed from the file that will
actually be pushed.

Branch mode commits to a fresh, uniquely named branch instead of the current
one; the caller opens a pull request from the returned branch name.
"""

from __future__ import annotations

import logging
import re
import subprocess
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from vouch_core.errors import DivergedPushError, GitError

logger = logging.getLogger(__name__)

BOT_NAME = "github-actions[bot]"
BOT_EMAIL = "41898282+github-actions[bot]@users.noreply.github.com"

_DEFAULT_ATTEMPTS = 3


class Git:
    """Thin wrapper around the ``git`` executable for one working copy."""

    def __init__(self, cwd: str = ".", remote: str = "origin", timeout: int = 60):
        self.cwd = cwd
        self.remote = remote
        self.timeout = timeout

    def run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess:
        result = subprocess.run(
            ["git", *args],
            cwd=self.cwd,
            capture_output=True,
            text=True,
            timeout=self.timeout,
        )
        if check and result.returncode != 0:
            raise GitError(list(args), result.returncode, result.stderr)
        return result

    def current_branch(self) -> str:
        return self.run("rev-parse", "--abbrev-ref", "HEAD").stdout.strip()

    def has_staged_changes(self) -> bool:
        return self.run("diff", "--cached", "--quiet", check=False).returncode != 0

    def commit(self, message: str) -> None:
        self.run("-c", f"user.name={BOT_NAME}", "-c", f"user.email={BOT_EMAIL}", "commit", "-m", message)

    def push(self, branch: str) -> None:
        self.run("push", self.remote, f"HEAD:refs/heads/{branch}")

    def reset_to_remote(self, branch: str) -> None:
        self.run("fetch", self.remote, branch)
        self.run("reset", "--hard", "FETCH_HEAD")


@dataclass
class WriteResult:
    committed: bool
    branch: str | None = None


def branch_name(prefix: str = "vouch", label: str = "") -> str:
    """Unique branch name such as ``vouch/add-alice-20260101120000-1a2b3c``."""
    slug = re.sub(r"[^a-z0-9]+", "-", label.lower()).strip("-")
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    parts = [p for p in (slug, stamp, uuid.uuid4().hex[:6]) if p]
    return f"{prefix}/{'-'.join(parts)}"


class ConflictSafeWriter:
    def __init__(self, git: Git, attempts: int = _DEFAULT_ATTEMPTS):
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self.git = git
        self.attempts = attempts

    def commit_and_push(
        self,
        path: str,
        message: str,
        reapply: Callable[[str], None],
        branch: str | None = None,
    ) -> WriteResult:
        """Commit ``path`` (already mutated on disk) and push it.

        ``reapply(path)`` must recompute the same logical change from whatever
        is on disk and write it back; it runs after every rejected push.
        With ``branch`` set, the commit goes to that new branch instead of the
        current one and the branch name is returned in the result.
        """
        base = self.git.current_branch()
        start = self.git.run("rev-parse", "HEAD").stdout.strip()
        target = branch or base
        if branch:
            self.git.run("checkout", "-b", branch)

        last_error: GitError | None = None
        for attempt in range(1, self.attempts + 1):
            if not self._commit(path, message):
                logger.info("No changes to %s; nothing to commit.", path)
                return WriteResult(committed=False)
            try:
                self.git.push(target)
                logger.info("Pushed %s to %s (attempt %d/%d).", path, target, attempt, self.attempts)
                return WriteResult(committed=True, branch=branch)
            except GitError as e:
                last_error = e
                logger.warning("Push to %s rejected (attempt %d/%d): %s", target, attempt, self.attempts, e.stderr)
            if attempt == self.attempts:
                break
            # A fresh branch cannot have diverged on its own; only the base moved.
            self.git.reset_to_remote(base)
            reapply(path)

        self._restore(start, base, branch)
        raise DivergedPushError(self.attempts, last_error)

    def _restore(self, start: str, base: str, branch: str | None) -> None:
        """Drop unpushed commits so the checkout is back where it started."""
        logger.warning("Giving up; resetting %s to %s.", base, start[:12])
        if branch:
            self.git.run("checkout", "--force", base)
            self.git.run("branch", "-D", branch)
        self.git.run("reset", "--hard", start)

    def _commit(self, path: str, message: str) -> bool:
        self.git.run("add", "--", path)
        if not self.git.has_staged_changes():
            return False
        self.git.commit(message)
        return True
