"""End-to-end operations triggered by platform events.

Each workflow loads the trust file fresh, decides, mutates in memory and
persists through the ConflictSafeWriter. They return an ActionResult whose
status comes from one closed vocabulary per kind of operation:

  mutation (manage-by-issue/discussion):  vouched | denounced | unvouched | unchanged
  gate     (check-pr/check-issue):        skipped | vouched | allowed | closed
  sync     (sync-codeowners):             updated | unchanged

Dry-run replaces every side effect (file write, commit, push, comment, close,
reaction) with a log line describing what would have happened.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from vouch_core.authz import AuthorizationContext, AuthorizationResolver
from vouch_core.codec import parse
from vouch_core.codeowners import expand_owners, find_codeowners, parse_codeowners, sync_owners
from vouch_core.comments import ACTION_DENOUNCE, ACTION_UNVOUCH, ACTION_VOUCH, ActionRequest, CommentParser
from vouch_core.errors import ConfigurationError
from vouch_core.gh.repo import (
    close_issue,
    create_pull,
    get_default_branch,
    get_discussion_comment,
    get_file_content,
    get_issue,
    get_issue_comment,
    get_permission,
    get_team_members,
    has_write_access,
    react_to_discussion_comment,
    react_to_issue_comment,
)
from vouch_core.handle import qualify
from vouch_core.records import Record
from vouch_core.trust import DENOUNCED, VOUCHED, add_user, check_user, denounce_user, remove_user
from vouch_core.writer import branch_name

if TYPE_CHECKING:
    from vouch_core.writer import ConflictSafeWriter
    from vouch_store.local import LocalFileStore

logger = logging.getLogger(__name__)

# Mutation results
UNVOUCHED = "unvouched"
UNCHANGED = "unchanged"
# Gate results
SKIPPED = "skipped"
ALLOWED = "allowed"
CLOSED = "closed"
# Sync results
UPDATED = "updated"

_DENOUNCED_MESSAGE = (
    "This {kind} has been closed automatically because its author has been denounced by the maintainers."
)
_UNVOUCHED_MESSAGE = (
    "This {kind} has been closed automatically because this project only accepts contributions "
    "from vouched users. A maintainer can vouch for you by replying `vouch` to one of your issues."
)


@dataclass
class ActionResult:
    status: str
    user: str | None = None
    action: str | None = None
    branch: str | None = None
    pull_request: int | None = None
    added: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


def apply_request(
    records: list[Record],
    action: str,
    target: str,
    reason: str = "",
    default_platform: str | None = None,
) -> tuple[list[Record], str]:
    """Apply one parsed action to ``records`` and return the new records and status.

    Already-vouched users are not re-vouched, already-denounced users are not
    re-denounced, and unvouch only removes a vouch (a denouncement stays).
    """
    current = check_user(records, target, default_platform)
    if action == ACTION_VOUCH:
        if current == VOUCHED:
            return records, UNCHANGED
        return add_user(records, target, default_platform, reason or None), VOUCHED
    if action == ACTION_DENOUNCE:
        if current == DENOUNCED:
            return records, UNCHANGED
        return denounce_user(records, target, reason, default_platform), DENOUNCED
    if action == ACTION_UNVOUCH:
        if current != VOUCHED:
            return records, UNCHANGED
        return remove_user(records, target, default_platform), UNVOUCHED
    raise ValueError(f"Unknown action: {action!r}")


def remote_check_vouched(client, default_platform: str | None = "github") -> Callable:
    """Build the CheckVouched capability used for managers files.

    Reads the file through the API and skips the collaborator
    short-circuit: only an explicit vouch in that file counts.
    """

    def check_vouched(user: str, repo: str, path: str, ref: str | None) -> bool:
        records = parse(get_file_content(client, repo, path, ref or get_default_branch(client, repo)))
        return check_user(records, qualify(user, default_platform), default_platform) == VOUCHED

    return check_vouched


def build_resolver(client, default_platform: str | None = "github") -> AuthorizationResolver:
    return AuthorizationResolver(
        fetch_permission=lambda repo, user: get_permission(client, repo, user),
        check_vouched=remote_check_vouched(client, default_platform),
    )


def manage(
    *,
    client,
    repo: str,
    actor: str,
    body: str,
    fallback_target: str | None,
    store: LocalFileStore,
    config: dict,
    writer: ConflictSafeWriter | None = None,
    react: Callable[[], None] | None = None,
    resolver: AuthorizationResolver | None = None,
    dry_run: bool = False,
) -> ActionResult:
    """Parse a comment, authorize its author and apply the action to the trust file."""
    platform = config.get("default_platform")
    request: ActionRequest = CommentParser.from_config(config).parse(body)
    if request.action is None:
        logger.info("Comment by %s contains no vouch command.", actor)
        return ActionResult(status=UNCHANGED)

    resolver = resolver or build_resolver(client, platform)
    if not resolver.can_manage(repo, actor, AuthorizationContext.from_config(config)):
        logger.info("%s is not allowed to %s users in %s.", actor, request.action, repo)
        return ActionResult(status=UNCHANGED, action=request.action)

    target = request.user or fallback_target
    if not target:
        logger.info("No target user for %s.", request.action)
        return ActionResult(status=UNCHANGED, action=request.action)
    target = qualify(target, platform)

    records, status = apply_request(store.load_or_init(), request.action, target, request.reason, platform)
    result = ActionResult(status=status, user=target, action=request.action)
    if status == UNCHANGED:
        logger.info("%s: nothing to do for %s.", request.action, target)
        return result

    if dry_run:
        logger.info("[dry-run] would %s %s in %s and push it.", request.action, target, store.location)
        return result

    def reapply(path: str) -> None:
        fresh, _ = apply_request(store.load_or_init(), request.action, target, request.reason, platform)
        store.save(fresh)

    store.save(records)
    if writer is not None:
        _persist(client, repo, store, writer, config, f"{request.action} {target}", reapply, result)
    if react is not None:
        react()
    return result


def manage_by_issue(
    client,
    repo: str,
    issue_number: int,
    comment_id: int,
    store: LocalFileStore,
    config: dict,
    writer: ConflictSafeWriter | None = None,
    dry_run: bool = False,
) -> ActionResult:
    comment = get_issue_comment(client, repo, comment_id)
    issue = get_issue(client, repo, issue_number)
    return manage(
        client=client,
        repo=repo,
        actor=comment["user"]["login"],
        body=comment.get("body") or "",
        fallback_target=(issue.get("user") or {}).get("login"),
        store=store,
        config=config,
        writer=writer,
        react=lambda: react_to_issue_comment(client, repo, comment_id),
        dry_run=dry_run,
    )


def manage_by_discussion(
    client,
    repo: str,
    comment_node_id: str,
    store: LocalFileStore,
    config: dict,
    writer: ConflictSafeWriter | None = None,
    dry_run: bool = False,
) -> ActionResult:
    comment = get_discussion_comment(client, comment_node_id)
    if not comment["author"]:
        logger.info("Discussion comment %s has no author (deleted account).", comment_node_id)
        return ActionResult(status=UNCHANGED)
    return manage(
        client=client,
        repo=repo,
        actor=comment["author"],
        body=comment["body"],
        fallback_target=comment["discussion_author"],
        store=store,
        config=config,
        writer=writer,
        react=lambda: react_to_discussion_comment(client, comment_node_id),
        dry_run=dry_run,
    )


def _persist(client, repo, store, writer, config, label, reapply, result: ActionResult) -> None:
    message = f"vouch: {label}"
    branch = branch_name(label=label) if config.get("pull_request") else None
    written = writer.commit_and_push(store.relative_path, message, reapply, branch=branch)
    if written.branch:
        base = get_default_branch(client, repo)
        pr = create_pull(client, repo, head=written.branch, base=base, title=message)
        result.branch = written.branch
        result.pull_request = pr.get("number")
        logger.info("Opened pull request #%s from %s", result.pull_request, written.branch)


# ---------------------------------------------------------------------------
# Gate checks
# ---------------------------------------------------------------------------


def gate_check(
    client,
    repo: str,
    number: int,
    store,
    config: dict,
    dry_run: bool = False,
) -> ActionResult:
    """Check the author of issue/PR ``number`` against the trust file.

    Collaborators with write access and bots are skipped. Denounced authors,
    and unknown authors when ``require_vouch`` is set, fail the gate; with
    ``auto_close`` the item is also commented on and closed.
    """
    platform = config.get("default_platform")
    issue = get_issue(client, repo, number)
    user = issue.get("user") or {}
    author = user.get("login")
    kind = "pull request" if issue.get("pull_request") else "issue"
    if not author:
        raise ConfigurationError(f"{kind} #{number} in {repo} has no author")

    if user.get("type") == "Bot" or has_write_access(client, repo, author):
        logger.info("%s is a collaborator or bot; skipping %s #%d.", author, kind, number)
        return ActionResult(status=SKIPPED, user=author)

    status = check_user(store.load(), qualify(author, platform), platform)
    if status == VOUCHED:
        return ActionResult(status=VOUCHED, user=author)
    if status != DENOUNCED and not config.get("require_vouch", True):
        return ActionResult(status=ALLOWED, user=author)

    template = _DENOUNCED_MESSAGE if status == DENOUNCED else _UNVOUCHED_MESSAGE
    if config.get("auto_close", True):
        if dry_run:
            logger.info("[dry-run] would close %s #%d by %s (%s).", kind, number, author, status)
        else:
            close_issue(client, repo, number, template.format(kind=kind))
            logger.info("Closed %s #%d by %s (%s).", kind, number, author, status)
    return ActionResult(status=CLOSED, user=author)


def check_platform_user(client, repo: str, username: str, store, config: dict) -> str:
    """Like check_user(), but collaborators with write access report ``skipped``."""
    platform = config.get("default_platform")
    handle = qualify(username, platform)
    login = handle.split(":", 1)[-1]
    if has_write_access(client, repo, login):
        return SKIPPED
    return check_user(store.load(), handle, platform)


# ---------------------------------------------------------------------------
# CODEOWNERS sync
# ---------------------------------------------------------------------------


def sync_codeowners(
    client,
    repo: str,
    store: LocalFileStore,
    config: dict,
    writer: ConflictSafeWriter | None = None,
    root: str = ".",
    dry_run: bool = False,
) -> ActionResult:
    """Vouch for every CODEOWNERS user and team member not already vouched."""
    platform = config.get("default_platform")
    path = find_codeowners(root, config.get("codeowners_file"))
    if path is None:
        raise ConfigurationError("No CODEOWNERS file found.")

    owners = parse_codeowners(Path(path).read_text(encoding="utf-8"))
    users = [qualify(u, platform) for u in expand_owners(owners, lambda team: get_team_members(client, team))]

    records, added = sync_owners(store.load_or_init(), users, platform)
    if not added:
        return ActionResult(status=UNCHANGED)
    result = ActionResult(status=UPDATED, added=added)

    if dry_run:
        logger.info("[dry-run] would vouch for %d codeowner(s): %s", len(added), ", ".join(added))
        return result

    def reapply(file_path: str) -> None:
        fresh, _ = sync_owners(store.load_or_init(), users, platform)
        store.save(fresh)

    store.save(records)
    if writer is not None:
        _persist(client, repo, store, writer, config, "sync codeowners", reapply, result)
    return result
