"""gh commands: GitHub workflows run from Actions (or locally with --dry-run).

  check-pr / check-issue   gate an item on its author's trust status
  check-user               trust status of a GitHub user, collaborators skipped
  manage-by-issue          apply a vouch/denounce/unvouch issue comment
  manage-by-discussion     same, for a discussion comment
  sync-codeowners          vouch for every CODEOWNERS user and team member

The gate and check commands read the trust file through the API. The
mutating commands edit the checked-out file and commit/push it with the
ConflictSafeWriter.
"""

from __future__ import annotations

import click

from vouch_cli.output import console, print_status, vouch_errors
from vouch_core.config import TRUST_FILE_LOCATIONS, require_repo, resolve_trust_file
from vouch_core.errors import MissingTrustFileError
from vouch_core.gh.repo import get_default_branch
from vouch_core.trust import DENOUNCED, VOUCHED
from vouch_core.workflows import (
    CLOSED,
    SKIPPED,
    check_platform_user,
    gate_check,
    manage_by_discussion,
    manage_by_issue,
    sync_codeowners,
)
from vouch_core.writer import ConflictSafeWriter, Git
from vouch_store.local import LocalFileStore
from vouch_store.remote import RemoteFileStore

_dry_run_option = click.option(
    "--dry-run",
    is_flag=True,
    help="Log what would happen without writing, pushing, commenting or closing anything.",
)


def _remote_store(client, repo: str, config: dict) -> RemoteFileStore:
    """Locate the trust file on the default branch through the API."""
    configured = config.get("vouched_file")
    candidates = (configured,) if configured else TRUST_FILE_LOCATIONS
    ref = get_default_branch(client, repo)
    for candidate in candidates:
        store = RemoteFileStore(client, repo, candidate, ref)
        if store.exists():
            return store
    raise MissingTrustFileError(candidates[0], where=repo)


def _writer(config: dict) -> ConflictSafeWriter:
    return ConflictSafeWriter(Git(), attempts=int(config.get("push_attempts") or 3))


def _print_result(result) -> None:
    if result.action and result.user:
        subject = f"{result.user} ({result.action})"
    elif result.added:
        subject = ", ".join(result.added)
    else:
        subject = result.user
    print_status(result.status, subject)
    if result.pull_request:
        console.print(f"[dim]Opened pull request #{result.pull_request} from {result.branch}[/dim]")


@click.group("gh")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Defaults to GITHUB_REPOSITORY.")
@click.pass_context
def gh_group(ctx, repo: str | None):
    """GitHub workflows."""
    if repo:
        ctx.obj["config"]["repo"] = repo


def _context(ctx):
    config = ctx.obj["config"]
    repo = require_repo(config)
    client = ctx.obj["build_client"](config)
    return config, repo, client


def _gate(ctx, number: int, require_vouch: bool | None, auto_close: bool | None, dry_run: bool) -> None:
    config, repo, client = _context(ctx)
    if require_vouch is not None:
        config["require_vouch"] = require_vouch
    if auto_close is not None:
        config["auto_close"] = auto_close
    result = gate_check(client, repo, number, _remote_store(client, repo, config), config, dry_run=dry_run)
    print_status(result.status, result.user)
    if result.status == CLOSED:
        ctx.exit(1)


@gh_group.command("check-pr")
@click.argument("number", type=int)
@click.option("--require-vouch/--no-require-vouch", default=None, help="Also fail unknown authors.")
@click.option("--auto-close/--no-auto-close", default=None, help="Close items that fail the gate.")
@_dry_run_option
@click.pass_context
@vouch_errors
def check_pr_cmd(ctx, number: int, require_vouch: bool | None, auto_close: bool | None, dry_run: bool):
    """Gate pull request NUMBER on its author's trust status."""
    _gate(ctx, number, require_vouch, auto_close, dry_run)


@gh_group.command("check-issue")
@click.argument("number", type=int)
@click.option("--require-vouch/--no-require-vouch", default=None, help="Also fail unknown authors.")
@click.option("--auto-close/--no-auto-close", default=None, help="Close items that fail the gate.")
@_dry_run_option
@click.pass_context
@vouch_errors
def check_issue_cmd(ctx, number: int, require_vouch: bool | None, auto_close: bool | None, dry_run: bool):
    """Gate issue NUMBER on its author's trust status."""
    _gate(ctx, number, require_vouch, auto_close, dry_run)


@gh_group.command("check-user")
@click.argument("user")
@click.pass_context
@vouch_errors
def check_user_cmd(ctx, user: str):
    """Check a GitHub USER; collaborators with write access report `skipped`.

    Exit status: 0 vouched or skipped, 1 denounced, 2 unknown, 3 error.
    """
    config, repo, client = _context(ctx)
    status = check_platform_user(client, repo, user, _remote_store(client, repo, config), config)
    print_status(status, user)
    ctx.exit({VOUCHED: 0, SKIPPED: 0, DENOUNCED: 1}.get(status, 2))


def _manage_options(func):
    """Authorization and write-mode overrides shared by the mutating commands."""
    options = [
        click.option("--roles", default=None, help="Comma-separated roles allowed to manage the list."),
        click.option("--legacy-permissions", default=None, help="Comma-separated legacy permissions allowed."),
        click.option("--managers-file", default=None, help="Trust file whose vouched users may also manage."),
        click.option("--managers-repo", default=None, help="Repository holding --managers-file (owner/name)."),
        click.option("--managers-ref", default=None, help="Git ref of --managers-file. Defaults to default branch."),
        click.option("--pull-request/--push", "pull_request", default=None, help="Open a PR instead of pushing."),
        _dry_run_option,
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _apply_manage_overrides(config: dict, options: dict) -> None:
    if options["roles"] is not None:
        config["roles"] = options["roles"]
    if options["legacy_permissions"] is not None:
        config["legacy_permissions"] = options["legacy_permissions"]
    if options["pull_request"] is not None:
        config["pull_request"] = options["pull_request"]
    if options["managers_file"]:
        config["managers"] = {
            "path": options["managers_file"],
            "repo": options["managers_repo"],
            "ref": options["managers_ref"],
        }


@gh_group.command("manage-by-issue")
@click.argument("issue", type=int)
@click.argument("comment_id", type=int)
@_manage_options
@click.pass_context
@vouch_errors
def manage_by_issue_cmd(ctx, issue: int, comment_id: int, dry_run: bool, **options):
    """Apply the vouch command in COMMENT_ID on ISSUE, if its author may manage the list."""
    config, repo, client = _context(ctx)
    _apply_manage_overrides(config, options)
    store = LocalFileStore(resolve_trust_file(config))
    result = manage_by_issue(client, repo, issue, comment_id, store, config, writer=_writer(config), dry_run=dry_run)
    _print_result(result)


@gh_group.command("manage-by-discussion")
@click.argument("comment_node_id")
@_manage_options
@click.pass_context
@vouch_errors
def manage_by_discussion_cmd(ctx, comment_node_id: str, dry_run: bool, **options):
    """Apply the vouch command in discussion comment COMMENT_NODE_ID."""
    config, repo, client = _context(ctx)
    _apply_manage_overrides(config, options)
    store = LocalFileStore(resolve_trust_file(config))
    writer = _writer(config)
    result = manage_by_discussion(client, repo, comment_node_id, store, config, writer=writer, dry_run=dry_run)
    _print_result(result)


@gh_group.command("sync-codeowners")
@click.option("--codeowners", "codeowners_file", default=None, help="CODEOWNERS path. Probed when omitted.")
@click.option("--pull-request/--push", "pull_request", default=None, help="Open a PR instead of pushing.")
@_dry_run_option
@click.pass_context
@vouch_errors
def sync_codeowners_cmd(ctx, codeowners_file: str | None, pull_request: bool | None, dry_run: bool):
    """Vouch for every user and team member listed in CODEOWNERS (never removes anyone)."""
    config, repo, client = _context(ctx)
    if codeowners_file:
        config["codeowners_file"] = codeowners_file
    if pull_request is not None:
        config["pull_request"] = pull_request
    store = LocalFileStore(resolve_trust_file(config))
    result = sync_codeowners(client, repo, store, config, writer=_writer(config), dry_run=dry_run)
    _print_result(result)
