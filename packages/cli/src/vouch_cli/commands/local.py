"""Local trust file commands: check, add, denounce, remove.

These work on the trust file in the current directory and never touch the
network. Mutating commands print the resulting file unless --write is given,
so they double as a preview.
"""

from __future__ import annotations

import click

from vouch_cli.output import print_status, vouch_errors
from vouch_core.codec import serialize
from vouch_core.config import resolve_trust_file
from vouch_core.trust import DENOUNCED, VOUCHED, add_user, check_user, denounce_user, remove_user
from vouch_store.local import LocalFileStore

_EXIT_CODES = {VOUCHED: 0, DENOUNCED: 1}


def _store(ctx) -> LocalFileStore:
    return LocalFileStore(resolve_trust_file(ctx.obj["config"]))


def _finish(store: LocalFileStore, before, after, status: str, user: str, write: bool) -> None:
    if after == before:
        print_status("unchanged", user)
        return
    if not write:
        click.echo(serialize(after), nl=False)
        return
    store.save(after)
    print_status(status, user)


@click.command("check")
@click.argument("user")
@click.pass_context
@vouch_errors
def check_cmd(ctx, user: str):
    """Check USER against the trust file.

    Exit status: 0 vouched, 1 denounced, 2 unknown, 3 error.
    """
    config = ctx.obj["config"]
    status = check_user(_store(ctx).load(), user, config.get("default_platform"))
    print_status(status, user)
    ctx.exit(_EXIT_CODES.get(status, 2))


@click.command("add")
@click.argument("user")
@click.option("--details", default=None, help="Free-form details stored after the handle.")
@click.option("--write", "-w", is_flag=True, help="Write the file instead of printing it.")
@click.pass_context
@vouch_errors
def add_cmd(ctx, user: str, details: str | None, write: bool):
    """Vouch for USER ([platform:]username)."""
    store = _store(ctx)
    before = store.load_or_init()
    after = add_user(before, user, ctx.obj["config"].get("default_platform"), details)
    _finish(store, before, after, "vouched", user, write)


@click.command("denounce")
@click.argument("user")
@click.option("--reason", default=None, help="Why the user is denounced.")
@click.option("--write", "-w", is_flag=True, help="Write the file instead of printing it.")
@click.pass_context
@vouch_errors
def denounce_cmd(ctx, user: str, reason: str | None, write: bool):
    """Denounce USER ([platform:]username)."""
    store = _store(ctx)
    before = store.load_or_init()
    after = denounce_user(before, user, reason, ctx.obj["config"].get("default_platform"))
    _finish(store, before, after, "denounced", user, write)


@click.command("remove")
@click.argument("user")
@click.option("--write", "-w", is_flag=True, help="Write the file instead of printing it.")
@click.pass_context
@vouch_errors
def remove_cmd(ctx, user: str, write: bool):
    """Remove every entry (vouch or denounce) for USER."""
    store = _store(ctx)
    before = store.load()
    after = remove_user(before, user, ctx.obj["config"].get("default_platform"))
    _finish(store, before, after, "unvouched", user, write)
