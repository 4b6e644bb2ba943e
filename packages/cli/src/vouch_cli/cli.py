"""CLI entry point for vouch.

Commands:
  check     report whether a user is vouched, denounced or unknown
  add       vouch for a user in the local trust file
  denounce  denounce a user in the local trust file
  remove    drop every entry for a user from the local trust file
  init      create the trust file and, optionally, a GitHub Actions workflow
  gh ...    GitHub workflows (gate checks, comment-driven management, CODEOWNERS sync)
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from vouch_cli.commands.gh import gh_group
from vouch_cli.commands.init import init_cmd
from vouch_cli.commands.local import add_cmd, check_cmd, denounce_cmd, remove_cmd

console = Console()


def _build_client(config: dict):
    """Instantiate the GitHub client from the resolved token.

    The token is resolved once per process in main() and handed to the client
    here, so nothing below the CLI reads credentials from the environment.
    """
    from vouch_core.gh.client import GitHubClient

    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    return GitHubClient(token=token, base_url=config.get("github_api_url"))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("vouch"),
    prog_name="vouch",
)
@click.option(
    "--config",
    "config_path",
    default=".vouch.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="VOUCH_CONFIG",
)
@click.option(
    "--file",
    "vouched_file",
    default=None,
    help="Trust file path. Defaults to .github/VOUCHED.td or VOUCHED.td.",
    envvar="VOUCH_FILE",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def main(ctx: click.Context, config_path: str, vouched_file: str | None, verbose: bool):
    """Manage a project's list of vouched and denounced contributors."""
    from vouch_core.config import load_config
    from vouch_core.errors import ConfigurationError
    from vouch_cli.auth import resolve_github_token
    from vouch_cli.output import VouchClickException

    _configure_logging(verbose)
    ctx.ensure_object(dict)

    try:
        config = load_config(config_path, cli_overrides={"vouched_file": vouched_file})
    except ConfigurationError as e:
        raise VouchClickException(str(e)) from e

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token(config.get("github_api_url"))
    if token:
        config["github_token"] = token

    ctx.obj["config"] = config
    ctx.obj["build_client"] = _build_client


main.add_command(check_cmd)
main.add_command(add_cmd)
main.add_command(denounce_cmd)
main.add_command(remove_cmd)
main.add_command(init_cmd)
main.add_command(gh_group)
