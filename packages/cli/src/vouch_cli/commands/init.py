"""init command: set up vouch in a repository.

Creates the trust file with its explanatory header and, optionally, writes
.vouch.yml and a GitHub Actions workflow that wires issue comments to
`vouch gh manage-by-issue` and pull requests to `vouch gh check-pr`.
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

import click
import yaml
from rich.console import Console

from vouch_core.config import TRUST_FILE_LOCATIONS
from vouch_core.writer import Git
from vouch_store.local import TEMPLATE_HEADER

console = Console()

# https://host/owner/name(.git), ssh://git@host/owner/name, git@host:owner/name(.git)
_REMOTE_RE = re.compile(
    r"^(?:[a-z+]+://)?(?:[^@/]+@)?[^/:]+[:/](?P<owner>[^/]+)/(?P<name>[^/]+?)(?:\.git)?/?$"
)

_WORKFLOW_TEMPLATE = """\
name: Vouch

on:
  issue_comment:
    types: [created]
  pull_request_target:
    types: [opened, reopened]

concurrency:
  group: vouch-${{{{ github.event_name }}}}

jobs:
  manage:
    if: github.event_name == 'issue_comment'
    runs-on: ubuntu-latest
    permissions:
      contents: write
      issues: write
      pull-requests: write
    steps:
      - uses: actions/checkout@v4
      - uses: actions/setup-python@v5
        with:
          python-version: "3.12"
      - run: pip install "vouch=={version}"
      - env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
        run: |
          vouch --file {vouched_file} gh manage-by-issue \\
            ${{{{ github.event.issue.number }}}} ${{{{ github.event.comment.id }}}}

  gate:
    if: github.event_name == 'pull_request_target'
    runs-on: ubuntu-latest
    permissions:
      contents: read
      pull-requests: write
    steps:
      - uses: actions/setup-python@v5
        with:
          python-version: "3.12"
      - run: pip install "vouch=={version}"
      - env:
          GITHUB_TOKEN: ${{{{ secrets.GITHUB_TOKEN }}}}
        run: vouch --file {vouched_file} gh check-pr ${{{{ github.event.pull_request.number }}}}
"""


@click.command("init")
@click.option(
    "--file",
    "vouched_file",
    default=TRUST_FILE_LOCATIONS[0],
    show_default=True,
    help="Where to create the trust file.",
)
@click.option("--workflow/--no-workflow", default=None, help="Generate .github/workflows/vouch.yml.")
@click.option("--require-vouch/--no-require-vouch", default=True, help="Close PRs from unknown authors too.")
def init_cmd(vouched_file: str, workflow: bool | None, require_vouch: bool):
    """Create the trust file and optional configuration for this repository."""
    console.print("\n[bold cyan]vouch init[/bold cyan]\n")

    repo = _detect_repo_from_git()
    if repo:
        console.print(f"[dim]Detected repository: {repo}[/dim]")

    path = Path(vouched_file)
    if path.exists():
        console.print(f"[yellow]{vouched_file} already exists, left unchanged.[/yellow]")
    else:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(TEMPLATE_HEADER, encoding="utf-8")
        console.print(f"[green]Created {vouched_file}[/green]")

    config: dict = {"require_vouch": require_vouch}
    if repo:
        config["repo"] = repo
    if vouched_file != TRUST_FILE_LOCATIONS[0]:
        config["vouched_file"] = vouched_file
    _write_config(config)
    console.print("[green]Wrote .vouch.yml[/green]")

    if workflow is None:
        workflow = click.confirm("\nGenerate .github/workflows/vouch.yml for GitHub Actions?", default=True)
    if workflow:
        _write_workflow(vouched_file)
        console.print("[green]Created .github/workflows/vouch.yml[/green]")

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Vouch for someone with: [bold]vouch add <user> --write[/bold]")


def parse_remote_url(url: str) -> str | None:
    """``owner/name`` from an https, ssh or scp-style git remote URL, or None."""
    match = _REMOTE_RE.match(url.strip())
    if not match:
        return None
    return f"{match.group('owner')}/{match.group('name')}"


def _detect_repo_from_git() -> str | None:
    try:
        result = Git().run("remote", "get-url", "origin", check=False)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return parse_remote_url(result.stdout)


def _write_config(updates: dict) -> None:
    """Merge ``updates`` into .vouch.yml. Keys already in the file are kept."""
    path = Path(".vouch.yml")
    config: dict = {}
    if path.exists():
        config = yaml.safe_load(path.read_text()) or {}
    for key, value in updates.items():
        config.setdefault(key, value)
    path.write_text(yaml.safe_dump(config, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    """Read the current vouch version from the installed package metadata."""
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("vouch")
    except PackageNotFoundError:
        return "0.1.0"


def _write_workflow(vouched_file: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    (workflow_dir / "vouch.yml").write_text(
        _WORKFLOW_TEMPLATE.format(version=_get_version(), vouched_file=vouched_file)
    )
