"""Tests for GitHub token resolution."""

import subprocess
from unittest.mock import MagicMock

import pytest

from vouch_cli.auth import gh_hostname, resolve_github_token


@pytest.fixture(autouse=True)
def _no_env_tokens(monkeypatch):
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GH_TOKEN", raising=False)


def _completed(stdout="", returncode=0):
    return MagicMock(spec=subprocess.CompletedProcess, stdout=stdout, returncode=returncode)


def test_github_token_wins(monkeypatch, mocker):
    monkeypatch.setenv("GITHUB_TOKEN", "from-actions")
    monkeypatch.setenv("GH_TOKEN", "from-gh-env")
    run = mocker.patch("vouch_cli.auth.subprocess.run")

    assert resolve_github_token() == "from-actions"
    run.assert_not_called()


def test_gh_token_env(monkeypatch, mocker):
    monkeypatch.setenv("GH_TOKEN", "from-gh-env")
    mocker.patch("vouch_cli.auth.subprocess.run")
    assert resolve_github_token() == "from-gh-env"


def test_falls_back_to_gh_cli(mocker):
    run = mocker.patch("vouch_cli.auth.subprocess.run", return_value=_completed("gho_abc\n"))
    assert resolve_github_token() == "gho_abc"
    assert run.call_args.args[0] == ["gh", "auth", "token"]


def test_enterprise_host_passed_to_gh(mocker):
    run = mocker.patch("vouch_cli.auth.subprocess.run", return_value=_completed("ghe_tok"))
    assert resolve_github_token("https://ghe.example.com/api/v3") == "ghe_tok"
    assert run.call_args.args[0] == ["gh", "auth", "token", "--hostname", "ghe.example.com"]


def test_gh_not_logged_in(mocker):
    mocker.patch("vouch_cli.auth.subprocess.run", return_value=_completed("", returncode=1))
    assert resolve_github_token() is None


def test_gh_not_installed(mocker):
    mocker.patch("vouch_cli.auth.subprocess.run", side_effect=FileNotFoundError("gh"))
    assert resolve_github_token() is None


@pytest.mark.parametrize(
    "api_url, expected",
    [
        (None, None),
        ("https://api.github.com", None),
        ("https://ghe.corp.example/api/v3", "ghe.corp.example"),
    ],
)
def test_gh_hostname(api_url, expected):
    assert gh_hostname(api_url) == expected
