"""Tests for ConflictSafeWriter against a real temporary git remote."""

import shutil
import subprocess
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from vouch_core.codec import parse, serialize
from vouch_core.errors import DivergedPushError, GitError
from vouch_core.trust import add_user
from vouch_core.writer import ConflictSafeWriter, Git, branch_name

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

TRUST_FILE = "VOUCHED.td"
_IDENTITY = ["-c", "user.name=Test", "-c", "user.email=test@example.com", "-c", "commit.gpgsign=false"]


def _git(cwd, *args) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout.strip()


@pytest.fixture
def remote(tmp_path) -> Path:
    bare = tmp_path / "remote.git"
    _git(tmp_path, "init", "--bare", str(bare))
    _git(bare, "symbolic-ref", "HEAD", "refs/heads/main")

    seed = tmp_path / "seed"
    seed.mkdir()
    _git(seed, "init")
    _git(seed, "checkout", "-b", "main")
    (seed / TRUST_FILE).write_text("# header\nmitchellh\n")
    _git(seed, "add", TRUST_FILE)
    _git(seed, *_IDENTITY, "commit", "-m", "seed")
    _git(seed, "remote", "add", "origin", str(bare))
    _git(seed, "push", "origin", "main")
    return bare


def _clone(remote: Path, dest: Path) -> Path:
    _git(dest.parent, "clone", str(remote), str(dest))
    _git(dest, "config", "commit.gpgsign", "false")
    return dest


def _add(checkout: Path, user: str) -> None:
    path = checkout / TRUST_FILE
    path.write_text(serialize(add_user(parse(path.read_text()), user)))


def _writer(checkout: Path, attempts: int = 3) -> ConflictSafeWriter:
    return ConflictSafeWriter(Git(cwd=str(checkout)), attempts=attempts)


def _remote_file(remote: Path, ref: str = "main") -> str:
    return _git(remote, "show", f"{ref}:{TRUST_FILE}") + "\n"


def test_single_writer_pushes(remote, tmp_path):
    a = _clone(remote, tmp_path / "a")
    _add(a, "alice")

    result = _writer(a).commit_and_push(TRUST_FILE, "vouch: alice", reapply=MagicMock())

    assert result.committed is True
    assert result.branch is None
    assert _remote_file(remote) == "# header\nalice\nmitchellh\n"
    assert _git(a, "log", "-1", "--format=%an") == "github-actions[bot]"


def test_concurrent_writers_both_mutations_survive(remote, tmp_path):
    a = _clone(remote, tmp_path / "a")
    b = _clone(remote, tmp_path / "b")

    _add(a, "alice")
    _writer(a).commit_and_push(TRUST_FILE, "vouch: alice", reapply=MagicMock())

    # b still sees the seed content; its first push is rejected.
    _add(b, "bob")
    reapply = MagicMock(side_effect=lambda path: _add(b, "bob"))
    result = _writer(b).commit_and_push(TRUST_FILE, "vouch: bob", reapply=reapply)

    assert result.committed is True
    reapply.assert_called_once_with(TRUST_FILE)
    assert _remote_file(remote) == "# header\nalice\nbob\nmitchellh\n"


def test_no_change_skips_commit(remote, tmp_path):
    a = _clone(remote, tmp_path / "a")
    head = _git(a, "rev-parse", "HEAD")

    result = _writer(a).commit_and_push(TRUST_FILE, "noop", reapply=MagicMock())

    assert result.committed is False
    assert _git(a, "rev-parse", "HEAD") == head


def test_reapply_finding_change_already_applied_skips_commit(remote, tmp_path):
    a = _clone(remote, tmp_path / "a")
    b = _clone(remote, tmp_path / "b")
    _add(a, "alice")
    _writer(a).commit_and_push(TRUST_FILE, "vouch: alice", reapply=MagicMock())

    _add(b, "alice")
    result = _writer(b).commit_and_push(TRUST_FILE, "vouch: alice", reapply=lambda path: _add(b, "alice"))

    assert result.committed is False
    assert _remote_file(remote) == "# header\nalice\nmitchellh\n"


def test_exhausted_attempts_raise(remote, tmp_path):
    a = _clone(remote, tmp_path / "a")
    b = _clone(remote, tmp_path / "b")
    _add(a, "alice")
    _writer(a).commit_and_push(TRUST_FILE, "vouch: alice", reapply=MagicMock())

    _add(b, "bob")
    reapply = MagicMock()
    with pytest.raises(DivergedPushError) as exc:
        _writer(b, attempts=1).commit_and_push(TRUST_FILE, "vouch: bob", reapply=reapply)

    assert exc.value.attempts == 1
    assert exc.value.last_error is not None
    reapply.assert_not_called()
    assert "bob" not in _remote_file(remote)
    assert _git(b, "rev-list", "--count", "origin/main..HEAD") == "0"
    assert _git(b, "status", "--porcelain") == ""


def test_branch_mode_pushes_to_new_branch(remote, tmp_path):
    a = _clone(remote, tmp_path / "a")
    _add(a, "alice")
    branch = branch_name(label="vouch github:alice")

    result = _writer(a).commit_and_push(TRUST_FILE, "vouch: alice", reapply=MagicMock(), branch=branch)

    assert result.committed is True
    assert result.branch == branch
    assert "alice" in _remote_file(remote, branch)
    assert "alice" not in _remote_file(remote, "main")


def test_branch_name_is_unique_and_slugged():
    first = branch_name(label="vouch github:Alice")
    second = branch_name(label="vouch github:Alice")
    assert first.startswith("vouch/vouch-github-alice-")
    assert first != second


def test_attempts_must_be_positive():
    with pytest.raises(ValueError):
        ConflictSafeWriter(Git(), attempts=0)


def test_exhausted_branch_mode_returns_to_base():
    git = MagicMock(spec=Git)
    git.current_branch.return_value = "main"
    git.run.return_value = subprocess.CompletedProcess([], 0, stdout="abc123\n", stderr="")
    git.has_staged_changes.return_value = True
    git.push.side_effect = GitError(["push"], 1, "rejected")

    with pytest.raises(DivergedPushError):
        ConflictSafeWriter(git, attempts=2).commit_and_push(
            TRUST_FILE, "vouch: bob", reapply=MagicMock(), branch="vouch/bob-1"
        )

    calls = [c.args for c in git.run.call_args_list]
    assert calls[-3:] == [
        ("checkout", "--force", "main"),
        ("branch", "-D", "vouch/bob-1"),
        ("reset", "--hard", "abc123"),
    ]
    git.reset_to_remote.assert_called_once_with("main")
