"""Tests for GitHub repository helper functions."""

import base64
from unittest.mock import MagicMock

import pytest

from vouch_core.errors import MissingTrustFileError, PermanentPlatformError
from vouch_core.gh.repo import (
    close_issue,
    get_discussion_comment,
    get_file_content,
    get_permission,
    get_team_members,
    has_write_access,
)


def _not_found(endpoint="/x"):
    return PermanentPlatformError("GET", endpoint, 404, "Not Found")


class TestGetPermission:
    def test_returns_role_and_permission(self):
        client = MagicMock()
        client.get.return_value = {"permission": "write", "role_name": "maintain", "user": {}}
        assert get_permission(client, "o/r", "alice") == {"permission": "write", "role_name": "maintain"}
        client.get.assert_called_once_with("/repos/o/r/collaborators/alice/permission")

    def test_404_means_no_permission(self):
        client = MagicMock()
        client.get.side_effect = _not_found()
        assert get_permission(client, "o/r", "ghost") is None

    def test_other_errors_propagate(self):
        client = MagicMock()
        client.get.side_effect = PermanentPlatformError("GET", "/x", 401, "Bad credentials")
        with pytest.raises(PermanentPlatformError):
            get_permission(client, "o/r", "alice")

    def test_has_write_access(self):
        client = MagicMock()
        client.get.return_value = {"permission": "admin", "role_name": "admin"}
        assert has_write_access(client, "o/r", "alice") is True
        client.get.return_value = {"permission": "read", "role_name": "triage"}
        assert has_write_access(client, "o/r", "alice") is False


class TestGetFileContent:
    def test_decodes_base64(self):
        client = MagicMock()
        client.get.return_value = {"type": "file", "content": base64.b64encode(b"alice\n").decode()}
        assert get_file_content(client, "o/r", "VOUCHED.td", "main") == "alice\n"
        client.get.assert_called_once_with("/repos/o/r/contents/VOUCHED.td", params={"ref": "main"})

    def test_missing_file(self):
        client = MagicMock()
        client.get.side_effect = _not_found()
        with pytest.raises(MissingTrustFileError):
            get_file_content(client, "o/r", "VOUCHED.td")

    def test_directory_is_missing_file(self):
        client = MagicMock()
        client.get.return_value = [{"type": "file"}]
        with pytest.raises(MissingTrustFileError):
            get_file_content(client, "o/r", ".github")


def test_close_issue_comments_then_closes():
    client = MagicMock()
    close_issue(client, "o/r", 7, "bye")
    client.post.assert_called_once_with("/repos/o/r/issues/7/comments", {"body": "bye"})
    client.patch.assert_called_once_with("/repos/o/r/issues/7", {"state": "closed"})


def test_get_team_members():
    client = MagicMock()
    client.paginate.return_value = [{"login": "alice"}, {"login": "bob"}]
    assert get_team_members(client, "org/core-team") == ["alice", "bob"]
    client.paginate.assert_called_once_with("/orgs/org/teams/core-team/members")


def test_get_discussion_comment():
    client = MagicMock()
    client.graphql.return_value = {
        "node": {"id": "DC_1", "body": "vouch", "author": {"login": "maint"}, "discussion": {"author": {"login": "new"}}}
    }
    assert get_discussion_comment(client, "DC_1") == {"body": "vouch", "author": "maint", "discussion_author": "new"}


def test_get_discussion_comment_missing():
    client = MagicMock()
    client.graphql.return_value = {"node": None}
    with pytest.raises(PermanentPlatformError):
        get_discussion_comment(client, "DC_404")
