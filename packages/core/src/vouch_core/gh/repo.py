from __future__ import annotations

import base64

from vouch_core.errors import MissingTrustFileError, PermanentPlatformError

_DISCUSSION_COMMENT_QUERY = """
query($id: ID!) {
  node(id: $id) {
    ... on DiscussionComment {
      id
      body
      author { login }
      discussion { number author { login } }
    }
  }
}
"""

_ADD_REACTION_MUTATION = """
mutation($subject: ID!, $content: ReactionContent!) {
  addReaction(input: {subjectId: $subject, content: $content}) {
    reaction { content }
  }
}
"""


def get_permission(client, repo: str, user: str) -> dict | None:
    """Return ``{"permission", "role_name"}`` for ``user`` on ``repo``, or None if they have no access."""
    try:
        data = client.get(f"/repos/{repo}/collaborators/{user}/permission")
    except PermanentPlatformError as e:
        if e.status == 404:
            return None
        raise
    return {"permission": data.get("permission"), "role_name": data.get("role_name")}


def has_write_access(client, repo: str, user: str) -> bool:
    record = get_permission(client, repo, user) or {}
    return record.get("permission") in ("admin", "write")


def get_default_branch(client, repo: str) -> str:
    return client.get(f"/repos/{repo}")["default_branch"]


def get_file_content(client, repo: str, path: str, ref: str | None = None) -> str:
    """Fetch a text file through the contents API; raises MissingTrustFileError on 404."""
    params = {"ref": ref} if ref else None
    try:
        data = client.get(f"/repos/{repo}/contents/{path}", params=params)
    except PermanentPlatformError as e:
        if e.status == 404:
            raise MissingTrustFileError(path, where=f"{repo}@{ref}" if ref else repo) from e
        raise
    if isinstance(data, list) or data.get("type") != "file":
        raise MissingTrustFileError(path, where=repo)
    return base64.b64decode(data.get("content") or "").decode("utf-8")


def get_issue(client, repo: str, number: int) -> dict:
    """Issues and pull requests share this endpoint; PRs carry a ``pull_request`` key."""
    return client.get(f"/repos/{repo}/issues/{number}")


def get_issue_comment(client, repo: str, comment_id: int) -> dict:
    return client.get(f"/repos/{repo}/issues/comments/{comment_id}")


def react_to_issue_comment(client, repo: str, comment_id: int, content: str = "+1") -> None:
    client.post(f"/repos/{repo}/issues/comments/{comment_id}/reactions", {"content": content})


def close_issue(client, repo: str, number: int, comment: str | None = None) -> None:
    """Optionally comment, then close an issue or pull request."""
    if comment:
        client.post(f"/repos/{repo}/issues/{number}/comments", {"body": comment})
    client.patch(f"/repos/{repo}/issues/{number}", {"state": "closed"})


def create_pull(client, repo: str, head: str, base: str, title: str, body: str = "") -> dict:
    return client.post(f"/repos/{repo}/pulls", {"title": title, "head": head, "base": base, "body": body})


def get_team_members(client, team: str) -> list[str]:
    """Expand ``org/team-slug`` into member logins (paginated, sequential)."""
    org, _, slug = team.partition("/")
    members = client.paginate(f"/orgs/{org}/teams/{slug}/members")
    return [m["login"] for m in members if m.get("login")]


def get_discussion_comment(client, node_id: str) -> dict:
    """Return ``{"body", "author", "discussion_author"}`` for a discussion comment node."""
    node = client.graphql(_DISCUSSION_COMMENT_QUERY, {"id": node_id}).get("node")
    if not node:
        raise PermanentPlatformError("POST", "/graphql", 404, f"discussion comment {node_id} not found")
    return {
        "body": node.get("body") or "",
        "author": (node.get("author") or {}).get("login"),
        "discussion_author": ((node.get("discussion") or {}).get("author") or {}).get("login"),
    }


def react_to_discussion_comment(client, node_id: str, content: str = "THUMBS_UP") -> None:
    client.graphql(_ADD_REACTION_MUTATION, {"subject": node_id, "content": content})
