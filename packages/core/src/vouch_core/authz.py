"""Decide whether an actor may mutate the trust list.

Two steps, the second only reached when the first denies:

  1. Collaborator permission on the target repository: allowed when the
     actor's ``role_name`` is in the effective role set or the legacy
     ``permission`` string is in the effective legacy set.
  2. Delegated managers file: when configured, the actor is allowed if they
     are vouched in that (possibly external) trust file.

Role/legacy defaults are three-way and must stay that way:

  roles unset, legacy unset  -> roles = DEFAULT_ROLES, legacy = DEFAULT_LEGACY_PERMISSIONS
  roles set,   legacy unset  -> legacy = {} (explicit roles opt out of legacy defaults)
  legacy set                 -> legacy used verbatim
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_ROLES = frozenset({"admin", "maintain", "write", "triage"})
DEFAULT_LEGACY_PERMISSIONS = frozenset({"admin", "write"})

# (repo, user) -> {"permission": ..., "role_name": ...} or None when the user has no access.
FetchPermission = Callable[[str, str], "dict | None"]
# (user, repo, path, ref) -> bool; ref None means the repo's default branch.
CheckVouched = Callable[[str, str, str, "str | None"], bool]


@dataclass(frozen=True)
class ManagersConfig:
    path: str
    repo: str | None = None
    ref: str | None = None

    @classmethod
    def from_value(cls, value) -> ManagersConfig | None:
        """Build from the ``managers`` config value (a mapping or a bare path string)."""
        if not value:
            return None
        if isinstance(value, str):
            return cls(path=value)
        return cls(path=value.get("path") or "", repo=value.get("repo"), ref=value.get("ref"))


@dataclass(frozen=True)
class AuthorizationContext:
    roles: frozenset[str] | None = None
    legacy_permissions: frozenset[str] | None = None
    managers: ManagersConfig | None = None

    @classmethod
    def from_config(cls, config: dict) -> AuthorizationContext:
        roles = config.get("roles")
        legacy = config.get("legacy_permissions")
        return cls(
            roles=_normalize(roles) if roles is not None else None,
            legacy_permissions=_normalize(legacy) if legacy is not None else None,
            managers=ManagersConfig.from_value(config.get("managers")),
        )


def _normalize(values: Iterable[str] | str) -> frozenset[str]:
    if isinstance(values, str):
        values = values.split(",")
    return frozenset(v.strip().lower() for v in values if v and v.strip())


def effective_permissions(
    roles: frozenset[str] | None,
    legacy_permissions: frozenset[str] | None,
) -> tuple[frozenset[str], frozenset[str]]:
    """Resolve the role and legacy permission sets actually checked."""
    if legacy_permissions is not None:
        legacy = frozenset(legacy_permissions)
    elif roles is None:
        legacy = DEFAULT_LEGACY_PERMISSIONS
    else:
        legacy = frozenset()
    return (DEFAULT_ROLES if roles is None else frozenset(roles)), legacy


class AuthorizationResolver:
    """Answers can_manage() using two injected capabilities.

    ``fetch_permission`` and ``check_vouched`` are plain callables so tests can
    pass fakes and the resolver never reaches into the platform client or the
    trust store directly.
    """

    def __init__(self, fetch_permission: FetchPermission, check_vouched: CheckVouched):
        self._fetch_permission = fetch_permission
        self._check_vouched = check_vouched

    def can_manage(self, repo: str, actor: str, context: AuthorizationContext | None = None) -> bool:
        context = context or AuthorizationContext()
        roles, legacy = effective_permissions(context.roles, context.legacy_permissions)

        record = self._fetch_permission(repo, actor) or {}
        role_name = (record.get("role_name") or "").lower()
        permission = (record.get("permission") or "").lower()
        if role_name in roles or permission in legacy:
            logger.debug("%s may manage %s (role=%s, permission=%s)", actor, repo, role_name, permission)
            return True

        managers = context.managers
        if managers is None or not managers.path:
            logger.info("%s lacks permission to manage %s (role=%s, permission=%s)", actor, repo, role_name, permission)
            return False

        managers_repo = managers.repo or repo
        allowed = self._check_vouched(actor, managers_repo, managers.path, managers.ref)
        logger.info(
            "%s %s by managers file %s:%s",
            actor,
            "authorized" if allowed else "not authorized",
            managers_repo,
            managers.path,
        )
        return allowed
