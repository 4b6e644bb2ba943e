"""Tests for the authorization resolver."""

from unittest.mock import MagicMock

from vouch_core.authz import (
    DEFAULT_LEGACY_PERMISSIONS,
    DEFAULT_ROLES,
    AuthorizationContext,
    AuthorizationResolver,
    ManagersConfig,
    effective_permissions,
)


def _resolver(permission=None, vouched=False):
    fetch = MagicMock(return_value=permission)
    check = MagicMock(return_value=vouched)
    return AuthorizationResolver(fetch_permission=fetch, check_vouched=check), fetch, check


class TestEffectivePermissions:
    def test_both_unset_use_defaults(self):
        roles, legacy = effective_permissions(None, None)
        assert roles == {"admin", "maintain", "write", "triage"} == DEFAULT_ROLES
        assert legacy == {"admin", "write"} == DEFAULT_LEGACY_PERMISSIONS

    def test_explicit_roles_disable_legacy_defaults(self):
        roles, legacy = effective_permissions(frozenset({"admin"}), None)
        assert roles == {"admin"}
        assert legacy == frozenset()

    def test_explicit_legacy_wins_with_default_roles(self):
        roles, legacy = effective_permissions(None, frozenset({"read"}))
        assert roles == DEFAULT_ROLES
        assert legacy == {"read"}

    def test_explicit_legacy_wins_with_explicit_roles(self):
        _, legacy = effective_permissions(frozenset({"admin"}), frozenset({"write"}))
        assert legacy == {"write"}

    def test_explicit_empty_legacy_stays_empty(self):
        _, legacy = effective_permissions(None, frozenset())
        assert legacy == frozenset()


class TestCanManage:
    def test_triage_role_allowed(self):
        resolver, _, check = _resolver({"role_name": "triage", "permission": "read"})
        assert resolver.can_manage("owner/repo", "actor") is True
        check.assert_not_called()

    def test_read_denied_without_managers(self):
        resolver, _, check = _resolver({"role_name": "read", "permission": "read"})
        assert resolver.can_manage("owner/repo", "actor") is False
        check.assert_not_called()

    def test_legacy_permission_allowed(self):
        resolver, _, _ = _resolver({"role_name": "custom", "permission": "write"})
        assert resolver.can_manage("owner/repo", "actor") is True

    def test_explicit_roles_ignore_legacy_defaults(self):
        resolver, _, _ = _resolver({"role_name": "custom", "permission": "write"})
        context = AuthorizationContext(roles=frozenset({"admin"}))
        assert resolver.can_manage("owner/repo", "actor", context) is False

    def test_no_permission_record_denied(self):
        resolver, fetch, _ = _resolver(None)
        assert resolver.can_manage("owner/repo", "actor") is False
        fetch.assert_called_once_with("owner/repo", "actor")

    def test_managers_file_consulted_when_step_one_denies(self):
        resolver, _, check = _resolver({"role_name": "read", "permission": "read"}, vouched=True)
        context = AuthorizationContext(managers=ManagersConfig(path=".github/MANAGERS.td"))
        assert resolver.can_manage("owner/repo", "actor", context) is True
        check.assert_called_once_with("actor", "owner/repo", ".github/MANAGERS.td", None)

    def test_managers_file_in_other_repo(self):
        resolver, _, check = _resolver(None, vouched=False)
        context = AuthorizationContext(managers=ManagersConfig(path="MANAGERS.td", repo="org/governance", ref="main"))
        assert resolver.can_manage("owner/repo", "actor", context) is False
        check.assert_called_once_with("actor", "org/governance", "MANAGERS.td", "main")

    def test_managers_skipped_when_step_one_allows(self):
        resolver, _, check = _resolver({"role_name": "admin", "permission": "admin"})
        context = AuthorizationContext(managers=ManagersConfig(path="MANAGERS.td"))
        assert resolver.can_manage("owner/repo", "actor", context) is True
        check.assert_not_called()

    def test_empty_managers_path_skipped(self):
        resolver, _, check = _resolver(None, vouched=True)
        context = AuthorizationContext(managers=ManagersConfig(path=""))
        assert resolver.can_manage("owner/repo", "actor", context) is False
        check.assert_not_called()


class TestContextFromConfig:
    def test_unset(self):
        context = AuthorizationContext.from_config({})
        assert context.roles is None
        assert context.legacy_permissions is None
        assert context.managers is None

    def test_comma_separated_strings(self):
        context = AuthorizationContext.from_config({"roles": "Admin, maintain", "legacy_permissions": "write"})
        assert context.roles == {"admin", "maintain"}
        assert context.legacy_permissions == {"write"}

    def test_managers_mapping_and_string(self):
        mapping = AuthorizationContext.from_config({"managers": {"path": "M.td", "repo": "o/r"}})
        assert mapping.managers == ManagersConfig(path="M.td", repo="o/r")
        bare = AuthorizationContext.from_config({"managers": "M.td"})
        assert bare.managers == ManagersConfig(path="M.td")
