"""Tests for permission resolution."""

import pytest

from src.access.application import AuthorizationService
from src.access.domain import Account, PermissionResolver
from src.config import AccountRole
from src.core import PermissionDenied


CATALOG_KEYS = [
    "admin:stats",
    "admin:settings",
    "company:payments",
    "company:programs",
    "company:team",
    "researcher:reports",
    "triage:reports",
]

ROOT_NAMESPACES = {
    AccountRole.ADMIN: "admin:",
    AccountRole.COMPANY_ADMIN: "company:",
    AccountRole.RESEARCHER: "researcher:",
    AccountRole.TRIAGER: "triage:",
}


def _account(role, parent_id=None, custom_role_id=None, keys=()):
    return Account(
        id="acc-1",
        email="someone@example.com",
        role=role,
        parent_id=parent_id,
        custom_role_id=custom_role_id,
        permission_keys=frozenset(keys),
    )


@pytest.mark.parametrize("key", CATALOG_KEYS + ["anything:else"])
def test_super_admin_is_always_allowed(key):
    assert PermissionResolver.has_permission(_account(AccountRole.SUPER_ADMIN), key)


@pytest.mark.parametrize("role,namespace", ROOT_NAMESPACES.items())
def test_root_account_allowed_exactly_within_its_namespace(role, namespace):
    """A root account holds every key of its namespace and nothing else."""
    account = _account(role)
    for key in CATALOG_KEYS:
        assert PermissionResolver.has_permission(account, key) == key.startswith(namespace)


def test_sub_account_with_custom_role_gets_only_granted_keys():
    """Base-role keys do not leak through once a custom role is assigned."""
    employee = _account(
        AccountRole.COMPANY_ADMIN,
        parent_id="company-1",
        custom_role_id="role-1",
        keys={"company:stats"},
    )

    assert PermissionResolver.has_permission(employee, "company:stats")
    for key in CATALOG_KEYS:
        assert not PermissionResolver.has_permission(employee, key)


def test_sub_account_without_custom_role_falls_back_to_base_role():
    employee = _account(AccountRole.COMPANY_ADMIN, parent_id="company-1")

    assert PermissionResolver.has_permission(employee, "company:payments")
    assert not PermissionResolver.has_permission(employee, "admin:settings")


def test_sub_account_with_empty_custom_role_falls_back_to_base_role():
    employee = _account(AccountRole.ADMIN, parent_id="admin-1", custom_role_id="role-1")

    assert PermissionResolver.has_permission(employee, "admin:stats")
    assert not PermissionResolver.has_permission(employee, "company:payments")


def test_authorization_service_denial_does_not_change_account():
    employee = _account(
        AccountRole.COMPANY_ADMIN,
        parent_id="company-1",
        custom_role_id="role-1",
        keys={"company:stats"},
    )
    before = (employee.role, employee.parent_id, employee.custom_role_id, employee.permission_keys)

    with pytest.raises(PermissionDenied) as exc:
        AuthorizationService().require(employee, "company:payments")

    assert exc.value.permission_key == "company:payments"
    assert (employee.role, employee.parent_id, employee.custom_role_id, employee.permission_keys) == before


def test_require_any_accepts_one_matching_key():
    triager = _account(AccountRole.TRIAGER)
    service = AuthorizationService()

    service.require_any(triager, ["company:triage", "triage:reports"])

    with pytest.raises(PermissionDenied):
        service.require_any(triager, ["company:triage", "admin:triage"])
