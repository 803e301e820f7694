"""
Access Value Objects
=====================

Stateless authorization rules.

The resolver decides whether an account holds a permission key; the
namespace and category tables live here so every prefix check uses the
same closed mapping.
"""

from typing import Dict, Iterable, Optional, Sequence

from src.config import AccountRole, PermissionCategory
from src.access.domain.entities import Account, Permission
from src.core import PermissionCategoryMismatch, ValidationException


# Namespace implied by each base role when no custom role decides
ROLE_NAMESPACES: Dict[AccountRole, str] = {
    AccountRole.ADMIN: "admin:",
    AccountRole.COMPANY_ADMIN: "company:",
    AccountRole.RESEARCHER: "researcher:",
    AccountRole.TRIAGER: "triage:",
}

# Category of permissions each role may place into a custom role
GRANTABLE_CATEGORIES: Dict[AccountRole, Optional[PermissionCategory]] = {
    AccountRole.SUPER_ADMIN: PermissionCategory.ADMIN,
    AccountRole.ADMIN: PermissionCategory.ADMIN,
    AccountRole.COMPANY_ADMIN: PermissionCategory.COMPANY,
    AccountRole.RESEARCHER: PermissionCategory.RESEARCHER,
    AccountRole.TRIAGER: None,
}

CATEGORY_NAMESPACES: Dict[PermissionCategory, str] = {
    PermissionCategory.ADMIN: "admin:",
    PermissionCategory.COMPANY: "company:",
    PermissionCategory.RESEARCHER: "researcher:",
}

# Permission required to manage an organization's roles and sub-accounts
TEAM_PERMISSIONS: Dict[PermissionCategory, str] = {
    PermissionCategory.ADMIN: "admin:settings",
    PermissionCategory.COMPANY: "company:team",
    PermissionCategory.RESEARCHER: "researcher:team",
}


class PermissionResolver:
    """
    Pure functions for permission checks.

    Evaluation order (first match wins):
    1. SUPER_ADMIN is always allowed
    2. An effective key set containing the key allows
    3. Root accounts fall back to their role namespace
    4. Sub-accounts without a custom role (or with an empty one) fall back
       to their base role namespace
    5. Everything else is denied; a custom role supersedes the base role
    """

    @staticmethod
    def namespace_for(role: AccountRole) -> Optional[str]:
        """Namespace prefix implied by a base role (None for SUPER_ADMIN)."""
        return ROLE_NAMESPACES.get(role)

    @staticmethod
    def matches_role_namespace(role: AccountRole, permission_key: str) -> bool:
        namespace = ROLE_NAMESPACES.get(role)
        return namespace is not None and permission_key.startswith(namespace)

    @staticmethod
    def has_permission(account: Account, permission_key: str) -> bool:
        """
        Decide whether an account holds a permission key.

        Args:
            account: Account with its effective permission keys loaded
            permission_key: Namespaced key, e.g. ``company:payments``

        Returns:
            True if the account is allowed
        """
        if account.role == AccountRole.SUPER_ADMIN:
            return True

        if account.permission_keys and permission_key in account.permission_keys:
            return True

        if account.is_root:
            return PermissionResolver.matches_role_namespace(account.role, permission_key)

        if account.custom_role_id is None or not account.permission_keys:
            return PermissionResolver.matches_role_namespace(account.role, permission_key)

        return False

    @staticmethod
    def has_any_permission(account: Account, permission_keys: Iterable[str]) -> bool:
        return any(
            PermissionResolver.has_permission(account, key) for key in permission_keys
        )

    @staticmethod
    def grantable_category(role: AccountRole) -> Optional[PermissionCategory]:
        """Category of permissions an owner with this role may grant."""
        return GRANTABLE_CATEGORIES.get(role)

    @staticmethod
    def team_permission_for(role: AccountRole) -> Optional[str]:
        """Key guarding team management for a role (None if it has no team)."""
        category = GRANTABLE_CATEGORIES.get(role)
        return TEAM_PERMISSIONS[category] if category else None

    @staticmethod
    def validate_role_permissions(
        owner_role: AccountRole,
        requested_ids: Sequence[str],
        resolved: Sequence[Permission],
    ) -> PermissionCategory:
        """
        Check that every requested permission exists and is grantable.

        Args:
            owner_role: Base role of the role owner
            requested_ids: Permission ids supplied by the caller
            resolved: Catalog entries found for those ids

        Returns:
            The category the role's permissions belong to

        Raises:
            PermissionCategoryMismatch: If a permission is missing or outside
                the owner's grantable category
        """
        category = GRANTABLE_CATEGORIES.get(owner_role)
        if category is None:
            raise PermissionCategoryMismatch(
                None, {"owner_role": owner_role.value}
            )

        requested = set(requested_ids)
        found = {p.id for p in resolved}
        foreign = sorted(p.key for p in resolved if p.category != category)

        if requested != found or foreign:
            raise PermissionCategoryMismatch(
                category.value,
                {
                    "allowed_category": category.value,
                    "unknown_ids": sorted(requested - found),
                    "rejected_keys": foreign,
                }
            )

        return category

    @staticmethod
    def validate_catalog_key(key: str, category: PermissionCategory) -> None:
        """Ensure a new catalog key lives in its category namespace."""
        namespace = CATEGORY_NAMESPACES[category]
        if not key.startswith(namespace) or len(key) <= len(namespace):
            raise ValidationException(
                f"Permission key must start with '{namespace}'",
                {"key": key, "category": category.value}
            )
