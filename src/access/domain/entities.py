"""
Access Domain Entities
=======================

Pure Python domain entities for accounts, permissions and custom roles.

These entities carry no persistence concerns; repositories translate
them to and from ORM models.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional

from src.config import AccountRole, PermissionCategory


@dataclass(frozen=True)
class Permission:
    """
    Permission catalog entry.

    Immutable once created: the key namespace (``admin:``, ``company:``,
    ``researcher:``) always agrees with the category.
    """

    id: str
    key: str
    category: PermissionCategory
    name: str
    description: Optional[str] = None


@dataclass
class CustomRole:
    """
    Named set of permissions owned by a single root account.

    All permissions of a role belong to the same category.
    """

    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    permissions: List[Permission] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def permission_keys(self) -> FrozenSet[str]:
        """Keys granted by this role."""
        return frozenset(p.key for p in self.permissions)

    @property
    def permission_ids(self) -> FrozenSet[str]:
        return frozenset(p.id for p in self.permissions)


@dataclass
class Account:
    """
    Account entity.

    A root account has no ``parent_id``. Sub-accounts (company employees,
    admin staff) are owned by exactly one root account and may have one
    custom role assigned. ``permission_keys`` holds the effective keys
    reachable through that role and is empty when none is assigned.
    """

    id: str
    email: str
    role: AccountRole
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    parent_id: Optional[str] = None
    custom_role_id: Optional[str] = None
    is_active: bool = True
    is_verified: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    permission_keys: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_root(self) -> bool:
        """Check if this account owns itself (no parent)."""
        return self.parent_id is None

    @property
    def is_super_admin(self) -> bool:
        return self.role == AccountRole.SUPER_ADMIN

    @property
    def organization_id(self) -> str:
        """
        Root account this account acts for.

        Company employees act on behalf of their parent company account.
        """
        return self.parent_id or self.id

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
