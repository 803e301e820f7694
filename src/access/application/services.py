"""
Access Application Services
============================

Application services for authorization checks, custom roles, the
permission catalog and sub-account management.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import uuid4

from src.access.domain import Account, CustomRole, Permission, PermissionResolver
from src.audit.application import AuditService
from src.config import AccountRole, AuditAction, PermissionCategory
from src.core import (
    ConflictException,
    PermissionCategoryMismatch,
    PermissionDenied,
    ResourceNotFoundException,
    ValidationException,
)
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IAccountRepository(ABC):
    """Interface for account data access."""

    @abstractmethod
    async def get_by_id(self, account_id: str) -> Optional[Account]:
        """Get account with its effective permission keys."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email."""

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """Create new account."""

    @abstractmethod
    async def update(self, account: Account) -> Account:
        """Persist mutable account fields (custom role, active flag, names)."""

    @abstractmethod
    async def list_children(self, parent_id: str) -> List[Account]:
        """List sub-accounts owned by a parent, newest first."""

    @abstractmethod
    async def list_by_roles(self, roles: Sequence[AccountRole]) -> List[Account]:
        """List active root accounts holding one of the roles."""


class IPermissionRepository(ABC):
    """Interface for permission catalog access."""

    @abstractmethod
    async def get_by_id(self, permission_id: str) -> Optional[Permission]:
        """Get permission by ID."""

    @abstractmethod
    async def get_by_key(self, key: str) -> Optional[Permission]:
        """Get permission by key."""

    @abstractmethod
    async def get_many(self, permission_ids: Sequence[str]) -> List[Permission]:
        """Get the permissions matching the given IDs (unknown IDs are skipped)."""

    @abstractmethod
    async def list(self, category: Optional[PermissionCategory] = None) -> List[Permission]:
        """List catalog entries ordered by name."""

    @abstractmethod
    async def create(self, permission: Permission) -> Permission:
        """Create catalog entry."""

    @abstractmethod
    async def delete(self, permission_id: str) -> bool:
        """Delete catalog entry and its role links."""


class IRoleRepository(ABC):
    """Interface for custom role data access."""

    @abstractmethod
    async def get_by_id(self, role_id: str) -> Optional[CustomRole]:
        """Get role with its permissions."""

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> List[CustomRole]:
        """List roles owned by an account."""

    @abstractmethod
    async def create(self, role: CustomRole) -> CustomRole:
        """Create role together with its permission links."""

    @abstractmethod
    async def replace(self, role: CustomRole) -> CustomRole:
        """
        Update role details and replace its whole permission set.

        Old links are deleted and the new set inserted in one transaction.
        """


# ========== Application Services ==========

class AuthorizationService:
    """
    Service for permission checks.

    Wraps PermissionResolver and makes every denial observable in the logs.
    Denials change no state.
    """

    def has_permission(self, account: Account, permission_key: str) -> bool:
        allowed = PermissionResolver.has_permission(account, permission_key)
        if not allowed:
            logger.warning(
                "Permission denied",
                extra={
                    "account_id": account.id,
                    "role": account.role.value,
                    "parent_id": account.parent_id,
                    "custom_role_id": account.custom_role_id,
                    "required_permission": permission_key,
                    "effective_permissions": sorted(account.permission_keys),
                }
            )
        return allowed

    def require(self, account: Account, permission_key: str) -> None:
        """
        Ensure the account holds a permission.

        Raises:
            PermissionDenied: If the account lacks the permission
        """
        if not self.has_permission(account, permission_key):
            raise PermissionDenied(permission_key)

    def require_any(self, account: Account, permission_keys: Sequence[str]) -> None:
        """Ensure the account holds at least one of the permissions."""
        if PermissionResolver.has_any_permission(account, permission_keys):
            return
        for key in permission_keys:
            self.has_permission(account, key)
        raise PermissionDenied(" or ".join(permission_keys))

    def require_team_management(self, account: Account) -> None:
        """Ensure the account may manage its organization's roles and team."""
        key = PermissionResolver.team_permission_for(account.role)
        if key is None:
            raise PermissionDenied("team", {"role": account.role.value})
        self.require(account, key)


class RoleService:
    """
    Service for custom roles and the permission catalog.

    Roles are owned by the organization root of the acting account, so a
    company employee with team rights manages the company's roles.
    """

    def __init__(
        self,
        permission_repository: IPermissionRepository,
        role_repository: IRoleRepository,
        account_repository: IAccountRepository,
        audit_service: AuditService
    ):
        self._permission_repo = permission_repository
        self._role_repo = role_repository
        self._account_repo = account_repository
        self._audit = audit_service

    # ========== Catalog ==========

    async def list_grantable_permissions(self, owner: Account) -> List[Permission]:
        """Catalog entries the owner may place into a custom role."""
        category = PermissionResolver.grantable_category(owner.role)
        if category is None:
            return []
        return await self._permission_repo.list(category)

    async def list_all_permissions(self) -> List[Permission]:
        return await self._permission_repo.list()

    async def create_permission(
        self,
        actor: Account,
        key: str,
        name: str,
        category: PermissionCategory,
        description: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> Permission:
        """
        Add a catalog entry.

        Raises:
            ValidationException: If the key is outside its category
                namespace or already exists
        """
        PermissionResolver.validate_catalog_key(key, category)

        if await self._permission_repo.get_by_key(key):
            raise ValidationException("Permission key already exists", {"key": key})

        permission = await self._permission_repo.create(Permission(
            id=str(uuid4()),
            key=key,
            category=category,
            name=name,
            description=description,
        ))

        await self._audit.record(
            AuditAction.PERMISSION_CREATED,
            user_id=actor.id,
            details={"key": key, "category": category.value},
            ip_address=ip_address,
        )
        return permission

    async def delete_permission(
        self,
        actor: Account,
        permission_id: str,
        ip_address: Optional[str] = None
    ) -> None:
        permission = await self._permission_repo.get_by_id(permission_id)
        if permission is None:
            raise ResourceNotFoundException("Permission", permission_id)

        await self._permission_repo.delete(permission_id)
        await self._audit.record(
            AuditAction.PERMISSION_DELETED,
            user_id=actor.id,
            details={"key": permission.key},
            ip_address=ip_address,
        )

    # ========== Roles ==========

    async def list_roles(self, owner: Account) -> List[CustomRole]:
        return await self._role_repo.list_by_owner(owner.organization_id)

    async def get_role(self, owner: Account, role_id: str) -> CustomRole:
        """
        Get a role owned by the caller's organization.

        Raises:
            ResourceNotFoundException: If the role does not exist or belongs
                to someone else
        """
        role = await self._role_repo.get_by_id(role_id)
        if role is None or role.owner_id != owner.organization_id:
            raise ResourceNotFoundException("Role", role_id)
        return role

    async def create_role(
        self,
        owner: Account,
        name: str,
        description: Optional[str],
        permission_ids: Sequence[str],
        ip_address: Optional[str] = None
    ) -> CustomRole:
        """
        Create a custom role.

        Every permission must resolve to the category the owner's role may
        grant; otherwise nothing is persisted.

        Raises:
            PermissionCategoryMismatch: On unknown or foreign-category permissions
        """
        permissions = await self._resolve_permissions(owner, permission_ids)

        role = await self._role_repo.create(CustomRole(
            id=str(uuid4()),
            owner_id=owner.organization_id,
            name=name,
            description=description,
            permissions=permissions,
        ))

        logger.info(
            "Custom role created",
            extra={"role_id": role.id, "owner_id": role.owner_id, "permission_count": len(permissions)}
        )
        await self._audit.record(
            AuditAction.ROLE_CREATED,
            user_id=owner.id,
            details={"role_id": role.id, "name": name, "permissions": sorted(role.permission_keys)},
            ip_address=ip_address,
        )
        return role

    async def update_role(
        self,
        owner: Account,
        role_id: str,
        name: str,
        description: Optional[str],
        permission_ids: Sequence[str],
        ip_address: Optional[str] = None
    ) -> CustomRole:
        """
        Replace a role's details and full permission set.

        Raises:
            ResourceNotFoundException: If the role is not owned by the caller
            PermissionCategoryMismatch: On unknown or foreign-category permissions
        """
        role = await self.get_role(owner, role_id)
        permissions = await self._resolve_permissions(owner, permission_ids)

        previous_keys = sorted(role.permission_keys)
        role.name = name
        role.description = description
        role.permissions = permissions
        role = await self._role_repo.replace(role)

        await self._audit.record(
            AuditAction.ROLE_UPDATED,
            user_id=owner.id,
            details={
                "role_id": role.id,
                "previous_permissions": previous_keys,
                "permissions": sorted(role.permission_keys),
            },
            ip_address=ip_address,
        )
        return role

    async def assign_role(
        self,
        owner: Account,
        account_id: str,
        role_id: Optional[str],
        ip_address: Optional[str] = None
    ) -> Account:
        """
        Assign (or with ``None`` remove) a custom role on a team member.

        Raises:
            PermissionDenied: If the account is not in the caller's team
            ResourceNotFoundException: If the role is not owned by the caller
        """
        target = await self._account_repo.get_by_id(account_id)
        if target is None or target.parent_id != owner.organization_id:
            raise PermissionDenied(
                "team",
                {"account_id": account_id},
                message="User not found in your team"
            )

        if role_id is not None:
            await self.get_role(owner, role_id)

        target.custom_role_id = role_id
        target = await self._account_repo.update(target)

        await self._audit.record(
            AuditAction.ROLE_ASSIGNED,
            user_id=owner.id,
            details={"account_id": account_id, "role_id": role_id},
            ip_address=ip_address,
        )
        return target

    async def _resolve_permissions(
        self,
        owner: Account,
        permission_ids: Sequence[str]
    ) -> List[Permission]:
        unique_ids = list(dict.fromkeys(permission_ids))
        permissions = await self._permission_repo.get_many(unique_ids)
        try:
            PermissionResolver.validate_role_permissions(owner.role, unique_ids, permissions)
        except PermissionCategoryMismatch:
            logger.warning(
                "Rejected role permission set",
                extra={
                    "owner_id": owner.id,
                    "role": owner.role.value,
                    "requested_permissions": unique_ids,
                }
            )
            raise
        return permissions


class AccountService:
    """
    Service for sub-accounts (company employees and admin staff).

    Sub-accounts inherit their parent's base role and are owned by the
    organization root.
    """

    def __init__(
        self,
        account_repository: IAccountRepository,
        role_repository: IRoleRepository,
        audit_service: AuditService
    ):
        self._account_repo = account_repository
        self._role_repo = role_repository
        self._audit = audit_service

    async def get_account(self, account_id: str) -> Optional[Account]:
        return await self._account_repo.get_by_id(account_id)

    async def create_sub_account(
        self,
        parent: Account,
        email: str,
        first_name: str,
        last_name: str,
        custom_role_id: Optional[str] = None,
        ip_address: Optional[str] = None
    ) -> Account:
        """
        Create a sub-account under the caller's organization.

        Raises:
            ConflictException: If the email is already registered
            ResourceNotFoundException: If the custom role is not owned by
                the organization
        """
        owner_id = parent.organization_id

        if await self._account_repo.get_by_email(email):
            raise ConflictException("Email already in use", {"email": email})

        if custom_role_id is not None:
            role = await self._role_repo.get_by_id(custom_role_id)
            if role is None or role.owner_id != owner_id:
                raise ResourceNotFoundException("Role", custom_role_id)

        account = await self._account_repo.create(Account(
            id=str(uuid4()),
            email=email,
            role=parent.role,
            first_name=first_name,
            last_name=last_name,
            parent_id=owner_id,
            custom_role_id=custom_role_id,
            is_active=True,
            is_verified=True,
        ))

        await self._audit.record(
            AuditAction.SUB_ACCOUNT_CREATED,
            user_id=parent.id,
            details={"account_id": account.id, "email": email, "custom_role_id": custom_role_id},
            ip_address=ip_address,
        )
        return account

    async def list_sub_accounts(self, parent: Account) -> List[Account]:
        return await self._account_repo.list_children(parent.organization_id)

    async def set_sub_account_active(
        self,
        parent: Account,
        account_id: str,
        is_active: bool,
        ip_address: Optional[str] = None
    ) -> Account:
        """Enable or disable a sub-account of the caller's organization."""
        account = await self._account_repo.get_by_id(account_id)
        if account is None or account.parent_id != parent.organization_id:
            raise ResourceNotFoundException("Sub-account", account_id)

        account.is_active = is_active
        account = await self._account_repo.update(account)

        await self._audit.record(
            AuditAction.SUB_ACCOUNT_STATUS_CHANGED,
            user_id=parent.id,
            details={"account_id": account_id, "is_active": is_active},
            ip_address=ip_address,
        )
        return account

    async def find_platform_admins(self) -> List[Account]:
        """Active root administrators, used as escalation recipients."""
        return await self._account_repo.list_by_roles(
            [AccountRole.SUPER_ADMIN, AccountRole.ADMIN]
        )
