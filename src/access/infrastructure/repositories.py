"""
Access Infrastructure Repositories
===================================

Concrete implementations of the access repository interfaces using SQLAlchemy.
"""

from typing import Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy import and_, delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.application.services import (
    IAccountRepository,
    IPermissionRepository,
    IRoleRepository,
)
from src.access.domain import Account, CustomRole, Permission
from src.access.infrastructure.models import (
    AccountModel,
    CustomRoleModel,
    PermissionModel,
    RolePermissionModel,
)
from src.config import AccountRole, PermissionCategory
from src.core import RepositoryException
from src.infrastructure.database import parse_uuid


def _to_permission(model: PermissionModel) -> Permission:
    return Permission(
        id=str(model.id),
        key=model.key,
        category=PermissionCategory(model.category),
        name=model.name,
        description=model.description,
    )


async def _load_role_permissions(
    session: AsyncSession,
    role_ids: Sequence[UUID]
) -> Dict[UUID, List[Permission]]:
    """Load the permissions of several roles in one query."""
    grouped: Dict[UUID, List[Permission]] = {role_id: [] for role_id in role_ids}
    if not role_ids:
        return grouped

    stmt = (
        select(RolePermissionModel.role_id, PermissionModel)
        .join(PermissionModel, PermissionModel.id == RolePermissionModel.permission_id)
        .where(RolePermissionModel.role_id.in_(role_ids))
        .order_by(PermissionModel.name)
    )
    result = await session.execute(stmt)
    for role_id, permission in result.all():
        grouped[role_id].append(_to_permission(permission))
    return grouped


class SQLAlchemyAccountRepository(IAccountRepository):
    """
    SQLAlchemy implementation of account repository.

    Accounts are returned with the permission keys of their custom role.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _to_entity(self, model: AccountModel) -> Account:
        keys: frozenset = frozenset()
        if model.custom_role_id is not None:
            stmt = (
                select(PermissionModel.key)
                .join(RolePermissionModel, RolePermissionModel.permission_id == PermissionModel.id)
                .where(RolePermissionModel.role_id == model.custom_role_id)
            )
            result = await self._session.execute(stmt)
            keys = frozenset(result.scalars().all())

        return Account(
            id=str(model.id),
            email=model.email,
            role=AccountRole(model.role),
            first_name=model.first_name,
            last_name=model.last_name,
            parent_id=str(model.parent_id) if model.parent_id else None,
            custom_role_id=str(model.custom_role_id) if model.custom_role_id else None,
            is_active=model.is_active,
            is_verified=model.is_verified,
            created_at=model.created_at,
            permission_keys=keys,
        )

    async def _get_model(self, account_id: str) -> Optional[AccountModel]:
        account_uuid = parse_uuid(account_id)
        if account_uuid is None:
            return None
        return await self._session.get(AccountModel, account_uuid)

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        """Get account with its effective permission keys."""
        model = await self._get_model(account_id)
        return await self._to_entity(model) if model else None

    async def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email."""
        stmt = select(AccountModel).where(AccountModel.email == email)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return await self._to_entity(model) if model else None

    async def create(self, account: Account) -> Account:
        """Create new account."""
        model = AccountModel(
            id=UUID(account.id),
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            role=account.role.value,
            parent_id=parse_uuid(account.parent_id),
            custom_role_id=parse_uuid(account.custom_role_id),
            is_active=account.is_active,
            is_verified=account.is_verified,
            created_at=account.created_at,
        )
        self._session.add(model)
        await self._session.flush()
        return await self._to_entity(model)

    async def update(self, account: Account) -> Account:
        """Persist mutable account fields."""
        model = await self._get_model(account.id)
        if not model:
            raise RepositoryException(f"Account {account.id} not found")

        model.first_name = account.first_name
        model.last_name = account.last_name
        model.custom_role_id = parse_uuid(account.custom_role_id)
        model.is_active = account.is_active
        model.is_verified = account.is_verified

        await self._session.flush()
        return await self._to_entity(model)

    async def list_children(self, parent_id: str) -> List[Account]:
        """List sub-accounts owned by a parent."""
        stmt = (
            select(AccountModel)
            .where(AccountModel.parent_id == parse_uuid(parent_id))
            .order_by(AccountModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [await self._to_entity(model) for model in result.scalars().all()]

    async def list_by_roles(self, roles: Sequence[AccountRole]) -> List[Account]:
        """List active root accounts holding one of the roles."""
        stmt = (
            select(AccountModel)
            .where(
                and_(
                    AccountModel.role.in_([role.value for role in roles]),
                    AccountModel.parent_id.is_(None),
                    AccountModel.is_active.is_(True),
                )
            )
            .order_by(AccountModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return [await self._to_entity(model) for model in result.scalars().all()]


class SQLAlchemyPermissionRepository(IPermissionRepository):
    """SQLAlchemy implementation of the permission catalog."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, permission_id: str) -> Optional[Permission]:
        permission_uuid = parse_uuid(permission_id)
        if permission_uuid is None:
            return None
        model = await self._session.get(PermissionModel, permission_uuid)
        return _to_permission(model) if model else None

    async def get_by_key(self, key: str) -> Optional[Permission]:
        stmt = select(PermissionModel).where(PermissionModel.key == key)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_permission(model) if model else None

    async def get_many(self, permission_ids: Sequence[str]) -> List[Permission]:
        """Get the permissions matching the given IDs."""
        uuids = [u for u in (parse_uuid(pid) for pid in permission_ids) if u is not None]
        if not uuids:
            return []

        stmt = select(PermissionModel).where(PermissionModel.id.in_(uuids))
        result = await self._session.execute(stmt)
        return [_to_permission(model) for model in result.scalars().all()]

    async def list(self, category: Optional[PermissionCategory] = None) -> List[Permission]:
        stmt = select(PermissionModel)
        if category is not None:
            stmt = stmt.where(PermissionModel.category == category.value)
        stmt = stmt.order_by(PermissionModel.name.asc())

        result = await self._session.execute(stmt)
        return [_to_permission(model) for model in result.scalars().all()]

    async def create(self, permission: Permission) -> Permission:
        model = PermissionModel(
            id=UUID(permission.id),
            key=permission.key,
            category=permission.category.value,
            name=permission.name,
            description=permission.description,
        )
        self._session.add(model)
        await self._session.flush()
        return _to_permission(model)

    async def delete(self, permission_id: str) -> bool:
        """Delete catalog entry and its role links."""
        permission_uuid = parse_uuid(permission_id)
        if permission_uuid is None:
            return False

        await self._session.execute(
            delete(RolePermissionModel).where(RolePermissionModel.permission_id == permission_uuid)
        )
        result = await self._session.execute(
            delete(PermissionModel).where(PermissionModel.id == permission_uuid)
        )
        await self._session.flush()
        return result.rowcount > 0


class SQLAlchemyRoleRepository(IRoleRepository):
    """SQLAlchemy implementation of custom role repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _to_entities(self, models: Sequence[CustomRoleModel]) -> List[CustomRole]:
        permissions = await _load_role_permissions(self._session, [m.id for m in models])
        return [
            CustomRole(
                id=str(model.id),
                owner_id=str(model.owner_id),
                name=model.name,
                description=model.description,
                permissions=permissions.get(model.id, []),
                created_at=model.created_at,
            )
            for model in models
        ]

    async def get_by_id(self, role_id: str) -> Optional[CustomRole]:
        role_uuid = parse_uuid(role_id)
        if role_uuid is None:
            return None
        model = await self._session.get(CustomRoleModel, role_uuid)
        if model is None:
            return None
        return (await self._to_entities([model]))[0]

    async def list_by_owner(self, owner_id: str) -> List[CustomRole]:
        stmt = (
            select(CustomRoleModel)
            .where(CustomRoleModel.owner_id == parse_uuid(owner_id))
            .order_by(CustomRoleModel.created_at.asc())
        )
        result = await self._session.execute(stmt)
        return await self._to_entities(result.scalars().all())

    async def create(self, role: CustomRole) -> CustomRole:
        """Create role together with its permission links."""
        model = CustomRoleModel(
            id=UUID(role.id),
            owner_id=UUID(role.owner_id),
            name=role.name,
            description=role.description,
            created_at=role.created_at,
        )
        async with self._session.begin_nested():
            self._session.add(model)
            await self._session.flush()
            self._session.add_all([
                RolePermissionModel(role_id=model.id, permission_id=UUID(p.id))
                for p in role.permissions
            ])
        return (await self._to_entities([model]))[0]

    async def replace(self, role: CustomRole) -> CustomRole:
        """Update role details and replace its whole permission set."""
        model = await self._session.get(CustomRoleModel, UUID(role.id))
        if model is None:
            raise RepositoryException(f"Role {role.id} not found")

        async with self._session.begin_nested():
            await self._session.execute(
                delete(RolePermissionModel).where(RolePermissionModel.role_id == model.id)
            )
            model.name = role.name
            model.description = role.description
            self._session.add_all([
                RolePermissionModel(role_id=model.id, permission_id=UUID(p.id))
                for p in role.permissions
            ])
        return (await self._to_entities([model]))[0]
