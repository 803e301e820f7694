"""
Access Dependencies
====================

FastAPI dependencies for identity resolution and permission guards.

Usage:
    @router.post("/{report_id}/pay")
    async def pay(account: Account = Depends(require_permission("company:payments"))):
        ...
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.application import (
    AccountService,
    AuthorizationService,
    IAccountRepository,
    RoleService,
)
from src.access.domain import Account
from src.access.infrastructure import (
    SQLAlchemyAccountRepository,
    SQLAlchemyPermissionRepository,
    SQLAlchemyRoleRepository,
    decode_access_token,
)
from src.audit.application import AuditService
from src.audit.infrastructure import SQLAlchemyAuditRepository
from src.core import AuthenticationException
from src.infrastructure.database import get_session

bearer_scheme = HTTPBearer(auto_error=False)

_authorization_service = AuthorizationService()


# ========== Services ==========

async def get_account_repository(
    session: AsyncSession = Depends(get_session)
) -> IAccountRepository:
    return SQLAlchemyAccountRepository(session)


async def get_audit_service(
    session: AsyncSession = Depends(get_session)
) -> AuditService:
    """Get audit service bound to the request session."""
    return AuditService(SQLAlchemyAuditRepository(session))


def get_authorization_service() -> AuthorizationService:
    return _authorization_service


async def get_role_service(
    session: AsyncSession = Depends(get_session),
    audit_service: AuditService = Depends(get_audit_service)
) -> RoleService:
    """Get role service instance."""
    return RoleService(
        SQLAlchemyPermissionRepository(session),
        SQLAlchemyRoleRepository(session),
        SQLAlchemyAccountRepository(session),
        audit_service
    )


async def get_account_service(
    session: AsyncSession = Depends(get_session),
    audit_service: AuditService = Depends(get_audit_service)
) -> AccountService:
    """Get account service instance."""
    return AccountService(
        SQLAlchemyAccountRepository(session),
        SQLAlchemyRoleRepository(session),
        audit_service
    )


# ========== Identity ==========

async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    account_repository: IAccountRepository = Depends(get_account_repository)
) -> Account:
    """
    Resolve the bearer token into an active account.

    Raises:
        AuthenticationException: Missing, invalid or expired token, or an
            inactive or unknown account
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Not authorized to access this route")

    account_id = decode_access_token(credentials.credentials)
    account = await account_repository.get_by_id(account_id)

    if account is None or not account.is_active:
        raise AuthenticationException("Account is inactive or does not exist")

    return account


# ========== Guards ==========

def require_permission(permission_key: str):
    """Dependency factory guarding a route with one permission key."""

    async def dependency(
        account: Account = Depends(get_current_account),
        authorization: AuthorizationService = Depends(get_authorization_service)
    ) -> Account:
        authorization.require(account, permission_key)
        return account

    return dependency


def require_any_permission(*permission_keys: str):
    """Dependency factory guarding a route with alternative permission keys."""

    async def dependency(
        account: Account = Depends(get_current_account),
        authorization: AuthorizationService = Depends(get_authorization_service)
    ) -> Account:
        authorization.require_any(account, permission_keys)
        return account

    return dependency


async def require_team_manager(
    account: Account = Depends(get_current_account),
    authorization: AuthorizationService = Depends(get_authorization_service)
) -> Account:
    """Guard for role and sub-account management."""
    authorization.require_team_management(account)
    return account
