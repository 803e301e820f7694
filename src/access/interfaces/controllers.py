"""
Access Controllers (API Routes)
================================

FastAPI routes for the permission catalog, custom roles and sub-accounts.

Controllers are thin - they delegate to application services.
"""

from typing import List

from fastapi import APIRouter, Depends, Request, status

from src.access.application import (
    AccountResponse,
    AccountService,
    MeResponse,
    MessageResponse,
    PermissionCreateRequest,
    PermissionResponse,
    RoleAssignRequest,
    RoleCreateRequest,
    RoleResponse,
    RoleService,
    SubAccountCreateRequest,
    SubAccountStatusRequest,
)
from src.access.domain import Account
from src.access.interfaces.dependencies import (
    get_account_service,
    get_current_account,
    get_role_service,
    require_permission,
    require_team_manager,
)
from src.shared.api.middleware import get_client_ip

rbac_router = APIRouter(prefix="/rbac", tags=["Access Control"])
accounts_router = APIRouter(prefix="/accounts", tags=["Accounts"])


# ========== Permission Catalog ==========

@rbac_router.get(
    "/permissions",
    response_model=List[PermissionResponse],
    summary="List grantable permissions",
    description="Catalog entries in the category the caller may place into a custom role."
)
async def list_grantable_permissions(
    account: Account = Depends(get_current_account),
    role_service: RoleService = Depends(get_role_service)
):
    return await role_service.list_grantable_permissions(account)


@rbac_router.get(
    "/permissions/all",
    response_model=List[PermissionResponse],
    summary="List the full permission catalog"
)
async def list_all_permissions(
    account: Account = Depends(require_permission("admin:settings")),
    role_service: RoleService = Depends(get_role_service)
):
    return await role_service.list_all_permissions()


@rbac_router.post(
    "/permissions",
    response_model=PermissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a catalog permission"
)
async def create_permission(
    body: PermissionCreateRequest,
    request: Request,
    account: Account = Depends(require_permission("admin:settings")),
    role_service: RoleService = Depends(get_role_service)
):
    return await role_service.create_permission(
        account,
        key=body.key,
        name=body.name,
        category=body.category,
        description=body.description,
        ip_address=get_client_ip(request)
    )


@rbac_router.delete(
    "/permissions/{permission_id}",
    response_model=MessageResponse,
    summary="Delete a catalog permission"
)
async def delete_permission(
    permission_id: str,
    request: Request,
    account: Account = Depends(require_permission("admin:settings")),
    role_service: RoleService = Depends(get_role_service)
):
    await role_service.delete_permission(account, permission_id, ip_address=get_client_ip(request))
    return MessageResponse(message="Permission deleted successfully")


# ========== Custom Roles ==========

@rbac_router.get(
    "/roles",
    response_model=List[RoleResponse],
    summary="List the organization's custom roles"
)
async def list_roles(
    account: Account = Depends(require_team_manager),
    role_service: RoleService = Depends(get_role_service)
):
    return await role_service.list_roles(account)


@rbac_router.post(
    "/roles",
    response_model=RoleResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a custom role",
    description="""
    Create a role from catalog permissions.

    Every permission must belong to the category the caller's role may grant
    (ADMIN, COMPANY or RESEARCHER). A single foreign permission rejects the
    whole request with 403 and nothing is stored.
    """
)
async def create_role(
    body: RoleCreateRequest,
    request: Request,
    account: Account = Depends(require_team_manager),
    role_service: RoleService = Depends(get_role_service)
):
    return await role_service.create_role(
        account,
        name=body.name,
        description=body.description,
        permission_ids=body.permission_ids,
        ip_address=get_client_ip(request)
    )


@rbac_router.put(
    "/roles/{role_id}",
    response_model=RoleResponse,
    summary="Replace a custom role",
    description="Replaces the role's details and its whole permission set atomically."
)
async def update_role(
    role_id: str,
    body: RoleCreateRequest,
    request: Request,
    account: Account = Depends(require_team_manager),
    role_service: RoleService = Depends(get_role_service)
):
    return await role_service.update_role(
        account,
        role_id,
        name=body.name,
        description=body.description,
        permission_ids=body.permission_ids,
        ip_address=get_client_ip(request)
    )


@rbac_router.post(
    "/assign-role",
    response_model=AccountResponse,
    summary="Assign a custom role to a team member"
)
async def assign_role(
    body: RoleAssignRequest,
    request: Request,
    account: Account = Depends(require_team_manager),
    role_service: RoleService = Depends(get_role_service)
):
    return await role_service.assign_role(
        account, body.account_id, body.role_id, ip_address=get_client_ip(request)
    )


# ========== Accounts ==========

@accounts_router.get(
    "/me",
    response_model=MeResponse,
    summary="Current account and effective permissions"
)
async def get_me(account: Account = Depends(get_current_account)):
    return MeResponse(
        id=account.id,
        email=account.email,
        first_name=account.first_name,
        last_name=account.last_name,
        role=account.role,
        parent_id=account.parent_id,
        custom_role_id=account.custom_role_id,
        is_active=account.is_active,
        is_verified=account.is_verified,
        created_at=account.created_at,
        permissions=sorted(account.permission_keys)
    )


@accounts_router.get(
    "/team",
    response_model=List[AccountResponse],
    summary="List sub-accounts"
)
async def list_sub_accounts(
    account: Account = Depends(require_team_manager),
    account_service: AccountService = Depends(get_account_service)
):
    return await account_service.list_sub_accounts(account)


@accounts_router.post(
    "/team",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a sub-account",
    description="The sub-account inherits the caller's base role."
)
async def create_sub_account(
    body: SubAccountCreateRequest,
    request: Request,
    account: Account = Depends(require_team_manager),
    account_service: AccountService = Depends(get_account_service)
):
    return await account_service.create_sub_account(
        account,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        custom_role_id=body.custom_role_id,
        ip_address=get_client_ip(request)
    )


@accounts_router.patch(
    "/team/{account_id}/status",
    response_model=AccountResponse,
    summary="Enable or disable a sub-account"
)
async def set_sub_account_status(
    account_id: str,
    body: SubAccountStatusRequest,
    request: Request,
    account: Account = Depends(require_team_manager),
    account_service: AccountService = Depends(get_account_service)
):
    return await account_service.set_sub_account_active(
        account, account_id, body.is_active, ip_address=get_client_ip(request)
    )
