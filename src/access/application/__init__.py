"""
Access Application Layer
========================

Contains:
- Services: AuthorizationService, RoleService, AccountService
- DTOs: Data transfer objects for API serialization
- Repository interfaces implemented by the infrastructure layer
"""

from src.access.application.dto import (
    RoleCreateRequest,
    RoleAssignRequest,
    PermissionCreateRequest,
    SubAccountCreateRequest,
    SubAccountStatusRequest,
    PermissionResponse,
    RoleResponse,
    AccountResponse,
    MeResponse,
    MessageResponse,
)
from src.access.application.services import (
    AuthorizationService,
    RoleService,
    AccountService,
    IAccountRepository,
    IPermissionRepository,
    IRoleRepository,
)

__all__ = [
    # DTOs
    "RoleCreateRequest",
    "RoleAssignRequest",
    "PermissionCreateRequest",
    "SubAccountCreateRequest",
    "SubAccountStatusRequest",
    "PermissionResponse",
    "RoleResponse",
    "AccountResponse",
    "MeResponse",
    "MessageResponse",
    # Services
    "AuthorizationService",
    "RoleService",
    "AccountService",
    # Repository Interfaces
    "IAccountRepository",
    "IPermissionRepository",
    "IRoleRepository",
]
