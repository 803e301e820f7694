"""
Access Infrastructure Layer
===========================

Infrastructure implementations for access control:
- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- Security: Bearer token encoding and verification
"""

from src.access.infrastructure.models import (
    AccountModel,
    PermissionModel,
    CustomRoleModel,
    RolePermissionModel,
)
from src.access.infrastructure.repositories import (
    SQLAlchemyAccountRepository,
    SQLAlchemyPermissionRepository,
    SQLAlchemyRoleRepository,
)
from src.access.infrastructure.security import create_access_token, decode_access_token

__all__ = [
    "AccountModel",
    "PermissionModel",
    "CustomRoleModel",
    "RolePermissionModel",
    "SQLAlchemyAccountRepository",
    "SQLAlchemyPermissionRepository",
    "SQLAlchemyRoleRepository",
    "create_access_token",
    "decode_access_token",
]
