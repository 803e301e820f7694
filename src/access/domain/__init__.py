"""
Access Domain Layer
===================

Contains:
- Entities: Account, Permission, CustomRole
- Value Objects & Services: PermissionResolver and the role/category tables

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.access.domain.entities import Account, Permission, CustomRole
from src.access.domain.value_objects import (
    PermissionResolver,
    ROLE_NAMESPACES,
    GRANTABLE_CATEGORIES,
    CATEGORY_NAMESPACES,
    TEAM_PERMISSIONS,
)

__all__ = [
    # Entities
    "Account",
    "Permission",
    "CustomRole",
    # Services
    "PermissionResolver",
    "ROLE_NAMESPACES",
    "GRANTABLE_CATEGORIES",
    "CATEGORY_NAMESPACES",
    "TEAM_PERMISSIONS",
]
