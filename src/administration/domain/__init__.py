"""
Administration Domain Layer
===========================

Contains:
- Entities: SystemSetting
- Value Objects: PlatformConfig, PermissionSeed
"""

from src.administration.domain.entities import SystemSetting
from src.administration.domain.value_objects import (
    PlatformConfig,
    PermissionSeed,
    DEFAULT_PERMISSION_CATALOG,
    OVERRIDABLE_KEYS,
)

__all__ = [
    "SystemSetting",
    "PlatformConfig",
    "PermissionSeed",
    "DEFAULT_PERMISSION_CATALOG",
    "OVERRIDABLE_KEYS",
]
