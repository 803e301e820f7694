"""
Administration Application Layer
================================
"""

from src.administration.application.dto import (
    SettingUpdateRequest,
    BulkSettingsUpdateRequest,
    SettingsUpdateResponse,
)
from src.administration.application.services import (
    SettingsService,
    CachedPlatformConfigProvider,
    StaticPlatformConfigProvider,
    IPlatformConfigProvider,
    ISystemSettingRepository,
)

__all__ = [
    # DTOs
    "SettingUpdateRequest",
    "BulkSettingsUpdateRequest",
    "SettingsUpdateResponse",
    # Services
    "SettingsService",
    "CachedPlatformConfigProvider",
    "StaticPlatformConfigProvider",
    # Interfaces
    "IPlatformConfigProvider",
    "ISystemSettingRepository",
]
