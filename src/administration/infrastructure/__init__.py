"""
Administration Infrastructure Layer
===================================

- Models: SQLAlchemy ORM models
- Repositories: Data access layer
- External: YAML config manager with file watcher
"""

from src.administration.infrastructure.models import SystemSettingModel
from src.administration.infrastructure.repositories import (
    SQLAlchemySystemSettingRepository,
    load_setting_overrides,
)
from src.administration.infrastructure.external import PlatformConfigManager

__all__ = [
    "SystemSettingModel",
    "SQLAlchemySystemSettingRepository",
    "load_setting_overrides",
    "PlatformConfigManager",
]
