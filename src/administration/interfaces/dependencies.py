"""
Administration Dependencies
============================
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.interfaces.dependencies import get_audit_service
from src.administration.application import (
    IPlatformConfigProvider,
    SettingsService,
    StaticPlatformConfigProvider,
)
from src.administration.infrastructure import SQLAlchemySystemSettingRepository
from src.audit.application import AuditService
from src.infrastructure.database import get_session


def get_config_provider(request: Request) -> IPlatformConfigProvider:
    """Configuration provider created at startup."""
    provider = getattr(request.app.state, "config_provider", None)
    if provider is None:
        provider = StaticPlatformConfigProvider()
    return provider


async def get_settings_service(
    session: AsyncSession = Depends(get_session),
    config_provider: IPlatformConfigProvider = Depends(get_config_provider),
    audit_service: AuditService = Depends(get_audit_service)
) -> SettingsService:
    """Get settings service instance."""
    return SettingsService(
        SQLAlchemySystemSettingRepository(session),
        config_provider,
        audit_service
    )
