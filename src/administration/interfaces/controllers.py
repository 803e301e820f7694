"""
Administration Controllers (API Routes)
========================================

Admin-only system settings endpoints.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from src.access.domain import Account
from src.access.interfaces.dependencies import require_permission
from src.administration.application import (
    BulkSettingsUpdateRequest,
    IPlatformConfigProvider,
    SettingsService,
    SettingsUpdateResponse,
    SettingUpdateRequest,
)
from src.administration.domain import PlatformConfig
from src.administration.interfaces.dependencies import get_config_provider, get_settings_service
from src.shared.api.middleware import get_client_ip

router = APIRouter(prefix="/admin", tags=["Administration"])


@router.get(
    "/settings",
    response_model=Dict[str, Any],
    summary="List stored system settings"
)
async def get_settings(
    account: Account = Depends(require_permission("admin:settings")),
    settings_service: SettingsService = Depends(get_settings_service)
):
    return await settings_service.get_settings()


@router.put(
    "/settings",
    response_model=SettingsUpdateResponse,
    summary="Update one system setting",
    description="""
    Store a single setting. Keys that override platform configuration
    (`escalation_grace_hours`, `budget_alert_thresholds`, `frontend_url`,
    `platform_name`, `notifications_enabled`) are validated first and take
    effect immediately.
    """
)
async def update_setting(
    body: SettingUpdateRequest,
    request: Request,
    account: Account = Depends(require_permission("admin:settings")),
    settings_service: SettingsService = Depends(get_settings_service)
):
    await settings_service.update_setting(
        account, body.key, body.value, ip_address=get_client_ip(request)
    )
    return SettingsUpdateResponse(message="Setting updated successfully", keys=[body.key])


@router.post(
    "/settings/bulk",
    response_model=SettingsUpdateResponse,
    summary="Update several system settings"
)
async def bulk_update_settings(
    body: BulkSettingsUpdateRequest,
    request: Request,
    account: Account = Depends(require_permission("admin:settings")),
    settings_service: SettingsService = Depends(get_settings_service)
):
    values = {item.key: item.value for item in body.settings}
    await settings_service.bulk_update(account, values, ip_address=get_client_ip(request))
    return SettingsUpdateResponse(message="Settings updated successfully", keys=sorted(values))


@router.get(
    "/config",
    response_model=PlatformConfig,
    summary="Effective platform configuration"
)
async def get_platform_config(
    account: Account = Depends(require_permission("admin:settings")),
    config_provider: IPlatformConfigProvider = Depends(get_config_provider)
):
    return await config_provider.get_config()
