"""
Administration Application Services
====================================

System settings management and the cached platform configuration provider.
"""

import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from src.access.domain import Account
from src.administration.domain import OVERRIDABLE_KEYS, PlatformConfig, SystemSetting
from src.audit.application import AuditService
from src.config import AuditAction
from src.core import ValidationException
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class ISystemSettingRepository(ABC):
    """Interface for system setting data access."""

    @abstractmethod
    async def list_all(self) -> List[SystemSetting]:
        """List every stored setting."""

    @abstractmethod
    async def get(self, key: str) -> Optional[SystemSetting]:
        """Get setting by key."""

    @abstractmethod
    async def upsert(self, setting: SystemSetting) -> SystemSetting:
        """Insert or replace a setting."""


class IPlatformConfigProvider(ABC):
    """Interface for platform configuration access."""

    @abstractmethod
    async def get_config(self) -> PlatformConfig:
        """Get the current configuration snapshot."""

    def invalidate(self) -> None:
        """Drop any cached snapshot."""


# ========== Application Services ==========

class CachedPlatformConfigProvider(IPlatformConfigProvider):
    """
    Configuration provider that layers stored overrides on the YAML defaults.

    A snapshot is reused for ``ttl_seconds``; settings writes invalidate it.
    """

    def __init__(
        self,
        defaults: Callable[[], PlatformConfig],
        load_overrides: Callable[[], Awaitable[Dict[str, Any]]],
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self._defaults = defaults
        self._load_overrides = load_overrides
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._snapshot: Optional[PlatformConfig] = None
        self._loaded_at = 0.0

    async def get_config(self) -> PlatformConfig:
        now = self._clock()
        if self._snapshot is not None and now - self._loaded_at < self._ttl_seconds:
            return self._snapshot

        overrides = await self._load_overrides()
        try:
            snapshot = self._defaults().with_overrides(overrides)
        except ValidationError as e:
            logger.error(
                "Stored settings are invalid, using defaults",
                extra={"error": str(e)}
            )
            snapshot = self._defaults()

        self._snapshot = snapshot
        self._loaded_at = now
        return snapshot

    def invalidate(self) -> None:
        self._snapshot = None


class StaticPlatformConfigProvider(IPlatformConfigProvider):
    """Provider returning a fixed snapshot (scripts and tests)."""

    def __init__(self, config: Optional[PlatformConfig] = None):
        self._config = config or PlatformConfig()

    async def get_config(self) -> PlatformConfig:
        return self._config


class SettingsService:
    """
    Service for admin-managed system settings.

    Overrides of configuration fields are validated against the merged
    snapshot before they are stored. Every write is audited.
    """

    def __init__(
        self,
        setting_repository: ISystemSettingRepository,
        config_provider: IPlatformConfigProvider,
        audit_service: AuditService
    ):
        self._setting_repo = setting_repository
        self._config_provider = config_provider
        self._audit = audit_service

    async def get_settings(self) -> Dict[str, Any]:
        """All stored settings as a key/value mapping."""
        settings = await self._setting_repo.list_all()
        return {s.key: s.value for s in settings}

    async def get_setting(self, key: str, default: Any = None) -> Any:
        setting = await self._setting_repo.get(key)
        return setting.value if setting else default

    async def update_setting(
        self,
        actor: Account,
        key: str,
        value: Any,
        ip_address: Optional[str] = None
    ) -> SystemSetting:
        """
        Store one setting.

        Raises:
            ValidationException: If the key is empty or the value breaks the
                platform configuration
        """
        await self._validate({key: value})
        setting = await self._setting_repo.upsert(
            SystemSetting(key=key, value=value, updated_by=actor.id)
        )
        self._config_provider.invalidate()

        await self._audit.record(
            AuditAction.SYSTEM_SETTING_UPDATED,
            user_id=actor.id,
            details={"key": key, "value": _audit_value(value)},
            ip_address=ip_address,
        )
        return setting

    async def bulk_update(
        self,
        actor: Account,
        values: Dict[str, Any],
        ip_address: Optional[str] = None
    ) -> List[SystemSetting]:
        """Store several settings; all are validated before any is written."""
        await self._validate(values)

        stored = [
            await self._setting_repo.upsert(SystemSetting(key=key, value=value, updated_by=actor.id))
            for key, value in values.items()
        ]
        self._config_provider.invalidate()

        await self._audit.record(
            AuditAction.SYSTEM_SETTINGS_BULK_UPDATED,
            user_id=actor.id,
            details={"count": len(stored), "keys": sorted(values)},
            ip_address=ip_address,
        )
        return stored

    async def _validate(self, values: Dict[str, Any]) -> None:
        for key in values:
            if not key or not key.strip():
                raise ValidationException("Setting key is required")

        overrides = {k: v for k, v in values.items() if k in OVERRIDABLE_KEYS}
        if not overrides:
            return

        current = await self._config_provider.get_config()
        try:
            current.with_overrides(overrides)
        except ValidationError as e:
            raise ValidationException(
                "Invalid platform setting",
                {"errors": [err["msg"] for err in e.errors()]}
            ) from e


def _audit_value(value: Any) -> Any:
    """Structured values are not copied into the audit trail."""
    return "SECRET_CONFIG" if isinstance(value, (dict, list)) else value
