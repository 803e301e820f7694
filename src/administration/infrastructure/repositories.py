"""
Administration Infrastructure Repositories
===========================================
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.administration.application.services import ISystemSettingRepository
from src.administration.domain import SystemSetting
from src.administration.infrastructure.models import SystemSettingModel
from src.infrastructure.database import get_session_context, parse_uuid


class SQLAlchemySystemSettingRepository(ISystemSettingRepository):
    """SQLAlchemy implementation of system setting repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    @staticmethod
    def _to_entity(model: SystemSettingModel) -> SystemSetting:
        return SystemSetting(
            key=model.key,
            value=model.value,
            updated_by=str(model.updated_by) if model.updated_by else None,
            updated_at=model.updated_at,
        )

    async def list_all(self) -> List[SystemSetting]:
        result = await self._session.execute(
            select(SystemSettingModel).order_by(SystemSettingModel.key)
        )
        return [self._to_entity(model) for model in result.scalars().all()]

    async def get(self, key: str) -> Optional[SystemSetting]:
        model = await self._session.get(SystemSettingModel, key)
        return self._to_entity(model) if model else None

    async def upsert(self, setting: SystemSetting) -> SystemSetting:
        """Insert or replace a setting."""
        model = await self._session.get(SystemSettingModel, setting.key)
        if model is None:
            model = SystemSettingModel(key=setting.key)
            self._session.add(model)

        model.value = setting.value
        model.updated_by = parse_uuid(setting.updated_by)
        model.updated_at = datetime.now(timezone.utc)

        await self._session.flush()
        return self._to_entity(model)


async def load_setting_overrides() -> Dict[str, Any]:
    """Read stored settings in a short-lived session of their own."""
    async with get_session_context() as session:
        settings = await SQLAlchemySystemSettingRepository(session).list_all()
    return {s.key: s.value for s in settings}
