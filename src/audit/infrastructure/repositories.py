"""
Audit Infrastructure Repositories
==================================

SQLAlchemy implementation of the audit repository.

Writes run inside a SAVEPOINT so that a failed audit insert (including a
dedupe-key collision) never poisons the caller's transaction.
"""

from typing import List

from sqlalchemy import and_, delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.audit.application.services import IAuditRepository
from src.audit.domain import AuditEntry
from src.audit.infrastructure.models import AuditLogModel
from src.core import RepositoryException
from src.infrastructure.database import parse_uuid


class SQLAlchemyAuditRepository(IAuditRepository):
    """
    SQLAlchemy implementation of audit repository.

    Handles persistence of AuditEntry entities.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_model(self, entry: AuditEntry) -> AuditLogModel:
        return AuditLogModel(
            action=entry.action,
            user_id=parse_uuid(entry.user_id),
            report_id=parse_uuid(entry.report_id),
            details=entry.details,
            ip_address=entry.ip_address,
            dedupe_key=entry.dedupe_key,
            created_at=entry.created_at,
        )

    @staticmethod
    def _to_entity(model: AuditLogModel) -> AuditEntry:
        return AuditEntry(
            id=str(model.id),
            action=model.action,
            user_id=str(model.user_id) if model.user_id else None,
            report_id=str(model.report_id) if model.report_id else None,
            details=model.details or {},
            ip_address=model.ip_address,
            dedupe_key=model.dedupe_key,
            created_at=model.created_at,
        )

    async def add(self, entry: AuditEntry) -> AuditEntry:
        """Append an entry."""
        model = self._to_model(entry)
        try:
            async with self._session.begin_nested():
                self._session.add(model)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to write audit entry: {e}") from e

        entry.id = str(model.id)
        return entry

    async def add_unique(self, entry: AuditEntry) -> bool:
        """Append an entry guarded by its dedupe key."""
        model = self._to_model(entry)
        try:
            async with self._session.begin_nested():
                self._session.add(model)
        except IntegrityError:
            return False

        entry.id = str(model.id)
        return True

    async def delete_by_dedupe_key(self, dedupe_key: str) -> None:
        """Remove the entry holding a dedupe key."""
        stmt = delete(AuditLogModel).where(AuditLogModel.dedupe_key == dedupe_key)
        await self._session.execute(stmt)
        await self._session.flush()

    async def exists(self, report_id: str, action: str) -> bool:
        """Check if an entry exists for a report and action."""
        report_uuid = parse_uuid(report_id)
        if report_uuid is None:
            return False

        stmt = select(AuditLogModel.id).where(
            and_(
                AuditLogModel.report_id == report_uuid,
                AuditLogModel.action == action
            )
        ).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[AuditEntry]:
        """List entries with filters, newest first."""
        stmt = select(AuditLogModel)

        conditions = []
        if "report_id" in filters:
            conditions.append(AuditLogModel.report_id == parse_uuid(filters["report_id"]))
        if "user_id" in filters:
            conditions.append(AuditLogModel.user_id == parse_uuid(filters["user_id"]))
        if "action" in filters:
            conditions.append(AuditLogModel.action == filters["action"])

        if "company_id" in filters:
            from src.programs.infrastructure.models import ProgramModel, ReportModel

            stmt = stmt.join(
                ReportModel, ReportModel.id == AuditLogModel.report_id
            ).join(
                ProgramModel, ProgramModel.id == ReportModel.program_id
            )
            conditions.append(ProgramModel.company_id == parse_uuid(filters["company_id"]))

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(AuditLogModel.created_at.desc())
        stmt = stmt.limit(limit).offset(offset)

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]
