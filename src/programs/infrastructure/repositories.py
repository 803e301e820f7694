"""
Programs Infrastructure Repositories
=====================================

Concrete implementations of the program and report repository interfaces
using SQLAlchemy.
"""

from typing import Collection, List, Optional
from uuid import UUID

from sqlalchemy import Select, and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import ProgramStatus, ReportStatus, Severity
from src.core import RepositoryException
from src.infrastructure.database import parse_uuid
from src.programs.application.services import IProgramRepository, IReportRepository
from src.programs.domain import Program, Report
from src.programs.infrastructure.models import ProgramModel, ReportModel


def _to_program(model: ProgramModel) -> Program:
    return Program(
        id=str(model.id),
        company_id=str(model.company_id),
        name=model.name,
        description=model.description,
        scope=model.scope,
        rules=model.rules,
        status=ProgramStatus(model.status),
        budget_total=model.budget_total,
        budget_spent=model.budget_spent,
        budget_alert_level=model.budget_alert_level,
        sla_first_response=model.sla_first_response,
        sla_triage=model.sla_triage,
        sla_resolution=model.sla_resolution,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def program_select(program_uuid: UUID, lock: bool = False) -> Select:
    """SELECT for one program; ``lock`` adds FOR UPDATE."""
    stmt = select(ProgramModel).where(ProgramModel.id == program_uuid)
    if lock:
        # Refresh an identity-mapped row with the values read under the lock
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return stmt


def _to_report(model: ReportModel, program: Optional[ProgramModel] = None) -> Report:
    return Report(
        id=str(model.id),
        program_id=str(model.program_id),
        researcher_id=str(model.researcher_id),
        title=model.title,
        description=model.description,
        severity=Severity(model.severity),
        status=ReportStatus(model.status),
        bounty_amount=model.bounty_amount,
        submitted_at=model.submitted_at,
        first_responded_at=model.first_responded_at,
        triaged_at=model.triaged_at,
        resolved_at=model.resolved_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
        program=_to_program(program) if program is not None else None,
    )


class SQLAlchemyProgramRepository(IProgramRepository):
    """
    SQLAlchemy implementation of program repository.

    ``get_for_update`` issues SELECT ... FOR UPDATE so payouts against one
    program are serialized by the database.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, program_id: str, lock: bool = False) -> Optional[ProgramModel]:
        program_uuid = parse_uuid(program_id)
        if program_uuid is None:
            return None

        result = await self._session.execute(program_select(program_uuid, lock=lock))
        return result.scalar_one_or_none()

    async def get_by_id(self, program_id: str) -> Optional[Program]:
        model = await self._get_model(program_id)
        return _to_program(model) if model else None

    async def get_for_update(self, program_id: str) -> Optional[Program]:
        """Get program while holding a row lock."""
        model = await self._get_model(program_id, lock=True)
        return _to_program(model) if model else None

    async def list(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[Program]:
        """List programs with filters."""
        stmt = select(ProgramModel)

        conditions = []
        if "company_id" in filters:
            conditions.append(ProgramModel.company_id == parse_uuid(filters["company_id"]))

        if "status" in filters:
            conditions.append(ProgramModel.status == ProgramStatus(filters["status"]).value)

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(ProgramModel.created_at.desc())
        stmt = stmt.limit(limit).offset(offset)

        result = await self._session.execute(stmt)
        return [_to_program(model) for model in result.scalars().all()]

    async def create(self, program: Program) -> Program:
        """Create new program."""
        model = ProgramModel(
            id=UUID(program.id),
            company_id=UUID(program.company_id),
            name=program.name,
            description=program.description,
            scope=program.scope,
            rules=program.rules,
            status=program.status.value,
            budget_total=program.budget_total,
            budget_spent=program.budget_spent,
            budget_alert_level=program.budget_alert_level,
            sla_first_response=program.sla_first_response,
            sla_triage=program.sla_triage,
            sla_resolution=program.sla_resolution,
            created_at=program.created_at,
            updated_at=program.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _to_program(model)

    async def update(self, program: Program) -> Program:
        """Update existing program."""
        model = await self._get_model(program.id)
        if not model:
            raise RepositoryException(f"Program {program.id} not found")

        model.name = program.name
        model.description = program.description
        model.scope = program.scope
        model.rules = program.rules
        model.status = program.status.value
        model.budget_total = program.budget_total
        model.budget_spent = program.budget_spent
        model.budget_alert_level = program.budget_alert_level
        model.sla_first_response = program.sla_first_response
        model.sla_triage = program.sla_triage
        model.sla_resolution = program.sla_resolution
        model.updated_at = program.updated_at

        await self._session.flush()
        return _to_program(model)


class SQLAlchemyReportRepository(IReportRepository):
    """
    SQLAlchemy implementation of report repository.

    Reports are loaded together with their program.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    def _select(self):
        return select(ReportModel, ProgramModel).join(
            ProgramModel, ProgramModel.id == ReportModel.program_id
        )

    async def get_by_id(self, report_id: str) -> Optional[Report]:
        report_uuid = parse_uuid(report_id)
        if report_uuid is None:
            return None

        result = await self._session.execute(
            self._select().where(ReportModel.id == report_uuid)
        )
        row = result.one_or_none()
        return _to_report(row[0], row[1]) if row else None

    async def list(
        self,
        filters: dict,
        limit: Optional[int] = 100,
        offset: int = 0
    ) -> List[Report]:
        """List reports with filters."""
        stmt = self._select()

        conditions = []
        if "researcher_id" in filters:
            conditions.append(ReportModel.researcher_id == parse_uuid(filters["researcher_id"]))

        if "program_id" in filters:
            conditions.append(ReportModel.program_id == parse_uuid(filters["program_id"]))

        if "company_id" in filters:
            conditions.append(ProgramModel.company_id == parse_uuid(filters["company_id"]))

        if "status" in filters:
            status_list = filters["status"]
            if isinstance(status_list, (list, tuple, set, frozenset)):
                conditions.append(ReportModel.status.in_([ReportStatus(s).value for s in status_list]))
            else:
                conditions.append(ReportModel.status == ReportStatus(status_list).value)

        if conditions:
            stmt = stmt.where(and_(*conditions))

        stmt = stmt.order_by(ReportModel.created_at.desc())
        stmt = stmt.limit(limit).offset(offset)

        result = await self._session.execute(stmt)
        return [_to_report(report, program) for report, program in result.all()]

    async def list_excluding_statuses(
        self,
        statuses: Collection[ReportStatus]
    ) -> List[Report]:
        stmt = self._select().where(
            ReportModel.status.notin_([s.value for s in statuses])
        ).order_by(ReportModel.submitted_at.asc())

        result = await self._session.execute(stmt)
        return [_to_report(report, program) for report, program in result.all()]

    async def create(self, report: Report) -> Report:
        """Create new report."""
        model = ReportModel(
            id=UUID(report.id),
            program_id=UUID(report.program_id),
            researcher_id=UUID(report.researcher_id),
            title=report.title,
            description=report.description,
            severity=report.severity.value,
            status=report.status.value,
            bounty_amount=report.bounty_amount,
            submitted_at=report.submitted_at,
            first_responded_at=report.first_responded_at,
            triaged_at=report.triaged_at,
            resolved_at=report.resolved_at,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _to_report(model)

    async def update(self, report: Report) -> Report:
        """Update existing report."""
        model = await self._session.get(ReportModel, parse_uuid(report.id))
        if not model:
            raise RepositoryException(f"Report {report.id} not found")

        model.title = report.title
        model.description = report.description
        model.severity = report.severity.value
        model.status = report.status.value
        model.bounty_amount = report.bounty_amount
        model.submitted_at = report.submitted_at
        model.first_responded_at = report.first_responded_at
        model.triaged_at = report.triaged_at
        model.resolved_at = report.resolved_at
        model.updated_at = report.updated_at

        await self._session.flush()
        updated = _to_report(model)
        updated.program = report.program
        return updated
