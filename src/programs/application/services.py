"""
Programs Application Services
==============================

Application services orchestrating programs, reports, payouts and budget
alerts.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Collection, Dict, List, Optional
from uuid import uuid4

from src.access.application import IAccountRepository
from src.access.domain import Account
from src.administration.application import IPlatformConfigProvider
from src.audit.application import AuditService
from src.config import (
    ADMINISTRATIVE_ROLES,
    INTERNAL_ROLES,
    AccountRole,
    AuditAction,
    ProgramStatus,
    ReportStatus,
    Severity,
)
from src.core import (
    PermissionDenied,
    ProgramNotAcceptingReports,
    ResourceNotFoundException,
    ValidationException,
)
from src.infrastructure.notifications import INotificationClient
from src.programs.domain import BudgetAlert, BudgetPolicy, Payout, Program, Report, ReportLifecycle
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IProgramRepository(ABC):
    """Interface for program data access."""

    @abstractmethod
    async def get_by_id(self, program_id: str) -> Optional[Program]:
        """Get program by ID."""

    @abstractmethod
    async def get_for_update(self, program_id: str) -> Optional[Program]:
        """Get program and hold a row lock until the transaction ends."""

    @abstractmethod
    async def list(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[Program]:
        """List programs, newest first."""

    @abstractmethod
    async def create(self, program: Program) -> Program:
        """Create new program."""

    @abstractmethod
    async def update(self, program: Program) -> Program:
        """Persist program fields."""


class IReportRepository(ABC):
    """Interface for report data access. Reports come with their program."""

    @abstractmethod
    async def get_by_id(self, report_id: str) -> Optional[Report]:
        """Get report by ID."""

    @abstractmethod
    async def list(
        self,
        filters: dict,
        limit: Optional[int] = 100,
        offset: int = 0
    ) -> List[Report]:
        """List reports, newest first. ``limit=None`` returns every match."""

    @abstractmethod
    async def list_excluding_statuses(
        self,
        statuses: Collection[ReportStatus]
    ) -> List[Report]:
        """List every report whose status is not in ``statuses``."""

    @abstractmethod
    async def create(self, report: Report) -> Report:
        """Create new report."""

    @abstractmethod
    async def update(self, report: Report) -> Report:
        """Persist report status, content, bounty and timestamps."""


# ========== Application Services ==========

class ProgramService:
    """
    Service for bounty programs.

    Programs belong to the organization root of the company account that
    created them, so company employees manage their employer's programs.
    """

    UPDATABLE_FIELDS = frozenset({
        "name",
        "description",
        "scope",
        "rules",
        "status",
        "budget_total",
        "sla_first_response",
        "sla_triage",
        "sla_resolution",
    })

    def __init__(
        self,
        program_repository: IProgramRepository,
        audit_service: AuditService
    ):
        self._program_repo = program_repository
        self._audit = audit_service

    async def create_program(
        self,
        actor: Account,
        name: str,
        description: Optional[str] = None,
        scope: Optional[str] = None,
        rules: Optional[str] = None,
        budget_total: Optional[Decimal] = None,
        sla_first_response: Optional[int] = None,
        sla_triage: Optional[int] = None,
        sla_resolution: Optional[int] = None,
        ip_address: Optional[str] = None
    ) -> Program:
        """
        Create a program owned by the caller's organization.

        Raises:
            PermissionDenied: If the caller is not a company account
        """
        if actor.role != AccountRole.COMPANY_ADMIN:
            raise PermissionDenied("company:programs", message="Only companies can run programs")

        program = await self._program_repo.create(Program(
            id=str(uuid4()),
            company_id=actor.organization_id,
            name=name,
            description=description,
            scope=scope,
            rules=rules,
            budget_total=budget_total or None,
            sla_first_response=sla_first_response or None,
            sla_triage=sla_triage or None,
            sla_resolution=sla_resolution or None,
        ))

        logger.info(
            "Program created",
            extra={"program_id": program.id, "company_id": program.company_id}
        )
        await self._audit.record(
            AuditAction.PROGRAM_CREATED,
            user_id=actor.id,
            details={"program_id": program.id, "name": program.name},
            ip_address=ip_address,
        )
        return program

    async def get_program(self, program_id: str) -> Program:
        program = await self._program_repo.get_by_id(program_id)
        if program is None:
            raise ResourceNotFoundException("Program", program_id)
        return program

    async def list_programs(
        self,
        actor: Account,
        status: Optional[ProgramStatus] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Program]:
        """
        List programs visible to the caller.

        Companies see their own programs in any status; everyone else sees
        active programs unless they are platform admins.
        """
        filters: Dict[str, Any] = {}
        if actor.role == AccountRole.COMPANY_ADMIN:
            filters["company_id"] = actor.organization_id
        elif actor.role not in ADMINISTRATIVE_ROLES:
            filters["status"] = ProgramStatus.ACTIVE
        if status is not None:
            filters["status"] = status

        return await self._program_repo.list(filters, limit=limit, offset=offset)

    async def update_program(
        self,
        actor: Account,
        program_id: str,
        changes: Dict[str, Any],
        ip_address: Optional[str] = None
    ) -> Program:
        """
        Update program details.

        Only keys in ``UPDATABLE_FIELDS`` are applied; a zero SLA target or
        budget clears it.

        Raises:
            ResourceNotFoundException: If the program does not exist
            PermissionDenied: If the program belongs to another company
        """
        program = await self.get_program(program_id)
        if program.company_id != actor.organization_id:
            raise PermissionDenied("company:programs", {"program_id": program_id}, message="Access denied")

        applied = {k: v for k, v in changes.items() if k in self.UPDATABLE_FIELDS}
        for key, value in applied.items():
            if key.startswith("sla_") or key == "budget_total":
                value = value or None
            setattr(program, key, value)
        program.updated_at = datetime.now(timezone.utc)

        program = await self._program_repo.update(program)

        await self._audit.record(
            AuditAction.PROGRAM_UPDATED,
            user_id=actor.id,
            details={
                "program_id": program.id,
                "name": program.name,
                "status": program.status.value,
                "fields": sorted(applied),
            },
            ip_address=ip_address,
        )
        return program


class ReportService:
    """
    Service for vulnerability reports.

    Handles:
    - Researcher drafts and submissions (program must accept reports)
    - Status changes by the owning company or internal staff
    - Bounty payouts against the program budget, with one-time usage alerts
      and automatic pause when the budget is used up
    """

    def __init__(
        self,
        report_repository: IReportRepository,
        program_repository: IProgramRepository,
        account_repository: IAccountRepository,
        audit_service: AuditService,
        notification_client: INotificationClient,
        config_provider: IPlatformConfigProvider
    ):
        self._report_repo = report_repository
        self._program_repo = program_repository
        self._account_repo = account_repository
        self._audit = audit_service
        self._notifier = notification_client
        self._config_provider = config_provider

    # ========== Access helpers ==========

    @staticmethod
    def _is_program_owner(actor: Account, program: Program) -> bool:
        return (
            actor.role == AccountRole.COMPANY_ADMIN
            and program.company_id == actor.organization_id
        )

    def _can_view(self, actor: Account, report: Report, program: Program) -> bool:
        if actor.role in INTERNAL_ROLES or actor.is_super_admin:
            return True
        if actor.role == AccountRole.RESEARCHER:
            return report.researcher_id == actor.id
        return self._is_program_owner(actor, program)

    async def _get_program(self, program_id: str) -> Program:
        program = await self._program_repo.get_by_id(program_id)
        if program is None:
            raise ResourceNotFoundException("Program", program_id)
        return program

    async def _get_own_report(self, researcher: Account, report_id: str) -> Report:
        report = await self._report_repo.get_by_id(report_id)
        if report is None:
            raise ResourceNotFoundException("Report", report_id)
        if report.researcher_id != researcher.id:
            raise PermissionDenied("researcher:reports", {"report_id": report_id}, message="Access denied")
        return report

    @staticmethod
    def _ensure_accepting(program: Program) -> None:
        reason = program.rejection_reason()
        if reason is not None:
            raise ProgramNotAcceptingReports(program.id, reason)

    # ========== Queries ==========

    async def get_report(self, actor: Account, report_id: str) -> Report:
        """
        Get a report the caller may see.

        Raises:
            ResourceNotFoundException: If the report does not exist
            PermissionDenied: If the caller is outside the report's tenants
        """
        report = await self._report_repo.get_by_id(report_id)
        if report is None:
            raise ResourceNotFoundException("Report", report_id)

        program = report.program or await self._get_program(report.program_id)
        if not self._can_view(actor, report, program):
            raise PermissionDenied("reports", {"report_id": report_id}, message="Access denied")
        return report

    async def list_reports(
        self,
        actor: Account,
        program_id: Optional[str] = None,
        status: Optional[ReportStatus] = None,
        limit: int = 100,
        offset: int = 0
    ) -> List[Report]:
        """Reports scoped to the caller: own submissions, own programs, or all."""
        filters: Dict[str, Any] = {}
        if actor.role == AccountRole.RESEARCHER:
            filters["researcher_id"] = actor.id
        elif actor.role == AccountRole.COMPANY_ADMIN:
            filters["company_id"] = actor.organization_id
        if program_id:
            filters["program_id"] = program_id
        if status is not None:
            filters["status"] = status

        return await self._report_repo.list(filters, limit=limit, offset=offset)

    # ========== Researcher flows ==========

    async def create_report(
        self,
        researcher: Account,
        program_id: str,
        title: str,
        description: str,
        severity: Severity,
        as_draft: bool = False,
        ip_address: Optional[str] = None
    ) -> Report:
        """
        Create a report as a draft or submit it straight away.

        Raises:
            ResourceNotFoundException: If the program does not exist
            ProgramNotAcceptingReports: On direct submission to a paused,
                closed or exhausted program
        """
        program = await self._get_program(program_id)
        if not as_draft:
            self._ensure_accepting(program)

        report = Report(
            id=str(uuid4()),
            program_id=program.id,
            researcher_id=researcher.id,
            title=title,
            description=description,
            severity=severity,
        )
        if not as_draft:
            ReportLifecycle.apply(report, ReportStatus.SUBMITTED, report.created_at)

        report = await self._report_repo.create(report)
        report.program = program

        logger.info(
            "Report created",
            extra={
                "report_id": report.id,
                "program_id": program.id,
                "status": report.status.value,
            }
        )
        await self._audit.record(
            AuditAction.REPORT_SUBMITTED,
            user_id=researcher.id,
            report_id=report.id,
            details={"title": report.title, "program": program.name, "status": report.status.value},
            ip_address=ip_address,
        )
        return report

    async def update_draft(
        self,
        researcher: Account,
        report_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        severity: Optional[Severity] = None,
        ip_address: Optional[str] = None
    ) -> Report:
        """
        Edit a draft.

        Raises:
            ValidationException: If the report is no longer a draft
        """
        report = await self._get_own_report(researcher, report_id)
        if not report.is_draft:
            raise ValidationException("Only drafts can be edited", {"status": report.status.value})

        if title is not None:
            report.title = title
        if description is not None:
            report.description = description
        if severity is not None:
            report.severity = severity
        report.updated_at = datetime.now(timezone.utc)

        report = await self._report_repo.update(report)

        await self._audit.record(
            AuditAction.REPORT_UPDATED,
            user_id=researcher.id,
            report_id=report.id,
            details={"title": report.title, "status": report.status.value},
            ip_address=ip_address,
        )
        return report

    async def submit_report(
        self,
        researcher: Account,
        report_id: str,
        ip_address: Optional[str] = None
    ) -> Report:
        """
        Submit a draft. Starts the SLA clock.

        Raises:
            InvalidStatusTransition: If the report is not a draft
            ProgramNotAcceptingReports: If the program is paused, closed or
                out of budget
        """
        report = await self._get_own_report(researcher, report_id)
        ReportLifecycle.ensure_transition(report.status, ReportStatus.SUBMITTED)

        program = report.program or await self._get_program(report.program_id)
        self._ensure_accepting(program)

        ReportLifecycle.apply(report, ReportStatus.SUBMITTED)
        report = await self._report_repo.update(report)

        await self._audit.record(
            AuditAction.REPORT_SUBMITTED,
            user_id=researcher.id,
            report_id=report.id,
            details={"title": report.title, "program": program.name, "status": report.status.value},
            ip_address=ip_address,
        )
        return report

    # ========== Triage ==========

    async def update_status(
        self,
        actor: Account,
        report_id: str,
        status: ReportStatus,
        ip_address: Optional[str] = None
    ) -> Report:
        """
        Move a report through the triage lifecycle.

        Raises:
            PermissionDenied: If the caller neither owns the program nor is
                internal staff
            ValidationException: On PAID, which only a payout can set
            InvalidStatusTransition: If the move is not allowed
        """
        report = await self._report_repo.get_by_id(report_id)
        if report is None:
            raise ResourceNotFoundException("Report", report_id)
        program = report.program or await self._get_program(report.program_id)

        is_internal = actor.role in INTERNAL_ROLES or actor.is_super_admin
        if not is_internal and not self._is_program_owner(actor, program):
            raise PermissionDenied(
                "company:triage",
                {"report_id": report_id},
                message="Access denied to update status"
            )

        if status == ReportStatus.PAID:
            raise ValidationException("Reports are marked as paid by a bounty payout", {"status": status.value})

        previous = report.status
        ReportLifecycle.ensure_transition(
            previous,
            status,
            administrative=actor.role in ADMINISTRATIVE_ROLES or actor.is_super_admin
        )
        ReportLifecycle.apply(report, status)
        report = await self._report_repo.update(report)

        logger.info(
            "Report status changed",
            extra={"report_id": report.id, "from": previous.value, "to": status.value}
        )
        await self._audit.record(
            AuditAction.REPORT_STATUS_CHANGE,
            user_id=actor.id,
            report_id=report.id,
            details={"from": previous.value, "to": status.value},
            ip_address=ip_address,
        )
        return report

    # ========== Payouts ==========

    async def pay_bounty(
        self,
        actor: Account,
        report_id: str,
        amount: Decimal,
        ip_address: Optional[str] = None
    ) -> Payout:
        """
        Pay a bounty out of the program budget.

        The program row stays locked until the surrounding transaction
        commits, so concurrent payouts on one program are serialized.
        Crossed budget thresholds are audited here; the returned alerts are
        delivered with ``send_budget_alerts`` after the commit.

        Raises:
            PermissionDenied: If the caller does not own the program
            InvalidStatusTransition: If the report is not payable
            BudgetExceeded: If the payout would overspend the budget
        """
        report = await self._report_repo.get_by_id(report_id)
        if report is None:
            raise ResourceNotFoundException("Report", report_id)

        program = await self._program_repo.get_for_update(report.program_id)
        if program is None:
            raise ResourceNotFoundException("Program", report.program_id)

        if not self._is_program_owner(actor, program):
            raise PermissionDenied("company:payments", {"report_id": report_id}, message="Access denied")

        ReportLifecycle.ensure_transition(report.status, ReportStatus.PAID)
        BudgetPolicy.check_payout(program, amount)

        config = await self._config_provider.get_config()

        report.bounty_amount = amount
        ReportLifecycle.apply(report, ReportStatus.PAID)

        program.budget_spent = program.budget_spent + amount
        usage = BudgetPolicy.usage_percentage(program)
        crossed = BudgetPolicy.crossed_thresholds(
            program.budget_alert_level, usage, config.budget_alert_thresholds
        )
        if crossed:
            program.budget_alert_level = crossed[-1]

        paused = BudgetPolicy.should_pause(usage) and program.status == ProgramStatus.ACTIVE
        if paused:
            program.status = ProgramStatus.PAUSED
        program.updated_at = report.updated_at

        report = await self._report_repo.update(report)
        program = await self._program_repo.update(program)
        report.program = program

        logger.info(
            "Bounty paid",
            extra={
                "report_id": report.id,
                "program_id": program.id,
                "amount": str(amount),
                "budget_spent": str(program.budget_spent),
                "budget_total": str(program.budget_total) if program.budget_total is not None else None,
            }
        )
        await self._audit.record(
            AuditAction.BOUNTY_PAID,
            user_id=actor.id,
            report_id=report.id,
            details={"amount": str(amount), "program_id": program.id},
            ip_address=ip_address,
        )

        if paused:
            logger.warning(
                "Program paused, budget exhausted",
                extra={"program_id": program.id}
            )
            await self._audit.record(
                AuditAction.PROGRAM_PAUSED,
                user_id=actor.id,
                details={"program_id": program.id, "reason": "budget exhausted"},
                ip_address=ip_address,
            )

        alerts = []
        for threshold in crossed:
            alert = await self._raise_budget_alert(program, threshold, notify=config.notifications_enabled)
            if alert is not None:
                alerts.append(alert)

        return Payout(report=report, alerts=alerts)

    async def send_budget_alerts(self, alerts: List[BudgetAlert]) -> int:
        """
        Deliver budget alerts of a committed payout.

        Delivery failures are logged; the payout stands either way.

        Returns:
            Number of alerts delivered
        """
        delivered = 0
        for alert in alerts:
            sent = await self._notifier.send_budget_alert(
                to=alert.recipient,
                program_id=alert.program_id,
                program_name=alert.program_name,
                percentage=alert.threshold,
                remaining=str(alert.remaining),
            )
            if sent:
                delivered += 1
            else:
                logger.warning(
                    "Budget alert not delivered",
                    extra={"program_id": alert.program_id, "threshold": alert.threshold}
                )
        return delivered

    async def _raise_budget_alert(self, program: Program, threshold: int, notify: bool) -> Optional[BudgetAlert]:
        remaining = program.remaining_budget
        logger.warning(
            "Budget threshold crossed",
            extra={
                "program_id": program.id,
                "threshold": threshold,
                "remaining": str(remaining),
            }
        )
        await self._audit.record(
            AuditAction.BUDGET_ALERT,
            user_id=program.company_id,
            details={"program_id": program.id, "threshold": threshold, "remaining": str(remaining)},
        )

        if not notify:
            return None

        company = await self._account_repo.get_by_id(program.company_id)
        if company is None:
            logger.warning("Budget alert has no recipient", extra={"program_id": program.id})
            return None

        return BudgetAlert(
            program_id=program.id,
            program_name=program.name,
            threshold=threshold,
            remaining=remaining,
            recipient=company.email,
        )
