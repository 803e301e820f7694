"""
SLA Application Services
=========================

Application services orchestrate business logic and coordinate between
domain entities and repositories.

Following SOLID principles:
- Single Responsibility: Each service has one clear purpose
- Dependency Inversion: Depend on abstractions (repositories), not concrete implementations
"""

from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from src.access.application import AccountService
from src.access.domain import Account
from src.administration.application import IPlatformConfigProvider
from src.audit.application import AuditService
from src.config import SLA_TARGETS, AccountRole, AuditAction
from src.infrastructure.notifications import INotificationClient
from src.programs.application import IReportRepository
from src.programs.domain import SLA_INACTIVE_STATUSES, Report
from src.shared.infrastructure.logging import get_logger, log_latency
from src.sla.domain import ReportSLA, SLACalculator, SLAMetrics, SweepResult

logger = get_logger(__name__)


# ========== Application Services ==========

class SLAService:
    """
    Service for SLA views and dashboard metrics.

    Dashboards are scoped: companies see reports of their own programs,
    internal staff see the whole platform.
    """

    def __init__(self, report_repository: IReportRepository):
        self._report_repo = report_repository

    def get_report_sla(self, report: Report, now: Optional[datetime] = None) -> ReportSLA:
        """Per-milestone SLA view of a report."""
        return SLACalculator.evaluate(report, now)

    async def get_dashboard(
        self,
        actor: Account,
        program_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Compliance metrics and currently breached reports.

        Returns:
            Dict with ``metrics`` (SLAMetrics) and ``breached`` (List[ReportSLA])
        """
        now = now or datetime.now(timezone.utc)

        filters: Dict[str, Any] = {}
        if actor.role == AccountRole.COMPANY_ADMIN:
            filters["company_id"] = actor.organization_id
        if program_id:
            filters["program_id"] = program_id

        reports = await self._report_repo.list(filters, limit=None)
        metrics = SLACalculator.calculate_metrics(reports, now)

        breached = []
        for report in reports:
            if report.status in SLA_INACTIVE_STATUSES:
                continue
            view = SLACalculator.evaluate(report, now)
            if view.is_any_breached:
                breached.append(view)

        return {"metrics": metrics, "breached": breached}

    async def get_metrics(self, actor: Account, program_id: Optional[str] = None) -> SLAMetrics:
        dashboard = await self.get_dashboard(actor, program_id)
        return dashboard["metrics"]


class SLABreachMonitor:
    """
    Periodic sweep that notifies SLA breaches and escalations.

    For every report still in play and every breached milestone:
    1. The program's company gets one breach notification
    2. Once the breach is older than the escalation grace period, the
       platform admin gets one escalation

    Each notification is guarded by an audit entry with a unique dedupe
    key. The entry is claimed before sending and released if delivery
    fails, so the next sweep retries.
    """

    def __init__(
        self,
        report_repository: IReportRepository,
        account_service: AccountService,
        audit_service: AuditService,
        notification_client: INotificationClient,
        config_provider: IPlatformConfigProvider,
        fallback_admin_email: Optional[str] = None
    ):
        self._report_repo = report_repository
        self._accounts = account_service
        self._audit = audit_service
        self._notifier = notification_client
        self._config_provider = config_provider
        self._fallback_admin_email = fallback_admin_email

    async def check_and_notify_breaches(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Evaluate all active reports and send outstanding notifications.

        Notification failures are logged and counted, never raised.
        """
        now = now or datetime.now(timezone.utc)
        result = SweepResult()

        config = await self._config_provider.get_config()
        if not config.notifications_enabled:
            logger.info("Notifications disabled, skipping SLA sweep")
            return result

        with log_latency(logger, "sla_sweep"):
            reports = await self._report_repo.list_excluding_statuses(SLA_INACTIVE_STATUSES)
            companies: Dict[str, Optional[Account]] = {}
            admin_email: Optional[str] = None
            admin_resolved = False

            for report in reports:
                result.reports_checked += 1

                for target in SLA_TARGETS:
                    if not SLACalculator.is_breached(report, target, now):
                        continue

                    deadline = SLACalculator.deadline_for(report, target)
                    program = report.program

                    if program.company_id not in companies:
                        companies[program.company_id] = await self._accounts.get_account(program.company_id)
                    company = companies[program.company_id]

                    if company is None:
                        logger.warning(
                            "SLA breach has no company recipient",
                            extra={"report_id": report.id, "program_id": program.id}
                        )
                    else:
                        await self._notify_once(
                            result,
                            report,
                            AuditAction.sla_breach(target),
                            details={
                                "target": target.value,
                                "deadline": deadline.isoformat(),
                                "message": f"Notified company about {target.value} deadline breach",
                            },
                            send=lambda: self._notifier.send_sla_breach(
                                to=company.email,
                                report_id=report.id,
                                report_title=report.title,
                                program_name=program.name,
                                target=target,
                                deadline=deadline,
                            ),
                            escalation=False,
                        )

                    escalate_after = SLACalculator.escalation_deadline(deadline, config.escalation_grace_hours)
                    if now <= escalate_after:
                        continue

                    if not admin_resolved:
                        admin_email = await self._find_admin_email()
                        admin_resolved = True
                    if admin_email is None:
                        logger.warning(
                            "SLA escalation has no admin recipient",
                            extra={"report_id": report.id}
                        )
                        continue

                    await self._notify_once(
                        result,
                        report,
                        AuditAction.sla_escalated(target),
                        details={
                            "target": target.value,
                            "deadline": deadline.isoformat(),
                            "message": f"Escalated {target.value} breach to administration",
                        },
                        send=lambda: self._notifier.send_sla_escalation(
                            to=admin_email,
                            report_id=report.id,
                            report_title=report.title,
                            program_name=program.name,
                            company_name=(company.full_name or company.email) if company else program.company_id,
                            target=target,
                            deadline=deadline,
                        ),
                        escalation=True,
                    )

        logger.info("SLA sweep complete", extra=result.to_dict())
        return result

    async def _notify_once(
        self,
        result: SweepResult,
        report: Report,
        action: str,
        details: Dict[str, Any],
        send: Callable[[], Awaitable[bool]],
        escalation: bool
    ) -> bool:
        """Claim the dedupe guard, send, and release the guard on failure."""
        if not await self._audit.claim(report.id, action, details):
            result.already_notified += 1
            return False

        delivered = await send()
        if not delivered:
            await self._audit.release(report.id, action)
            result.failed += 1
            logger.warning(
                "SLA notification not delivered, will retry next sweep",
                extra={"report_id": report.id, "action": action}
            )
            return False

        if escalation:
            result.escalations_sent += 1
        else:
            result.breaches_notified += 1
        logger.info(
            "SLA notification sent",
            extra={"report_id": report.id, "action": action}
        )
        return True

    async def _find_admin_email(self) -> Optional[str]:
        admins = await self._accounts.find_platform_admins()
        if admins:
            return admins[0].email
        return self._fallback_admin_email
