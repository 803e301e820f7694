"""
SLA Value Objects
==================

Pure SLA calculations over reports and their program targets.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from src.config import SLA_TARGETS, SLATarget
from src.programs.domain import Report
from src.sla.domain.entities import ReportSLA, SLAMetrics, SLATargetStatus


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless utility class following DRY principle -
    all SLA calculation logic in one place.

    Deadlines are wall-clock: ``submitted_at`` plus the target hours, with
    no business-hours calendar. An unset target means "not tracked"; it
    yields no deadline and is never breached.
    """

    @staticmethod
    def calculate_deadline(
        start: datetime,
        target_hours: Optional[float]
    ) -> Optional[datetime]:
        """
        Calculate the deadline for an SLA target.

        Args:
            start: When the SLA clock started (report submission)
            target_hours: Target in hours; 0 or None means untracked

        Returns:
            The deadline, or None when the target is not tracked
        """
        if not target_hours:
            return None
        return start + timedelta(hours=target_hours)

    @staticmethod
    def deadline_for(report: Report, target: SLATarget) -> Optional[datetime]:
        """Deadline of a report milestone, None if untracked or not submitted."""
        if report.program is None or report.submitted_at is None:
            return None
        return SLACalculator.calculate_deadline(
            report.submitted_at, report.program.sla_hours(target)
        )

    @staticmethod
    def is_breached(
        report: Report,
        target: SLATarget,
        now: Optional[datetime] = None
    ) -> bool:
        """
        Check whether a milestone missed its deadline.

        While the milestone is outstanding the current time is compared,
        so a report becomes breached by elapsed time alone and never
        recovers without the milestone timestamp being set.
        """
        deadline = SLACalculator.deadline_for(report, target)
        if deadline is None:
            return False

        checked_at = report.completed_at(target) or now or datetime.now(timezone.utc)
        return checked_at > deadline

    @staticmethod
    def escalation_deadline(
        deadline: datetime,
        grace_hours: float
    ) -> datetime:
        """Time after which an unhandled breach is escalated."""
        return deadline + timedelta(hours=grace_hours)

    @staticmethod
    def is_escalation_due(
        report: Report,
        target: SLATarget,
        grace_hours: float,
        now: Optional[datetime] = None
    ) -> bool:
        now = now or datetime.now(timezone.utc)
        if not SLACalculator.is_breached(report, target, now):
            return False
        deadline = SLACalculator.deadline_for(report, target)
        return now > SLACalculator.escalation_deadline(deadline, grace_hours)

    @staticmethod
    def evaluate(report: Report, now: Optional[datetime] = None) -> ReportSLA:
        """SLA state of every milestone of a report."""
        now = now or datetime.now(timezone.utc)
        program = report.program

        targets = [
            SLATargetStatus(
                target=target,
                target_hours=program.sla_hours(target) if program else None,
                deadline=SLACalculator.deadline_for(report, target),
                completed_at=report.completed_at(target),
                is_breached=SLACalculator.is_breached(report, target, now),
            )
            for target in SLA_TARGETS
        ]

        return ReportSLA(
            report_id=report.id,
            program_id=report.program_id,
            status=report.status,
            submitted_at=report.submitted_at,
            targets=targets,
        )

    @staticmethod
    def calculate_metrics(
        reports: Iterable[Report],
        now: Optional[datetime] = None
    ) -> SLAMetrics:
        """
        First-response compliance over reports whose program tracks it.

        compliance_rate = 100 * (eligible - breached) / eligible, rounded
        half up to an integer (100 when nothing is eligible).
        avg_response_time = mean hours from submission to first response
        over responded reports, rounded to 2 decimals (0 when none).
        """
        now = now or datetime.now(timezone.utc)

        eligible = 0
        breached = 0
        total_response_hours = 0.0
        responded = 0

        for report in reports:
            if report.program is None or not report.program.sla_first_response:
                continue

            eligible += 1
            if SLACalculator.is_breached(report, SLATarget.FIRST_RESPONSE, now):
                breached += 1

            if report.first_responded_at and report.submitted_at:
                delta = report.first_responded_at - report.submitted_at
                total_response_hours += delta.total_seconds() / 3600
                responded += 1

        if eligible:
            compliance_rate = math.floor(100 * (eligible - breached) / eligible + 0.5)
        else:
            compliance_rate = 100

        avg_response_time = round(total_response_hours / responded, 2) if responded else 0.0

        return SLAMetrics(
            total_sla_eligible=eligible,
            breached_count=breached,
            compliance_rate=compliance_rate,
            avg_response_time=avg_response_time,
        )
