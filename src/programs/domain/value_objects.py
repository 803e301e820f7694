"""
Programs Value Objects
=======================

Stateless rules for the report lifecycle and the program budget.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, FrozenSet, Iterable, List, Optional

from src.config import ReportStatus
from src.core import BudgetExceeded, InvalidStatusTransition, ValidationException
from src.programs.domain.entities import Program, Report


REPORT_TRANSITIONS: Dict[ReportStatus, FrozenSet[ReportStatus]] = {
    ReportStatus.DRAFT: frozenset({ReportStatus.SUBMITTED}),
    ReportStatus.SUBMITTED: frozenset({
        ReportStatus.TRIAGING,
        ReportStatus.ACCEPTED,
        ReportStatus.REJECTED,
        ReportStatus.DUPLICATE,
    }),
    ReportStatus.TRIAGING: frozenset({
        ReportStatus.ACCEPTED,
        ReportStatus.REJECTED,
        ReportStatus.DUPLICATE,
    }),
    ReportStatus.ACCEPTED: frozenset({
        ReportStatus.READY_FOR_PAYOUT,
        ReportStatus.RESOLVED,
        ReportStatus.PAID,
    }),
    ReportStatus.READY_FOR_PAYOUT: frozenset({ReportStatus.RESOLVED, ReportStatus.PAID}),
    ReportStatus.RESOLVED: frozenset({ReportStatus.PAID}),
    ReportStatus.REJECTED: frozenset(),
    ReportStatus.DUPLICATE: frozenset(),
    ReportStatus.PAID: frozenset(),
    ReportStatus.CLOSED: frozenset(),
}

TRIAGED_STATUSES = frozenset({
    ReportStatus.TRIAGING,
    ReportStatus.ACCEPTED,
    ReportStatus.REJECTED,
    ReportStatus.DUPLICATE,
    ReportStatus.READY_FOR_PAYOUT,
})

RESOLVED_STATUSES = frozenset({ReportStatus.RESOLVED, ReportStatus.PAID})

PAYABLE_STATUSES = frozenset({
    ReportStatus.ACCEPTED,
    ReportStatus.READY_FOR_PAYOUT,
    ReportStatus.RESOLVED,
})

# Statuses the SLA sweep ignores
SLA_INACTIVE_STATUSES = frozenset({
    ReportStatus.DRAFT,
    ReportStatus.RESOLVED,
    ReportStatus.PAID,
    ReportStatus.CLOSED,
})


class ReportLifecycle:
    """
    Report status state machine.

    Any status except CLOSED may be closed administratively; every other
    move must appear in ``REPORT_TRANSITIONS``.
    """

    @staticmethod
    def can_transition(
        current: ReportStatus,
        target: ReportStatus,
        administrative: bool = False
    ) -> bool:
        if target == ReportStatus.CLOSED:
            return administrative and current != ReportStatus.CLOSED
        return target in REPORT_TRANSITIONS.get(current, frozenset())

    @staticmethod
    def ensure_transition(
        current: ReportStatus,
        target: ReportStatus,
        administrative: bool = False
    ) -> None:
        """
        Raises:
            InvalidStatusTransition: If the move is not allowed
        """
        if not ReportLifecycle.can_transition(current, target, administrative):
            raise InvalidStatusTransition(current.value, target.value)

    @staticmethod
    def apply(
        report: Report,
        target: ReportStatus,
        now: Optional[datetime] = None
    ) -> Report:
        """
        Move a report to ``target`` and stamp first-occurrence timestamps.

        Callers validate the move with ``ensure_transition`` first.
        """
        now = now or datetime.now(timezone.utc)

        if target == ReportStatus.SUBMITTED and report.submitted_at is None:
            report.submitted_at = now

        if report.status == ReportStatus.SUBMITTED and report.first_responded_at is None:
            report.first_responded_at = now

        if target in TRIAGED_STATUSES and report.triaged_at is None:
            report.triaged_at = now

        if target in RESOLVED_STATUSES and report.resolved_at is None:
            report.resolved_at = now

        report.status = target
        report.updated_at = now
        return report


class BudgetPolicy:
    """
    Pure functions for payout checks and budget usage alerts.

    Thresholds are percentages of ``budget_total``; the program remembers
    the highest one already alerted so each fires at most once. A None
    ``budget_total`` means uncapped; services store a zero budget as None.
    """

    @staticmethod
    def check_payout(program: Program, amount: Decimal) -> None:
        """
        Ensure a payout fits into the program budget.

        Raises:
            ValidationException: If the amount is not positive or has sub-cent digits
            BudgetExceeded: If spend would end up above the budget
        """
        if amount <= 0:
            raise ValidationException("Bounty amount must be positive", {"amount": str(amount)})

        # Stored as Numeric(12, 2)
        if amount.normalize().as_tuple().exponent < -2:
            raise ValidationException("Bounty amount has more than 2 decimal places", {"amount": str(amount)})

        if program.budget_total is None:
            return

        if program.budget_spent + amount > program.budget_total:
            raise BudgetExceeded(program.id, amount, program.remaining_budget)

    @staticmethod
    def usage_percentage(program: Program) -> Optional[Decimal]:
        """Spent share of the budget in percent, None when uncapped."""
        if program.budget_total is None or program.budget_total <= 0:
            return None
        return program.budget_spent * 100 / program.budget_total

    @staticmethod
    def crossed_thresholds(
        alert_level: int,
        usage: Optional[Decimal],
        thresholds: Iterable[int]
    ) -> List[int]:
        """
        Thresholds reached by ``usage`` that are above the alerted level.

        Returns:
            Newly crossed thresholds in ascending order
        """
        if usage is None:
            return []
        return sorted(t for t in thresholds if alert_level < t <= usage)

    @staticmethod
    def should_pause(usage: Optional[Decimal]) -> bool:
        return usage is not None and usage >= 100
