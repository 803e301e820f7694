"""
Programs Domain Entities
=========================

Pure Python domain entities for bounty programs and vulnerability reports.

Following Domain-Driven Design principles, these entities contain
business logic and are free of infrastructure concerns.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from src.config import ProgramStatus, ReportStatus, Severity, SLATarget


@dataclass
class Program:
    """
    Bounty program run by a company account.

    SLA targets are in hours; an unset target is not tracked.
    ``budget_alert_level`` is the highest usage threshold already alerted
    (0 = none) and only ever grows.
    """

    id: str
    company_id: str
    name: str
    description: Optional[str] = None
    scope: Optional[str] = None
    rules: Optional[str] = None
    status: ProgramStatus = ProgramStatus.ACTIVE

    # Budget
    budget_total: Optional[Decimal] = None
    budget_spent: Decimal = Decimal("0")
    budget_alert_level: int = 0

    # SLA targets (hours)
    sla_first_response: Optional[int] = None
    sla_triage: Optional[int] = None
    sla_resolution: Optional[int] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_budget(self) -> bool:
        return self.budget_total is not None

    @property
    def remaining_budget(self) -> Optional[Decimal]:
        """Budget left to pay out, None when the program is uncapped."""
        if self.budget_total is None:
            return None
        return self.budget_total - self.budget_spent

    def sla_hours(self, target: SLATarget) -> Optional[int]:
        """Configured hours for an SLA target."""
        if target == SLATarget.FIRST_RESPONSE:
            return self.sla_first_response
        if target == SLATarget.TRIAGE:
            return self.sla_triage
        return self.sla_resolution

    def rejection_reason(self) -> Optional[str]:
        """
        Why the program cannot take new submissions.

        Returns:
            None when the program is accepting reports
        """
        if self.status != ProgramStatus.ACTIVE:
            return f"program is {self.status.value.lower()}"
        if self.budget_total is not None and self.budget_spent >= self.budget_total:
            return "budget exhausted"
        return None


@dataclass
class Report:
    """
    Vulnerability report submitted by a researcher to a program.

    Lifecycle timestamps are first-occurrence markers: once set they are
    never cleared or moved. ``program`` is populated by repositories that
    load the owning program alongside the report.
    """

    id: str
    program_id: str
    researcher_id: str
    title: str
    description: str
    severity: Severity = Severity.MEDIUM
    status: ReportStatus = ReportStatus.DRAFT
    bounty_amount: Optional[Decimal] = None

    # SLA tracking
    submitted_at: Optional[datetime] = None
    first_responded_at: Optional[datetime] = None
    triaged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    program: Optional[Program] = field(default=None, repr=False, compare=False)

    @property
    def is_draft(self) -> bool:
        return self.status == ReportStatus.DRAFT

    def completed_at(self, target: SLATarget) -> Optional[datetime]:
        """Timestamp that satisfies an SLA target, if reached."""
        if target == SLATarget.FIRST_RESPONSE:
            return self.first_responded_at
        if target == SLATarget.TRIAGE:
            return self.triaged_at
        return self.resolved_at


@dataclass
class BudgetAlert:
    """Usage threshold crossed by a payout, delivered once the payout commits."""

    program_id: str
    program_name: str
    threshold: int
    remaining: Decimal
    recipient: str


@dataclass
class Payout:
    """Paid report and the budget alerts its payout raised."""

    report: Report
    alerts: List[BudgetAlert] = field(default_factory=list)
