"""
SLA Domain Entities
====================

Results produced by the SLA engine.

Breach status is derived, never stored: these objects are computed from a
report, its program's targets and the evaluation time.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from src.config import ReportStatus, SLATarget


@dataclass
class SLAMetrics:
    """
    First-response compliance rollup over a set of reports.

    ``avg_response_time`` is in hours over the reports that have been
    responded to.
    """

    total_sla_eligible: int = 0
    breached_count: int = 0
    compliance_rate: int = 100
    avg_response_time: float = 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "total_sla_eligible": self.total_sla_eligible,
            "breached_count": self.breached_count,
            "compliance_rate": self.compliance_rate,
            "avg_response_time": self.avg_response_time,
        }


@dataclass
class SLATargetStatus:
    """SLA state of one milestone of one report."""

    target: SLATarget
    target_hours: Optional[int]
    deadline: Optional[datetime]
    completed_at: Optional[datetime]
    is_breached: bool

    @property
    def is_tracked(self) -> bool:
        return self.deadline is not None


@dataclass
class ReportSLA:
    """SLA view of a report across all milestones."""

    report_id: str
    program_id: str
    status: ReportStatus
    submitted_at: Optional[datetime]
    targets: List[SLATargetStatus] = field(default_factory=list)

    @property
    def is_any_breached(self) -> bool:
        return any(t.is_breached for t in self.targets)

    @property
    def breached_targets(self) -> List[SLATarget]:
        return [t.target for t in self.targets if t.is_breached]


@dataclass
class SweepResult:
    """Outcome of one breach notification sweep."""

    reports_checked: int = 0
    breaches_notified: int = 0
    escalations_sent: int = 0
    already_notified: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {
            "reports_checked": self.reports_checked,
            "breaches_notified": self.breaches_notified,
            "escalations_sent": self.escalations_sent,
            "already_notified": self.already_notified,
            "failed": self.failed,
        }
