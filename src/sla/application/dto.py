"""
SLA Application DTOs
=====================

Data Transfer Objects for SLA API layer.

Response models are validated straight from the SLA domain dataclasses.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.config import ReportStatus, SLATarget


# ========== Response DTOs ==========

class SLATargetStatusResponse(BaseModel):
    """SLA state of a single milestone."""
    model_config = ConfigDict(from_attributes=True)

    target: SLATarget
    target_hours: Optional[int] = Field(None, description="Target in hours, null when not tracked")
    deadline: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    is_breached: bool


class ReportSLAResponse(BaseModel):
    """SLA view of a report."""
    model_config = ConfigDict(from_attributes=True)

    report_id: str
    program_id: str
    status: ReportStatus
    submitted_at: Optional[datetime] = None
    is_any_breached: bool
    targets: List[SLATargetStatusResponse]


class SLAMetricsResponse(BaseModel):
    """First-response compliance metrics."""
    model_config = ConfigDict(from_attributes=True)

    total_sla_eligible: int = Field(..., description="Reports whose program tracks first response")
    breached_count: int
    compliance_rate: int = Field(..., ge=0, le=100, description="Percentage, rounded half up")
    avg_response_time: float = Field(..., description="Mean hours to first response")


class SLADashboardResponse(BaseModel):
    """Compliance metrics plus the reports currently in breach."""
    metrics: SLAMetricsResponse
    breached: List[ReportSLAResponse]


class SweepResponse(BaseModel):
    """Result of a manually triggered breach sweep."""
    model_config = ConfigDict(from_attributes=True)

    reports_checked: int
    breaches_notified: int
    escalations_sent: int
    already_notified: int
    failed: int
