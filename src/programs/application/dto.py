"""
Programs Application DTOs
==========================

Pydantic models for the program and report endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.config import ProgramStatus, ReportStatus, Severity


# ========== Request DTOs ==========

class ProgramCreateRequest(BaseModel):
    """Request model for creating a program."""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    scope: Optional[str] = None
    rules: Optional[str] = None
    budget_total: Optional[Decimal] = Field(None, ge=0, description="Total bounty budget (unset or 0 = uncapped)")
    sla_first_response: Optional[int] = Field(None, ge=0, description="First response SLA in hours")
    sla_triage: Optional[int] = Field(None, ge=0, description="Triage SLA in hours")
    sla_resolution: Optional[int] = Field(None, ge=0, description="Resolution SLA in hours")


class ProgramUpdateRequest(BaseModel):
    """Request model for updating a program. Omitted fields stay unchanged."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    scope: Optional[str] = None
    rules: Optional[str] = None
    status: Optional[ProgramStatus] = None
    budget_total: Optional[Decimal] = Field(None, ge=0)
    sla_first_response: Optional[int] = Field(None, ge=0)
    sla_triage: Optional[int] = Field(None, ge=0)
    sla_resolution: Optional[int] = Field(None, ge=0)


class ReportCreateRequest(BaseModel):
    """Request model for creating a report."""
    program_id: str
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(..., min_length=1)
    severity: Severity = Severity.MEDIUM
    status: ReportStatus = Field(
        ReportStatus.SUBMITTED,
        description="DRAFT keeps the report private; anything else submits it"
    )


class ReportUpdateRequest(BaseModel):
    """Request model for editing a draft."""
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = Field(None, min_length=1)
    severity: Optional[Severity] = None
    submit: bool = Field(False, description="Submit the draft after saving it")


class ReportStatusUpdateRequest(BaseModel):
    status: ReportStatus


class PayoutRequest(BaseModel):
    """Request model for paying a bounty."""
    amount: Decimal = Field(..., gt=0, description="Bounty amount")


# ========== Response DTOs ==========

class ProgramResponse(BaseModel):
    """Response model for a program."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    company_id: str
    name: str
    description: Optional[str] = None
    scope: Optional[str] = None
    rules: Optional[str] = None
    status: ProgramStatus
    budget_total: Optional[Decimal] = None
    budget_spent: Decimal
    budget_alert_level: int
    sla_first_response: Optional[int] = None
    sla_triage: Optional[int] = None
    sla_resolution: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class ReportResponse(BaseModel):
    """Response model for a report."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    program_id: str
    researcher_id: str
    title: str
    description: str
    severity: Severity
    status: ReportStatus
    bounty_amount: Optional[Decimal] = None
    submitted_at: Optional[datetime] = None
    first_responded_at: Optional[datetime] = None
    triaged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ReportListResponse(BaseModel):
    reports: List[ReportResponse]
    limit: int
    offset: int
