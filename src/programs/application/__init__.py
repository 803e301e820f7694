"""
Programs Application Layer
==========================

Contains:
- Services: ProgramService, ReportService
- DTOs: Request/response models for the program and report endpoints
- Repository interfaces
"""

from src.programs.application.dto import (
    PayoutRequest,
    ProgramCreateRequest,
    ProgramResponse,
    ProgramUpdateRequest,
    ReportCreateRequest,
    ReportListResponse,
    ReportResponse,
    ReportStatusUpdateRequest,
    ReportUpdateRequest,
)
from src.programs.application.services import (
    IProgramRepository,
    IReportRepository,
    ProgramService,
    ReportService,
)

__all__ = [
    # Services
    "ProgramService",
    "ReportService",
    # Interfaces
    "IProgramRepository",
    "IReportRepository",
    # DTOs
    "ProgramCreateRequest",
    "ProgramUpdateRequest",
    "ProgramResponse",
    "ReportCreateRequest",
    "ReportUpdateRequest",
    "ReportStatusUpdateRequest",
    "PayoutRequest",
    "ReportResponse",
    "ReportListResponse",
]
