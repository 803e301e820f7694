"""
SLA Application Layer
======================

Application layer for the SLA engine.

Contains:
- Services: Dashboards (SLAService) and the breach sweep (SLABreachMonitor)
- DTOs: Data transfer objects for API serialization

This layer depends on the domain layer and repository interfaces,
but not on concrete infrastructure implementations.
"""

from src.sla.application.dto import (
    SLATargetStatusResponse,
    ReportSLAResponse,
    SLAMetricsResponse,
    SLADashboardResponse,
    SweepResponse,
)
from src.sla.application.services import SLAService, SLABreachMonitor

__all__ = [
    # DTOs
    "SLATargetStatusResponse",
    "ReportSLAResponse",
    "SLAMetricsResponse",
    "SLADashboardResponse",
    "SweepResponse",
    # Services
    "SLAService",
    "SLABreachMonitor",
]
