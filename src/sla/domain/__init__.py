"""
SLA Domain Layer
================

Domain layer for the SLA engine.

Contains:
- Entities: Derived results (SLAMetrics, SLATargetStatus, ReportSLA, SweepResult)
- Domain Services: Stateless business logic (SLACalculator)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.sla.domain.entities import ReportSLA, SLAMetrics, SLATargetStatus, SweepResult
from src.sla.domain.value_objects import SLACalculator

__all__ = [
    # Entities
    "SLAMetrics",
    "SLATargetStatus",
    "ReportSLA",
    "SweepResult",
    # Domain Services
    "SLACalculator",
]
