"""
Programs Domain Layer
=====================

Contains:
- Entities: Program, Report, Payout, BudgetAlert
- Domain Services: ReportLifecycle (status state machine), BudgetPolicy

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from src.programs.domain.entities import BudgetAlert, Payout, Program, Report
from src.programs.domain.value_objects import (
    PAYABLE_STATUSES,
    REPORT_TRANSITIONS,
    RESOLVED_STATUSES,
    SLA_INACTIVE_STATUSES,
    TRIAGED_STATUSES,
    BudgetPolicy,
    ReportLifecycle,
)

__all__ = [
    # Entities
    "Program",
    "Report",
    "Payout",
    "BudgetAlert",
    # Rules
    "ReportLifecycle",
    "BudgetPolicy",
    "REPORT_TRANSITIONS",
    "TRIAGED_STATUSES",
    "RESOLVED_STATUSES",
    "PAYABLE_STATUSES",
    "SLA_INACTIVE_STATUSES",
]
