"""
SLA Infrastructure Layer
=========================

Infrastructure for the SLA engine:
- External: background scheduler for the breach sweep

SLA state is derived from reports, so this context owns no tables.
"""

from src.sla.infrastructure.external import SLAScheduler

__all__ = ["SLAScheduler"]
