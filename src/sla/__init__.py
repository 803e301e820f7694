"""
SLA Engine Module
=================

Bounded Context for report response-time commitments.

Responsibilities:
- Calculate deadlines from a program's per-milestone targets
- Decide whether a report breached a milestone
- Aggregate first-response compliance metrics for dashboards
- Notify companies of breaches and escalate stale breaches to admins,
  exactly once per report and milestone
"""

__version__ = "1.0.0"
