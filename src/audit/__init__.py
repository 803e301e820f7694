"""
Audit Module
============

Bounded Context for the append-only audit trail.

Responsibilities:
- Record business events (transitions, payouts, role changes, settings)
- Serve as the idempotency guard for SLA notifications through a unique
  dedupe key per (report, action)
- List audit entries for admins and for a company's own reports
"""

__version__ = "1.0.0"
