"""
Audit Domain Entities
======================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class AuditEntry:
    """
    Append-only audit record.

    ``dedupe_key`` is only set for entries that double as idempotency
    guards; at most one entry may exist per key.
    """

    action: str
    user_id: Optional[str] = None
    report_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    ip_address: Optional[str] = None
    dedupe_key: Optional[str] = None
    id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def dedupe_key_for(report_id: str, action: str) -> str:
        """Idempotency key for a report-scoped action."""
        return f"{report_id}:{action}"
