"""
Audit Infrastructure Models
============================

SQLAlchemy ORM model for the audit trail.
"""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from src.infrastructure.database import Base


class AuditLogModel(Base):
    """
    Database model for AuditEntry.

    Maps to the 'audit_logs' table. ``dedupe_key`` is unique; NULL values
    do not collide, so ordinary entries leave it empty.
    """
    __tablename__ = "audit_logs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    action: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    user_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)
    report_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Idempotency guard for one-time notifications
    dedupe_key: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc), index=True
    )
