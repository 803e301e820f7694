"""
Audit Infrastructure Layer
==========================
"""

from src.audit.infrastructure.models import AuditLogModel
from src.audit.infrastructure.repositories import SQLAlchemyAuditRepository

__all__ = [
    "AuditLogModel",
    "SQLAlchemyAuditRepository",
]
