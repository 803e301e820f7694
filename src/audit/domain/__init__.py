"""
Audit Domain Layer
==================

Contains the AuditEntry entity.
"""

from src.audit.domain.entities import AuditEntry

__all__ = ["AuditEntry"]
