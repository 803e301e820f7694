"""
Audit Application Layer
=======================
"""

from src.audit.application.dto import AuditEntryResponse, AuditListResponse
from src.audit.application.services import AuditService, IAuditRepository

__all__ = [
    # DTOs
    "AuditEntryResponse",
    "AuditListResponse",
    # Services
    "AuditService",
    # Repository Interfaces
    "IAuditRepository",
]
