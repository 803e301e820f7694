"""
Audit Application Services
===========================

The audit trail is written by every bounded context and read by admins,
companies and the SLA breach monitor.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from src.audit.domain import AuditEntry
from src.core import RepositoryException
from src.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


# ========== Repository Interfaces (Dependency Inversion) ==========

class IAuditRepository(ABC):
    """Interface for audit log data access."""

    @abstractmethod
    async def add(self, entry: AuditEntry) -> AuditEntry:
        """Append an entry."""

    @abstractmethod
    async def add_unique(self, entry: AuditEntry) -> bool:
        """
        Append an entry carrying a dedupe key.

        Returns False when an entry with the same key already exists.
        """

    @abstractmethod
    async def delete_by_dedupe_key(self, dedupe_key: str) -> None:
        """Remove the entry holding a dedupe key."""

    @abstractmethod
    async def exists(self, report_id: str, action: str) -> bool:
        """Check if an entry exists for a report and action."""

    @abstractmethod
    async def list(
        self,
        filters: dict,
        limit: int = 100,
        offset: int = 0
    ) -> List[AuditEntry]:
        """List entries, newest first."""


# ========== Application Services ==========

class AuditService:
    """
    Service for writing and reading the audit trail.

    ``record`` never fails the calling business operation: a failed audit
    write is logged and dropped. ``claim`` is the idempotency primitive for
    notifications and propagates unexpected storage errors.
    """

    def __init__(self, audit_repository: IAuditRepository):
        self._audit_repo = audit_repository

    async def record(
        self,
        action: str,
        user_id: Optional[str] = None,
        report_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
    ) -> Optional[AuditEntry]:
        """
        Append an audit entry.

        Returns:
            The stored entry, or None if the write failed
        """
        entry = AuditEntry(
            action=action,
            user_id=user_id,
            report_id=report_id,
            details=details or {},
            ip_address=ip_address,
        )
        try:
            return await self._audit_repo.add(entry)
        except RepositoryException as e:
            logger.error(
                "Audit write failed",
                extra={
                    "action": action,
                    "user_id": user_id,
                    "report_id": report_id,
                    "error": str(e)
                }
            )
            return None

    async def exists(self, report_id: str, action: str) -> bool:
        return await self._audit_repo.exists(report_id, action)

    async def claim(
        self,
        report_id: str,
        action: str,
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> bool:
        """
        Claim the one-time guard for a report-scoped action.

        The claim is the audit entry itself, stored with a unique dedupe key.

        Returns:
            True if this caller now owns the action, False if it was
            already claimed
        """
        entry = AuditEntry(
            action=action,
            user_id=user_id,
            report_id=report_id,
            details=details or {},
            dedupe_key=AuditEntry.dedupe_key_for(report_id, action),
        )
        return await self._audit_repo.add_unique(entry)

    async def release(self, report_id: str, action: str) -> None:
        """Drop a claim so the action can be attempted again."""
        await self._audit_repo.delete_by_dedupe_key(
            AuditEntry.dedupe_key_for(report_id, action)
        )

    async def list_entries(
        self,
        report_id: Optional[str] = None,
        user_id: Optional[str] = None,
        action: Optional[str] = None,
        company_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditEntry]:
        """
        List audit entries.

        ``company_id`` restricts the listing to entries about reports of
        that company's programs.
        """
        filters: Dict[str, Any] = {}
        if report_id:
            filters["report_id"] = report_id
        if user_id:
            filters["user_id"] = user_id
        if action:
            filters["action"] = action
        if company_id:
            filters["company_id"] = company_id

        return await self._audit_repo.list(filters, limit=limit, offset=offset)
