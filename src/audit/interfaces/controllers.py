"""
Audit Controllers (API Routes)
===============================

Platform admins see the whole trail; company accounts see entries about
reports submitted to their own programs.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.access.domain import Account
from src.access.interfaces.dependencies import get_audit_service, require_any_permission
from src.audit.application import AuditEntryResponse, AuditListResponse, AuditService
from src.config import ADMINISTRATIVE_ROLES

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get(
    "/logs",
    response_model=AuditListResponse,
    summary="List audit entries"
)
async def list_audit_logs(
    report_id: Optional[str] = Query(None, description="Filter by report"),
    user_id: Optional[str] = Query(None, description="Filter by acting account"),
    action: Optional[str] = Query(None, description="Filter by action, e.g. BOUNTY_PAID"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    account: Account = Depends(require_any_permission("admin:settings", "company:audit")),
    audit_service: AuditService = Depends(get_audit_service)
):
    company_id = None if account.role in ADMINISTRATIVE_ROLES else account.organization_id

    entries = await audit_service.list_entries(
        report_id=report_id,
        user_id=user_id,
        action=action,
        company_id=company_id,
        limit=limit,
        offset=offset,
    )
    return AuditListResponse(
        entries=[AuditEntryResponse.model_validate(entry) for entry in entries],
        limit=limit,
        offset=offset,
    )
