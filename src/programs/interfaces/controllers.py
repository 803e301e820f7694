"""
Programs Controllers (API Routes)
==================================

FastAPI routes for bounty programs, report submission, triage and payouts.

Controllers delegate to application services; tenant isolation is enforced
in the services.
"""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.domain import Account
from src.access.interfaces.dependencies import (
    get_current_account,
    require_any_permission,
    require_permission,
)
from src.config import ProgramStatus, ReportStatus
from src.infrastructure.database import get_session
from src.programs.application import (
    PayoutRequest,
    ProgramCreateRequest,
    ProgramResponse,
    ProgramService,
    ProgramUpdateRequest,
    ReportCreateRequest,
    ReportListResponse,
    ReportResponse,
    ReportService,
    ReportStatusUpdateRequest,
    ReportUpdateRequest,
)
from src.programs.interfaces.dependencies import get_program_service, get_report_service
from src.shared.api.middleware import get_client_ip

programs_router = APIRouter(prefix="/programs", tags=["Programs"])
reports_router = APIRouter(prefix="/reports", tags=["Reports"])


# ========== Example payloads for Swagger ==========

PROGRAM_CREATE_EXAMPLE = {
    "name": "Acme Web Bounty",
    "description": "Public program covering the Acme customer portal",
    "scope": "*.acme.example",
    "budget_total": "10000.00",
    "sla_first_response": 24,
    "sla_triage": 72,
    "sla_resolution": 720
}

PAYOUT_ERROR_EXAMPLE = {
    "detail": "Insufficient program budget",
    "details": {
        "program_id": "0b6d6f3e-4b8e-4c1b-9e44-3d7c6f1a2b10",
        "requested": "70",
        "remaining": "60.00"
    },
    "correlation_id": "5f0c1b1e-7a2d-4c55-8f0e-0e6a3d1b9c42"
}


# ========== Programs ==========

@programs_router.post(
    "",
    response_model=ProgramResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a bounty program",
    openapi_extra={
        "requestBody": {"content": {"application/json": {"example": PROGRAM_CREATE_EXAMPLE}}}
    }
)
async def create_program(
    body: ProgramCreateRequest,
    request: Request,
    account: Account = Depends(require_permission("company:programs")),
    program_service: ProgramService = Depends(get_program_service)
):
    return await program_service.create_program(
        account,
        name=body.name,
        description=body.description,
        scope=body.scope,
        rules=body.rules,
        budget_total=body.budget_total,
        sla_first_response=body.sla_first_response,
        sla_triage=body.sla_triage,
        sla_resolution=body.sla_resolution,
        ip_address=get_client_ip(request)
    )


@programs_router.get(
    "",
    response_model=List[ProgramResponse],
    summary="List programs visible to the caller"
)
async def list_programs(
    program_status: Optional[ProgramStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    account: Account = Depends(get_current_account),
    program_service: ProgramService = Depends(get_program_service)
):
    return await program_service.list_programs(
        account, status=program_status, limit=limit, offset=offset
    )


@programs_router.get(
    "/{program_id}",
    response_model=ProgramResponse,
    summary="Get a program"
)
async def get_program(
    program_id: str,
    account: Account = Depends(get_current_account),
    program_service: ProgramService = Depends(get_program_service)
):
    return await program_service.get_program(program_id)


@programs_router.patch(
    "/{program_id}",
    response_model=ProgramResponse,
    summary="Update a program",
    description="""
    Update details, status, budget or SLA targets of a program owned by the
    caller's company. A zero SLA target stops tracking that milestone and a
    zero budget removes the cap.
    """
)
async def update_program(
    program_id: str,
    body: ProgramUpdateRequest,
    request: Request,
    account: Account = Depends(require_permission("company:programs")),
    program_service: ProgramService = Depends(get_program_service)
):
    return await program_service.update_program(
        account,
        program_id,
        body.model_dump(exclude_unset=True),
        ip_address=get_client_ip(request)
    )


# ========== Reports ==========

@reports_router.post(
    "",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a report",
    description="Save a draft (`status: DRAFT`) or submit directly to an active program."
)
async def create_report(
    body: ReportCreateRequest,
    request: Request,
    account: Account = Depends(require_permission("researcher:reports")),
    report_service: ReportService = Depends(get_report_service)
):
    return await report_service.create_report(
        account,
        program_id=body.program_id,
        title=body.title,
        description=body.description,
        severity=body.severity,
        as_draft=body.status == ReportStatus.DRAFT,
        ip_address=get_client_ip(request)
    )


@reports_router.get(
    "",
    response_model=ReportListResponse,
    summary="List reports visible to the caller"
)
async def list_reports(
    program_id: Optional[str] = Query(None, description="Filter by program"),
    report_status: Optional[ReportStatus] = Query(None, alias="status"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    account: Account = Depends(get_current_account),
    report_service: ReportService = Depends(get_report_service)
):
    reports = await report_service.list_reports(
        account, program_id=program_id, status=report_status, limit=limit, offset=offset
    )
    return ReportListResponse(
        reports=[ReportResponse.model_validate(report) for report in reports],
        limit=limit,
        offset=offset,
    )


@reports_router.get(
    "/{report_id}",
    response_model=ReportResponse,
    summary="Get a report"
)
async def get_report(
    report_id: str,
    account: Account = Depends(get_current_account),
    report_service: ReportService = Depends(get_report_service)
):
    return await report_service.get_report(account, report_id)


@reports_router.patch(
    "/{report_id}",
    response_model=ReportResponse,
    summary="Edit a draft"
)
async def update_report(
    report_id: str,
    body: ReportUpdateRequest,
    request: Request,
    account: Account = Depends(require_permission("researcher:reports")),
    report_service: ReportService = Depends(get_report_service)
):
    ip_address = get_client_ip(request)
    report = await report_service.update_draft(
        account,
        report_id,
        title=body.title,
        description=body.description,
        severity=body.severity,
        ip_address=ip_address
    )
    if body.submit:
        report = await report_service.submit_report(account, report_id, ip_address=ip_address)
    return report


@reports_router.post(
    "/{report_id}/submit",
    response_model=ReportResponse,
    summary="Submit a draft"
)
async def submit_report(
    report_id: str,
    request: Request,
    account: Account = Depends(require_permission("researcher:reports")),
    report_service: ReportService = Depends(get_report_service)
):
    return await report_service.submit_report(account, report_id, ip_address=get_client_ip(request))


@reports_router.patch(
    "/{report_id}/status",
    response_model=ReportResponse,
    summary="Change report status",
    description="""
    Move a report through triage. Allowed for the owning company and for
    internal staff; only platform admins may close a report.
    """
)
async def update_report_status(
    report_id: str,
    body: ReportStatusUpdateRequest,
    request: Request,
    account: Account = Depends(
        require_any_permission("company:triage", "admin:triage", "triage:reports")
    ),
    report_service: ReportService = Depends(get_report_service)
):
    return await report_service.update_status(
        account, report_id, body.status, ip_address=get_client_ip(request)
    )


@reports_router.post(
    "/{report_id}/pay",
    response_model=ReportResponse,
    summary="Pay a bounty",
    responses={
        400: {
            "description": "Payout exceeds the remaining budget",
            "content": {"application/json": {"example": PAYOUT_ERROR_EXAMPLE}}
        }
    }
)
async def pay_bounty(
    report_id: str,
    body: PayoutRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    account: Account = Depends(require_permission("company:payments")),
    report_service: ReportService = Depends(get_report_service),
    session: AsyncSession = Depends(get_session)
):
    payout = await report_service.pay_bounty(
        account, report_id, body.amount, ip_address=get_client_ip(request)
    )
    # Release the program row lock before notifying
    await session.commit()

    if payout.alerts:
        background_tasks.add_task(report_service.send_budget_alerts, payout.alerts)
    return payout.report
