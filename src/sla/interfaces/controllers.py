"""
SLA Controllers (API Routes)
=============================

FastAPI routes for SLA views, compliance dashboards and manual sweeps.

Controllers are thin - they delegate to application services.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.access.domain import Account
from src.access.interfaces.dependencies import (
    get_current_account,
    require_any_permission,
    require_permission,
)
from src.programs.application import ReportService
from src.programs.interfaces.dependencies import get_report_service
from src.shared.infrastructure.logging import get_logger
from src.sla.application import (
    ReportSLAResponse,
    SLABreachMonitor,
    SLADashboardResponse,
    SLAMetricsResponse,
    SLAService,
    SweepResponse,
)
from src.sla.interfaces.dependencies import get_breach_monitor, get_sla_service

logger = get_logger(__name__)
sla_router = APIRouter(prefix="/sla", tags=["SLA"])


# ========== Example payloads for Swagger ==========

REPORT_SLA_RESPONSE_EXAMPLE = {
    "report_id": "3f2b8f8e-2c1a-4f57-9d0a-6a1c2b3d4e5f",
    "program_id": "0b6d6f3e-4b8e-4c1b-9e44-3d7c6f1a2b10",
    "status": "SUBMITTED",
    "submitted_at": "2024-01-01T00:00:00Z",
    "is_any_breached": True,
    "targets": [
        {
            "target": "firstResponse",
            "target_hours": 24,
            "deadline": "2024-01-02T00:00:00Z",
            "completed_at": None,
            "is_breached": True
        },
        {
            "target": "triage",
            "target_hours": None,
            "deadline": None,
            "completed_at": None,
            "is_breached": False
        }
    ]
}

DASHBOARD_RESPONSE_EXAMPLE = {
    "metrics": {
        "total_sla_eligible": 3,
        "breached_count": 1,
        "compliance_rate": 67,
        "avg_response_time": 26.0
    },
    "breached": []
}


@sla_router.get(
    "/reports/{report_id}",
    response_model=ReportSLAResponse,
    summary="SLA status of a report",
    responses={200: {"content": {"application/json": {"example": REPORT_SLA_RESPONSE_EXAMPLE}}}}
)
async def get_report_sla(
    report_id: str,
    account: Account = Depends(get_current_account),
    report_service: ReportService = Depends(get_report_service),
    sla_service: SLAService = Depends(get_sla_service)
):
    """
    Deadlines and breach state for each milestone of a report.

    Untracked milestones (no target on the program) have no deadline and
    are never breached.
    """
    report = await report_service.get_report(account, report_id)
    return ReportSLAResponse.model_validate(sla_service.get_report_sla(report))


@sla_router.get(
    "/dashboard",
    response_model=SLADashboardResponse,
    summary="SLA compliance dashboard",
    responses={200: {"content": {"application/json": {"example": DASHBOARD_RESPONSE_EXAMPLE}}}}
)
async def get_dashboard(
    program_id: Optional[str] = Query(None, description="Restrict to one program"),
    account: Account = Depends(
        require_any_permission("company:stats", "admin:stats", "triage:reports")
    ),
    sla_service: SLAService = Depends(get_sla_service)
):
    """
    First-response compliance and the reports currently in breach.

    Companies see their own programs; platform staff see every program.
    """
    dashboard = await sla_service.get_dashboard(account, program_id=program_id)
    return SLADashboardResponse(
        metrics=SLAMetricsResponse.model_validate(dashboard["metrics"]),
        breached=[ReportSLAResponse.model_validate(view) for view in dashboard["breached"]],
    )


@sla_router.post(
    "/sweep",
    response_model=SweepResponse,
    summary="Run the breach sweep now"
)
async def run_sweep(
    account: Account = Depends(require_permission("admin:settings")),
    monitor: SLABreachMonitor = Depends(get_breach_monitor)
):
    """
    Run the same sweep the scheduler runs.

    Notifications already sent for a report and milestone are not repeated.
    """
    logger.info("Manual SLA sweep requested", extra={"user_id": account.id})
    result = await monitor.check_and_notify_breaches()
    return SweepResponse.model_validate(result)
