"""
Programs Dependencies
======================
"""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.interfaces.dependencies import get_audit_service
from src.access.infrastructure import SQLAlchemyAccountRepository
from src.administration.application import IPlatformConfigProvider
from src.administration.interfaces.dependencies import get_config_provider
from src.audit.application import AuditService
from src.infrastructure.database import get_session
from src.infrastructure.notifications import INotificationClient, WebhookNotificationClient
from src.programs.application import ProgramService, ReportService
from src.programs.infrastructure import SQLAlchemyProgramRepository, SQLAlchemyReportRepository


def get_notification_client(request: Request) -> INotificationClient:
    """Notification client created at startup."""
    client = getattr(request.app.state, "notification_client", None)
    if client is None:
        client = WebhookNotificationClient()
        request.app.state.notification_client = client
    return client


async def get_program_service(
    session: AsyncSession = Depends(get_session),
    audit_service: AuditService = Depends(get_audit_service)
) -> ProgramService:
    """Get program service instance."""
    return ProgramService(SQLAlchemyProgramRepository(session), audit_service)


async def get_report_service(
    session: AsyncSession = Depends(get_session),
    audit_service: AuditService = Depends(get_audit_service),
    notification_client: INotificationClient = Depends(get_notification_client),
    config_provider: IPlatformConfigProvider = Depends(get_config_provider)
) -> ReportService:
    """Get report service instance."""
    return ReportService(
        SQLAlchemyReportRepository(session),
        SQLAlchemyProgramRepository(session),
        SQLAlchemyAccountRepository(session),
        audit_service,
        notification_client,
        config_provider
    )
