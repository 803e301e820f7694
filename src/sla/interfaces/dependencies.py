"""
SLA Dependencies
=================
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.access.application import AccountService
from src.access.infrastructure import SQLAlchemyAccountRepository, SQLAlchemyRoleRepository
from src.access.interfaces.dependencies import get_account_service, get_audit_service
from src.administration.application import IPlatformConfigProvider
from src.administration.interfaces.dependencies import get_config_provider
from src.audit.application import AuditService
from src.audit.infrastructure import SQLAlchemyAuditRepository
from src.config import settings
from src.infrastructure.database import get_session
from src.infrastructure.notifications import INotificationClient
from src.programs.infrastructure import SQLAlchemyReportRepository
from src.programs.interfaces.dependencies import get_notification_client
from src.sla.application import SLABreachMonitor, SLAService


async def get_sla_service(
    session: AsyncSession = Depends(get_session)
) -> SLAService:
    """Get SLA service instance."""
    return SLAService(SQLAlchemyReportRepository(session))


async def get_breach_monitor(
    session: AsyncSession = Depends(get_session),
    account_service: AccountService = Depends(get_account_service),
    audit_service: AuditService = Depends(get_audit_service),
    notification_client: INotificationClient = Depends(get_notification_client),
    config_provider: IPlatformConfigProvider = Depends(get_config_provider)
) -> SLABreachMonitor:
    """Get breach monitor bound to the request session."""
    return SLABreachMonitor(
        SQLAlchemyReportRepository(session),
        account_service,
        audit_service,
        notification_client,
        config_provider,
        fallback_admin_email=settings.admin_notification_email
    )


def build_breach_monitor(
    session: AsyncSession,
    notification_client: INotificationClient,
    config_provider: IPlatformConfigProvider
) -> SLABreachMonitor:
    """Wire a breach monitor outside a request (scheduler, scripts)."""
    audit_service = AuditService(SQLAlchemyAuditRepository(session))
    account_service = AccountService(
        SQLAlchemyAccountRepository(session),
        SQLAlchemyRoleRepository(session),
        audit_service
    )
    return SLABreachMonitor(
        SQLAlchemyReportRepository(session),
        account_service,
        audit_service,
        notification_client,
        config_provider,
        fallback_admin_email=settings.admin_notification_email
    )
