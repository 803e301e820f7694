"""
XploitArena - Main Application
==============================

Bug bounty platform core API.

Modules:
- Access: Permission catalog, custom roles and sub-accounts
- Programs: Bounty programs, report lifecycle and payouts
- SLA: Response-time deadlines, dashboards and breach escalation
- Audit: Append-only activity log
- Administration: Runtime platform settings

Clean Architecture Layers:
- Interfaces: FastAPI controllers
- Application: Services and DTOs
- Domain: Entities and value objects
- Infrastructure: Database, notifications, scheduler
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

# Configuration and Core
from src.config import settings
from src.core import ApplicationException

# Infrastructure
from src.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    init_database,
)
from src.infrastructure.notifications import WebhookNotificationClient

# Administration - platform configuration
from src.administration.application import CachedPlatformConfigProvider
from src.administration.infrastructure import PlatformConfigManager, load_setting_overrides

# SLA Module - background sweep
from src.sla.infrastructure import SLAScheduler
from src.sla.interfaces.dependencies import build_breach_monitor

# Module Routers
from src.access.interfaces import accounts_router, rbac_router
from src.administration.interfaces import admin_router
from src.audit.interfaces import audit_router
from src.programs.interfaces import programs_router, reports_router
from src.sla.interfaces import sla_router

# Logging
from src.shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)

# Global service instances
config_manager = None
sla_scheduler = None


def _register_models() -> None:
    """Import every module's models so their tables are in the metadata."""
    import src.access.infrastructure.models  # noqa: F401
    import src.administration.infrastructure.models  # noqa: F401
    import src.audit.infrastructure.models  # noqa: F401
    import src.programs.infrastructure.models  # noqa: F401


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager.

    STARTUP:
    1. Setup structured logging
    2. Initialize database and create tables
    3. Load platform configuration and watch the YAML file
    4. Create the notification client
    5. Start the SLA breach sweep

    SHUTDOWN:
    1. Stop SLA scheduler
    2. Stop config watcher
    3. Close notification client
    4. Close database connections
    """
    global config_manager, sla_scheduler

    # === STARTUP ===
    setup_logging(settings.log_level, settings.environment)
    logger.info("Starting XploitArena API", extra={
        "version": settings.app_version,
        "environment": settings.environment
    })

    logger.info("Initializing database")
    init_database()
    _register_models()

    # Create tables (for development - use migrations in production)
    logger.info("Creating database tables")
    try:
        await create_tables()
    except (OSError, SQLAlchemyError) as e:
        logger.warning(
            "Database not available - running in degraded mode",
            extra={"error": str(e)}
        )

    # Platform configuration: YAML defaults plus stored overrides
    logger.info("Loading platform configuration")
    config_manager = PlatformConfigManager()
    config_manager.load(settings.platform_config_path)
    config_manager.start_watching()

    config_provider = CachedPlatformConfigProvider(
        defaults=lambda: config_manager.config,
        load_overrides=load_setting_overrides,
        ttl_seconds=settings.settings_cache_ttl_seconds
    )
    app.state.config_provider = config_provider

    notification_client = WebhookNotificationClient(
        frontend_url=config_manager.config.frontend_url
    )
    app.state.notification_client = notification_client

    # SLA sweep (disabled with an interval of 0, e.g. serverless)
    if settings.sla_evaluation_interval > 0:
        async def sla_sweep_job():
            """Background SLA breach sweep."""
            async with get_session_context() as session:
                monitor = build_breach_monitor(session, notification_client, config_provider)
                await monitor.check_and_notify_breaches()

        sla_scheduler = SLAScheduler(interval_seconds=settings.sla_evaluation_interval)
        await sla_scheduler.start(sla_sweep_job)
    else:
        logger.info("SLA sweep disabled")

    logger.info("XploitArena API started successfully")

    yield  # Application runs here

    # === SHUTDOWN ===
    logger.info("Shutting down XploitArena API")

    if sla_scheduler:
        await sla_scheduler.stop()

    if config_manager:
        config_manager.stop_watching()

    await notification_client.close()

    await close_database()

    logger.info("XploitArena API shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="XploitArena API",
    description="""
    ## Bug Bounty Platform Core

    ---

    ### Access Control

    - `GET /rbac/permissions` - Permission catalog
    - `POST /rbac/roles` - Create a custom role from grantable permissions
    - `POST /accounts/team` - Create a company or admin sub-account

    A sub-account's permissions are exactly those of its custom role;
    root accounts get the fixed set of their platform role.

    ---

    ### Programs & Reports

    - `POST /programs` - Create a bounty program with budget and SLA targets
    - `POST /reports` - Submit a vulnerability report
    - `PATCH /reports/{id}/status` - Move a report through triage
    - `POST /reports/{id}/pay` - Pay a bounty against the program budget

    ---

    ### SLA

    - `GET /sla/reports/{id}` - Deadlines and breach state per milestone
    - `GET /sla/dashboard` - First-response compliance
    - `POST /sla/sweep` - Run the breach sweep now

    ---

    ### Administration

    - `GET /admin/settings` - Effective platform settings
    - `GET /audit/logs` - Activity log
    """,
    version=settings.app_version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# === CORS Middleware ===
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# === Custom Middleware (from shared) ===
from src.shared.api.middleware import (  # noqa: E402
    CorrelationIDMiddleware,
    LoggingMiddleware,
    application_exception_handler,
    global_exception_handler,
)

app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(LoggingMiddleware)
app.add_exception_handler(ApplicationException, application_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

# === Include Module Routers ===
app.include_router(rbac_router)
app.include_router(accounts_router)
app.include_router(programs_router)
app.include_router(reports_router)
app.include_router(sla_router)
app.include_router(audit_router)
app.include_router(admin_router)


# === Health Check Endpoint ===

@app.get("/health", tags=["Health"], responses={
    200: {
        "description": "Service is healthy",
        "content": {
            "application/json": {
                "example": {
                    "status": "healthy",
                    "version": "1.0.0",
                    "environment": "development",
                    "checks": {
                        "platform_config": "loaded",
                        "sla_scheduler": "running"
                    }
                }
            }
        }
    }
})
async def health_check(request: Request):
    """Health check endpoint for load balancers and orchestrators."""
    checks = {
        "platform_config": "loaded" if getattr(request.app.state, "config_provider", None) else "defaults",
        "sla_scheduler": "running" if sla_scheduler and sla_scheduler.is_running else "stopped",
    }

    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "checks": checks
    }


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "service": "XploitArena API",
        "version": settings.app_version,
        "architecture": "Clean Architecture / Modular Monolith",
        "docs": "/docs",
        "health": "/health",
        "modules": ["rbac", "accounts", "programs", "reports", "sla", "audit", "admin"]
    }


# === Development Entry Point ===

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        log_level=settings.log_level.lower()
    )
