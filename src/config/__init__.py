"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="xploitarena-api", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Server ==========
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", ge=1, le=65535)

    # ========== Database ==========
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/xploitarena",
        description="PostgreSQL connection URL (async)"
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size", ge=1)
    db_max_overflow: int = Field(default=10, description="Max overflow connections", ge=0)

    # ========== Authentication ==========
    jwt_secret: str = Field(
        default="change-me-in-production",
        description="Secret used to sign bearer tokens"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expires_hours: int = Field(default=24, description="Bearer token lifetime", ge=1)

    # ========== Platform Configuration ==========
    platform_config_path: Path = Field(
        default=Path("platform_config.yaml"),
        description="Path to platform defaults YAML file"
    )
    settings_cache_ttl_seconds: float = Field(
        default=60.0,
        description="How long a platform settings snapshot is reused",
        ge=0
    )

    # ========== SLA Sweep ==========
    sla_evaluation_interval: int = Field(
        default=300,
        description="Seconds between SLA breach sweeps (0 disables the sweep)",
        ge=0
    )

    # ========== Notifications ==========
    notification_webhook_url: Optional[str] = Field(
        default=None,
        description="Webhook URL that receives breach, escalation and budget notifications"
    )
    notification_timeout_seconds: float = Field(
        default=5.0,
        description="Timeout for notification webhook calls",
        ge=0.1,
        le=30
    )
    admin_notification_email: Optional[str] = Field(
        default=None,
        description="Fallback recipient for SLA escalations when no admin account exists"
    )

    # ========== CORS ==========
    cors_origins: List[str] = Field(
        default=["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()


# ========== Constants ==========

class AccountRole(str, Enum):
    """Base roles an account can hold."""
    RESEARCHER = "RESEARCHER"
    COMPANY_ADMIN = "COMPANY_ADMIN"
    TRIAGER = "TRIAGER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class PermissionCategory(str, Enum):
    """Catalog categories a permission belongs to."""
    ADMIN = "ADMIN"
    COMPANY = "COMPANY"
    RESEARCHER = "RESEARCHER"


class ProgramStatus(str, Enum):
    """Bounty program lifecycle statuses."""
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    CLOSED = "CLOSED"


class ReportStatus(str, Enum):
    """Vulnerability report lifecycle statuses."""
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    TRIAGING = "TRIAGING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    DUPLICATE = "DUPLICATE"
    READY_FOR_PAYOUT = "READY_FOR_PAYOUT"
    RESOLVED = "RESOLVED"
    PAID = "PAID"
    CLOSED = "CLOSED"


class Severity(str, Enum):
    """Researcher-assessed report severity."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    INFO = "INFO"


class SLATarget(str, Enum):
    """Report lifecycle milestones a program can put an SLA on."""
    FIRST_RESPONSE = "firstResponse"
    TRIAGE = "triage"
    RESOLUTION = "resolution"

    @property
    def action_suffix(self) -> str:
        """Upper-cased target name used in audit actions (e.g. FIRSTRESPONSE)."""
        return self.value.upper()


class AuditAction(str):
    """Audit log action names."""
    REPORT_SUBMITTED = "REPORT_SUBMITTED"
    REPORT_UPDATED = "REPORT_UPDATED"
    REPORT_STATUS_CHANGE = "REPORT_STATUS_CHANGE"
    BOUNTY_PAID = "BOUNTY_PAID"
    BUDGET_ALERT = "BUDGET_ALERT"
    PROGRAM_CREATED = "PROGRAM_CREATED"
    PROGRAM_UPDATED = "PROGRAM_UPDATED"
    PROGRAM_PAUSED = "PROGRAM_PAUSED"
    ROLE_CREATED = "ROLE_CREATED"
    ROLE_UPDATED = "ROLE_UPDATED"
    ROLE_ASSIGNED = "ROLE_ASSIGNED"
    PERMISSION_CREATED = "PERMISSION_CREATED"
    PERMISSION_DELETED = "PERMISSION_DELETED"
    SUB_ACCOUNT_CREATED = "SUB_ACCOUNT_CREATED"
    SUB_ACCOUNT_STATUS_CHANGED = "SUB_ACCOUNT_STATUS_CHANGED"
    SYSTEM_SETTING_UPDATED = "SYSTEM_SETTING_UPDATED"
    SYSTEM_SETTINGS_BULK_UPDATED = "SYSTEM_SETTINGS_BULK_UPDATED"

    @staticmethod
    def sla_breach(target: SLATarget) -> str:
        return f"SLA_BREACH_{target.action_suffix}"

    @staticmethod
    def sla_escalated(target: SLATarget) -> str:
        return f"SLA_ESCALATED_{target.action_suffix}"


# ========== Lists for validation ==========

INTERNAL_ROLES = [AccountRole.TRIAGER, AccountRole.ADMIN, AccountRole.SUPER_ADMIN]
ADMINISTRATIVE_ROLES = [AccountRole.ADMIN, AccountRole.SUPER_ADMIN]
SLA_TARGETS = [SLATarget.FIRST_RESPONSE, SLATarget.TRIAGE, SLATarget.RESOLUTION]
