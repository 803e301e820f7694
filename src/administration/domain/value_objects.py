"""
Administration Value Objects
=============================

Immutable platform configuration snapshot.

Defaults come from YAML; admin overrides stored as system settings are
layered on top. Consumers receive a snapshot and never mutate it.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.config import PermissionCategory


class PermissionSeed(BaseModel):
    """Catalog entry installed by the seeding script."""
    key: str
    name: str
    category: PermissionCategory
    description: Optional[str] = None


DEFAULT_PERMISSION_CATALOG: List[PermissionSeed] = [
    PermissionSeed(key="admin:stats", name="View Platform Statistics", category=PermissionCategory.ADMIN),
    PermissionSeed(key="admin:researchers", name="Manage Researcher Accounts", category=PermissionCategory.ADMIN),
    PermissionSeed(key="admin:companies", name="Manage Company Accounts", category=PermissionCategory.ADMIN),
    PermissionSeed(key="admin:triagers", name="Manage Triager Team", category=PermissionCategory.ADMIN),
    PermissionSeed(key="admin:approvals", name="Approve & Invite Businesses", category=PermissionCategory.ADMIN),
    PermissionSeed(key="admin:programs", name="Manage Global Programs", category=PermissionCategory.ADMIN),
    PermissionSeed(key="admin:triage", name="Global Report Triage", category=PermissionCategory.ADMIN),
    PermissionSeed(key="admin:events", name="Manage Platform Events", category=PermissionCategory.ADMIN),
    PermissionSeed(key="admin:settings", name="System Configuration", category=PermissionCategory.ADMIN),
    PermissionSeed(key="company:stats", name="View Company Dashboard", category=PermissionCategory.COMPANY),
    PermissionSeed(key="company:programs", name="Manage Bounty Programs", category=PermissionCategory.COMPANY),
    PermissionSeed(key="company:triage", name="Triage Submitted Reports", category=PermissionCategory.COMPANY),
    PermissionSeed(key="company:payments", name="Approve Bounty Payments", category=PermissionCategory.COMPANY),
    PermissionSeed(key="company:audit", name="View Company Audit Logs", category=PermissionCategory.COMPANY),
    PermissionSeed(key="company:team", name="Manage Team & Access", category=PermissionCategory.COMPANY),
    PermissionSeed(key="researcher:stats", name="View Performance Stats", category=PermissionCategory.RESEARCHER),
    PermissionSeed(key="researcher:reports", name="Submit & Manage Reports", category=PermissionCategory.RESEARCHER),
]


class PlatformConfig(BaseModel):
    """
    Platform configuration loaded from YAML.

    This is a value object - immutable and defined by its attributes.
    """
    model_config = ConfigDict(frozen=True, extra="ignore")

    platform_name: str = Field(default="XploitArena", description="Name used in notifications")
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Base URL for links in notifications"
    )
    escalation_grace_hours: float = Field(
        default=24,
        ge=0,
        description="Hours past an SLA deadline before the platform admin is alerted"
    )
    budget_alert_thresholds: List[int] = Field(
        default_factory=lambda: [75, 90, 100],
        description="Budget usage percentages that trigger a one-time alert"
    )
    notifications_enabled: bool = Field(default=True, description="Master switch for outgoing notifications")
    seed_permissions: List[PermissionSeed] = Field(
        default_factory=lambda: list(DEFAULT_PERMISSION_CATALOG),
        description="Permission catalog installed by the seeding script"
    )

    @field_validator("budget_alert_thresholds")
    @classmethod
    def validate_thresholds(cls, v: List[int]) -> List[int]:
        """Thresholds are an ordered set of percentages in (0, 100]."""
        for threshold in v:
            if threshold <= 0 or threshold > 100:
                raise ValueError("budget alert thresholds must be between 1 and 100")
        return sorted(set(v))

    def with_overrides(self, overrides: Dict[str, Any]) -> "PlatformConfig":
        """
        Layer setting overrides on top of this snapshot.

        Keys that are not configuration fields are ignored.
        """
        known = {k: v for k, v in overrides.items() if k in OVERRIDABLE_KEYS}
        if not known:
            return self
        return PlatformConfig.model_validate({**self.model_dump(), **known})

    def link(self, path: str) -> str:
        """Absolute frontend URL for a path."""
        return f"{self.frontend_url.rstrip('/')}/{path.lstrip('/')}"


# Settings that admins may override at runtime
OVERRIDABLE_KEYS = frozenset({
    "platform_name",
    "frontend_url",
    "escalation_grace_hours",
    "budget_alert_thresholds",
    "notifications_enabled",
})
