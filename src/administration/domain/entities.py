"""
Administration Domain Entities
===============================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass
class SystemSetting:
    """Key/value platform setting stored by admins."""

    key: str
    value: Any
    updated_by: Optional[str] = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
