"""
Audit Application DTOs
=======================
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AuditEntryResponse(BaseModel):
    """Response model for a single audit entry."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    action: str
    user_id: Optional[str] = None
    report_id: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    created_at: datetime


class AuditListResponse(BaseModel):
    """Response model for audit listings."""
    entries: List[AuditEntryResponse]
    limit: int
    offset: int
