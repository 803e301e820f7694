"""
Administration Application DTOs
================================
"""

from typing import Any, List

from pydantic import BaseModel, Field


class SettingUpdateRequest(BaseModel):
    """Request model for updating one setting."""
    key: str = Field(..., min_length=1, max_length=100, description="Setting key")
    value: Any = Field(..., description="JSON value")


class BulkSettingsUpdateRequest(BaseModel):
    """Request model for updating several settings at once."""
    settings: List[SettingUpdateRequest] = Field(..., min_length=1)


class SettingsUpdateResponse(BaseModel):
    message: str
    keys: List[str]
