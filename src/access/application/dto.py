"""
Access Application DTOs
========================

Pydantic models for the RBAC and sub-account endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from src.config import AccountRole, PermissionCategory


# ========== Request DTOs ==========

class RoleCreateRequest(BaseModel):
    """Request model for creating or updating a custom role."""
    name: str = Field(..., min_length=1, max_length=100, description="Role name")
    description: Optional[str] = Field(None, max_length=500, description="Role description")
    permission_ids: List[str] = Field(default_factory=list, description="Catalog permission IDs")


class RoleAssignRequest(BaseModel):
    """Request model for assigning a role to a team member."""
    account_id: str = Field(..., description="Sub-account receiving the role")
    role_id: Optional[str] = Field(None, description="Role to assign (null removes the role)")


class PermissionCreateRequest(BaseModel):
    """Request model for adding a catalog permission."""
    key: str = Field(..., min_length=3, max_length=100, description="Namespaced key, e.g. company:payments")
    name: str = Field(..., min_length=1, max_length=100)
    category: PermissionCategory
    description: Optional[str] = Field(None, max_length=500)


class SubAccountCreateRequest(BaseModel):
    """Request model for creating a sub-account."""
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    custom_role_id: Optional[str] = None


class SubAccountStatusRequest(BaseModel):
    is_active: bool


# ========== Response DTOs ==========

class PermissionResponse(BaseModel):
    """Response model for a catalog permission."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    key: str
    category: PermissionCategory
    name: str
    description: Optional[str] = None


class RoleResponse(BaseModel):
    """Response model for a custom role."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    owner_id: str
    name: str
    description: Optional[str] = None
    permissions: List[PermissionResponse] = Field(default_factory=list)
    created_at: datetime


class AccountResponse(BaseModel):
    """Response model for an account."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: AccountRole
    parent_id: Optional[str] = None
    custom_role_id: Optional[str] = None
    is_active: bool
    is_verified: bool
    created_at: datetime


class MeResponse(AccountResponse):
    """Current account with its effective permission keys."""
    permissions: List[str] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str
