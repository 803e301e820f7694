"""
Access Interfaces Layer
=======================

Interface adapters for access control:
- Controllers: FastAPI route handlers
- Dependencies: identity resolution and permission guards
"""

from src.access.interfaces.controllers import rbac_router, accounts_router

__all__ = ["rbac_router", "accounts_router"]
