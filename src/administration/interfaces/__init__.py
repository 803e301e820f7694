"""
Administration Interfaces Layer
===============================
"""

from src.administration.interfaces.controllers import router as admin_router

__all__ = ["admin_router"]
