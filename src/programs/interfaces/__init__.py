"""
Programs Interfaces Layer
=========================
"""

from src.programs.interfaces.controllers import programs_router, reports_router

__all__ = ["programs_router", "reports_router"]
