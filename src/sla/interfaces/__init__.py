"""
SLA Interfaces Layer
====================

Interface adapters (controllers) for the SLA engine.

Contains:
- Controllers: FastAPI route handlers
- Dependencies: Service wiring per request
"""

from src.sla.interfaces.controllers import sla_router

__all__ = ["sla_router"]
