"""
Programs Infrastructure Layer
=============================

Contains:
- ORM Models: ProgramModel, ReportModel
- Repositories: SQLAlchemy implementations of the program and report interfaces
"""

from src.programs.infrastructure.models import ProgramModel, ReportModel
from src.programs.infrastructure.repositories import (
    SQLAlchemyProgramRepository,
    SQLAlchemyReportRepository,
)

__all__ = [
    "ProgramModel",
    "ReportModel",
    "SQLAlchemyProgramRepository",
    "SQLAlchemyReportRepository",
]
