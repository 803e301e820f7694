"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from src.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ValidationException,
    AuthenticationException,
    ResourceNotFoundException,
    ConflictException,
    ConfigurationException,
    ExternalServiceException,
    PermissionDenied,
    PermissionCategoryMismatch,
    BudgetExceeded,
    InvalidStatusTransition,
    ProgramNotAcceptingReports,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ValidationException",
    "AuthenticationException",
    "ResourceNotFoundException",
    "ConflictException",
    "ConfigurationException",
    "ExternalServiceException",
    "PermissionDenied",
    "PermissionCategoryMismatch",
    "BudgetExceeded",
    "InvalidStatusTransition",
    "ProgramNotAcceptingReports",
]
