"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

These exceptions define domain-specific errors that can be caught and handled
appropriately at the application boundaries.
"""

from decimal import Decimal
from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""

    status_code = 400


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""


class ValidationException(ApplicationException):
    """Exception for validation errors."""

    status_code = 400


class AuthenticationException(ApplicationException):
    """Exception when a request carries no valid identity."""

    status_code = 401


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ConflictException(ApplicationException):
    """Exception when a resource already exists."""

    status_code = 409


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    status_code = 502

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class PermissionDenied(DomainException):
    """Raised when an account lacks the permission an operation requires."""

    status_code = 403

    def __init__(
        self,
        permission_key: str,
        details: Optional[dict] = None,
        message: Optional[str] = None
    ):
        self.permission_key = permission_key
        super().__init__(
            message or f"You do not have the required permission: {permission_key}",
            details
        )


class PermissionCategoryMismatch(DomainException):
    """Raised when a role references permissions outside the owner's category."""

    status_code = 403

    def __init__(self, allowed_category: Optional[str], details: Optional[dict] = None):
        self.allowed_category = allowed_category
        super().__init__("Unauthorized permission assignment detected", details)


class BudgetExceeded(DomainException):
    """Raised when a payout would push program spend above its budget."""

    def __init__(
        self,
        program_id: str,
        requested: Decimal,
        remaining: Decimal,
        details: Optional[dict] = None
    ):
        self.program_id = program_id
        self.requested = requested
        self.remaining = remaining
        super().__init__(
            "Insufficient program budget",
            details or {
                "program_id": program_id,
                "requested": str(requested),
                "remaining": str(remaining),
            }
        )


class InvalidStatusTransition(DomainException):
    """Raised when a report cannot move between the requested statuses."""

    status_code = 409

    def __init__(self, current: str, target: str, details: Optional[dict] = None):
        self.current = current
        self.target = target
        super().__init__(
            f"Cannot move report from {current} to {target}",
            details or {"from": current, "to": target}
        )


class ProgramNotAcceptingReports(DomainException):
    """Raised when a program is paused, closed or out of budget."""

    def __init__(self, program_id: str, reason: str):
        self.program_id = program_id
        super().__init__(
            f"Program is not accepting reports: {reason}",
            {"program_id": program_id, "reason": reason}
        )
