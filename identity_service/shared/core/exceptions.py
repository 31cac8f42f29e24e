# 📄 File: identity_service/shared/core/exceptions.py
# 🧭 Purpose (Layman Explanation):
# This file defines the error types the Identity service uses to say clearly what
# went wrong: something missing, something already taken, bad credentials, or bad input.
# 🧪 Purpose (Technical Summary):
# Custom exception hierarchy carrying HTTP status codes, machine-readable error
# codes and details, serialized uniformly by the API exception handlers.
# 🔗 Dependencies:
# FastAPI status constants, typing
# 🔄 Connected Modules / Calls From:
# Repositories, the user service, security helpers, middleware, API handlers

from typing import Any, Dict, Optional

from fastapi import status


class IdentityServiceException(Exception):
    """
    Base exception class for the Identity service.
    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.error_code = error_code or self.__class__.__name__.upper()
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details,
                "status_code": self.status_code
            }
        }


# =============================================================================
# LOOKUP & UNIQUENESS EXCEPTIONS
# =============================================================================

class NotFoundError(IdentityServiceException):
    """
    Exception raised when requested entity is not found.
    Used for unknown ids and soft-deleted records alike.
    """

    def __init__(
        self,
        message: str = "Resource not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if resource_type:
            details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
            error_code="NOT_FOUND"
        )


class ConflictError(IdentityServiceException):
    """
    Exception raised when a uniqueness invariant is violated.

    Raised both by the registration pre-check and, authoritatively, by the
    repository when the store rejects an insert or update. The API answers
    with 400 Bad Request for these, matching the published contract.
    """

    def __init__(
        self,
        message: str = "Resource already exists",
        resource_type: Optional[str] = None,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}

        if resource_type:
            details["resource_type"] = resource_type
        if field:
            details["field"] = field

        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            error_code="CONFLICT"
        )


# =============================================================================
# AUTHENTICATION & INPUT EXCEPTIONS
# =============================================================================

class UnauthorizedError(IdentityServiceException):
    """
    Exception raised for bad credentials, missing or invalid bearer tokens,
    and attempts to act on another user's record.
    """

    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None
    ):
        if not details:
            details = {}
        if user_id:
            details["user_id"] = user_id

        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            details=details,
            error_code="UNAUTHORIZED"
        )


class BadRequestError(IdentityServiceException):
    """
    Exception raised for malformed input, id mismatches and wrong current passwords.
    """

    def __init__(
        self,
        message: str = "Bad request",
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if field:
            details["field"] = field

        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
            error_code="BAD_REQUEST"
        )


# =============================================================================
# DATABASE & INFRASTRUCTURE EXCEPTIONS
# =============================================================================

class DatabaseError(IdentityServiceException):
    """
    Exception raised for store failures other than uniqueness violations.
    Used for connection issues, lock timeouts, query failures, etc.
    """

    def __init__(
        self,
        message: str = "Database error",
        operation: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if not details:
            details = {}
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details=details,
            error_code="DATABASE_ERROR"
        )


__all__ = [
    "IdentityServiceException",
    "NotFoundError",
    "ConflictError",
    "UnauthorizedError",
    "BadRequestError",
    "DatabaseError",
]
