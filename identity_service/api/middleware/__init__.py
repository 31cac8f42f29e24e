"""
HTTP middleware for the Identity API.

Stack order (outermost first):
    1. ErrorHandlingMiddleware: request id, deadline, unhandled errors
    2. RequestLoggingMiddleware: one log line per request
    3. Application routes
"""

from .error_handling import ErrorHandlingMiddleware
from .logging import RequestLoggingMiddleware

__all__ = ["ErrorHandlingMiddleware", "RequestLoggingMiddleware"]
