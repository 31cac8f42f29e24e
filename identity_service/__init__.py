"""
Healthcare Identity service.

User registration, authentication, profile management and password flows
over a generic, audited, soft-deleting repository.
"""

__version__ = "1.0.0"
