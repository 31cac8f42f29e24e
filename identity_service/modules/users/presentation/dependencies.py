# 📄 File: identity_service/modules/users/presentation/dependencies.py
# 🧭 Purpose (Layman Explanation):
# Checks the "badge" (bearer token) on protected requests and hands each endpoint the
# tools it needs: who is calling, the user database helper, and the user rules.
# 🧪 Purpose (Technical Summary):
# FastAPI dependencies for bearer authentication (HTTPBearer + TokenIssuer.verify) and
# request-scoped wiring of UserRepositoryImpl and UserService over the request session.
# 🔗 Dependencies:
# FastAPI (Depends, HTTPBearer), SQLAlchemy AsyncSession, shared security and logging
# 🔄 Connected Modules / Calls From:
# identity_service.modules.users.presentation.api.users (all endpoints)

import logging
import uuid
from typing import Any, Dict, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from identity_service.shared.core.exceptions import UnauthorizedError
from identity_service.shared.core.security import (
    PasswordHasher,
    TokenIssuer,
    get_password_hasher,
    get_token_issuer,
)
from identity_service.shared.infrastructure.database.session import get_db_session
from identity_service.shared.utils.logging import bind_user

from ..domain.services.user_service import UserService
from ..infrastructure.database.user_repository_impl import UserRepositoryImpl

logger = logging.getLogger(__name__)

# Missing credentials are reported through UnauthorizedError, not FastAPI's 403.
security = HTTPBearer(auto_error=False)


class CurrentUser:
    """User information extracted from a verified JWT."""

    def __init__(
        self,
        user_id: uuid.UUID,
        email: Optional[str] = None,
        username: Optional[str] = None,
        token_payload: Optional[Dict[str, Any]] = None
    ):
        self.user_id = user_id
        self.email = email
        self.username = username
        self.token_payload = token_payload or {}

    @property
    def actor(self) -> str:
        """Identifier recorded in audit stamps for this user's writes."""
        return str(self.user_id)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> CurrentUser:
    """
    Authenticate the bearer token on the request.

    Raises:
        UnauthorizedError: If the token is missing, invalid, expired or has a bad subject
    """
    if credentials is None or not credentials.credentials:
        logger.warning(f"Missing bearer token on {request.method} {request.url.path}")
        raise UnauthorizedError("Authorization header required")

    payload = token_issuer.verify(credentials.credentials)

    try:
        user_id = uuid.UUID(payload["sub"])
    except (ValueError, TypeError):
        logger.warning("Token subject is not a valid user id")
        raise UnauthorizedError("Could not validate credentials")

    bind_user(str(user_id))
    request.state.user_id = str(user_id)

    return CurrentUser(
        user_id=user_id,
        email=payload.get("email"),
        username=payload.get("username"),
        token_payload=payload
    )


def get_user_repository(
    session: AsyncSession = Depends(get_db_session)
) -> UserRepositoryImpl:
    return UserRepositoryImpl(session)


def get_user_service(
    user_repository: UserRepositoryImpl = Depends(get_user_repository),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> UserService:
    return UserService(
        user_repository=user_repository,
        password_hasher=password_hasher,
        token_issuer=token_issuer,
    )
