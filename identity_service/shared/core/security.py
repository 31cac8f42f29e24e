"""
Security utilities for password hashing and JWT issuance/validation.
Provides the password hasher and the token issuer used by the user service
and by the bearer authentication dependency.
"""

import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional, Protocol

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from ..config.settings import Settings, get_settings
from .exceptions import UnauthorizedError

logger = logging.getLogger(__name__)


class TokenSubject(Protocol):
    """Anything a token can be issued for."""

    id: uuid.UUID
    email: str
    username: str


class PasswordHasher:
    """
    Bcrypt password hashing through passlib.

    The raw password is never stored or logged; only the hash leaves this class.
    """

    def __init__(self, rounds: int = 12):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        """
        Hash password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            str: Hashed password
        """
        return self._context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify password against hash.

        Malformed or unknown hashes count as a failed verification.
        """
        try:
            return self._context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.warning(f"Password verification error: {e}")
            return False


class TokenIssuer:
    """
    Issues and validates signed, time-bounded bearer tokens.

    Tokens carry the user id as ``sub`` and are bound to the configured
    issuer and audience. There is no refresh or revocation mechanism.
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        audience: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
    ):
        self.secret_key = secret_key
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenIssuer":
        return cls(
            secret_key=settings.JWT_SECRET_KEY,
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            algorithm=settings.JWT_ALGORITHM,
            expire_minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
        )

    def create_access_token(
        self,
        user: TokenSubject,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create JWT access token for an authenticated user.

        Args:
            user: Authenticated user (id, email, username)
            expires_delta: Custom expiration time

        Returns:
            str: Encoded JWT token
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.expire_minutes))

        claims: Dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "username": user.username,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": expire,
            "jti": uuid.uuid4().hex,
        }

        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        logger.debug(f"Access token created for user: {user.id}")
        return token

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a JWT token.

        Signature, issuer, audience and expiry are all enforced.

        Raises:
            UnauthorizedError: If the token is invalid, expired or has no subject
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError:
            logger.warning("Token has expired")
            raise UnauthorizedError("Token expired")
        except JWTError as e:
            logger.warning(f"JWT validation failed: {e}")
            raise UnauthorizedError("Could not validate credentials")

        if not payload.get("sub"):
            logger.warning("Token missing subject (user_id)")
            raise UnauthorizedError("Could not validate credentials")

        return payload


def generate_email_token() -> str:
    """Random URL-safe token for e-mail confirmation and password reset links."""
    return secrets.token_urlsafe(32)


@lru_cache()
def get_password_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=get_settings().BCRYPT_ROUNDS)


@lru_cache()
def get_token_issuer() -> TokenIssuer:
    return TokenIssuer.from_settings(get_settings())


__all__ = [
    "PasswordHasher",
    "TokenIssuer",
    "generate_email_token",
    "get_password_hasher",
    "get_token_issuer",
]
