# 📄 File: identity_service/modules/users/domain/services/user_service.py
# 🧭 Purpose (Layman Explanation):
# The rules for user accounts: signing up, logging in, seeing and changing your own
# profile, changing your password, and the e-mail confirmation / password reset flows.
# 🧪 Purpose (Technical Summary):
# Domain service orchestrating the credential lifecycle over the generic repository,
# the bcrypt password hasher and the JWT token issuer. Every write carries an explicit
# actor identifier for the audit stamps.
# 🔗 Dependencies:
# email-validator, UserRepositoryImpl, query filters, PasswordHasher, TokenIssuer, service exceptions
# 🔄 Connected Modules / Calls From:
# identity_service.modules.users.presentation.api.users (HTTP endpoints)

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Tuple

from email_validator import EmailNotValidError, validate_email

from identity_service.shared.core.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
)
from identity_service.shared.core.security import (
    PasswordHasher,
    TokenIssuer,
    generate_email_token,
)
from identity_service.shared.domain.entity import ANONYMOUS_ACTOR
from identity_service.shared.domain.query import Filter
from ...infrastructure.database.models import UserModel
from ...infrastructure.database.user_repository_impl import UserRepositoryImpl

logger = logging.getLogger(__name__)

# Fields a user record may have changed through profile or admin updates.
# Credentials and audit columns are deliberately absent.
UPDATABLE_FIELDS = (
    "username",
    "email",
    "first_name",
    "last_name",
    "phone_number",
)

INVALID_CREDENTIALS = "Invalid credentials."


def normalize_email(email: str) -> str:
    """
    Canonical form used for storing and matching addresses.

    Applies the same normalization as the EmailStr request fields (lower-cased
    domain, NFC local part). Strings that are not valid addresses are returned
    unchanged; they can never match a stored email.
    """
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError:
        return email


class UserService:
    """
    Domain service for user accounts.

    Account states: unregistered -> registered (unconfirmed) -> registered
    (confirmed). Password resets are allowed in either registered state and
    never change the confirmation flag.
    """

    def __init__(
        self,
        user_repository: UserRepositoryImpl,
        password_hasher: PasswordHasher,
        token_issuer: TokenIssuer,
    ):
        self.user_repository = user_repository
        self.password_hasher = password_hasher
        self.token_issuer = token_issuer

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list_users(self, order_by: Optional[List[str]] = None) -> List[UserModel]:
        return await self.user_repository.get_all(order_by=order_by)

    async def get_user(self, user_id: uuid.UUID) -> UserModel:
        return await self.user_repository.get_by_id(user_id)

    async def _find_by_email(self, email: str) -> Optional[UserModel]:
        return await self.user_repository.get_by_email(normalize_email(email))

    # =========================================================================
    # REGISTRATION AND AUTHENTICATION
    # =========================================================================

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone_number: Optional[str] = None,
    ) -> UserModel:
        """
        Register a new, unconfirmed account.

        The duplicate check below only shortens the common case. Two concurrent
        registrations can both pass it; the store's unique index then rejects
        the loser at insert time, which the repository reports as ConflictError.

        Raises:
            ConflictError: If a live user already has this email or username
        """
        email = normalize_email(email)
        existing = await self.user_repository.get(
            Filter.eq("email", email) | Filter.eq("username", username)
        )
        if existing:
            field = "email" if any(u.email == email for u in existing) else "username"
            logger.info(f"Registration rejected, {field} already taken")
            raise ConflictError(
                "Email or Username already exists.",
                resource_type="User",
                field=field
            )

        user = UserModel(
            id=uuid.uuid4(),
            username=username,
            email=email,
            password_hash=self.password_hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            phone_number=phone_number,
            email_confirmed=False,
        )

        created = await self.user_repository.add(user, actor=ANONYMOUS_ACTOR)
        logger.info(f"User registered: {created.id}")
        return created

    async def login(self, email: str, password: str) -> str:
        """
        Authenticate by email and password and issue a bearer token.

        Raises:
            UnauthorizedError: If no user has this email or the password is wrong
        """
        user = await self._find_by_email(email)
        if user is None:
            logger.warning("Login failed: unknown email")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if not self.password_hasher.verify(password, user.password_hash):
            logger.warning(f"Login failed: wrong password for user {user.id}")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        token = self.token_issuer.create_access_token(user)
        logger.info(f"User logged in: {user.id}")
        return token

    # =========================================================================
    # PROFILE (SELF-SERVICE)
    # =========================================================================

    async def get_profile(self, actor_id: uuid.UUID) -> UserModel:
        """
        Raises:
            UnauthorizedError: If the authenticated user no longer exists
        """
        try:
            return await self.user_repository.get_by_id(actor_id)
        except NotFoundError:
            logger.warning(f"Profile requested for missing user {actor_id}")
            raise UnauthorizedError("User no longer exists", user_id=str(actor_id))

    async def update_profile(
        self,
        actor_id: uuid.UUID,
        changes: Mapping[str, Any],
        target_id: Optional[uuid.UUID] = None,
    ) -> UserModel:
        """
        Update the caller's own record.

        Args:
            actor_id: Authenticated user id
            changes: Field values to apply (unknown keys are ignored)
            target_id: Id named in the request body, if any

        Raises:
            UnauthorizedError: If ``target_id`` names another user
        """
        if target_id is not None and target_id != actor_id:
            logger.warning(f"User {actor_id} attempted to update profile of {target_id}")
            raise UnauthorizedError("Cannot modify another user's profile", user_id=str(actor_id))

        user = await self.get_profile(actor_id)
        self._apply_changes(user, changes)
        return await self.user_repository.update(user, actor=str(actor_id))

    async def update_password(
        self,
        actor_id: uuid.UUID,
        current_password: str,
        new_password: str,
    ) -> None:
        """
        Raises:
            BadRequestError: If ``current_password`` does not match; nothing is written
        """
        user = await self.get_profile(actor_id)

        if not self.password_hasher.verify(current_password, user.password_hash):
            logger.warning(f"Password change rejected for user {actor_id}: wrong current password")
            raise BadRequestError("Current password is incorrect", field="currentPassword")

        user.password_hash = self.password_hasher.hash(new_password)
        await self.user_repository.update(user, actor=str(actor_id))
        logger.info(f"Password updated for user {actor_id}")

    # =========================================================================
    # ADMINISTRATION
    # =========================================================================

    async def update_user(
        self,
        path_id: uuid.UUID,
        body_id: uuid.UUID,
        changes: Mapping[str, Any],
        actor: str,
    ) -> UserModel:
        """
        Replace a user's updatable fields (last write wins).

        Raises:
            BadRequestError: If the body id differs from the path id; nothing is written
            NotFoundError: If the user does not exist
        """
        if path_id != body_id:
            raise BadRequestError("Id in path does not match id in body", field="id")

        user = await self.user_repository.get_by_id(path_id)
        self._apply_changes(user, changes)
        if "email_confirmed" in changes and changes["email_confirmed"] is not None:
            user.email_confirmed = bool(changes["email_confirmed"])
        return await self.user_repository.update(user, actor=actor)

    async def delete_user(self, user_id: uuid.UUID, actor: str) -> None:
        """
        Raises:
            NotFoundError: If the user does not exist or is already deleted
        """
        user = await self.user_repository.get_by_id(user_id)
        await self.user_repository.delete(user, actor=actor)

    # =========================================================================
    # EMAIL CONFIRMATION AND PASSWORD RESET
    # =========================================================================

    def _issue_email_token(self, email: str, purpose: str) -> Tuple[str, str]:
        # No mail transport exists; the token goes back to the caller.
        token = generate_email_token()
        logger.warning(
            f"Issued {purpose} token for {email}; the token is not persisted and "
            f"will not be checked when redeemed"
        )
        return email, token

    def send_confirmation_email(self, email: str) -> Tuple[str, str]:
        return self._issue_email_token(email, "confirmation")

    def send_reset_password_email(self, email: str) -> Tuple[str, str]:
        return self._issue_email_token(email, "password reset")

    async def confirm_email(self, email: str, token: str) -> UserModel:
        """
        Mark the account with this email as confirmed.

        ``token`` is accepted without verification.

        Raises:
            NotFoundError: If no live user has this email
        """
        user = await self._require_by_email(email)
        logger.warning(f"Confirming email for user {user.id} without token verification")
        user.email_confirmed = True
        return await self.user_repository.update(user, actor=ANONYMOUS_ACTOR)

    async def reset_password(self, email: str, token: str, new_password: str) -> UserModel:
        """
        Replace the password of the account with this email.

        ``token`` is accepted without verification. The confirmation flag is
        left as it is.

        Raises:
            NotFoundError: If no live user has this email
        """
        user = await self._require_by_email(email)
        logger.warning(f"Resetting password for user {user.id} without token verification")
        user.password_hash = self.password_hasher.hash(new_password)
        return await self.user_repository.update(user, actor=ANONYMOUS_ACTOR)

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _require_by_email(self, email: str) -> UserModel:
        user = await self._find_by_email(email)
        if user is None:
            raise NotFoundError("User not found", resource_type="User")
        return user

    @staticmethod
    def _apply_changes(user: UserModel, changes: Mapping[str, Any]) -> None:
        applied: Dict[str, Any] = {
            name: changes[name] for name in UPDATABLE_FIELDS if name in changes
        }
        for name in ("username", "email"):
            if name in applied and not applied[name]:
                raise BadRequestError(f"{name} cannot be empty", field=name)
        if applied.get("email"):
            applied["email"] = normalize_email(applied["email"])
        for name, value in applied.items():
            setattr(user, name, value)
