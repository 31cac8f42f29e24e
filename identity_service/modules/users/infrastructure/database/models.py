# 📄 File: identity_service/modules/users/infrastructure/database/models.py
# 🧭 Purpose (Layman Explanation):
# Defines how a user account is stored in the database: the login name, e-mail address,
# the scrambled (hashed) password, optional personal details, and confirmation status.
#
# 🧪 Purpose (Technical Summary):
# SQLAlchemy ORM model for the users table, inheriting identity, audit and soft-delete
# columns from BaseEntity, with uniqueness of username and email enforced by partial
# unique indexes over live (non-deleted) rows.
#
# 🔗 Dependencies:
# - SQLAlchemy ORM (Mapped, mapped_column, Index)
# - identity_service.shared.config.database (DatabaseBase)
# - identity_service.shared.domain.entity (BaseEntity)
#
# 🔄 Connected Modules / Calls From:
# - user_repository_impl.py (CRUD operations)
# - identity_service.modules.users.domain.services.user_service (entity construction)
# - Schema creation at startup

from typing import Optional

from sqlalchemy import Boolean, Index, String, false
from sqlalchemy.orm import Mapped, mapped_column

from identity_service.shared.config.database import DatabaseBase
from identity_service.shared.domain.entity import BaseEntity


# =============================================================================
# USER MODEL
# =============================================================================

class UserModel(DatabaseBase, BaseEntity):
    """
    SQLAlchemy model for user accounts.

    Only the bcrypt hash of the password is stored; the raw password never
    reaches this layer.
    """
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    first_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    phone_number: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    email_confirmed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, username='{self.username}', email='{self.email}')>"


# Uniqueness holds among live accounts only; a soft-deleted account frees its
# username and email for re-registration.
Index(
    "uq_users_username_live",
    UserModel.username,
    unique=True,
    postgresql_where=UserModel.is_deleted == false(),
    sqlite_where=UserModel.is_deleted == false(),
)
Index(
    "uq_users_email_live",
    UserModel.email,
    unique=True,
    postgresql_where=UserModel.is_deleted == false(),
    sqlite_where=UserModel.is_deleted == false(),
)
