# 📄 File: identity_service/modules/users/infrastructure/database/user_repository_impl.py
# 🧭 Purpose (Layman Explanation):
# The database helper for user accounts: everything the generic helper does, plus
# looking a user up by e-mail address.
#
# 🧪 Purpose (Technical Summary):
# Concrete SQLAlchemy repository bound to UserModel. Generic CRUD, filtering,
# soft-delete and audit behavior are inherited from SQLAlchemyRepository.
#
# 🔗 Dependencies:
# - identity_service.shared.infrastructure.database.repository (SQLAlchemyRepository)
# - identity_service.modules.users.infrastructure.database.models (UserModel)
#
# 🔄 Connected Modules / Calls From:
# - identity_service.modules.users.presentation.dependencies (request wiring)
# - identity_service.modules.users.domain.services.user_service

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from identity_service.shared.domain.query import Filter
from identity_service.shared.infrastructure.database.repository import SQLAlchemyRepository

from .models import UserModel


class UserRepositoryImpl(SQLAlchemyRepository[UserModel]):
    """
    SQLAlchemy repository for user accounts.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, UserModel)

    async def get_by_email(self, email: str) -> Optional[UserModel]:
        """
        Retrieve a live user by email.

        Args:
            email: User's email address

        Returns:
            Optional[UserModel]: User if found, None otherwise
        """
        users = await self.get(Filter.eq("email", email))
        return users[0] if users else None
