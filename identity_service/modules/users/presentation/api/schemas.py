# 📄 File: identity_service/modules/users/presentation/api/schemas.py
# 🧭 Purpose (Layman Explanation):
# Describes exactly what the outside world may send to and receive from the user
# endpoints, so bad input is rejected early and password hashes never leave the service.
#
# 🧪 Purpose (Technical Summary):
# Pydantic v2 request/response schemas with camelCase aliases (snake_case accepted too)
# and ORM-attribute loading for responses.
#
# 🔗 Dependencies:
# - pydantic (BaseModel, ConfigDict, EmailStr via email-validator, alias generators)
#
# 🔄 Connected Modules / Calls From:
# - identity_service.modules.users.presentation.api.users (endpoint signatures)

"""
User API Schemas

Request Schemas:
- RegisterRequest: New account data including the raw password
- LoginRequest: Email and password
- UserUpdateRequest: Full user record for PUT /{id}
- ProfileUpdateRequest: Caller's own record for PUT /profile
- UpdatePasswordRequest: Current and new password
- ConfirmEmailRequest / ResetPasswordRequest: Email flows

Response Schemas:
- UserResponse: Public view of a user (no password hash, no soft-delete flag)
- EmailTokenResponse: Email and the issued confirmation/reset token
- MessageResponse: Plain acknowledgement
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

class RegisterRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=50, description="Unique login name")
    email: EmailStr = Field(..., description="Unique email address")
    password: str = Field(..., min_length=1, max_length=128, description="Raw password")
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    phone_number: Optional[str] = Field(default=None, max_length=20)


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=128)


class ProfileUpdateRequest(CamelModel):
    """Fields a user may change on their own record. Omitted fields are kept."""

    id: Optional[UUID] = Field(default=None, description="Must be the caller's id when present")
    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    phone_number: Optional[str] = Field(default=None, max_length=20)

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude={"id"})


class UserUpdateRequest(ProfileUpdateRequest):
    id: UUID = Field(..., description="Must match the id in the path")
    email_confirmed: Optional[bool] = None


class UpdatePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., min_length=1, max_length=128)


class ConfirmEmailRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=100)
    token: str = Field(..., min_length=1)


class ResetPasswordRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=100)
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=128)


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================

class UserResponse(CamelModel):
    id: UUID
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    email_confirmed: bool = False
    created_at: datetime
    created_by: str
    modified_at: Optional[datetime] = None
    modified_by: Optional[str] = None


class EmailTokenResponse(CamelModel):
    email: str
    token: str


class MessageResponse(CamelModel):
    message: str
