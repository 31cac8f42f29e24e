# 📄 File: identity_service/modules/users/presentation/api/users.py
# 🧭 Purpose (Layman Explanation):
# The web addresses for user accounts: sign up, log in, look at and change your profile,
# change or reset your password, confirm your e-mail, and manage user records.
#
# 🧪 Purpose (Technical Summary):
# FastAPI router mounted at /api/users. Each endpoint validates input with pydantic
# schemas, delegates to UserService, and maps results to status codes; service
# exceptions are rendered by the application-wide exception handlers.
#
# 🔗 Dependencies:
# - FastAPI router, status codes, Body
# - identity_service.modules.users.presentation.dependencies (auth, service wiring)
# - identity_service.modules.users.presentation.api.schemas (request/response schemas)
#
# 🔄 Connected Modules / Calls From:
# - identity_service.main (router inclusion)

"""
Users API Endpoints

Endpoints:
- GET /: List users
- GET /profile: Get the caller's own record
- PUT /profile: Update the caller's own record
- GET /{user_id}: Get a user
- PUT /{user_id}: Update a user (body id must match path)
- DELETE /{user_id}: Soft delete a user
- POST /register: Create an account (anonymous)
- POST /login: Exchange email and password for a bearer token (anonymous)
- POST /update-password: Change the caller's password
- POST /send-confirmation-email, POST /confirm-email: Email confirmation (anonymous)
- POST /send-reset-password-email, POST /reset-password: Password reset (anonymous)

Confirmation and reset tokens are returned to the caller and never checked
on redemption.
"""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request, Response, status

from ..dependencies import CurrentUser, get_current_user, get_user_service
from ...domain.services.user_service import UserService
from .schemas import (
    ConfirmEmailRequest,
    EmailTokenResponse,
    LoginRequest,
    MessageResponse,
    ProfileUpdateRequest,
    RegisterRequest,
    ResetPasswordRequest,
    UpdatePasswordRequest,
    UserResponse,
    UserUpdateRequest,
)

logger = logging.getLogger(__name__)

# Create router
users_router = APIRouter()


# =============================================================================
# AUTHENTICATED READS
# =============================================================================

@users_router.get(
    "",
    response_model=List[UserResponse],
    summary="List users",
    responses={401: {"description": "Authentication required"}}
)
async def list_users(
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> List[UserResponse]:
    users = await user_service.list_users()
    return [UserResponse.model_validate(user) for user in users]


@users_router.get(
    "/profile",
    response_model=UserResponse,
    summary="Get own profile",
    responses={401: {"description": "Authentication required"}}
)
async def get_profile(
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await user_service.get_profile(current_user.user_id)
    return UserResponse.model_validate(user)


@users_router.put(
    "/profile",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Update own profile",
    responses={401: {"description": "Authentication required or not the caller's record"}}
)
async def update_profile(
    profile_data: ProfileUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    await user_service.update_profile(
        actor_id=current_user.user_id,
        changes=profile_data.changes(),
        target_id=profile_data.id,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@users_router.get(
    "/{user_id}",
    response_model=UserResponse,
    name="get_user",
    summary="Get user by id",
    responses={404: {"description": "User not found"}}
)
async def get_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await user_service.get_user(user_id)
    return UserResponse.model_validate(user)


# =============================================================================
# ANONYMOUS ACCOUNT FLOWS
# =============================================================================

@users_router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    responses={400: {"description": "Email or username already taken"}}
)
async def register(
    registration: RegisterRequest,
    request: Request,
    response: Response,
    user_service: UserService = Depends(get_user_service),
) -> UserResponse:
    user = await user_service.register(
        username=registration.username,
        email=str(registration.email),
        password=registration.password,
        first_name=registration.first_name,
        last_name=registration.last_name,
        phone_number=registration.phone_number,
    )
    response.headers["Location"] = str(request.url_for("get_user", user_id=str(user.id)))
    return UserResponse.model_validate(user)


@users_router.post(
    "/login",
    response_model=str,
    summary="Log in and receive a bearer token",
    responses={401: {"description": "Invalid credentials"}}
)
async def login(
    credentials: LoginRequest,
    user_service: UserService = Depends(get_user_service),
) -> str:
    return await user_service.login(credentials.email, credentials.password)


@users_router.post(
    "/send-confirmation-email",
    response_model=EmailTokenResponse,
    summary="Issue an email confirmation token"
)
async def send_confirmation_email(
    email: str = Body(..., min_length=1),
    user_service: UserService = Depends(get_user_service),
) -> EmailTokenResponse:
    email, token = user_service.send_confirmation_email(email)
    return EmailTokenResponse(email=email, token=token)


@users_router.post(
    "/confirm-email",
    response_model=MessageResponse,
    summary="Confirm an email address",
    responses={404: {"description": "No user with this email"}}
)
async def confirm_email(
    confirmation: ConfirmEmailRequest,
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await user_service.confirm_email(confirmation.email, confirmation.token)
    return MessageResponse(message="Email confirmed")


@users_router.post(
    "/send-reset-password-email",
    response_model=EmailTokenResponse,
    summary="Issue a password reset token"
)
async def send_reset_password_email(
    email: str = Body(..., min_length=1),
    user_service: UserService = Depends(get_user_service),
) -> EmailTokenResponse:
    email, token = user_service.send_reset_password_email(email)
    return EmailTokenResponse(email=email, token=token)


@users_router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset a password",
    responses={404: {"description": "No user with this email"}}
)
async def reset_password(
    reset: ResetPasswordRequest,
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await user_service.reset_password(reset.email, reset.token, reset.new_password)
    return MessageResponse(message="Password reset")


# =============================================================================
# AUTHENTICATED WRITES
# =============================================================================

@users_router.post(
    "/update-password",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Change own password",
    responses={400: {"description": "Current password is incorrect"}}
)
async def update_password(
    password_data: UpdatePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    await user_service.update_password(
        actor_id=current_user.user_id,
        current_password=password_data.current_password,
        new_password=password_data.new_password,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@users_router.put(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Update a user",
    responses={
        400: {"description": "Path id does not match body id"},
        404: {"description": "User not found"},
    }
)
async def update_user(
    user_id: UUID,
    user_data: UserUpdateRequest,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    changes = user_data.changes()
    await user_service.update_user(
        path_id=user_id,
        body_id=user_data.id,
        changes=changes,
        actor=current_user.actor,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@users_router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a user",
    responses={404: {"description": "User not found"}}
)
async def delete_user(
    user_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> Response:
    await user_service.delete_user(user_id, actor=current_user.actor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
