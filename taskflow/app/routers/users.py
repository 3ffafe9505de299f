"""Account routes: registration, login, profile and password changes."""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from taskflow.app.auth import AuthContext, require_user, get_token_service
from taskflow.app.tokens import TokenService
from taskflow.db.users import (
    EmailAlreadyRegisteredError,
    backfill_local_provider,
    create_local_user,
    get_user_by_email,
    get_user_by_id,
    set_password,
    update_user_name,
)
from taskflow.models.user import User, Provider, is_valid_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


# --- Request / Response Models ---


class RegisterRequest(BaseModel):
    """Request body for creating a local account."""

    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def email_shape(cls, v: str) -> str:
        v = v.strip()
        if not is_valid_email(v):
            raise ValueError("Please include a valid email")
        return v

    @field_validator("password")
    @classmethod
    def password_required(cls, v: str) -> str:
        if not v:
            raise ValueError("Password is required")
        return v


class RegisterResponse(BaseModel):
    id: UUID
    name: str
    email: str


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthenticatedUserResponse(BaseModel):
    """User summary returned alongside a freshly issued token."""

    id: UUID
    name: str
    email: str
    provider: Optional[Provider]
    token: str


class UpdateProfileRequest(BaseModel):
    """Only the display name can be changed here; email is immutable."""

    name: Optional[str] = None


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    current_password: Optional[str] = None
    new_password: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


# --- Endpoints ---


@router.post(
    "/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED
)
def register_user(request: RegisterRequest) -> RegisterResponse:
    """Create a local account.

    No token is returned; the client logs in separately.
    """
    try:
        user = create_local_user(request.name, request.email, request.password)
    except EmailAlreadyRegisteredError:
        raise HTTPException(status_code=400, detail="User already exists")
    return RegisterResponse(id=user.id, name=user.name, email=user.email)


@router.post("/login", response_model=AuthenticatedUserResponse)
def login_user(
    request: LoginRequest,
    tokens: TokenService = Depends(get_token_service),
) -> AuthenticatedUserResponse:
    """Check email/password and issue a bearer token.

    Unknown emails and wrong passwords get the same response.
    """
    user = get_user_by_email(request.email)

    if user is not None and user.provider is None:
        user = backfill_local_provider(user.id) or user

    if user is None or not user.match_password(request.password):
        logger.info("Failed login attempt")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials"
        )

    return AuthenticatedUserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        provider=user.provider,
        token=tokens.issue(user),
    )


@router.get("/me", response_model=User)
def read_profile(auth: AuthContext = Depends(require_user)) -> User:
    """Get the authenticated user's profile."""
    return auth.user


@router.put("/me", response_model=AuthenticatedUserResponse)
def update_profile(
    request: UpdateProfileRequest,
    auth: AuthContext = Depends(require_user),
    tokens: TokenService = Depends(get_token_service),
) -> AuthenticatedUserResponse:
    """Update the display name and re-issue a token carrying the new name."""
    user: User = auth.user
    name = (request.name or "").strip()
    if name:
        updated = update_user_name(user.id, name)
        if updated is None:
            raise HTTPException(status_code=404, detail="User not found")
        user = updated

    return AuthenticatedUserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        provider=user.provider,
        token=tokens.issue(user),
    )


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    request: ChangePasswordRequest,
    auth: AuthContext = Depends(require_user),
) -> MessageResponse:
    """Rotate the local password after confirming the current one.

    Accounts without a local password cannot confirm one, so they cannot use
    this to set an initial password.
    """
    if not request.current_password or not request.new_password:
        raise HTTPException(
            status_code=400, detail="Please provide both current and new password"
        )

    user = get_user_by_id(auth.user.id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    if not user.match_password(request.current_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Current password is incorrect",
        )

    set_password(user.id, request.new_password)
    return MessageResponse(message="Password updated successfully")
