"""Authentication endpoints: registration, sign-in and the current user."""

from typing import Annotated

import structlog
from fastapi import APIRouter, Cookie, Depends, Response, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import EmailStr, Field

from taskhub.api.v1.common import CamelModel, MessageResponse, UserResponse
from taskhub.config import get_settings
from taskhub.db.session import DBSession
from taskhub.exceptions import AuthenticationError
from taskhub.models.user import User, UserRole
from taskhub.security import create_access_token, decode_access_token
from taskhub.services.user import UserService

router = APIRouter()
logger = structlog.get_logger()
settings = get_settings()
security = HTTPBearer(auto_error=False)


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    avatar_url: str | None = Field(None, max_length=500)
    phone_number: str | None = Field(None, max_length=50)
    role: UserRole = UserRole.USER


class SignInRequest(CamelModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class AuthResponse(CamelModel):
    message: str
    user: UserResponse
    access_token: str


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DBSession,
    jwt_cookie: Annotated[str | None, Cookie(alias=settings.jwt_cookie_name)] = None,
) -> User:
    """Resolve the caller from a bearer token, falling back to the jwt cookie."""
    token = credentials.credentials if credentials else jwt_cookie
    if not token:
        raise AuthenticationError("Not authenticated")

    user_id = decode_access_token(token)
    user = await UserService(db).get_user(user_id)
    if user is None:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is disabled")
    return user


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]


def _set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.jwt_cookie_name,
        value=token,
        max_age=settings.jwt_access_token_expire_minutes * 60,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, response: Response, db: DBSession) -> AuthResponse:
    """Create an account and return a token so the client can sign in immediately."""
    user = await UserService(db).register(**data.model_dump())
    token = create_access_token(user.id, user.email)
    _set_token_cookie(response, token)
    return AuthResponse(
        message="User registered successfully",
        user=UserResponse.model_validate(user),
        access_token=token,
    )


@router.post("/signin", response_model=AuthResponse)
async def signin(data: SignInRequest, response: Response, db: DBSession) -> AuthResponse:
    user = await UserService(db).authenticate(data.email, data.password)
    token = create_access_token(user.id, user.email)
    _set_token_cookie(response, token)
    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        access_token=token,
    )


@router.delete("/signout", response_model=MessageResponse)
async def signout(response: Response) -> MessageResponse:
    """Tokens are stateless; signing out only clears the cookie."""
    response.delete_cookie(settings.jwt_cookie_name)
    return MessageResponse(message="Logged out successfully")
