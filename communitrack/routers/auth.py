"""Authentication endpoints: registration, login token and profile."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from slowapi import Limiter
from slowapi.util import get_remote_address

from communitrack.config import settings
from communitrack.schemas.user import TokenResponse, UserCreate, UserRead, UserUpdate
from communitrack.services.auth import (
    RequireAuth,
    authenticate_user,
    create_access_token,
    get_password_hash,
    security_logger,
)
from communitrack.storage import DuplicateUserError, Store

router = APIRouter()

# Rate limiter for auth endpoints (stricter than global limit)
limiter = Limiter(key_func=get_remote_address)


def _auth_rate_limit() -> str:
    return f"{settings.auth.auth_rate_limit_per_minute}/minute"


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
@limiter.limit(_auth_rate_limit)
async def register(
    request: Request,  # Required for rate limiting
    user_in: UserCreate,
    store: Store,
) -> UserRead:
    """Create a new user account."""
    if not settings.auth.registration_enabled:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Registration is disabled",
        )

    try:
        user = await store.create_user(
            {
                "email": user_in.email,
                "username": user_in.username,
                "hashed_password": get_password_hash(user_in.password),
                "full_name": user_in.full_name,
                "language": user_in.language,
            }
        )
    except DuplicateUserError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email or username already registered",
        )

    security_logger.info(
        "User registered: user_id=%s, ip=%s",
        user.id,
        get_remote_address(request),
    )
    return UserRead.model_validate(user)


@router.post("/token", response_model=TokenResponse)
@limiter.limit(_auth_rate_limit)
async def login_token(
    request: Request,  # Required for rate limiting
    form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
    store: Store,
) -> TokenResponse:
    """Login with email and password to get an access token.

    OAuth2 names the field 'username', but it carries the email here.
    """
    user = await authenticate_user(
        store, form_data.username, form_data.password, get_remote_address(request)
    )
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenResponse(
        access_token=create_access_token(data={"sub": user.email}),
        expires_in=settings.auth.token_lifetime_minutes * 60,
    )


@router.get("/me", response_model=UserRead)
async def get_current_user_info(current_user: RequireAuth) -> UserRead:
    """Get the current authenticated user's information."""
    return UserRead.model_validate(current_user)


@router.patch("/me", response_model=UserRead)
async def update_profile(
    update: UserUpdate,
    current_user: RequireAuth,
    store: Store,
) -> UserRead:
    """Update the current user's full name or preferred language."""
    changes = update.model_dump(exclude_unset=True)
    if "language" in changes and changes["language"] is None:
        del changes["language"]
    if not changes:
        return UserRead.model_validate(current_user)

    user = await store.update_user(current_user.id, changes)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return UserRead.model_validate(user)
