"""Authentication service for password hashing and JWT tokens."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from pwdlib import PasswordHash
from pwdlib.hashers.argon2 import Argon2Hasher

from communitrack.config import settings
from communitrack.schemas.user import UserRecord
from communitrack.storage import EntryStore, Store

# Security event logger
security_logger = logging.getLogger("communitrack.security")

# Password hashing using pwdlib with Argon2
password_hash = PasswordHash((Argon2Hasher(),))

# OAuth2 scheme for token authentication
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

ALGORITHM = "HS256"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return password_hash.hash(password)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token with a unique JWT ID."""
    to_encode = data.copy()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.auth.token_lifetime_minutes)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire, "jti": str(uuid.uuid4())})
    return jwt.encode(to_encode, settings.secret_key, algorithm=ALGORITHM)


async def authenticate_user(
    store: EntryStore,
    email: str,
    password: str,
    ip_address: str | None = None,
) -> UserRecord | None:
    """Authenticate a user with email and password.

    Returns:
        The user if the credentials are valid and the account is active,
        None otherwise.
    """
    user = await store.get_user_by_email(email)
    if not user:
        security_logger.warning(
            "Failed login - user not found: email=%s, ip=%s",
            email,
            ip_address or "unknown",
        )
        return None

    if not verify_password(password, user.hashed_password):
        security_logger.warning(
            "Failed login - invalid password: user_id=%s, ip=%s",
            user.id,
            ip_address or "unknown",
        )
        return None

    if not user.is_active:
        security_logger.warning(
            "Failed login - inactive account: user_id=%s, ip=%s",
            user.id,
            ip_address or "unknown",
        )
        return None

    security_logger.info(
        "Successful login: user_id=%s, ip=%s",
        user.id,
        ip_address or "unknown",
    )
    return await store.update_user(user.id, {"last_login": datetime.now(timezone.utc)}) or user


async def get_current_user(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    store: Store,
) -> UserRecord | None:
    """Get the current user from the JWT token (``sub`` holds the email)."""
    if not token:
        return None

    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return None

    subject: str | None = payload.get("sub")
    if subject is None:
        return None

    user = await store.get_user_by_email(subject)
    if user is None or not user.is_active:
        return None
    return user


async def require_auth(
    user: Annotated[UserRecord | None, Depends(get_current_user)],
) -> UserRecord:
    """Require authentication - raises 401 if not authenticated."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


# Type aliases for dependency injection
RequireAuth = Annotated[UserRecord, Depends(require_auth)]
