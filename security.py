from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import Settings
from exceptions import Unauthorized


# 🔐 Argon2 password hashing
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

# Missing headers are reported by get_current_user_id, not by the scheme
security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


# ---------------- PASSWORD UTILS ---------------- #

def hash_password(password: str) -> str:
    """Hash password using Argon2"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password using Argon2.

    With no stored hash a dummy verification still runs, so unknown accounts
    take as long to reject as wrong passwords.
    """
    if hashed_password is None:
        pwd_context.dummy_verify()
        return False
    return pwd_context.verify(plain_password, hashed_password)


# ---------------- TOKENS ---------------- #

def create_access_token(
    user_id: int,
    settings: Settings,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed access token for ``user_id``.

    The lifetime is fixed at issue time; there is no refresh flow, so clients
    log in again once it runs out.
    """
    issued_at = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(user_id),
        "type": "access",
        "iat": issued_at,
        "exp": issued_at + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str, settings: Settings) -> int:
    """Verify signature, expiry and token type, and return the user id."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise Unauthorized()

    if payload.get("type") != "access":
        raise Unauthorized("Invalid token type")

    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise Unauthorized()


def get_current_user_id(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
        settings: Settings = Depends(get_settings)
) -> int:
    """Resolve the authenticated user id from the bearer token"""
    if credentials is None:
        raise Unauthorized("No token, authorization denied")
    return decode_access_token(credentials.credentials, settings)
