"""
Credential Primitives

bcrypt password hashing and JWT identity assertions. Hashing is CPU
bound, so async callers go through the ``*_async`` wrappers which run
it on a worker thread.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import bcrypt
import jwt

from delivery_app.core.config import Settings
from delivery_app.errors import AuthError


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


async def hash_password_async(password: str, rounds: int = 10) -> str:
    return await asyncio.to_thread(hash_password, password, rounds)


async def verify_password_async(password: str, hashed: str) -> bool:
    return await asyncio.to_thread(verify_password, password, hashed)


def create_access_token(
    settings: Settings,
    phone: str,
    name: str,
    role: str,
    email: Optional[str] = None,
    rider_id: Optional[str] = None,
) -> str:
    """
    Issue a signed identity assertion.

    Claims: phone, name, role and, when present, email and riderId.
    """
    now = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": phone,
        "phone": phone,
        "name": name,
        "role": role,
        "iat": now,
        "exp": now + timedelta(minutes=settings.jwt_expires_minutes),
    }
    if email:
        claims["email"] = email
    if rider_id:
        claims["riderId"] = rider_id

    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(settings: Settings, token: str) -> dict[str, Any]:
    """
    Verify signature and expiry of an identity assertion.

    Raises:
        AuthError: Token expired or invalid
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError("Invalid token") from e
