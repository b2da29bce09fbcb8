"""
Identity Registry

Customer credential records keyed by phone number: registration,
phone/password login, identity assertions, and the admin views over
customer accounts.
"""

import logging
import re
from datetime import timedelta
from typing import Any, Optional

from delivery_app.core.config import Settings
from delivery_app.core.security import (
    create_access_token,
    hash_password_async,
    verify_password_async,
)
from delivery_app.database import RecordStore, utcnow
from delivery_app.errors import (
    AuthError,
    ConditionFailedError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from delivery_app.models import User, UserRole

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\d{10}$")
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
MIN_PASSWORD_LENGTH = 6
RECENT_SIGNUP_DAYS = 7

INVALID_CREDENTIALS = "Invalid phone number or password"


def validate_phone(phone: Optional[str]) -> str:
    if not phone or not PHONE_PATTERN.match(phone):
        raise ValidationError("Phone number must be exactly 10 digits")
    return phone


def validate_email(email: Optional[str]) -> Optional[str]:
    if email and not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format")
    return email or None


def validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    return password


class IdentityRegistry:
    """Credential records and identity assertions."""

    def __init__(self, store: RecordStore, settings: Settings):
        self.store = store
        self.settings = settings

    def issue_token(self, user: User) -> str:
        return create_access_token(
            self.settings,
            phone=user.phone,
            name=user.name,
            role=user.role,
            email=user.email,
            rider_id=user.rider_id,
        )

    async def hash_password(self, password: str) -> str:
        return await hash_password_async(password, self.settings.bcrypt_salt_rounds)

    async def authenticate(self, phone: Optional[str], password: Optional[str]) -> User:
        """
        Check phone/password against the stored hash.

        Raises:
            ValidationError: Phone or password missing, phone malformed
            AuthError: Unknown phone or wrong password
            PermissionDeniedError: Account deactivated
        """
        if not phone or not password:
            raise ValidationError("Phone number and password are required")
        validate_phone(phone)

        user = await self.store.get(User, phone)
        if user is None:
            raise AuthError(INVALID_CREDENTIALS)

        if not user.is_active:
            raise PermissionDeniedError(
                "Your account has been deactivated. Please contact support."
            )

        if not await verify_password_async(password, user.password_hash):
            raise AuthError(INVALID_CREDENTIALS)

        return user

    # =========================================================================
    # CUSTOMER ACCOUNTS
    # =========================================================================

    async def register_user(
        self,
        name: Optional[str],
        phone: Optional[str],
        password: Optional[str],
        email: Optional[str] = None,
        role: Optional[str] = None,
    ) -> tuple[User, str]:
        """
        Create a customer account.

        Riders register through the rider account flow so their profile
        is written together with the credentials.

        Raises:
            ValidationError: Missing or malformed fields, or role=rider
            ConflictError: Phone already registered
        """
        if not name or not phone or not password:
            raise ValidationError("Name, phone, and password are required")

        validate_phone(phone)
        email = validate_email(email)
        validate_password(password)

        if role and role != UserRole.USER.value:
            raise ValidationError("Riders must register through /api/rider/auth/register")

        if await self.store.get(User, phone) is not None:
            raise ConflictError("User with this phone number already exists")

        now = utcnow()
        user = User(
            phone=phone,
            name=name,
            email=email,
            password_hash=await self.hash_password(password),
            role=UserRole.USER.value,
            rider_id=None,
            is_active=True,
            is_verified=False,
            profile_image=None,
            address=None,
            created_at=now,
            updated_at=now,
            last_login=None,
        )

        try:
            await self.store.put(user)
        except ConditionFailedError as e:
            raise ConflictError("User already exists") from e

        logger.info(f"User registered: {phone}")
        return user, self.issue_token(user)

    async def login(self, phone: Optional[str], password: Optional[str]) -> tuple[User, str]:
        """Authenticate and stamp last login."""
        user = await self.authenticate(phone, password)
        user = await self.store.update(User, user.phone, {"last_login": utcnow()})
        logger.info(f"User logged in: {user.phone} ({user.role})")
        return user, self.issue_token(user)

    async def list_users(self) -> list[User]:
        """Customer accounts, newest first."""
        return await self.store.scan(
            User, User.role == UserRole.USER.value, order_by=User.created_at.desc()
        )

    async def get_user(self, phone: str) -> User:
        user = await self.store.get(User, phone)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def set_active(self, phone: str, is_active: Any) -> User:
        """
        Activate or deactivate an account.

        Raises:
            ValidationError: is_active is not a boolean
            NotFoundError: No account for this phone
        """
        if not isinstance(is_active, bool):
            raise ValidationError("isActive must be a boolean")

        user = await self.store.update(
            User, phone, {"is_active": is_active, "updated_at": utcnow()}
        )
        logger.info(f"User {phone} {'activated' if is_active else 'deactivated'}")
        return user

    async def get_stats(self) -> dict[str, int]:
        users = await self.list_users()
        recent_cutoff = utcnow() - timedelta(days=RECENT_SIGNUP_DAYS)

        return {
            "total": len(users),
            "active": sum(1 for u in users if u.is_active),
            "verified": sum(1 for u in users if u.is_verified),
            "inactive": sum(1 for u in users if not u.is_active),
            "recent_signups": sum(
                1 for u in users if u.created_at and u.created_at >= recent_cutoff
            ),
        }
