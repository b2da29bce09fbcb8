"""
Rider Accounts

Registration and login for riders. A rider has two records: credentials
in ``users`` (keyed by phone) and a profile in ``riders`` (keyed by
rider id). Registration writes both in one transaction, so there is
never a credential without a profile or a profile without a credential.
"""

import logging
from typing import Optional

from delivery_app.database import utcnow
from delivery_app.errors import AuthError, ConditionFailedError, ConflictError, ValidationError
from delivery_app.models import Rider, User, UserRole, generate_id
from delivery_app.services.identity import (
    IdentityRegistry,
    validate_email,
    validate_password,
    validate_phone,
)
from delivery_app.services.riders import build_rider_profile

logger = logging.getLogger(__name__)


class RiderAccounts:
    """Dual-record rider registration and rider login."""

    def __init__(self, identities: IdentityRegistry):
        self.identities = identities
        self.store = identities.store

    async def register_rider(
        self,
        name: Optional[str],
        phone: Optional[str],
        password: Optional[str],
        vehicle_type: Optional[str],
        vehicle_number: Optional[str],
        email: Optional[str] = None,
    ) -> tuple[Rider, str]:
        """
        Create a rider's credentials and profile together.

        Raises:
            ValidationError: Missing fields, malformed phone or email, short password
            ConflictError: Phone already registered (nothing is written)
        """
        if not name or not phone or not password or not vehicle_type or not vehicle_number:
            raise ValidationError(
                "Name, phone, password, vehicle type, and vehicle number are required"
            )
        validate_phone(phone)
        email = validate_email(email)
        validate_password(password)

        if await self.store.get(User, phone) is not None:
            raise ConflictError("User with this phone number already exists")

        password_hash = await self.identities.hash_password(password)
        rider_id = generate_id("RDR")
        now = utcnow()

        user = User(
            phone=phone,
            name=name,
            email=email,
            password_hash=password_hash,
            role=UserRole.RIDER.value,
            rider_id=rider_id,
            is_active=True,
            is_verified=False,
            created_at=now,
            updated_at=now,
        )
        rider = build_rider_profile(
            rider_id,
            name,
            phone,
            now,
            email=email,
            vehicle_type=vehicle_type,
            vehicle_number=vehicle_number,
        )

        try:
            async with self.store.transaction() as tx:
                await tx.put(user)
                await tx.put(rider)
        except ConditionFailedError as e:
            logger.warning(f"Rider registration for {phone} lost a race: {e.message}")
            raise ConflictError("User with this phone number already exists") from e

        logger.info(f"Rider registered: {rider_id} ({phone})")
        return rider, self.identities.issue_token(user)

    async def login_rider(
        self,
        phone: Optional[str],
        password: Optional[str],
    ) -> tuple[User, Optional[Rider], str]:
        """
        Authenticate a rider and load their profile.

        Returns:
            (credentials, profile or None, identity assertion)

        Raises:
            ValidationError: Phone or password missing
            AuthError: Unknown phone, not a rider, or wrong password
        """
        if not phone or not password:
            raise ValidationError("Phone and password are required")

        user = await self.store.get(User, phone)
        if user is None or user.role != UserRole.RIDER.value:
            raise AuthError("Invalid credentials or not a rider account")

        user = await self.identities.authenticate(phone, password)

        profile = None
        if user.rider_id:
            profile = await self.store.get(Rider, user.rider_id)
        if profile is None:
            logger.warning(f"Rider {phone} has no profile record (riderId={user.rider_id})")

        user = await self.store.update(User, phone, {"last_login": utcnow()})
        logger.info(f"Rider logged in: {user.rider_id} ({phone})")
        return user, profile, self.identities.issue_token(user)
