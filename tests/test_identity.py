import pytest

from delivery_app.core.security import create_access_token, decode_access_token
from delivery_app.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


async def test_register_and_login(identities, settings):
    user, token = await identities.register_user(
        name="Asha", phone="9876543210", password="secret1", email="asha@example.com"
    )

    assert user.role == "user"
    assert user.is_active is True
    assert user.password_hash != "secret1"

    claims = decode_access_token(settings, token)
    assert claims["phone"] == "9876543210"
    assert claims["role"] == "user"
    assert claims["email"] == "asha@example.com"
    assert "riderId" not in claims

    logged_in, _ = await identities.login("9876543210", "secret1")
    assert logged_in.last_login is not None


@pytest.mark.parametrize("fields", [
    {"name": "", "phone": "9876543210", "password": "secret1"},
    {"name": "Asha", "phone": "98765", "password": "secret1"},
    {"name": "Asha", "phone": "9876543210", "password": "123"},
    {"name": "Asha", "phone": "9876543210", "password": "secret1", "email": "not-an-email"},
    {"name": "Asha", "phone": "9876543210", "password": "secret1", "role": "rider"},
])
async def test_register_validation(identities, fields):
    with pytest.raises(ValidationError):
        await identities.register_user(**fields)
    assert await identities.list_users() == []


async def test_duplicate_phone(identities):
    await identities.register_user(name="Asha", phone="9876543210", password="secret1")
    with pytest.raises(ConflictError):
        await identities.register_user(name="Other", phone="9876543210", password="secret2")


async def test_login_failures(identities):
    await identities.register_user(name="Asha", phone="9876543210", password="secret1")

    with pytest.raises(AuthError):
        await identities.login("9876543210", "wrong-password")
    with pytest.raises(AuthError):
        await identities.login("9000000000", "secret1")
    with pytest.raises(ValidationError):
        await identities.login("9876543210", "")


async def test_deactivated_account_cannot_log_in(identities):
    await identities.register_user(name="Asha", phone="9876543210", password="secret1")
    await identities.set_active("9876543210", False)

    with pytest.raises(PermissionDeniedError):
        await identities.login("9876543210", "secret1")

    await identities.set_active("9876543210", True)
    user, _ = await identities.login("9876543210", "secret1")
    assert user.is_active is True


async def test_set_active_validation(identities):
    with pytest.raises(ValidationError):
        await identities.set_active("9876543210", "false")
    with pytest.raises(NotFoundError):
        await identities.set_active("9876543210", False)


async def test_get_user_and_stats(identities):
    await identities.register_user(name="Asha", phone="9876543210", password="secret1")
    await identities.register_user(name="Bala", phone="9123456789", password="secret1")
    await identities.set_active("9123456789", False)

    assert (await identities.get_user("9876543210")).name == "Asha"
    with pytest.raises(NotFoundError):
        await identities.get_user("9000000000")

    assert await identities.get_stats() == {
        "total": 2,
        "active": 1,
        "verified": 0,
        "inactive": 1,
        "recent_signups": 2,
    }


def test_token_tampering_and_expiry(settings):
    token = create_access_token(settings, phone="9876543210", name="Asha", role="user")

    with pytest.raises(AuthError, match="Invalid token"):
        decode_access_token(settings.model_copy(update={"jwt_secret": "other"}), token)

    expired = create_access_token(
        settings.model_copy(update={"jwt_expires_minutes": -1}),
        phone="9876543210",
        name="Asha",
        role="user",
    )
    with pytest.raises(AuthError, match="expired"):
        decode_access_token(settings, expired)
