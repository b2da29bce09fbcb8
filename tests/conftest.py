"""Shared fixtures: a throwaway SQLite record store and a recording push service."""

from typing import Optional

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from delivery_app.core.config import EnvironmentMode, Settings
from delivery_app.database import RecordStore
from delivery_app.main import create_app
from delivery_app.services.assignment import AssignmentCoordinator
from delivery_app.services.identity import IdentityRegistry
from delivery_app.services.orders import OrderLedger
from delivery_app.services.push.base import BasePushService, PushResult
from delivery_app.services.push.dispatch import RiderNotifier
from delivery_app.services.rider_accounts import RiderAccounts
from delivery_app.services.riders import RiderDirectory


class RecordingPushService(BasePushService):
    """Keeps every send in memory; can be told to fail or blow up."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False
        self.explode = False

    @property
    def provider_name(self) -> str:
        return "recording"

    async def send(
        self,
        token: str,
        title: str,
        body: str,
        data: Optional[dict[str, str]] = None,
    ) -> PushResult:
        if self.explode:
            raise RuntimeError("push backend down")
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        if self.fail:
            return PushResult(success=False, error_message="rejected", provider="recording")
        return PushResult(success=True, message_id=f"msg-{len(self.sent)}", provider="recording")

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env_mode=EnvironmentMode.DEVELOPMENT,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'delivery.db'}",
        jwt_secret="test-secret-0123456789-abcdefghijklmnop",
        bcrypt_salt_rounds=4,
        mock_push_failure_rate=0.0,
    )


@pytest_asyncio.fixture
async def store(settings):
    store = RecordStore(settings.database_url)
    await store.create_schema()
    yield store
    await store.close()


@pytest.fixture
def push() -> RecordingPushService:
    return RecordingPushService()


@pytest.fixture
def ledger(store) -> OrderLedger:
    return OrderLedger(store)


@pytest.fixture
def riders(store) -> RiderDirectory:
    return RiderDirectory(store)


@pytest.fixture
def notifier(store, push) -> RiderNotifier:
    return RiderNotifier(store, push)


@pytest.fixture
def coordinator(store, ledger, notifier) -> AssignmentCoordinator:
    return AssignmentCoordinator(store, ledger, notifier)


@pytest.fixture
def identities(store, settings) -> IdentityRegistry:
    return IdentityRegistry(store, settings)


@pytest.fixture
def accounts(identities) -> RiderAccounts:
    return RiderAccounts(identities)


@pytest.fixture
def client(settings, push):
    app = create_app(settings)
    with TestClient(app) as test_client:
        app.state.push_service = push
        yield test_client


SAMPLE_ITEMS = [{"name": "Veg Thali", "qty": 2, "price": 120}]
SAMPLE_CUSTOMER = {"name": "Asha", "phone": "9876543210", "address": "12 Temple Road"}


@pytest.fixture
def place_order(ledger):
    async def _place(**overrides):
        fields = {
            "items": SAMPLE_ITEMS,
            "customer": dict(SAMPLE_CUSTOMER),
            "total_amount": 240,
        }
        fields.update(overrides)
        return await ledger.create_order(**fields)
    return _place


@pytest.fixture
def available_rider(riders):
    async def _rider(name="Ravi", phone="9000000001", token="device-token-1"):
        rider = await riders.create_rider(name=name, phone=phone, vehicle_type="Bike")
        if token:
            await riders.update_push_token(rider.id, token)
        return await riders.update_status(rider.id, "available")
    return _rider
