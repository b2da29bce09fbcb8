"""
FastAPI Dependencies

Everything a route needs is built from objects the lifespan placed on
``app.state``: settings, the record store and the push service.
"""

from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from delivery_app.core.config import Settings
from delivery_app.core.security import decode_access_token
from delivery_app.database import RecordStore
from delivery_app.errors import AuthError
from delivery_app.services.assignment import AssignmentCoordinator
from delivery_app.services.identity import IdentityRegistry
from delivery_app.services.orders import OrderLedger
from delivery_app.services.push.base import BasePushService
from delivery_app.services.push.dispatch import RiderNotifier
from delivery_app.services.rider_accounts import RiderAccounts
from delivery_app.services.riders import RiderDirectory

bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_push_service(request: Request) -> BasePushService:
    return request.app.state.push_service


def get_notifier(
    store: RecordStore = Depends(get_store),
    push_service: BasePushService = Depends(get_push_service),
    settings: Settings = Depends(get_app_settings),
) -> RiderNotifier:
    return RiderNotifier(store, push_service, settings.push_dispatch)


def get_order_ledger(
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> OrderLedger:
    return OrderLedger(store, default_limit=settings.order_scan_limit)


def get_rider_directory(store: RecordStore = Depends(get_store)) -> RiderDirectory:
    return RiderDirectory(store)


def get_coordinator(
    store: RecordStore = Depends(get_store),
    ledger: OrderLedger = Depends(get_order_ledger),
    notifier: RiderNotifier = Depends(get_notifier),
) -> AssignmentCoordinator:
    return AssignmentCoordinator(store, ledger, notifier)


def get_identity_registry(
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> IdentityRegistry:
    return IdentityRegistry(store, settings)


def get_rider_accounts(
    identities: IdentityRegistry = Depends(get_identity_registry),
) -> RiderAccounts:
    return RiderAccounts(identities)


def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Claims of a valid bearer identity assertion."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Token required")
    return decode_access_token(settings, credentials.credentials)
