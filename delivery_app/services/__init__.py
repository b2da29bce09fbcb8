"""
Services Module

Business logic behind the API. Each service takes the record store
(and where needed settings or the push service) in its constructor;
routes build them per request from what the lifespan put on app.state.

Services:
    - orders: Order ledger (creation, status, queries, stats)
    - riders: Rider directory (profiles, status cycle, push token)
    - assignment: Rider-to-order assignment and rider alerts
    - identity: Customer credentials and identity assertions
    - rider_accounts: Rider registration (credentials + profile) and login
    - push: Mock / Firebase push delivery
"""

from delivery_app.services.assignment import AssignmentCoordinator
from delivery_app.services.identity import IdentityRegistry
from delivery_app.services.orders import OrderLedger
from delivery_app.services.rider_accounts import RiderAccounts
from delivery_app.services.riders import RiderDirectory

__all__ = [
    "AssignmentCoordinator",
    "IdentityRegistry",
    "OrderLedger",
    "RiderAccounts",
    "RiderDirectory",
]
