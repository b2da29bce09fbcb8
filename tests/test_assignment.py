import asyncio
from types import SimpleNamespace

import pytest

from delivery_app.database import StoreSession
from delivery_app.errors import ConflictError, NotFoundError, ValidationError
from delivery_app.models import Rider


async def test_assign_rider_binds_both_records(place_order, available_rider, coordinator, riders, push):
    order = await place_order()
    rider = await available_rider()

    assigned = await coordinator.assign_rider(order.id, rider.id)

    assert assigned.status == "inProgress"
    assert assigned.rider_id == rider.id
    assert assigned.rider_name == "Ravi"

    stored_rider = await riders.get_rider(rider.id)
    assert stored_rider.status == "on-delivery"
    assert stored_rider.current_order_id == order.id

    assert len(push.sent) == 1
    assert push.sent[0]["token"] == "device-token-1"
    assert push.sent[0]["title"] == "New order assigned"
    assert push.sent[0]["data"] == {"type": "order_assigned", "orderId": order.id}


async def test_assign_rider_uses_supplied_name(place_order, available_rider, coordinator):
    order = await place_order()
    rider = await available_rider()
    assigned = await coordinator.assign_rider(order.id, rider.id, "Ravi K")
    assert assigned.rider_name == "Ravi K"


async def test_assign_rider_requires_rider_id(place_order, coordinator):
    order = await place_order()
    with pytest.raises(ValidationError):
        await coordinator.assign_rider(order.id, None)


async def test_assign_to_missing_order_writes_nothing(available_rider, coordinator, riders, ledger, push):
    rider = await available_rider()

    with pytest.raises(NotFoundError):
        await coordinator.assign_rider("ORD-missing", rider.id)

    assert await ledger.list_orders() == []
    assert (await riders.get_rider(rider.id)).status == "available"
    assert push.sent == []


async def test_assign_missing_rider(place_order, coordinator, ledger):
    order = await place_order()
    with pytest.raises(NotFoundError):
        await coordinator.assign_rider(order.id, "RDR-missing")
    assert (await ledger.get_order(order.id)).status == "placed"


async def test_rider_cannot_be_double_booked(place_order, available_rider, coordinator, ledger, riders):
    first = await place_order()
    second = await place_order()
    rider = await available_rider()

    await coordinator.assign_rider(first.id, rider.id)
    with pytest.raises(ConflictError):
        await coordinator.assign_rider(second.id, rider.id)

    assert (await ledger.get_order(second.id)).status == "placed"
    assert (await ledger.get_order(second.id)).rider_id is None
    assert (await riders.get_rider(rider.id)).current_order_id == first.id


async def test_concurrent_assignments_book_rider_once(place_order, available_rider, coordinator, ledger, riders):
    first = await place_order()
    second = await place_order()
    rider = await available_rider()

    results = await asyncio.gather(
        coordinator.assign_rider(first.id, rider.id),
        coordinator.assign_rider(second.id, rider.id),
        return_exceptions=True,
    )

    conflicts = [r for r in results if isinstance(r, ConflictError)]
    assigned = [r for r in results if not isinstance(r, Exception)]
    assert len(conflicts) == 1
    assert len(assigned) == 1

    winner = assigned[0]
    loser = second if winner.id == first.id else first
    assert (await riders.get_rider(rider.id)).current_order_id == winner.id
    assert (await ledger.get_order(loser.id)).status == "placed"
    assert (await ledger.get_order(loser.id)).rider_id is None


async def test_assignment_with_stale_rider_read_is_rejected(
    place_order, available_rider, coordinator, ledger, riders, monkeypatch
):
    first = await place_order()
    second = await place_order()
    rider = await available_rider()
    await coordinator.assign_rider(first.id, rider.id)

    # The rider still looks available, as it did before the first booking committed
    real_get = StoreSession.get

    async def stale_rider_read(self, model, key):
        if model is Rider:
            monkeypatch.setattr(StoreSession, "get", real_get)
            return SimpleNamespace(status="available", is_active=True, name="Ravi")
        return await real_get(self, model, key)

    monkeypatch.setattr(StoreSession, "get", stale_rider_read)

    with pytest.raises(ConflictError, match="changed during assignment"):
        await coordinator.assign_rider(second.id, rider.id)

    assert (await ledger.get_order(second.id)).status == "placed"
    assert (await ledger.get_order(second.id)).rider_id is None
    assert (await riders.get_rider(rider.id)).current_order_id == first.id


async def test_order_cannot_be_assigned_twice(place_order, available_rider, coordinator, riders):
    order = await place_order()
    ravi = await available_rider()
    meena = await available_rider(name="Meena", phone="9000000002", token="device-token-2")

    await coordinator.assign_rider(order.id, ravi.id)
    with pytest.raises(ConflictError):
        await coordinator.assign_rider(order.id, meena.id)

    assert (await riders.get_rider(meena.id)).status == "available"


async def test_inactive_or_offline_rider_is_rejected(place_order, riders, coordinator):
    order = await place_order()
    offline = await riders.create_rider(name="Ravi", phone="9000000001")
    with pytest.raises(ConflictError):
        await coordinator.assign_rider(order.id, offline.id)

    await riders.update_status(offline.id, "available")
    await riders.delete_rider(offline.id)
    with pytest.raises(ConflictError):
        await coordinator.assign_rider(order.id, offline.id)


async def test_push_failure_does_not_undo_assignment(place_order, available_rider, coordinator, ledger, push):
    order = await place_order()
    rider = await available_rider()
    push.explode = True

    assigned = await coordinator.assign_rider(order.id, rider.id)

    assert assigned.status == "inProgress"
    assert (await ledger.get_order(order.id)).rider_id == rider.id


async def test_rider_without_token_is_assigned_silently(place_order, available_rider, coordinator, push):
    order = await place_order()
    rider = await available_rider(token=None)

    assigned = await coordinator.assign_rider(order.id, rider.id)

    assert assigned.status == "inProgress"
    assert push.sent == []


async def test_status_update_notifies_assigned_rider(place_order, available_rider, coordinator, push):
    order = await place_order()
    rider = await available_rider()
    await coordinator.assign_rider(order.id, rider.id)

    delivered = await coordinator.update_order_status(order.id, "delivered")

    assert delivered.delivered_at is not None
    assert push.sent[-1]["title"] == "Order update"
    assert push.sent[-1]["data"] == {"type": "order_status", "orderId": order.id, "status": "delivered"}


async def test_status_update_without_rider_sends_nothing(place_order, coordinator, push):
    order = await place_order()
    await coordinator.update_order_status(order.id, "cancelled")
    assert push.sent == []


async def test_full_delivery_cycle_counts_delivery(place_order, available_rider, coordinator, riders):
    order = await place_order()
    rider = await available_rider()

    await coordinator.assign_rider(order.id, rider.id)
    await coordinator.update_order_status(order.id, "delivered")
    finished = await riders.update_status(rider.id, "available")

    assert finished.total_deliveries == 1
    assert finished.current_order_id is None
