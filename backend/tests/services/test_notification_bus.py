"""Notification Bus — fan-out, failure isolation, unsubscribe."""

from formulary.core.events import FormulaImported
from formulary.services.notification_bus import NotificationBus, NullNotificationSink


async def test_sync_and_async_handlers_receive_events_in_order():
    bus = NotificationBus()
    seen = []

    async def async_handler(event):
        seen.append(("async", event.formula_name))

    bus.subscribe(lambda event: seen.append(("sync", event.formula_name)))
    bus.subscribe(async_handler)

    await bus.publish(FormulaImported("Cream"))

    assert seen == [("sync", "Cream"), ("async", "Cream")]


async def test_failing_handler_does_not_block_others():
    bus = NotificationBus()
    seen = []

    def broken(event):
        raise RuntimeError("subscriber down")

    bus.subscribe(broken)
    bus.subscribe(seen.append)

    await bus.publish(FormulaImported("Cream"))

    assert len(seen) == 1


async def test_unsubscribe_is_idempotent():
    bus = NotificationBus()
    seen = []
    unsubscribe = bus.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    await bus.publish(FormulaImported("Cream"))

    assert seen == []
    assert bus.subscriber_count == 0


async def test_null_sink_accepts_events():
    assert await NullNotificationSink().publish(FormulaImported("Cream")) is None
