"""
Tests for the entity change event bus.
"""

from concurrent.futures import ThreadPoolExecutor

from travelogue.domain.events import EntityChanged, EventBus
from travelogue.shared.types import AuditAction, EntityType


def _event(**overrides):
    values = {
        "entity_type": EntityType.LOCATION,
        "entity_id": "loc-1",
        "action": AuditAction.CREATE,
        "year_id": "year-1",
    }
    values.update(overrides)
    return EntityChanged(**values)


class TestEntityChanged:
    def test_entity_ref(self):
        assert _event().entity_ref == "location/loc-1"
        assert _event(entity_type=EntityType.COLLECTION_ASSET, entity_id="c-1").entity_ref == (
            "collection_asset/c-1"
        )


class TestEventBus:
    def test_handlers_run_in_subscription_order(self):
        bus = EventBus()
        seen = []
        bus.subscribe(lambda event: seen.append(("first", event.entity_id)))
        bus.subscribe(lambda event: seen.append(("second", event.entity_id)))

        bus.publish(_event())

        assert seen == [("first", "loc-1"), ("second", "loc-1")]

    def test_failing_handler_does_not_block_the_next(self):
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(seen.append)

        event = _event()
        bus.publish(event)

        assert seen == [event]

    def test_executor_dispatch(self):
        seen = []
        with ThreadPoolExecutor(max_workers=1) as executor:
            bus = EventBus(executor=executor)
            bus.subscribe(seen.append)
            bus.publish(_event())
        assert len(seen) == 1
