"""
Tests for AuditRecorder.
"""

from travelogue.domain.events import EntityChanged
from travelogue.infra.audit import AuditRecorder
from travelogue.shared.types import AuditAction, EntityType


class RecordingStore:
    def __init__(self):
        self.rows = []

    def append(self, **row):
        self.rows.append(row)


class BrokenStore:
    def append(self, **row):
        raise RuntimeError("audit table is gone")


class TestAuditRecorder:
    def test_record_splits_entity_ref(self):
        store = RecordingStore()
        recorder = AuditRecorder(store)

        assert recorder.record("alice", AuditAction.EDIT, "location/loc-1", {"name": "Kyoto"})

        assert store.rows == [
            {
                "actor": "alice",
                "actor_type": "user",
                "entity_type": "location",
                "entity_id": "loc-1",
                "action": "edit",
                "payload": {"name": "Kyoto"},
            }
        ]

    def test_default_actor_is_system(self):
        store = RecordingStore()
        AuditRecorder(store).record(None, "delete", "collection/c-1")
        assert store.rows[0]["actor"] == "system"
        assert store.rows[0]["actor_type"] == "system"
        assert store.rows[0]["payload"] is None

    def test_failing_store_is_swallowed(self):
        recorder = AuditRecorder(BrokenStore())
        assert recorder.record("alice", AuditAction.CREATE, "location/loc-1") is False

    def test_handle_event(self):
        store = RecordingStore()
        recorder = AuditRecorder(store)
        event = EntityChanged(
            EntityType.LOCATION,
            "y-1",
            AuditAction.SORT,
            year_id="y-1",
            actor="alice",
            payload={"orderedIds": ["b", "a"]},
        )

        assert recorder.handle(event)
        assert store.rows[0]["entity_type"] == "location"
        assert store.rows[0]["entity_id"] == "y-1"
        assert store.rows[0]["action"] == "sort"
        assert store.rows[0]["payload"] == {"orderedIds": ["b", "a"]}
