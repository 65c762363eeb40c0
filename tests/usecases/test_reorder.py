"""
Reorder and move tests for locations and collections.
"""

import uuid

import pytest

from travelogue.infra.exceptions import NotFoundError, ValidationError


@pytest.fixture
def places(service, year):
    kyoto = service.create_location(year.id, {"name": "Kyoto", "slug": "kyoto-24"})
    osaka = service.create_location(year.id, {"name": "Osaka", "slug": "osaka-24"})
    nara = service.create_location(year.id, {"name": "Nara", "slug": "nara-24"})
    return kyoto, osaka, nara


def _indices(service, year):
    return {loc.name: loc.order_index for loc in service.list_locations(year.id)}


class TestReorderLocations:
    def test_swap_two(self, service, year):
        kyoto = service.create_location(year.id, {"name": "Kyoto", "slug": "kyoto-24"})
        osaka = service.create_location(year.id, {"name": "Osaka", "slug": "osaka-24"})

        reordered = service.reorder_locations(year.id, [osaka.id, kyoto.id])

        assert [(loc.name, loc.order_index) for loc in reordered] == [("Osaka", "1.0"), ("Kyoto", "2.0")]
        assert [loc.name for loc in service.list_locations(year.id)] == ["Osaka", "Kyoto"]

    def test_list_cache_sees_new_order(self, service, year, places):
        kyoto, osaka, nara = places
        assert [loc.name for loc in service.list_locations(year.id)] == ["Kyoto", "Osaka", "Nara"]

        service.reorder_locations(year.id, [nara.id, kyoto.id, osaka.id])

        assert [loc.name for loc in service.list_locations(year.id)] == ["Nara", "Kyoto", "Osaka"]

    @pytest.mark.parametrize(
        "pick",
        [
            lambda k, o, n: [k.id, o.id],
            lambda k, o, n: [k.id, o.id, n.id, "stranger"],
            lambda k, o, n: [k.id, o.id, o.id],
            lambda k, o, n: [],
            lambda k, o, n: [k.id, "", n.id],
        ],
        ids=["omitted", "extra", "duplicate", "empty", "blank"],
    )
    def test_rejects_anything_but_a_permutation(self, service, year, places, pick):
        before = _indices(service, year)
        with pytest.raises(ValidationError) as exc:
            service.reorder_locations(year.id, pick(*places))
        assert exc.value.field == "orderedIds"
        assert _indices(service, year) == before

    def test_ids_from_another_year(self, service, year, other_year, places):
        lisbon = service.create_location(other_year.id, {"name": "Lisbon", "slug": "lisbon-25"})
        kyoto, osaka, nara = places
        with pytest.raises(ValidationError):
            service.reorder_locations(year.id, [lisbon.id, kyoto.id, osaka.id])
        with pytest.raises(ValidationError):
            service.reorder_locations(other_year.id, [kyoto.id])

    def test_failure_midway_leaves_every_index(self, catalog, service, year, places, monkeypatch):
        kyoto, osaka, nara = places
        store = catalog.backend.locations
        original = store.write_order_index
        written = []

        def failing_write(tx, parent_id, entity_id, order_index, now):
            written.append(entity_id)
            if len(written) == 2:
                raise RuntimeError("storage went away")
            original(tx, parent_id, entity_id, order_index, now)

        monkeypatch.setattr(store, "write_order_index", failing_write)
        with pytest.raises(RuntimeError):
            service.reorder_locations(year.id, [nara.id, osaka.id, kyoto.id])

        assert _indices(service, year) == {"Kyoto": "1.0", "Osaka": "2.0", "Nara": "3.0"}
        assert service.audit_entries(action="sort") == []

    def test_sort_is_audited_against_the_year(self, service, year, places):
        kyoto, osaka, nara = places
        service.reorder_locations(year.id, [osaka.id, nara.id, kyoto.id], actor="editor@example.com")

        (entry,) = service.audit_entries(entity_type="location", action="sort")
        assert entry.entity_id == year.id
        assert entry.actor == "editor@example.com"
        assert entry.actor_type == "user"
        assert entry.payload == {"orderedIds": [osaka.id, nara.id, kyoto.id]}

    def test_reorder_via_location(self, service, year, places):
        kyoto, osaka, nara = places
        reordered = service.reorder_locations_via(kyoto.id, "2024", [kyoto.id, nara.id, osaka.id])
        assert [loc.name for loc in reordered] == ["Kyoto", "Nara", "Osaka"]

    def test_reorder_via_location_of_another_year(self, service, year, other_year, places):
        kyoto, osaka, nara = places
        with pytest.raises(ValidationError) as exc:
            service.reorder_locations_via(kyoto.id, other_year.id, [kyoto.id])
        assert exc.value.field == "yearId"

    def test_reorder_via_unknown_location(self, service, year, places):
        kyoto, osaka, nara = places
        with pytest.raises(NotFoundError):
            service.reorder_locations_via(str(uuid.uuid4()), year.id, [kyoto.id, osaka.id, nara.id])

    def test_reorder_via_requires_location_id(self, service, year):
        with pytest.raises(ValidationError) as exc:
            service.reorder_locations_via("  ", year.id, ["a"])
        assert exc.value.field == "locationId"

    def test_unknown_year(self, service):
        with pytest.raises(NotFoundError):
            service.reorder_locations("1999", ["a"])


class TestMoveLocation:
    def test_move_up_and_down(self, service, year, places):
        kyoto, osaka, nara = places

        moved = service.move_location(year.id, nara.id, "up")
        assert [loc.name for loc in moved] == ["Kyoto", "Nara", "Osaka"]

        moved = service.move_location(year.id, kyoto.id, "down")
        assert [loc.name for loc in moved] == ["Nara", "Kyoto", "Osaka"]
        assert [loc.order_index for loc in moved] == ["1.0", "2.0", "3.0"]

    def test_move_past_either_end_changes_nothing(self, service, year, places):
        kyoto, osaka, nara = places
        assert [loc.name for loc in service.move_location(year.id, kyoto.id, "up")] == ["Kyoto", "Osaka", "Nara"]
        assert [loc.name for loc in service.move_location(year.id, nara.id, "down")] == ["Kyoto", "Osaka", "Nara"]
        assert service.audit_entries(action="sort") == []

    def test_unknown_id(self, service, year, places):
        with pytest.raises(ValidationError) as exc:
            service.move_location(year.id, "missing", "up")
        assert exc.value.field == "id"

    def test_unknown_direction(self, service, year, places):
        with pytest.raises(ValueError):
            service.move_location(year.id, places[0].id, "sideways")


class TestReorderCollections:
    def test_reorder(self, service, year):
        first = service.create_collection(year.id, {"title": "Temples", "slug": "temples"})
        second = service.create_collection(year.id, {"title": "Food", "slug": "food"})

        reordered = service.reorder_collections(year.id, [second.id, first.id])

        assert [(c.slug, c.order_index) for c in reordered] == [("food", "1.0"), ("temples", "2.0")]
        assert [c.slug for c in service.list_collections(year.id)] == ["food", "temples"]

    def test_move(self, service, year):
        first = service.create_collection(year.id, {"title": "Temples", "slug": "temples"})
        service.create_collection(year.id, {"title": "Food", "slug": "food"})
        moved = service.move_collection(year.id, first.id, "down")
        assert [c.slug for c in moved] == ["food", "temples"]
