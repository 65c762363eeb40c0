"""
Location lifecycle tests, run against both storage backends.
"""

import pytest

from travelogue.infra.exceptions import (
    ConflictError,
    HasCollectionsError,
    NotFoundError,
    ValidationError,
)


def _location(service, year, name, slug, **extra):
    return service.create_location(year.id, {"name": name, "slug": slug, **extra})


class TestCreateLocation:
    def test_appends_in_order(self, service, year):
        kyoto = _location(service, year, "Kyoto", "Kyoto 24")
        osaka = _location(service, year, "Osaka", "osaka-24")
        nara = _location(service, year, "Nara", "nara-24")

        assert kyoto.slug == "kyoto-24"
        assert [loc.order_index for loc in (kyoto, osaka, nara)] == ["1.0", "2.0", "3.0"]
        assert kyoto.collection_count == 0
        assert kyoto.year_id == year.id
        assert kyoto.created_at.endswith("Z")

    def test_explicit_order_index(self, service, year):
        _location(service, year, "Kyoto", "kyoto-24")
        first = _location(service, year, "Osaka", "osaka-24", orderIndex=" 0.5 ")
        assert first.order_index == "0.5"
        assert [loc.name for loc in service.list_locations(year.id)] == ["Osaka", "Kyoto"]

    def test_optional_fields_are_trimmed(self, service, year):
        created = _location(service, year, "  Kyoto  ", "kyoto-24", summary="  ", coverAssetId=" a-1 ")
        assert created.name == "Kyoto"
        assert created.summary is None
        assert created.cover_asset_id == "a-1"

    def test_invalid_slug(self, service, year):
        with pytest.raises(ValidationError) as exc:
            _location(service, year, "Kyoto", "Kyoto!!")
        assert exc.value.field == "slug"
        assert service.list_locations(year.id) == []

    def test_missing_name(self, service, year):
        with pytest.raises(ValidationError) as exc:
            service.create_location(year.id, {"slug": "kyoto-24"})
        assert exc.value.field == "name"

    def test_duplicate_slug_in_same_year(self, service, year):
        _location(service, year, "Kyoto", "kyoto-24")
        with pytest.raises(ConflictError) as exc:
            _location(service, year, "Kyoto again", "KYOTO-24")
        assert exc.value.code == "CONFLICT"
        assert exc.value.field == "slug"

    def test_same_slug_in_another_year(self, service, year, other_year):
        _location(service, year, "Kyoto", "kyoto-24")
        again = _location(service, other_year, "Kyoto", "kyoto-24")
        assert again.order_index == "1.0"

    def test_unknown_year(self, service):
        with pytest.raises(NotFoundError):
            service.create_location("1999", {"name": "Kyoto", "slug": "kyoto-99"})

    def test_concurrent_appends_may_share_an_index(self, catalog, service, year, monkeypatch):
        _location(service, year, "Kyoto", "kyoto-24")
        _location(service, year, "Osaka", "osaka-24")
        # Both creators observed the same last index before either wrote.
        monkeypatch.setattr(catalog.backend.locations, "last_order_index", lambda tx, year_id: "2.0")

        nara = _location(service, year, "Nara", "nara-24")
        kobe = _location(service, year, "Kobe", "kobe-24")

        assert nara.order_index == kobe.order_index == "3.0"
        assert len(service.list_locations(year.id)) == 4


class TestReadLocation:
    def test_get(self, service, year):
        created = _location(service, year, "Kyoto", "kyoto-24")
        assert service.get_location("2024", created.id) == created

    def test_location_from_another_year_is_not_found(self, service, year, other_year):
        created = _location(service, year, "Kyoto", "kyoto-24")
        with pytest.raises(NotFoundError):
            service.get_location(other_year.id, created.id)

    def test_list_reflects_writes(self, service, year):
        assert service.list_locations(year.id) == []
        _location(service, year, "Kyoto", "kyoto-24")
        assert [loc.name for loc in service.list_locations(year.id)] == ["Kyoto"]

    def test_write_during_list_read_is_not_hidden(self, catalog, service, year, monkeypatch):
        _location(service, year, "Kyoto", "kyoto-24")
        read_rows = catalog.backend.locations.list_for_year

        def read_then_write(year_id):
            rows = read_rows(year_id)
            monkeypatch.setattr(catalog.backend.locations, "list_for_year", read_rows)
            _location(service, year, "Osaka", "osaka-24")
            return rows

        monkeypatch.setattr(catalog.backend.locations, "list_for_year", read_then_write)

        assert [loc.name for loc in service.list_locations(year.id)] == ["Kyoto"]
        assert [loc.name for loc in service.list_locations(year.id)] == ["Kyoto", "Osaka"]


class TestUpdateLocation:
    def test_returns_only_changed_fields(self, service, year):
        created = _location(service, year, "Kyoto", "kyoto-24", summary="Temples")
        result = service.update_location(
            year.id, created.id, {"name": "Kyoto", "summary": "Temples and tea"}
        )
        assert result.changes == {"summary": "Temples and tea"}
        assert result.record.summary == "Temples and tea"
        assert result.record.updated_at >= created.updated_at

    def test_no_effective_change(self, service, year):
        created = _location(service, year, "Kyoto", "kyoto-24")
        with pytest.raises(ValidationError) as exc:
            service.update_location(year.id, created.id, {"name": " Kyoto ", "slug": "kyoto-24"})
        assert exc.value.message == "Provide at least one field that changes."

    def test_slug_conflict(self, service, year):
        _location(service, year, "Kyoto", "kyoto-24")
        osaka = _location(service, year, "Osaka", "osaka-24")
        with pytest.raises(ConflictError) as exc:
            service.update_location(year.id, osaka.id, {"slug": "kyoto-24"})
        assert exc.value.field == "slug"

    def test_blank_order_index_rejected(self, service, year):
        created = _location(service, year, "Kyoto", "kyoto-24")
        with pytest.raises(ValidationError) as exc:
            service.update_location(year.id, created.id, {"orderIndex": "  "})
        assert exc.value.field == "orderIndex"

    def test_clearing_optional_field(self, service, year):
        created = _location(service, year, "Kyoto", "kyoto-24", summary="Temples")
        result = service.update_location(year.id, created.id, {"summary": ""})
        assert result.changes == {"summary": None}
        assert result.record.summary is None

    def test_missing_id(self, service, year):
        with pytest.raises(ValidationError) as exc:
            service.update_location(year.id, None, {"name": "Kyoto"})
        assert exc.value.field == "id"

    def test_unknown_location(self, service, year):
        with pytest.raises(NotFoundError):
            service.update_location(year.id, "missing", {"name": "Kyoto"})


class TestDeleteLocation:
    def test_returns_snapshot(self, service, year):
        created = _location(service, year, "Kyoto", "kyoto-24")
        deleted = service.delete_location(year.id, created.id)
        assert deleted.id == created.id
        assert service.list_locations(year.id) == []
        with pytest.raises(NotFoundError):
            service.delete_location(year.id, created.id)

    def test_blocked_while_collections_reference_it(self, service, year):
        kyoto = _location(service, year, "Kyoto", "kyoto-24")
        service.create_collection(year.id, {"title": "Temples", "slug": "temples", "locationId": kyoto.id})

        with pytest.raises(HasCollectionsError) as exc:
            service.delete_location(year.id, kyoto.id)
        assert exc.value.code == "HAS_COLLECTIONS"
        assert service.get_location(year.id, kyoto.id).collection_count == 1
