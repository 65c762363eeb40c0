"""
Collection lifecycle and location assignment tests.
"""

import pytest

from travelogue.infra.exceptions import ConflictError, NotFoundError, ValidationError
from travelogue.shared.types import PublishStatus


@pytest.fixture
def kyoto(service, year):
    return service.create_location(year.id, {"name": "Kyoto", "slug": "kyoto-24"})


@pytest.fixture
def osaka(service, year):
    return service.create_location(year.id, {"name": "Osaka", "slug": "osaka-24"})


def _collection(service, year, title, slug, **extra):
    return service.create_collection(year.id, {"title": title, "slug": slug, **extra})


class TestCreateCollection:
    def test_defaults(self, service, year):
        created = _collection(service, year, "Temples", "Temples of Kyoto")
        assert created.slug == "temples-of-kyoto"
        assert created.status is PublishStatus.DRAFT
        assert created.published_at is None
        assert created.location_id is None
        assert created.order_index == "1.0"
        assert created.version == 1

    def test_published_on_create(self, service, year):
        created = _collection(service, year, "Temples", "temples", status="published")
        assert created.status is PublishStatus.PUBLISHED
        assert created.published_at.endswith("Z")

    def test_with_location_updates_count(self, service, year, kyoto):
        service.list_locations(year.id)
        created = _collection(service, year, "Temples", "temples", locationId=kyoto.id)
        assert created.location_id == kyoto.id
        assert service.list_locations(year.id)[0].collection_count == 1

    def test_location_from_another_year(self, service, year, other_year):
        elsewhere = service.create_location(other_year.id, {"name": "Lisbon", "slug": "lisbon-25"})
        with pytest.raises(ValidationError) as exc:
            _collection(service, year, "Trams", "trams", locationId=elsewhere.id)
        assert exc.value.field == "locationId"

    def test_unknown_location(self, service, year):
        with pytest.raises(ValidationError) as exc:
            _collection(service, year, "Trams", "trams", locationId="missing")
        assert exc.value.field == "locationId"

    def test_title_too_long(self, service, year):
        with pytest.raises(ValidationError) as exc:
            _collection(service, year, "x" * 201, "long")
        assert exc.value.field == "title"

    def test_invalid_status(self, service, year):
        with pytest.raises(ValidationError) as exc:
            _collection(service, year, "Temples", "temples", status="archived")
        assert exc.value.field == "status"

    def test_duplicate_slug(self, service, year):
        _collection(service, year, "Temples", "temples")
        with pytest.raises(ConflictError) as exc:
            _collection(service, year, "More temples", "Temples")
        assert exc.value.field == "slug"


class TestUpdateCollection:
    def test_publishing_stamps_published_at(self, service, year):
        created = _collection(service, year, "Temples", "temples")
        result = service.update_collection(year.id, created.id, {"status": "published"})
        assert result.changes == {"status": "published"}
        assert result.record.published_at is not None

    def test_move_between_locations(self, service, year, kyoto, osaka):
        created = _collection(service, year, "Temples", "temples", locationId=kyoto.id)
        result = service.update_collection(year.id, created.id, {"locationId": osaka.id})
        assert result.changes == {"locationId": osaka.id}
        counts = {loc.id: loc.collection_count for loc in service.list_locations(year.id)}
        assert counts == {kyoto.id: 0, osaka.id: 1}

    def test_no_effective_change(self, service, year):
        created = _collection(service, year, "Temples", "temples")
        with pytest.raises(ValidationError):
            service.update_collection(year.id, created.id, {"title": "Temples", "status": "draft"})

    def test_collection_from_another_year(self, service, year, other_year):
        created = _collection(service, year, "Temples", "temples")
        with pytest.raises(NotFoundError):
            service.update_collection(other_year.id, created.id, {"title": "Shrines"})


class TestAssignLocation:
    def test_assign_and_detach(self, service, year, kyoto):
        created = _collection(service, year, "Temples", "temples")

        record, previous = service.assign_collection_location(created.id, kyoto.id)
        assert record.location_id == kyoto.id
        assert previous is None

        record, previous = service.assign_collection_location(created.id, None)
        assert record.location_id is None
        assert previous == kyoto.id

    def test_unchanged_assignment_is_not_audited(self, service, year, kyoto):
        created = _collection(service, year, "Temples", "temples", locationId=kyoto.id)
        before = service.audit_entries(entity_type="collection", entity_id=created.id)

        record, previous = service.assign_collection_location(created.id, kyoto.id)

        assert record.location_id == previous == kyoto.id
        assert service.audit_entries(entity_type="collection", entity_id=created.id) == before

    def test_unknown_location(self, service, year):
        created = _collection(service, year, "Temples", "temples")
        with pytest.raises(NotFoundError) as exc:
            service.assign_collection_location(created.id, "missing")
        assert exc.value.field == "locationId"

    def test_location_from_another_year(self, service, year, other_year):
        created = _collection(service, year, "Temples", "temples")
        elsewhere = service.create_location(other_year.id, {"name": "Lisbon", "slug": "lisbon-25"})
        with pytest.raises(ValidationError) as exc:
            service.assign_collection_location(created.id, elsewhere.id)
        assert exc.value.field == "locationId"

    def test_unknown_collection(self, service, kyoto):
        with pytest.raises(NotFoundError):
            service.assign_collection_location("missing", kyoto.id)

    def test_detaching_unblocks_location_delete(self, service, year, kyoto):
        created = _collection(service, year, "Temples", "temples", locationId=kyoto.id)
        service.assign_collection_location(created.id, None)
        assert service.delete_location(year.id, kyoto.id).id == kyoto.id


class TestDeleteCollection:
    def test_delete(self, service, year):
        created = _collection(service, year, "Temples", "temples")
        assert service.delete_collection(year.id, created.id).slug == "temples"
        with pytest.raises(NotFoundError):
            service.get_collection(created.id)

    def test_missing_id(self, service, year):
        with pytest.raises(ValidationError) as exc:
            service.delete_collection(year.id, "")
        assert exc.value.field == "id"
