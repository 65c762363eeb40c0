"""
Tests for Year resolution and creation.
"""

import pytest

from travelogue.infra.exceptions import ConflictError, NotFoundError
from travelogue.shared.types import PublishStatus


class TestYears:
    def test_resolve_by_id_or_label(self, service, year):
        assert service.resolve_year(year.id) == year
        assert service.resolve_year("2024") == year
        assert service.resolve_year(" 2024 ") == year

    @pytest.mark.parametrize("identifier", [None, "", "  ", "1999"])
    def test_unknown_year(self, service, year, identifier):
        with pytest.raises(NotFoundError) as exc:
            service.resolve_year(identifier)
        assert exc.value.message == "Year not found."

    def test_years_are_appended_in_order(self, service, year, other_year):
        third = service.create_year("2026", PublishStatus.PUBLISHED)
        assert [y.label for y in service.list_years()] == ["2024", "2025", "2026"]
        assert [y.order_index for y in service.list_years()] == ["1.0", "2.0", "3.0"]
        assert third.status is PublishStatus.PUBLISHED

    def test_duplicate_label(self, service, year):
        with pytest.raises(ConflictError) as exc:
            service.create_year("2024")
        assert exc.value.field == "label"

    def test_timestamps_are_utc_iso(self, year):
        assert year.created_at.endswith("Z")
        assert year.updated_at.endswith("Z")
