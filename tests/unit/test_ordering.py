"""
Tests for order index allocation.
"""

import pytest

from travelogue.domain import ordering


class TestNextAppendIndex:
    def test_first_index(self):
        assert ordering.next_append_index(None) == "1.0"
        assert ordering.next_append_index("") == "1.0"

    def test_sequential_appends(self):
        indices = []
        last = None
        for _ in range(5):
            last = ordering.next_append_index(last)
            indices.append(last)
        assert indices == ["1.0", "2.0", "3.0", "4.0", "5.0"]

    def test_fractional_last(self):
        assert ordering.next_append_index("2.5") == "3.5"

    def test_non_numeric_falls_back_to_increasing_timestamps(self):
        first = ordering.next_append_index("legacy")
        second = ordering.next_append_index("legacy")
        assert first.endswith(".0") and second.endswith(".0")
        assert int(first[:-2]) < int(second[:-2])


class TestInsertBetween:
    @pytest.mark.parametrize(
        "lower, upper",
        [("1.0", "2.0"), ("1.0", "1.5"), ("0.0", "0.001"), ("-3.0", "7.0"), ("1.0", "1.0000001")],
    )
    def test_midpoint_strictly_between(self, lower, upper):
        mid = ordering.insert_between(lower, upper)
        assert float(lower) < float(mid) < float(upper)

    def test_simple_midpoint_keeps_one_decimal(self):
        assert ordering.insert_between("1.0", "2.0") == "1.5"

    def test_no_rounding_to_one_decimal(self):
        assert ordering.insert_between("1.0", "1.5") == "1.25"

    def test_rejects_bad_bounds(self):
        with pytest.raises(ValueError):
            ordering.insert_between("2.0", "1.0")
        with pytest.raises(ValueError):
            ordering.insert_between("abc", "1.0")

    def test_repeated_halving_eventually_exhausts_precision(self):
        lower, upper = "1.0", "2.0"
        with pytest.raises(ordering.OrderPrecisionExhausted):
            for _ in range(200):
                upper = ordering.insert_between(lower, upper)


class TestSorting:
    def test_numeric_not_lexicographic(self):
        indices = ["10.0", "2.0", "1.5", "legacy", "1.0"]
        assert sorted(indices, key=ordering.order_key) == ["1.0", "1.5", "2.0", "10.0", "legacy"]

    def test_last_index(self):
        assert ordering.last_index([]) is None
        assert ordering.last_index(["9.0", "10.0", "2.0"]) == "10.0"

    def test_sequential_reindex(self):
        assert ordering.sequential_reindex(["c", "a", "b"]) == {"c": "1.0", "a": "2.0", "b": "3.0"}
