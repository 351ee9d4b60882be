"""Tests for Iterable date and item helpers."""

import copy
from datetime import date, datetime, timedelta, timezone

import pytest

from destination_actions.errors import PayloadValidationError
from destination_actions.iterable_utils import (
    convert_dates_in_object,
    to_unix_seconds,
    transform_items,
)

MAY_FIRST = int(datetime(2024, 5, 1, tzinfo=timezone.utc).timestamp())


class TestConvertDatesInObject:
    """Tests for convert_dates_in_object."""

    def test_iso_strings_become_epoch_seconds(self):
        result = convert_dates_in_object(
            {
                "signup": "2024-05-01T00:00:00Z",
                "birthday": "2024-05-01",
                "space": "2024-05-01 00:00:00",
            }
        )
        assert result == {"signup": MAY_FIRST, "birthday": MAY_FIRST, "space": MAY_FIRST}

    def test_offsets_are_applied(self):
        result = convert_dates_in_object({"at": "2024-05-01T02:00:00+02:00"})
        assert result == {"at": MAY_FIRST}

    def test_compact_offset(self):
        result = convert_dates_in_object({"at": "2024-05-01T02:00:00+0200"})
        assert result == {"at": MAY_FIRST}

    def test_fractional_seconds_are_floored(self):
        result = convert_dates_in_object({"at": "2024-05-01T00:00:00.999Z"})
        assert result == {"at": MAY_FIRST}

    def test_datetime_objects(self):
        naive = datetime(2024, 5, 1)
        aware = datetime(2024, 5, 1, tzinfo=timezone.utc)
        result = convert_dates_in_object({"a": naive, "b": aware, "c": date(2024, 5, 1)})
        assert result == {"a": MAY_FIRST, "b": MAY_FIRST, "c": MAY_FIRST}

    def test_nested_structures(self):
        obj = {
            "profile": {
                "dates": ["2024-05-01T00:00:00Z", "hello"],
                "deep": {"deeper": {"when": "2024-05-01"}},
            },
            "pair": ("2024-05-01", 3),
        }
        result = convert_dates_in_object(obj)
        assert result == {
            "profile": {
                "dates": [MAY_FIRST, "hello"],
                "deep": {"deeper": {"when": MAY_FIRST}},
            },
            "pair": (MAY_FIRST, 3),
        }

    def test_non_dates_unchanged(self):
        obj = {
            "year": "2024",
            "number": 1714521600,
            "float": 1.5,
            "flag": True,
            "none": None,
            "text": "May 1st",
            "bad_date": "2024-13-45",
        }
        assert convert_dates_in_object(obj) == obj

    def test_input_not_mutated(self):
        obj = {"a": {"b": "2024-05-01"}, "c": ["2024-05-01"]}
        before = copy.deepcopy(obj)
        convert_dates_in_object(obj)
        assert obj == before

    def test_empty(self):
        assert convert_dates_in_object({}) == {}


class TestToUnixSeconds:
    """Tests for createdAt conversion."""

    def test_iso_string(self):
        assert to_unix_seconds("2024-05-01T00:00:00Z") == MAY_FIRST

    def test_epoch_milliseconds(self):
        assert to_unix_seconds(MAY_FIRST * 1000) == MAY_FIRST
        assert to_unix_seconds(MAY_FIRST * 1000 + 999) == MAY_FIRST

    def test_datetime(self):
        assert to_unix_seconds(datetime(2024, 5, 1, tzinfo=timezone.utc)) == MAY_FIRST

    def test_missing_uses_clock(self):
        fixed = datetime(2024, 5, 1, tzinfo=timezone.utc)
        assert to_unix_seconds(None, now=lambda: fixed) == MAY_FIRST

    def test_missing_defaults_to_current_time(self):
        before = datetime.now(timezone.utc) - timedelta(seconds=1)
        result = to_unix_seconds(None)
        after = datetime.now(timezone.utc) + timedelta(seconds=1)
        assert before.timestamp() <= result <= after.timestamp()

    def test_invalid_string(self):
        with pytest.raises(PayloadValidationError, match="Invalid date value"):
            to_unix_seconds("yesterday")

    def test_bool_rejected(self):
        with pytest.raises(PayloadValidationError):
            to_unix_seconds(True)

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_rejected(self, value):
        with pytest.raises(PayloadValidationError, match="Invalid date value"):
            to_unix_seconds(value)


class TestTransformItems:
    """Tests for transform_items."""

    def test_drops_unset_fields(self):
        items = [{"id": "p1", "sku": None, "price": 9.99, "quantity": 2}]
        assert transform_items(items) == [{"id": "p1", "price": 9.99, "quantity": 2}]

    def test_wraps_category_string(self):
        items = [{"id": "p1", "categories": "Shoes"}]
        assert transform_items(items) == [{"id": "p1", "categories": ["Shoes"]}]

    def test_keeps_category_list(self):
        items = [{"id": "p1", "categories": ["Shoes", "Sale"]}]
        assert transform_items(items) == [{"id": "p1", "categories": ["Shoes", "Sale"]}]

    def test_converts_item_data_field_dates(self):
        items = [{"id": "p1", "dataFields": {"restock": "2024-05-01", "color": "red"}}]
        assert transform_items(items) == [
            {"id": "p1", "dataFields": {"restock": MAY_FIRST, "color": "red"}}
        ]

    def test_empty(self):
        assert transform_items([]) == []

    def test_input_not_mutated(self):
        items = [{"id": "p1", "categories": "Shoes", "sku": None}]
        before = copy.deepcopy(items)
        transform_items(items)
        assert items == before
