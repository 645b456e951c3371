import dataclasses
import datetime

import pytest

from calendar_bridges.constants import ItemType
from calendar_bridges.services.dataclasses import (
    CalendarItem,
    build_reservation_event_id,
    get_priority_level,
)


@pytest.mark.parametrize(
    "item_type, expected",
    [
        (ItemType.EVENT, 1),
        (ItemType.BOOKING, 2),
        (ItemType.ALLOCATION, 3),
        ("booking", 2),
        ("unknown", 3),
        (None, 3),
    ],
)
def test_get_priority_level(item_type, expected):
    assert get_priority_level(item_type) == expected


def test_build_reservation_event_id():
    assert build_reservation_event_id(ItemType.ALLOCATION, 12) == "allocation:12"


class TestCalendarItem:
    @pytest.fixture
    def item(self, slot_start, slot_end):
        return CalendarItem(
            item_type=ItemType.BOOKING,
            item_id=4,
            start_time=slot_start,
            end_time=slot_end,
            title="Booking - Choir",
            resource_id=9,
            organizer_name="Choir",
            description="Booking for Choir",
        )

    def test_priority_is_derived_from_type(self, item):
        assert item.priority_level == 2

    def test_priority_cannot_be_passed(self, slot_start, slot_end):
        with pytest.raises(TypeError):
            CalendarItem(
                item_type=ItemType.BOOKING,
                item_id=4,
                start_time=slot_start,
                end_time=slot_end,
                title="Booking",
                resource_id=9,
                priority_level=1,
            )

    def test_is_immutable(self, item):
        with pytest.raises(dataclasses.FrozenInstanceError):
            item.title = "Changed"

    def test_keys(self, item, slot_start, slot_end):
        assert item.source_event_id == "booking:4"
        assert item.slot_key == (9, slot_start, slot_end)
        assert item.reservation_key == (ItemType.BOOKING, 4, 9)

    def test_to_bridge_event(self, item):
        assert item.to_bridge_event() == {
            "id": "booking:4",
            "subject": "Booking - Choir",
            "start": "2025-03-10T09:00:00+00:00",
            "end": "2025-03-10T10:00:00+00:00",
            "description": "Booking for Choir",
            "organizer": "Choir",
            "organizer_email": "",
            "item_type": "booking",
            "item_id": 4,
            "resource_id": 9,
            "priority_level": 2,
        }
