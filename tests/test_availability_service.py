"""
Tests for the AvailabilityService orchestration layer.
"""

import json
import logging
from typing import List

import pendulum
import pytest

from salonslots.adapters.file_directory import FileDirectory
from salonslots.adapters.memory_store import InMemoryBlockStore
from salonslots.domain.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from salonslots.domain.models import BlockedRange
from salonslots.domain.overlap import ranges_overlap
from salonslots.services.availability import AvailabilityService
from salonslots.services.blocks import BlockService

TZ = "Europe/Paris"
MONDAY = "2026-02-16"
SUNDAY = "2026-02-15"

WEEK_HOURS = {
    day: {"start": "09:00", "end": "18:00"}
    for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday")
}
WEEK_HOURS["sunday"] = None

DIRECTORY_DATA = {
    "salons": [
        {
            "id": "salon-1",
            "hours": json.dumps(WEEK_HOURS),
            "artists": [
                {"id": "A1", "hours": WEEK_HOURS},
                {"id": "A2", "hours": WEEK_HOURS},
                {"id": "A3", "hours": {"monday": {"start": "14:00", "end": "16:15"}}},
            ],
        },
        {"id": "salon-2", "hours": "{broken json", "artists": []},
    ]
}


class FailingBlockStore:
    """Block store whose reads always fail."""

    def list_by_salon(self, salon_id: str) -> List[BlockedRange]:
        raise StoreUnavailableError("database is down")

    def list_by_artist(self, artist_id: str) -> List[BlockedRange]:
        raise StoreUnavailableError("database is down")


class DriverErrorBlockStore:
    """Block store that leaks its driver's own exception type."""

    def list_by_salon(self, salon_id: str) -> List[BlockedRange]:
        raise ConnectionError("db connection reset")

    def list_by_artist(self, artist_id: str) -> List[BlockedRange]:
        raise ConnectionError("db connection reset")


class FailingDirectory:
    """Directory whose lookups always fail."""

    def get_salon_hours(self, salon_id: str):
        raise StoreUnavailableError("directory service timed out")

    def get_artist(self, artist_id: str):
        raise StoreUnavailableError("directory service timed out")


def _build(store=None, fail_open: bool = True, directory=None):
    store = store if store is not None else InMemoryBlockStore()
    availability = AvailabilityService(
        directory=directory if directory is not None else FileDirectory.from_data(DIRECTORY_DATA),
        block_store=store,
        fail_open=fail_open,
        timezone=TZ,
    )
    return availability, BlockService(store, timezone=TZ)


def _clock(slots):
    return [slot.start.format("HH:mm") for slot in slots]


class TestSalonSlots:
    """Tests for get_salon_slots."""

    def test_open_day_without_blocks(self):
        """09:00-18:00 with no blocks gives 18 slots."""
        availability, _ = _build()

        slots = availability.get_salon_slots("salon-1", MONDAY)

        assert len(slots) == 18
        assert (slots[0].start.format("HH:mm"), slots[0].end.format("HH:mm")) == ("09:00", "09:30")
        assert (slots[-1].start.format("HH:mm"), slots[-1].end.format("HH:mm")) == ("17:30", "18:00")

    def test_closed_day(self):
        availability, _ = _build()

        assert availability.get_salon_slots("salon-1", SUNDAY) == []

    def test_salon_view_removes_artist_blocks_too(self):
        availability, blocks = _build()
        blocks.create("salon-1", "2026-02-16T10:00:00", "2026-02-16T11:00:00", artist_id="A1")

        slots = availability.get_salon_slots("salon-1", MONDAY)

        assert len(slots) == 16
        assert "10:00" not in _clock(slots)
        assert "10:30" not in _clock(slots)

    def test_blocks_of_other_salons_are_ignored(self):
        availability, blocks = _build()
        blocks.create("salon-9", "2026-02-16T10:00:00", "2026-02-16T11:00:00")

        assert len(availability.get_salon_slots("salon-1", MONDAY)) == 18

    def test_unknown_salon(self, caplog):
        availability, _ = _build()

        with caplog.at_level(logging.WARNING):
            assert availability.get_salon_slots("nope", MONDAY) == []

        assert "Salon nope not found" in caplog.text

    def test_unparseable_hours_give_no_slots(self):
        availability, _ = _build()

        assert availability.get_salon_slots("salon-2", MONDAY) == []

    @pytest.mark.parametrize(
        "hours",
        [
            b"\xff\xfe{",
            {"monday": {"start": "0\u00b2:00", "end": "18:00"}},
        ],
    )
    def test_malformed_hours_fail_soft(self, hours, caplog):
        """Hours that cannot be decoded or parsed count as a closed day."""
        directory = FileDirectory.from_data({
            "salons": [{"id": "odd", "hours": hours, "artists": [{"id": "X1", "hours": hours}]}],
        })
        availability, _ = _build(directory=directory)

        with caplog.at_level(logging.WARNING):
            assert availability.get_salon_slots("odd", MONDAY) == []
            assert availability.get_artist_slots("X1", MONDAY) == []

        assert "Ignoring invalid opening hours" in caplog.text

    def test_invalid_date_gives_no_slots(self):
        availability, _ = _build()

        assert availability.get_salon_slots("salon-1", "16/02/2026") == []

    def test_accepts_date_objects(self):
        availability, _ = _build()

        assert len(availability.get_salon_slots("salon-1", pendulum.date(2026, 2, 16))) == 18


class TestArtistSlots:
    """Tests for get_artist_slots and block scoping."""

    def test_artist_block_only_affects_that_artist(self):
        availability, blocks = _build()
        blocks.create("salon-1", "2026-02-16T10:00:00", "2026-02-16T11:00:00", artist_id="A1")

        a1 = availability.get_artist_slots("A1", MONDAY)
        a2 = availability.get_artist_slots("A2", MONDAY)

        assert len(a1) == 16
        assert "10:00" not in _clock(a1) and "10:30" not in _clock(a1)
        assert len(a2) == 18

    def test_salon_wide_block_affects_every_artist(self):
        availability, blocks = _build()
        blocks.create("salon-1", "2026-02-16T12:00:00", "2026-02-16T13:00:00")

        a1 = availability.get_artist_slots("A1", MONDAY)
        a2 = availability.get_artist_slots("A2", MONDAY)

        assert _clock(a1) == _clock(a2)
        assert len(a1) == 16
        assert "12:00" not in _clock(a1) and "12:30" not in _clock(a1)

    def test_block_across_slot_boundary_hits_both_slots(self):
        availability, blocks = _build()
        blocks.create("salon-1", "2026-02-16T10:15:00", "2026-02-16T10:45:00", artist_id="A1")

        slots = availability.get_artist_slots("A1", MONDAY)

        assert "10:00" not in _clock(slots) and "10:30" not in _clock(slots)
        assert "09:30" in _clock(slots) and "11:00" in _clock(slots)

    def test_artist_own_hours_are_used(self):
        availability, _ = _build()

        slots = availability.get_artist_slots("A3", MONDAY)

        assert _clock(slots) == ["14:00", "14:30", "15:00", "15:30"]

    def test_no_returned_slot_overlaps_a_scoped_block(self):
        availability, blocks = _build()
        created = [
            blocks.create("salon-1", "2026-02-16T09:10:00", "2026-02-16T09:20:00", artist_id="A1"),
            blocks.create("salon-1", "2026-02-16T13:00:00", "2026-02-16T14:30:00"),
            blocks.create("salon-1", "2026-02-16T17:59:00", "2026-02-16T19:00:00", artist_id="A2"),
        ]

        for artist_id in ("A1", "A2"):
            for slot in availability.get_artist_slots(artist_id, MONDAY):
                for block in created:
                    if block.artist_id in (None, artist_id):
                        assert not ranges_overlap(slot.start, slot.end, block.start, block.end)

    def test_unknown_artist(self):
        availability, _ = _build()

        assert availability.get_artist_slots("ghost", MONDAY) == []

    def test_closed_day(self):
        availability, _ = _build()

        assert availability.get_artist_slots("A1", SUNDAY) == []


class TestArtistSlotsBetween:
    """Tests for multi-day proposals."""

    def test_closed_days_are_omitted(self):
        availability, blocks = _build()
        blocks.create("salon-1", "2026-02-17T09:00:00", "2026-02-17T18:00:00")

        proposals = availability.get_artist_slots_between("A1", "2026-02-14", "2026-02-18")

        # Sat 14 open, Sun 15 closed, Mon 16 open, Tue 17 fully blocked, Wed 18 open
        assert list(proposals) == ["2026-02-14", "2026-02-16", "2026-02-18"]
        assert all(len(slots) == 18 for slots in proposals.values())

    def test_reversed_range(self):
        availability, _ = _build()

        with pytest.raises(ValidationError):
            availability.get_artist_slots_between("A1", "2026-02-18", "2026-02-16")

    def test_range_too_long(self):
        availability, _ = _build()

        with pytest.raises(ValidationError, match="31 days"):
            availability.get_artist_slots_between("A1", "2026-02-01", "2026-03-15")

    def test_unknown_artist(self):
        availability, _ = _build()

        assert availability.get_artist_slots_between("ghost", "2026-02-16", "2026-02-17") == {}


class TestIsRangeBlocked:
    """Tests for is_range_blocked."""

    def test_salon_scope(self):
        availability, blocks = _build()
        blocks.create("salon-1", "2026-02-16T10:00:00", "2026-02-16T11:00:00", artist_id="A1")

        assert availability.is_range_blocked("2026-02-16T10:30:00", "2026-02-16T12:00:00", salon_id="salon-1")
        assert not availability.is_range_blocked("2026-02-16T11:00:00", "2026-02-16T12:00:00", salon_id="salon-1")

    def test_artist_scope_resolves_salon(self):
        availability, blocks = _build()
        blocks.create("salon-1", "2026-02-16T10:00:00", "2026-02-16T11:00:00", artist_id="A1")
        blocks.create("salon-1", "2026-02-16T15:00:00", "2026-02-16T16:00:00")

        assert availability.is_range_blocked("2026-02-16T10:00:00", "2026-02-16T10:30:00", artist_id="A1")
        assert not availability.is_range_blocked("2026-02-16T10:00:00", "2026-02-16T10:30:00", artist_id="A2")
        assert availability.is_range_blocked("2026-02-16T15:30:00", "2026-02-16T17:00:00", artist_id="A2")

    def test_requires_a_scope(self):
        availability, _ = _build()

        with pytest.raises(ValidationError, match="salon_id or artist_id"):
            availability.is_range_blocked("2026-02-16T10:00:00", "2026-02-16T11:00:00")

    def test_rejects_empty_range(self):
        availability, _ = _build()

        with pytest.raises(ValidationError):
            availability.is_range_blocked("2026-02-16T10:00:00", "2026-02-16T10:00:00", salon_id="salon-1")

    def test_unknown_artist(self):
        availability, _ = _build()

        with pytest.raises(NotFoundError):
            availability.is_range_blocked("2026-02-16T10:00:00", "2026-02-16T11:00:00", artist_id="ghost")


class TestStoreFailurePolicy:
    """Tests for fail-open / fail-closed behaviour on store errors."""

    def test_fail_open_returns_all_candidates_and_logs(self, caplog):
        availability, _ = _build(store=FailingBlockStore())

        with caplog.at_level(logging.ERROR):
            slots = availability.get_salon_slots("salon-1", MONDAY)

        assert len(slots) == 18
        assert "Block lookup failed for salon salon-1" in caplog.text

    def test_fail_open_artist_view(self):
        availability, _ = _build(store=FailingBlockStore())

        assert len(availability.get_artist_slots("A1", MONDAY)) == 18

    def test_fail_open_range_check(self):
        availability, _ = _build(store=FailingBlockStore())

        assert not availability.is_range_blocked("2026-02-16T10:00:00", "2026-02-16T11:00:00", salon_id="salon-1")

    def test_fail_closed(self):
        availability, _ = _build(store=FailingBlockStore(), fail_open=False)

        assert availability.get_salon_slots("salon-1", MONDAY) == []
        assert availability.get_artist_slots("A1", MONDAY) == []
        assert availability.is_range_blocked("2026-02-16T10:00:00", "2026-02-16T11:00:00", salon_id="salon-1")

    def test_fail_open_on_foreign_store_error(self, caplog):
        availability, _ = _build(store=DriverErrorBlockStore())

        with caplog.at_level(logging.ERROR):
            assert len(availability.get_salon_slots("salon-1", MONDAY)) == 18
            assert len(availability.get_artist_slots("A1", MONDAY)) == 18
            assert not availability.is_range_blocked(
                "2026-02-16T10:00:00", "2026-02-16T11:00:00", salon_id="salon-1"
            )

        assert "db connection reset" in caplog.text

    def test_fail_closed_on_foreign_store_error(self):
        availability, _ = _build(store=DriverErrorBlockStore(), fail_open=False)

        assert availability.get_salon_slots("salon-1", MONDAY) == []


class TestDirectoryFailure:
    """Directory lookups that fail give no slots instead of raising."""

    def test_salon_view(self, caplog):
        availability, _ = _build(directory=FailingDirectory())

        with caplog.at_level(logging.ERROR):
            assert availability.get_salon_slots("salon-1", MONDAY) == []

        assert "Could not load opening hours of salon salon-1" in caplog.text
        assert "directory service timed out" in caplog.text

    def test_artist_view(self, caplog):
        availability, _ = _build(directory=FailingDirectory())

        with caplog.at_level(logging.ERROR):
            assert availability.get_artist_slots("A1", MONDAY) == []
            assert availability.get_artist_slots_between("A1", MONDAY, "2026-02-20") == {}

        assert "Could not load artist A1" in caplog.text

    def test_foreign_directory_error(self):
        class BrokenDirectory:
            def get_salon_hours(self, salon_id):
                raise TimeoutError("read timed out")

            def get_artist(self, artist_id):
                raise TimeoutError("read timed out")

        availability, _ = _build(directory=BrokenDirectory())

        assert availability.get_salon_slots("salon-1", MONDAY) == []
        assert availability.get_artist_slots("A1", MONDAY) == []
