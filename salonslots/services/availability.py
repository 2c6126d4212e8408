"""
Application service for listing bookable slots.

The service fetches opening hours through a directory adapter and blocks
through a store adapter, then delegates the actual work to the domain:
``ScheduleResolver`` for the open window, ``SlotTiler`` for candidates and
``OverlapFilter`` for removing blocked ones. Both adapters are described by
protocols so tests can plug in simple stubs.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from pendulum import Date

from ..domain.exceptions import NotFoundError, ValidationError
from ..domain.models import Artist, BlockedRange, Slot
from ..domain.overlap import OverlapFilter
from ..domain.schedule import ScheduleResolver
from ..domain.slot_tiler import SlotTiler
from .blocks import BlockStoreProtocol
from .timestamps import parse_day, parse_timestamp

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 31


class DirectoryProtocol(Protocol):
    """Protocol describing the salon/artist lookups needed by the service."""

    def get_salon_hours(self, salon_id: str) -> Any:
        """Return the raw opening-hours record of a salon; raise NotFoundError if unknown."""

    def get_artist(self, artist_id: str) -> Artist:
        """Return an artist with their raw hours; raise NotFoundError if unknown."""


class AvailabilityService:
    """
    Orchestrates opening hours, slot tiling and block filtering.

    Slot queries never raise: unknown resources and malformed hours give an
    empty list. When the block store fails during filtering, ``fail_open``
    decides the outcome: True treats the slots as free (the error is
    logged), False treats them as blocked.
    """

    def __init__(
        self,
        directory: DirectoryProtocol,
        block_store: BlockStoreProtocol,
        *,
        resolver: Optional[ScheduleResolver] = None,
        tiler: Optional[SlotTiler] = None,
        overlap_filter: Optional[OverlapFilter] = None,
        fail_open: bool = True,
        timezone: str = "local",
    ) -> None:
        self._directory = directory
        self._block_store = block_store
        self._resolver = resolver or ScheduleResolver(timezone=timezone)
        self._tiler = tiler or SlotTiler()
        self._overlap_filter = overlap_filter or OverlapFilter()
        self._fail_open = fail_open
        self._timezone = timezone

    def get_salon_slots(self, salon_id: str, day: Any) -> List[Slot]:
        """
        List free slots of a salon for one day.

        Every block of the salon applies, whichever artist it is scoped to.
        """
        resolved_day = self._safe_day(day)
        if resolved_day is None:
            return []

        try:
            raw_hours = self._directory.get_salon_hours(salon_id)
        except NotFoundError:
            logger.warning("Salon %s not found; no slots available", salon_id)
            return []
        except Exception:
            logger.exception("Could not load opening hours of salon %s", salon_id)
            return []

        candidates = self._tiler.tile(self._resolver.resolve_raw(raw_hours, resolved_day))
        if not candidates:
            return []

        blocks = self._fetch_salon_blocks(salon_id)
        if blocks is None:
            return candidates if self._fail_open else []

        return self._overlap_filter.filter_slots(candidates, blocks)

    def get_artist_slots(self, artist_id: str, day: Any) -> List[Slot]:
        """
        List free slots of an artist for one day.

        Uses the artist's own hours; the artist's blocks and the salon-wide
        blocks of their salon apply.
        """
        resolved_day = self._safe_day(day)
        if resolved_day is None:
            return []

        artist = self._safe_artist(artist_id)
        if artist is None:
            return []

        blocks = self._fetch_salon_blocks(artist.salon_id)
        return self._artist_slots_for_day(artist, resolved_day, blocks)

    def get_artist_slots_between(
        self,
        artist_id: str,
        start_day: Any,
        end_day: Any,
    ) -> Dict[str, List[Slot]]:
        """
        List free slots of an artist for every day of an inclusive range.

        Returns:
            Mapping of ISO date to that day's slots; days without any free
            slot are omitted

        Raises:
            ValidationError: If a day does not parse, the range is reversed
                or longer than ``MAX_RANGE_DAYS``
        """
        first = parse_day(start_day)
        last = parse_day(end_day)

        if last < first:
            raise ValidationError("end date must not be before start date.")
        if (last - first).in_days() + 1 > MAX_RANGE_DAYS:
            raise ValidationError(f"Date range must not exceed {MAX_RANGE_DAYS} days.")

        artist = self._safe_artist(artist_id)
        if artist is None:
            return {}

        blocks = self._fetch_salon_blocks(artist.salon_id)
        proposals: Dict[str, List[Slot]] = {}

        current = first
        while current <= last:
            slots = self._artist_slots_for_day(artist, current, blocks)
            if slots:
                proposals[current.isoformat()] = slots
            current = current.add(days=1)

        return proposals

    def is_range_blocked(
        self,
        start: Any,
        end: Any,
        artist_id: Optional[str] = None,
        salon_id: Optional[str] = None,
    ) -> bool:
        """
        Check whether a range intersects a block.

        With an artist, the artist's blocks and salon-wide blocks count;
        with only a salon, every block of the salon counts. The artist's
        salon is looked up when ``salon_id`` is omitted.

        Raises:
            ValidationError: If the range is invalid or neither id is given
            NotFoundError: If the artist has to be looked up and is unknown
        """
        start_dt = parse_timestamp(start, "start", self._timezone)
        end_dt = parse_timestamp(end, "end", self._timezone)
        if start_dt >= end_dt:
            raise ValidationError("End date must be after start date.")

        if not salon_id:
            if not artist_id:
                raise ValidationError("salon_id or artist_id is required.")
            salon_id = self._directory.get_artist(artist_id).salon_id

        blocks = self._fetch_salon_blocks(salon_id)
        if blocks is None:
            return not self._fail_open

        return self._overlap_filter.is_blocked(start_dt, end_dt, blocks, artist_id=artist_id or None)

    def _artist_slots_for_day(
        self,
        artist: Artist,
        day: Date,
        blocks: Optional[List[BlockedRange]],
    ) -> List[Slot]:
        candidates = self._tiler.tile(self._resolver.resolve_raw(artist.hours, day))
        if not candidates:
            return []

        if blocks is None:
            return candidates if self._fail_open else []

        return self._overlap_filter.filter_slots(candidates, blocks, artist_id=artist.id)

    def _fetch_salon_blocks(self, salon_id: str) -> Optional[List[BlockedRange]]:
        """
        Fetch all blocks of a salon in one store query.

        Returns None when the store fails, leaving the decision to the
        caller's failure policy.
        """
        try:
            return self._block_store.list_by_salon(salon_id)
        except Exception:
            # Any store error, including driver errors outside our hierarchy
            logger.exception(
                "Block lookup failed for salon %s; treating slots as %s",
                salon_id, "available" if self._fail_open else "blocked",
            )
            return None

    def _safe_day(self, day: Any) -> Optional[Date]:
        try:
            return parse_day(day)
        except ValidationError as exc:
            logger.warning("Invalid availability date: %s", exc)
            return None

    def _safe_artist(self, artist_id: str) -> Optional[Artist]:
        try:
            return self._directory.get_artist(artist_id)
        except NotFoundError:
            logger.warning("Artist %s not found; no slots available", artist_id)
        except Exception:
            logger.exception("Could not load artist %s", artist_id)
        return None
