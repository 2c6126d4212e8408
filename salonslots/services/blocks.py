"""
Blocked-range management.

``BlockService`` validates mutations and delegates persistence to a store
adapter described by ``BlockStoreProtocol``. The store is an external
collaborator: the service never keeps block state of its own.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol

from pendulum import DateTime

from ..domain.exceptions import NotFoundError, SalonSlotsError, StoreUnavailableError, ValidationError
from ..domain.models import BlockedRange
from .timestamps import parse_timestamp

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"start", "end", "reason", "artist_id"})


class BlockStoreProtocol(Protocol):
    """Protocol describing the persistence operations needed by the services."""

    def add(self, block: BlockedRange) -> BlockedRange:
        """Persist a new block and return it."""

    def get(self, block_id: str) -> Optional[BlockedRange]:
        """Return the block with that id, or None."""

    def save(self, block: BlockedRange) -> BlockedRange:
        """Replace an existing block and return it."""

    def remove(self, block_id: str) -> None:
        """Delete the block with that id."""

    def list_by_salon(self, salon_id: str) -> List[BlockedRange]:
        """Return all blocks of a salon, ordered by start."""

    def list_by_artist(self, artist_id: str) -> List[BlockedRange]:
        """Return all blocks scoped to an artist, ordered by start."""


def _normalize_optional(value: Optional[str]) -> Optional[str]:
    """Empty strings are stored as None."""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _ensure_ordered(start: DateTime, end: DateTime) -> None:
    if start >= end:
        raise ValidationError("End date must be after start date.")


class BlockService:
    """
    Create, update, delete and list blocked ranges.

    Every mutation is validated before it reaches the store; a rejected
    mutation persists nothing.
    """

    def __init__(self, store: BlockStoreProtocol, timezone: str = "local") -> None:
        self._store = store
        self._timezone = timezone

    def create(
        self,
        salon_id: str,
        start: Any,
        end: Any,
        reason: Optional[str] = None,
        artist_id: Optional[str] = None,
    ) -> BlockedRange:
        """
        Create a blocked range.

        Args:
            salon_id: Owning salon
            start: Block start (ISO string or datetime)
            end: Block end (ISO string or datetime), strictly after start
            reason: Optional free-text reason
            artist_id: Artist the block applies to; omitted or empty means
                the whole salon

        Returns:
            The stored block

        Raises:
            ValidationError: If a required field is missing, a date does not
                parse, or start is not before end
        """
        if not salon_id or not str(salon_id).strip():
            raise ValidationError("salon_id is required.")

        start_dt = parse_timestamp(start, "start", self._timezone)
        end_dt = parse_timestamp(end, "end", self._timezone)
        _ensure_ordered(start_dt, end_dt)

        block = BlockedRange(
            id=uuid.uuid4().hex,
            salon_id=str(salon_id).strip(),
            artist_id=_normalize_optional(artist_id),
            start=start_dt,
            end=end_dt,
            reason=_normalize_optional(reason),
        )

        created = self._store.add(block)
        logger.info(
            "Created block %s for salon %s (artist=%s) %s - %s",
            created.id, created.salon_id, created.artist_id or "*",
            created.start.to_iso8601_string(), created.end.to_iso8601_string(),
        )
        return created

    def get(self, block_id: str) -> BlockedRange:
        block = self._store.get(block_id)
        if block is None:
            raise NotFoundError(f"Blocked slot not found: {block_id}")
        return block

    def list_by_salon(self, salon_id: str) -> List[BlockedRange]:
        return sorted(self._store.list_by_salon(salon_id), key=lambda b: b.start)

    def list_by_artist(self, artist_id: str) -> List[BlockedRange]:
        return sorted(self._store.list_by_artist(artist_id), key=lambda b: b.start)

    def update(self, block_id: str, changes: Mapping[str, Any]) -> BlockedRange:
        """
        Apply a partial update to a block.

        Only supplied fields change. ``start``/``end`` of None count as not
        supplied; ``reason=None`` clears the reason; an empty or None
        ``artist_id`` makes the block salon-wide. The merged range is
        re-validated, so changing only ``start`` is checked against the
        stored ``end`` and vice versa.

        Raises:
            NotFoundError: If the block does not exist
            ValidationError: If a field is unknown or the merged range is
                invalid
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")

        existing = self.get(block_id)
        updates: Dict[str, Any] = {}

        if changes.get("start") is not None:
            updates["start"] = parse_timestamp(changes["start"], "start", self._timezone)
        if changes.get("end") is not None:
            updates["end"] = parse_timestamp(changes["end"], "end", self._timezone)
        if "reason" in changes:
            updates["reason"] = _normalize_optional(changes["reason"])
        if "artist_id" in changes:
            updates["artist_id"] = _normalize_optional(changes["artist_id"])

        _ensure_ordered(
            updates.get("start", existing.start),
            updates.get("end", existing.end),
        )

        updated = self._store.save(replace(existing, **updates))
        logger.info("Updated block %s (%s)", updated.id, ", ".join(sorted(updates)) or "no changes")
        return updated

    def delete(self, block_id: str) -> None:
        """
        Delete a block.

        Raises:
            NotFoundError: If the block does not exist
        """
        self.get(block_id)
        self._store.remove(block_id)
        logger.info("Deleted block %s", block_id)


def block_response(
    action: Callable[[], Optional[BlockedRange]],
    success_message: str,
) -> Dict[str, Any]:
    """
    Run a block mutation and wrap its outcome in a response envelope.

    Returns ``{"error": False, "message": ..., "blocked_slot": {...}}`` on
    success and ``{"error": True, "message": ...}`` on failure, for web
    layers that report errors in the body instead of raising.
    """
    try:
        block = action()
    except ValidationError as exc:
        return {"error": True, "message": f"Invalid blocked slot: {exc}"}
    except NotFoundError as exc:
        return {"error": True, "message": str(exc)}
    except StoreUnavailableError as exc:
        logger.error("Block store failure: %s", exc)
        return {"error": True, "message": f"Could not save blocked slot: {exc}"}
    except SalonSlotsError as exc:
        return {"error": True, "message": str(exc)}

    response: Dict[str, Any] = {"error": False, "message": success_message}
    if block is not None:
        response["blocked_slot"] = block.to_dict()
    return response
