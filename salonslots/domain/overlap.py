"""
Interval overlap and block scoping.

``ranges_overlap`` is the one overlap predicate of the package: slot
filtering, range checks and store lookups all go through it so the
half-open semantics cannot drift apart between call sites.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

if TYPE_CHECKING:
    from pendulum import DateTime

    from .models import BlockedRange, Slot


def ranges_overlap(a_start, a_end, b_start, b_end) -> bool:
    """
    Return True if ``[a_start, a_end)`` and ``[b_start, b_end)`` intersect.

    Touching boundaries (``a_end == b_start``) do not overlap.
    """
    return a_start < b_end and b_start < a_end


class OverlapFilter:
    """
    Applies the overlap predicate to blocks scoped to a resource.

    Scoping:
    - artist query: blocks for that artist plus salon-wide blocks
    - salon query (``artist_id=None``): every block of the salon

    Callers are expected to pass blocks that already belong to the
    queried salon.
    """

    @staticmethod
    def applies_to(block: "BlockedRange", artist_id: Optional[str]) -> bool:
        """Check whether a block is in scope for the queried resource."""
        if artist_id is None:
            return True
        return block.artist_id is None or block.artist_id == artist_id

    def scoped(
        self,
        blocks: Iterable["BlockedRange"],
        artist_id: Optional[str] = None,
    ) -> List["BlockedRange"]:
        return [block for block in blocks if self.applies_to(block, artist_id)]

    def is_blocked(
        self,
        start: "DateTime",
        end: "DateTime",
        blocks: Iterable["BlockedRange"],
        artist_id: Optional[str] = None,
    ) -> bool:
        """Check if ``[start, end)`` intersects any in-scope block."""
        return any(
            ranges_overlap(start, end, block.start, block.end)
            for block in self.scoped(blocks, artist_id)
        )

    def filter_slots(
        self,
        slots: Iterable["Slot"],
        blocks: Iterable["BlockedRange"],
        artist_id: Optional[str] = None,
    ) -> List["Slot"]:
        """Drop every slot that intersects an in-scope block."""
        relevant = self.scoped(blocks, artist_id)
        return [
            slot for slot in slots
            if not self.is_blocked(slot.start, slot.end, relevant)
        ]
