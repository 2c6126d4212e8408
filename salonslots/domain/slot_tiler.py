"""
Tiling of open windows into fixed-size bookable slots.

Pure domain logic: no store access, no I/O.
"""

from typing import List, Optional

from .models import Slot, TimeRange

SLOT_DURATION_MINUTES = 30


class SlotTiler:
    """
    Cuts an open window into consecutive slots of a fixed duration.

    Slots start at the window start; a trailing remainder shorter than one
    slot is dropped, never rounded or padded.
    """

    def __init__(self, duration_minutes: int = SLOT_DURATION_MINUTES):
        if duration_minutes <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        self.duration_minutes = duration_minutes

    def tile(self, window: Optional[TimeRange]) -> List[Slot]:
        """
        Generate all slots that fit entirely within the window.

        Example:
        Window: 09:00 - 10:45
        Result: [09:00-09:30, 09:30-10:00, 10:00-10:30]
        """
        if window is None:
            return []

        slots: List[Slot] = []
        current_start = window.start

        while current_start < window.end:
            current_end = current_start.add(minutes=self.duration_minutes)

            if current_end > window.end:
                break

            slots.append(Slot(start=current_start, end=current_end))
            current_start = current_end

        return slots
