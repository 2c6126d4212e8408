"""
In-memory block store.
"""

import threading
from typing import Dict, List, Optional

from ..domain.exceptions import NotFoundError, ValidationError
from ..domain.models import BlockedRange


class InMemoryBlockStore:
    """
    Dict-backed implementation of ``BlockStoreProtocol``.

    Useful as the default store of the CLI and as the store of tests.
    """

    def __init__(self, blocks: Optional[List[BlockedRange]] = None):
        self._lock = threading.Lock()
        self._blocks: Dict[str, BlockedRange] = {}
        for block in blocks or []:
            self._blocks[block.id] = block

    def add(self, block: BlockedRange) -> BlockedRange:
        with self._lock:
            if block.id in self._blocks:
                raise ValidationError(f"Blocked slot {block.id} already exists")
            self._blocks[block.id] = block
        return block

    def get(self, block_id: str) -> Optional[BlockedRange]:
        with self._lock:
            return self._blocks.get(block_id)

    def save(self, block: BlockedRange) -> BlockedRange:
        with self._lock:
            if block.id not in self._blocks:
                raise NotFoundError(f"Blocked slot not found: {block.id}")
            self._blocks[block.id] = block
        return block

    def remove(self, block_id: str) -> None:
        with self._lock:
            if self._blocks.pop(block_id, None) is None:
                raise NotFoundError(f"Blocked slot not found: {block_id}")

    def list_by_salon(self, salon_id: str) -> List[BlockedRange]:
        with self._lock:
            matches = [b for b in self._blocks.values() if b.salon_id == salon_id]
        return sorted(matches, key=lambda b: b.start)

    def list_by_artist(self, artist_id: str) -> List[BlockedRange]:
        with self._lock:
            matches = [b for b in self._blocks.values() if b.artist_id == artist_id]
        return sorted(matches, key=lambda b: b.start)

    def __len__(self) -> int:
        return len(self._blocks)
