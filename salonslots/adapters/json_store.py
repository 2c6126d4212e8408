"""
Block store persisted to a JSON file.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional

from ..domain.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from ..domain.models import BlockedRange

logger = logging.getLogger(__name__)


class JsonFileBlockStore:
    """
    File-backed implementation of ``BlockStoreProtocol``.

    The file holds ``{"blocked_slots": [...]}`` with ISO 8601 timestamps.
    It is re-read on every operation so separate processes (e.g. successive
    CLI invocations) see each other's changes; writes replace the whole
    file atomically.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _load(self) -> Dict[str, BlockedRange]:
        if not self.path.exists():
            return {}

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f) or {}
            return {
                block.id: block
                for block in (BlockedRange.from_dict(item) for item in data.get("blocked_slots", []))
            }
        except OSError as exc:
            raise StoreUnavailableError(f"Could not read block store {self.path}: {exc}") from exc
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise StoreUnavailableError(f"Block store {self.path} is corrupt: {exc}") from exc

    def _dump(self, blocks: Dict[str, BlockedRange]) -> None:
        payload = {
            "blocked_slots": [
                block.to_dict() for block in sorted(blocks.values(), key=lambda b: b.start)
            ]
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".blocks-", suffix=".json")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            raise StoreUnavailableError(f"Could not write block store {self.path}: {exc}") from exc

        logger.debug("Wrote %d blocked slot(s) to %s", len(blocks), self.path)

    def add(self, block: BlockedRange) -> BlockedRange:
        with self._lock:
            blocks = self._load()
            if block.id in blocks:
                raise ValidationError(f"Blocked slot {block.id} already exists")
            blocks[block.id] = block
            self._dump(blocks)
        return block

    def get(self, block_id: str) -> Optional[BlockedRange]:
        with self._lock:
            return self._load().get(block_id)

    def save(self, block: BlockedRange) -> BlockedRange:
        with self._lock:
            blocks = self._load()
            if block.id not in blocks:
                raise NotFoundError(f"Blocked slot not found: {block.id}")
            blocks[block.id] = block
            self._dump(blocks)
        return block

    def remove(self, block_id: str) -> None:
        with self._lock:
            blocks = self._load()
            if blocks.pop(block_id, None) is None:
                raise NotFoundError(f"Blocked slot not found: {block_id}")
            self._dump(blocks)

    def list_by_salon(self, salon_id: str) -> List[BlockedRange]:
        with self._lock:
            blocks = self._load()
        return sorted((b for b in blocks.values() if b.salon_id == salon_id), key=lambda b: b.start)

    def list_by_artist(self, artist_id: str) -> List[BlockedRange]:
        with self._lock:
            blocks = self._load()
        return sorted((b for b in blocks.values() if b.artist_id == artist_id), key=lambda b: b.start)
