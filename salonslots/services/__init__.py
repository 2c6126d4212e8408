"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, DirectoryProtocol
from .blocks import BlockService, BlockStoreProtocol, block_response

__all__ = [
    "AvailabilityService",
    "BlockService",
    "BlockStoreProtocol",
    "DirectoryProtocol",
    "block_response",
]
