"""
Adapters layer - Block stores and salon/artist directories.
"""

from .file_directory import FileDirectory
from .http_directory import HttpDirectory
from .json_store import JsonFileBlockStore
from .memory_store import InMemoryBlockStore

__all__ = ["FileDirectory", "HttpDirectory", "InMemoryBlockStore", "JsonFileBlockStore"]
