"""
Repository layer - abstracts persistence.

Usage:
    from repositories import create_store

    store = create_store()          # byte-store server, local cache fallback
    store.save_answer("dump-thoughts-text", "Dumping", "too many meetings")
    store.answers.by_situation("Dumping")

Stores are explicit handles; pass them to whatever needs one.
"""

from pathlib import Path

from config import BYTESTORE_URL, CACHE_PATH
from .base import Repository
from .errors import MigrationFailure, NotFound, StoreError, StoreUnavailable
from .sqlite_backend import AnswerStore
from .transport import ByteStore, FileByteStore, HttpByteStore


def create_store(
    server_url: str = None,
    cache_path: Path = None,
    offline: bool = False,
    in_memory: bool = False,
) -> AnswerStore:
    """
    Build and initialize a store.

    Args:
        server_url: byte-store server; defaults to DEVFLOW_SERVER_URL.
        cache_path: local cache file; defaults to DEVFLOW_CACHE_PATH.
        offline: skip the server and use the cache file directly.
        in_memory: nothing is persisted.
    """
    if in_memory:
        store = AnswerStore()
    else:
        cache = FileByteStore(cache_path or CACHE_PATH)
        transport = None if offline else HttpByteStore(server_url or BYTESTORE_URL)
        store = AnswerStore(transport=transport, cache=cache)

    store.initialize()
    return store


__all__ = [
    "create_store",
    "Repository",
    "AnswerStore",
    "ByteStore",
    "FileByteStore",
    "HttpByteStore",
    "StoreError",
    "StoreUnavailable",
    "NotFound",
    "MigrationFailure",
]
