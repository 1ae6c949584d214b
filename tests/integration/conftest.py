"""
Integration test fixtures.

Integration tests:
- Test component boundaries
- Use real I/O but to temp locations
- Should be deterministic
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from typing import Optional

from repositories import ByteStore, StoreUnavailable


@pytest.fixture
def temp_dir():
    """Temporary directory for test data."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


class FakeByteStore(ByteStore):
    """
    In-process byte-store server.

    reachable=False makes probe fail and every call raise, as an
    unreachable server would. fail_writes makes writes raise.
    """

    def __init__(self, location: str = "/srv/devflow.db", blob: bytes = None, reachable: bool = True):
        self.location = location
        self.blobs: dict[str, bytes] = {}
        if blob is not None and location:
            self.blobs[location] = blob
        self.reachable = reachable
        self.fail_writes = False
        self.writes = 0

    def _check(self):
        if not self.reachable:
            raise StoreUnavailable("Byte-store unreachable")

    def probe(self) -> bool:
        return self.reachable

    def read(self) -> Optional[bytes]:
        self._check()
        return self.blobs.get(self.location) if self.location else None

    def write(self, data: bytes) -> bool:
        self._check()
        if self.fail_writes:
            raise StoreUnavailable("Byte-store write failed (500)")
        if not self.location:
            return False
        self.blobs[self.location] = data
        self.writes += 1
        return True

    def get_configured_location(self) -> Optional[str]:
        self._check()
        return self.location

    def set_configured_location(self, path: str) -> str:
        self._check()
        if not path:
            raise ValueError("Path is required")
        self.location = path
        return path

    def clear_configured_location(self) -> None:
        self._check()
        self.location = None


@pytest.fixture
def fake_server():
    return FakeByteStore()
