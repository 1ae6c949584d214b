"""
Byte-store transports - where the serialized database blob lives.

The store treats the whole database as one opaque blob. A transport only
knows how to get and put that blob and which location it is pointed at.

    HttpByteStore  - the byte-store server (routes/bytestore.py) over HTTP
    FileByteStore  - a local file; used as the offline cache and standalone
"""

import json
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import requests

from config import BYTESTORE_URL, TRANSPORT_TIMEOUT
from .errors import StoreUnavailable


class ByteStore(ABC):
    """Abstract persistence target for the database blob."""

    @abstractmethod
    def probe(self) -> bool:
        """Is the backend reachable."""
        pass

    @abstractmethod
    def read(self) -> Optional[bytes]:
        """Read the blob. None if nothing has been stored yet."""
        pass

    @abstractmethod
    def write(self, data: bytes) -> bool:
        """Write the blob. Returns False if the target refused it."""
        pass

    @abstractmethod
    def get_configured_location(self) -> Optional[str]:
        pass

    @abstractmethod
    def set_configured_location(self, path: str) -> str:
        """Point the target at a new location. Returns the normalized location."""
        pass

    @abstractmethod
    def clear_configured_location(self) -> None:
        pass


class HttpByteStore(ByteStore):
    """Client for the byte-store server."""

    def __init__(self, base_url: str = None, timeout: float = None, session: requests.Session = None):
        self.base_url = (base_url or BYTESTORE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else TRANSPORT_TIMEOUT
        self._session = session or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            return self._session.request(method, self._url(path), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise StoreUnavailable(f"Byte-store unreachable at {self.base_url}: {e}") from e

    def probe(self) -> bool:
        try:
            resp = self._request("GET", "/api/health")
        except StoreUnavailable:
            return False
        return resp.status_code == 200

    def read(self) -> Optional[bytes]:
        resp = self._request("GET", "/api/db")
        if resp.status_code in (400, 404):
            # No path configured, or nothing written there yet
            return None
        if resp.status_code != 200:
            raise StoreUnavailable(f"Byte-store read failed ({resp.status_code}): {resp.text}")
        return resp.content

    def write(self, data: bytes) -> bool:
        resp = self._request(
            "POST",
            "/api/db",
            data=data,
            headers={"Content-Type": "application/octet-stream"},
        )
        if resp.status_code == 400:
            return False
        if resp.status_code != 200:
            raise StoreUnavailable(f"Byte-store write failed ({resp.status_code}): {resp.text}")
        return True

    def get_configured_location(self) -> Optional[str]:
        resp = self._request("GET", "/api/db/path")
        if resp.status_code != 200:
            return None
        return resp.json().get("path")

    def set_configured_location(self, path: str) -> str:
        resp = self._request("POST", "/api/db/path", json={"path": path})
        if resp.status_code == 400:
            raise ValueError(resp.json().get("error", "Invalid path"))
        if resp.status_code != 200:
            raise StoreUnavailable(f"Byte-store rejected path ({resp.status_code})")
        return resp.json()["path"]

    def clear_configured_location(self) -> None:
        self._request("DELETE", "/api/db/path")

    def info(self) -> dict:
        """File information for the configured location."""
        resp = self._request("GET", "/api/db/info")
        if resp.status_code != 200:
            return {"configured": False, "path": None, "exists": False}
        return resp.json()


class FileByteStore(ByteStore):
    """
    Local file target.

    Doubles as the offline cache: a sidecar metadata file records which
    remote location (if any) the cached blob mirrors.
    """

    def __init__(self, path: Path):
        self._default_path = Path(path)
        self._path = self._default_path
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def _meta_path(self) -> Path:
        return self._path.with_name(self._path.name + ".meta.json")

    def probe(self) -> bool:
        return True

    def has_data(self) -> bool:
        return self._path.exists() and self._path.stat().st_size > 0

    def read(self) -> Optional[bytes]:
        if not self.has_data():
            return None
        return self._path.read_bytes()

    def write(self, data: bytes) -> bool:
        """Atomic write: temp file, then rename."""
        with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp = self._path.with_name(self._path.name + ".tmp")
            with open(temp, "wb") as f:
                f.write(data)
                f.flush()
            temp.replace(self._path)
        return True

    def get_configured_location(self) -> Optional[str]:
        return str(self._path.resolve())

    def set_configured_location(self, path: str) -> str:
        if not path:
            raise ValueError("Path is required")
        self._path = Path(path).expanduser().resolve()
        return str(self._path)

    def clear_configured_location(self) -> None:
        self._path = self._default_path

    # Cache metadata

    def mirrored_location(self) -> Optional[str]:
        """Remote location this cache mirrors, if any."""
        if not self._meta_path.exists():
            return None
        try:
            with open(self._meta_path) as f:
                return json.load(f).get("remote_location")
        except (json.JSONDecodeError, OSError) as e:
            print(f"[WARN] Corrupt cache metadata {self._meta_path}: {e}")
            return None

    def set_mirrored_location(self, location: Optional[str]) -> None:
        with self._lock:
            self._meta_path.parent.mkdir(parents=True, exist_ok=True)
            temp = self._meta_path.with_name(self._meta_path.name + ".tmp")
            with open(temp, "w") as f:
                json.dump({"remote_location": location}, f, indent=2)
            temp.replace(self._meta_path)
