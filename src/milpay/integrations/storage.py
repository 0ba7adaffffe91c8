"""Key-value persistence for wizard sessions and saved results.

The engine only needs ``save``, ``load`` and ``delete`` on JSON-compatible
values. Two backends are provided:

- ``FsspecStore``: one JSON document per key on any fsspec filesystem
  (local path, file://, memory://, s3://, gs://)
- ``RedisStore``: one Redis string per key
"""

from __future__ import annotations

import os
from typing import Any, Protocol
from urllib.parse import quote, urlparse

import fsspec
import orjson
import redis
import structlog

from milpay.core.config import settings

logger = structlog.get_logger()


class StorageError(Exception):
    """Raised when the backing store cannot be read or written."""


class KeyValueStore(Protocol):
    """Opaque persistence collaborator."""

    def save(self, key: str, value: Any) -> None: ...

    def load(self, key: str) -> Any | None: ...

    def delete(self, key: str) -> None: ...


def get_filesystem(url: str) -> fsspec.AbstractFileSystem:
    """Get filesystem for URL, auto-detecting protocol.

    Examples:
        get_filesystem("s3://bucket/path") -> S3FileSystem
        get_filesystem("/local/path") -> LocalFileSystem
        get_filesystem("memory://milpay") -> MemoryFileSystem
    """
    parsed = urlparse(url)

    # For local paths without scheme or with file:// scheme
    if not parsed.scheme or parsed.scheme == "file":
        return fsspec.filesystem("file")

    return fsspec.filesystem(parsed.scheme)


def build_full_path(url: str, path: str) -> str:
    """Build full path from base URL and relative path."""
    parsed = urlparse(url)

    if not parsed.scheme or parsed.scheme == "file":
        # Local filesystem
        base = parsed.path if parsed.path else url
        if path:
            return os.path.join(base, path)
        return base

    # Remote or in-memory storage - combine netloc and path
    base = f"{parsed.netloc}{parsed.path}" if parsed.netloc else parsed.path
    if path:
        return f"{base.rstrip('/')}/{path.lstrip('/')}"
    return base


def key_to_path(key: str) -> str:
    """Map a ``namespace:id`` key to ``namespace/id.json``."""
    parts = [quote(part, safe="") for part in key.split(":")]
    return "/".join(parts) + ".json"


class FsspecStore:
    """JSON documents on an fsspec filesystem."""

    def __init__(self, url: str) -> None:
        self.url = url
        self.fs = get_filesystem(url)

    def _path(self, key: str) -> str:
        return build_full_path(self.url, key_to_path(key))

    def save(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            parent = path.rsplit("/", 1)[0]
            if parent and parent != path:
                self.fs.makedirs(parent, exist_ok=True)
            with self.fs.open(path, "wb") as f:
                f.write(orjson.dumps(value))
        except (OSError, TypeError) as exc:
            raise StorageError(f"Failed to save '{key}': {exc}") from exc
        logger.debug("store_saved", key=key, backend="fsspec")

    def load(self, key: str) -> Any | None:
        path = self._path(key)
        try:
            if not self.fs.exists(path):
                return None
            with self.fs.open(path, "rb") as f:
                return orjson.loads(f.read())
        except (OSError, orjson.JSONDecodeError) as exc:
            raise StorageError(f"Failed to load '{key}': {exc}") from exc

    def delete(self, key: str) -> None:
        path = self._path(key)
        try:
            if self.fs.exists(path):
                self.fs.rm(path)
        except OSError as exc:
            raise StorageError(f"Failed to delete '{key}': {exc}") from exc
        logger.debug("store_deleted", key=key, backend="fsspec")


class RedisStore:
    """JSON strings in Redis."""

    def __init__(self, client: redis.Redis, prefix: str = "milpay:") -> None:
        self.client = client
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "milpay:") -> RedisStore:
        """Create a store backed by a new connection pool."""
        return cls(redis.Redis.from_url(url, decode_responses=True), prefix=prefix)

    def save(self, key: str, value: Any) -> None:
        try:
            self.client.set(self.prefix + key, orjson.dumps(value).decode("utf-8"))
        except (redis.RedisError, TypeError) as exc:
            raise StorageError(f"Failed to save '{key}': {exc}") from exc
        logger.debug("store_saved", key=key, backend="redis")

    def load(self, key: str) -> Any | None:
        try:
            raw = self.client.get(self.prefix + key)
        except redis.RedisError as exc:
            raise StorageError(f"Failed to load '{key}': {exc}") from exc
        if raw is None:
            return None
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as exc:
            raise StorageError(f"Corrupt value for '{key}': {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self.client.delete(self.prefix + key)
        except redis.RedisError as exc:
            raise StorageError(f"Failed to delete '{key}': {exc}") from exc
        logger.debug("store_deleted", key=key, backend="redis")


def create_store(url: str | None = None) -> KeyValueStore:
    """Pick a backend from the URL scheme (defaults to ``MILPAY_STORAGE_URL``).

    ``redis://`` and ``rediss://`` select Redis, as does the bare value
    ``redis`` (which connects to ``MILPAY_REDIS_URL``). Anything else is
    treated as an fsspec location.
    """
    url = url or settings.storage_url
    if url == "redis":
        url = settings.redis_url
    scheme = urlparse(url).scheme
    if scheme in ("redis", "rediss"):
        return RedisStore.from_url(url)
    return FsspecStore(url)
