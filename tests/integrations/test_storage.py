"""Tests for storage integration module.

Tests cover:
- Filesystem detection and path building for local paths and URLs
- JSON round trips through the fsspec and Redis backends
- Backend selection from the storage URL
- Error wrapping
"""

import tempfile
from unittest.mock import MagicMock

import pytest
import redis

from milpay.integrations.storage import (
    FsspecStore,
    RedisStore,
    StorageError,
    build_full_path,
    create_store,
    get_filesystem,
    key_to_path,
)


class TestGetFilesystem:
    """Tests for get_filesystem function."""

    def test_local_path_returns_local_filesystem(self) -> None:
        """Local path returns LocalFileSystem."""
        with tempfile.TemporaryDirectory() as tmpdir:
            fs = get_filesystem(tmpdir)
            assert "LocalFileSystem" in type(fs).__name__

    def test_file_url_returns_local_filesystem(self) -> None:
        """file:// URL returns LocalFileSystem."""
        fs = get_filesystem("file:///tmp/milpay")
        assert "LocalFileSystem" in type(fs).__name__

    def test_memory_url_returns_memory_filesystem(self) -> None:
        """memory:// URL returns MemoryFileSystem."""
        fs = get_filesystem("memory://milpay")
        assert "MemoryFileSystem" in type(fs).__name__


class TestPaths:
    """Tests for path helpers."""

    def test_key_to_path(self) -> None:
        """Namespaced keys become nested JSON files."""
        assert key_to_path("wizard_session:abc") == "wizard_session/abc.json"
        assert key_to_path("eligibility_result:index") == "eligibility_result/index.json"

    def test_key_parts_are_quoted(self) -> None:
        assert key_to_path("wizard_session:a/b") == "wizard_session/a%2Fb.json"

    def test_build_full_path_local(self) -> None:
        assert build_full_path("/data/milpay", "x/y.json") == "/data/milpay/x/y.json"

    def test_build_full_path_remote(self) -> None:
        assert build_full_path("s3://bucket/milpay/", "x/y.json") == "bucket/milpay/x/y.json"
        assert build_full_path("memory://milpay", "") == "milpay"


class TestFsspecStore:
    """Tests for FsspecStore."""

    def test_round_trip(self, memory_store) -> None:
        value = {"id": "abc", "answers": [{"question_id": "branch", "value": "navy"}]}
        memory_store.save("wizard_session:abc", value)
        assert memory_store.load("wizard_session:abc") == value

    def test_missing_key(self, memory_store) -> None:
        assert memory_store.load("wizard_session:missing") is None

    def test_overwrite_and_delete(self, memory_store) -> None:
        memory_store.save("wizard_session:active", "one")
        memory_store.save("wizard_session:active", "two")
        assert memory_store.load("wizard_session:active") == "two"

        memory_store.delete("wizard_session:active")
        assert memory_store.load("wizard_session:active") is None
        # Deleting again is a no-op
        memory_store.delete("wizard_session:active")

    def test_local_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            store = FsspecStore(tmpdir)
            store.save("eligibility_result:index", ["a", "b"])
            assert store.load("eligibility_result:index") == ["a", "b"]

    def test_unserializable_value(self, memory_store) -> None:
        with pytest.raises(StorageError, match="Failed to save"):
            memory_store.save("wizard_session:bad", object())


class TestRedisStore:
    """Tests for RedisStore with a mocked client."""

    def test_round_trip_uses_prefix(self, mock_redis_client) -> None:
        store = RedisStore(mock_redis_client)
        store.save("wizard_session:abc", {"status": "in_progress"})

        assert "milpay:wizard_session:abc" in mock_redis_client.data
        assert store.load("wizard_session:abc") == {"status": "in_progress"}

    def test_missing_and_delete(self, mock_redis_client) -> None:
        store = RedisStore(mock_redis_client, prefix="test:")
        assert store.load("wizard_session:abc") is None

        store.save("wizard_session:abc", 1)
        store.delete("wizard_session:abc")
        assert mock_redis_client.data == {}

    def test_redis_errors_are_wrapped(self) -> None:
        client = MagicMock()
        client.get.side_effect = redis.ConnectionError("down")
        with pytest.raises(StorageError, match="Failed to load"):
            RedisStore(client).load("wizard_session:abc")

    def test_corrupt_value(self, mock_redis_client) -> None:
        mock_redis_client.data["milpay:wizard_session:abc"] = "{not json"
        with pytest.raises(StorageError, match="Corrupt value"):
            RedisStore(mock_redis_client).load("wizard_session:abc")


class TestCreateStore:
    """Tests for backend selection."""

    def test_memory_url(self) -> None:
        assert isinstance(create_store("memory://milpay-select"), FsspecStore)

    def test_redis_url(self) -> None:
        """redis:// builds a lazily connecting client."""
        store = create_store("redis://localhost:6379/0")
        assert isinstance(store, RedisStore)

    def test_default_uses_settings(self) -> None:
        assert isinstance(create_store(), FsspecStore)
