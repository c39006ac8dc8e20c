"""Tests for the process-wide default client."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from rediscache import client
from rediscache.cache import RedisConnectionPool, StorageService
from rediscache.config import Settings


@pytest.fixture(autouse=True)
def no_default_storage(monkeypatch):
    monkeypatch.setattr(client, "_storage", None)


class TestDefaultStorage:
    """Tests for get_storage/set_storage/reset_storage."""

    def test_shortcuts_use_default_storage(self, storage):
        client.set_storage(storage)

        assert client.set("city1", {"city": "1", "last_update": "2222"}) is True
        assert client.get("city1") == {"city": "1", "last_update": "2222"}
        assert client.hset("table1", "f1", 42) is True
        assert client.hget("table1", "f1", int) == 42
        assert client.hget_all("table1") == {"f1": 42}
        assert client.remove("city1") is True
        assert client.get("city1") is None

    def test_get_storage_creates_once(self, monkeypatch, storage):
        """get_storage() must not build the service twice under concurrent access."""
        calls = []

        def fake_create_storage():
            calls.append(1)
            return storage

        monkeypatch.setattr(client, "create_storage", fake_create_storage)

        with ThreadPoolExecutor(max_workers=16) as pool:
            results = list(pool.map(lambda _: client.get_storage(), range(100)))

        assert all(r is storage for r in results)
        assert len(calls) == 1

    def test_reset_closes_pool(self, storage, fake_pool):
        client.set_storage(storage)

        client.reset_storage()

        assert fake_pool.closed is True
        assert client._storage is None

    def test_reset_without_storage(self):
        client.reset_storage()


class TestFactories:
    """Tests for create_pool/create_storage."""

    def test_create_pool_from_settings(self):
        settings = Settings(
            _env_file=None,
            REDIS_HOST="cache.internal",
            REDIS_PORT=6380,
            REDIS_DB=1,
            REDIS_MAX_ACTIVE=16,
            REDIS_MAX_WAIT=0.5,
            REDIS_TIMEOUT=1.0,
        )

        pool = client.create_pool(settings)

        assert isinstance(pool, RedisConnectionPool)
        assert (pool.host, pool.port, pool.db) == ("cache.internal", 6380, 1)
        assert (pool.max_active, pool.max_wait) == (16, 0.5)
        assert pool.connection_pool.max_connections == 16
        assert pool.socket_timeout == 1.0

    def test_create_pool_with_small_max_active(self):
        """Pools smaller than eight connections build from settings alone."""
        settings = Settings(_env_file=None, REDIS_MAX_ACTIVE=2)

        pool = client.create_pool(settings)

        assert pool.max_active == 2
        assert pool.connection_pool.max_connections == 2

    def test_create_storage_uses_default_expire(self):
        settings = Settings(_env_file=None, CACHE_DEFAULT_EXPIRE=120)

        storage = client.create_storage(settings)

        assert isinstance(storage, StorageService)
        assert storage.default_expire == 120
        storage.close()
