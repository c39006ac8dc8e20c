"""
Pytest fixtures for rediscache tests.

Uses an in-memory stand-in for the Redis commands the storage layer
needs, a counting pool so tests can see exactly how connections were
borrowed and returned, and a socket-free BlockingConnectionPool for
exercising RedisConnectionPool.
"""

import queue
import threading
from dataclasses import dataclass
from typing import Optional

import pytest
from redis.exceptions import ConnectionError, ResponseError

from rediscache.cache import ConnectionGateway, StorageService


class FakeRedisServer:
    """Shared keyspace for all FakeRedis connections."""

    def __init__(self):
        self.lock = threading.Lock()
        self.strings: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.hashes: dict[str, dict[str, str]] = {}


class FakeRedis:
    """Single connection speaking SETEX/GET/DEL/HSET/HGET/HGETALL."""

    def __init__(self, server: FakeRedisServer, fail_on: Optional[set] = None):
        self.server = server
        self.fail_on = fail_on if fail_on is not None else set()
        self.closed = False
        self.commands: list[str] = []

    def _call(self, command: str) -> None:
        self.commands.append(command)
        if command in self.fail_on:
            raise ConnectionError(f"Connection reset during {command}")

    def setex(self, name, time, value):
        self._call("setex")
        if time <= 0:
            raise ResponseError("invalid expire time in 'setex' command")
        with self.server.lock:
            self.server.strings[name] = value
            self.server.ttls[name] = time
        return True

    def get(self, name):
        self._call("get")
        with self.server.lock:
            return self.server.strings.get(name)

    def delete(self, *names):
        self._call("delete")
        removed = 0
        with self.server.lock:
            for name in names:
                if self.server.strings.pop(name, None) is not None:
                    removed += 1
                if self.server.hashes.pop(name, None) is not None:
                    removed += 1
                self.server.ttls.pop(name, None)
        return removed

    def hset(self, name, key, value):
        self._call("hset")
        with self.server.lock:
            table = self.server.hashes.setdefault(name, {})
            added = 0 if key in table else 1
            table[key] = value
        return added

    def hget(self, name, key):
        self._call("hget")
        with self.server.lock:
            return self.server.hashes.get(name, {}).get(key)

    def hgetall(self, name):
        self._call("hgetall")
        with self.server.lock:
            return dict(self.server.hashes.get(name, {}))

    def close(self):
        self.closed = True


@dataclass
class PoolCounters:
    borrowed: int = 0
    healthy: int = 0
    broken: int = 0


class FakePool:
    """Pool that counts traffic and can be told to fail."""

    def __init__(self, server: FakeRedisServer):
        self.server = server
        self.counters = PoolCounters()
        self.unavailable = False
        self.fail_on: set = set()
        self.connections: list[FakeRedis] = []
        self.broken_connections: list[FakeRedis] = []
        self.closed = False
        self._lock = threading.Lock()

    def borrow(self):
        with self._lock:
            self.counters.borrowed += 1
        if self.unavailable:
            raise ConnectionError("No connection available.")
        connection = FakeRedis(self.server, self.fail_on)
        with self._lock:
            self.connections.append(connection)
        return connection

    def return_healthy(self, connection):
        with self._lock:
            self.counters.healthy += 1

    def return_broken(self, connection):
        connection.close()
        with self._lock:
            self.counters.broken += 1
            self.broken_connections.append(connection)

    def close(self):
        self.closed = True


class FakeWireConnection:
    """
    Stand-in for a redis-py ``Connection``.

    Commands go through send_command/read_response like the real wire
    protocol; replies come from FakeRedis against the shared keyspace.
    """

    def __init__(self, server: FakeRedisServer):
        self.redis = FakeRedis(server)
        self.connected = False
        self.connects = 0
        self.disconnects = 0
        self.sent: list[tuple] = []
        self._pending: Optional[tuple] = None

    def connect(self):
        if not self.connected:
            self.connected = True
            self.connects += 1

    def disconnect(self):
        self.connected = False
        self.disconnects += 1

    def send_command(self, *args):
        self.connect()
        self.sent.append(args)
        self._pending = args

    def read_response(self):
        command, *args = self._pending
        self._pending = None
        if command == "SETEX":
            self.redis.setex(*args)
            return "OK"
        if command == "GET":
            return self.redis.get(*args)
        if command == "DEL":
            return self.redis.delete(*args)
        if command == "HSET":
            return self.redis.hset(*args)
        if command == "HGET":
            return self.redis.hget(*args)
        if command == "HGETALL":
            flat: list[str] = []
            for field, value in self.redis.hgetall(*args).items():
                flat.extend((field, value))
            return flat
        raise ResponseError(f"unknown command '{command}'")


class FakeBlockingPool:
    """
    Stand-in for ``redis.BlockingConnectionPool`` without sockets.

    Same queue discipline: a LIFO of connection slots filled with None,
    a blocking get with ``timeout`` and ``ConnectionError`` when no
    connection frees up in time.
    """

    def __init__(self, server: FakeRedisServer, max_connections: int = 4, timeout: float = 0):
        self.server = server
        self.max_connections = max_connections
        self.timeout = timeout
        self.pool: queue.LifoQueue = queue.LifoQueue(max_connections)
        for _ in range(max_connections):
            self.pool.put_nowait(None)
        self.created: list[FakeWireConnection] = []
        self._lock = threading.Lock()

    def get_connection(self):
        try:
            connection = self.pool.get(block=True, timeout=self.timeout)
        except queue.Empty:
            raise ConnectionError("No connection available.")
        if connection is None:
            connection = FakeWireConnection(self.server)
            with self._lock:
                self.created.append(connection)
        connection.connect()
        return connection

    def release(self, connection):
        try:
            self.pool.put_nowait(connection)
        except queue.Full:
            pass

    def disconnect(self):
        with self._lock:
            connections = list(self.created)
        for connection in connections:
            connection.disconnect()



@pytest.fixture
def redis_server():
    """Fresh in-memory keyspace."""
    return FakeRedisServer()


@pytest.fixture
def fake_pool(redis_server):
    """Counting pool over the in-memory keyspace."""
    return FakePool(redis_server)


@pytest.fixture
def gateway(fake_pool):
    return ConnectionGateway(fake_pool)


@pytest.fixture
def storage(gateway):
    """StorageService wired to the fake pool."""
    return StorageService(gateway)


@pytest.fixture
def blocking_pool(redis_server):
    """Factory for socket-free BlockingConnectionPools over the in-memory keyspace."""

    def make(max_connections: int = 4, timeout: float = 0) -> FakeBlockingPool:
        return FakeBlockingPool(redis_server, max_connections, timeout)

    return make
