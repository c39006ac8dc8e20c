"""
Redis connection pool.

Connections come from a single ``redis.BlockingConnectionPool``: it bounds
how many connections exist, blocks callers up to ``max_wait`` seconds for
a free one and hands out redis-py ``Connection`` objects. This module
adds the borrow/return contract the gateway relies on:

- ``borrow()`` checks a connection out, wrapped in a PooledConnection that
  speaks the six cache commands
- ``return_healthy()`` releases it for reuse
- ``return_broken()`` disconnects it before releasing, so the socket that
  failed is thrown away and the next borrower gets a fresh one

Usage:
    pool = RedisConnectionPool(host="localhost", port=6379, max_active=8)
    conn = pool.borrow()
    try:
        conn.get("key")
    except RedisError:
        pool.return_broken(conn)
    else:
        pool.return_healthy(conn)
"""

import queue
import threading
from collections.abc import Mapping
from typing import Any, Optional, Protocol

import redis
from redis.connection import Connection

from rediscache.cache.exceptions import PoolClosedError, PoolError
from rediscache.logging import pool_logger as logger


class StoreConnection(Protocol):
    """The commands a pooled connection must support."""

    def setex(self, name: str, time: int, value: str) -> Any: ...

    def get(self, name: str) -> Optional[str]: ...

    def delete(self, *names: str) -> int: ...

    def hset(self, name: str, key: str, value: str) -> int: ...

    def hget(self, name: str, key: str) -> Optional[str]: ...

    def hgetall(self, name: str) -> Mapping[str, str]: ...

    def close(self) -> None: ...


class ConnectionPool(Protocol):
    """Pool capability consumed by the ConnectionGateway."""

    def borrow(self) -> StoreConnection: ...

    def return_healthy(self, connection: StoreConnection) -> None: ...

    def return_broken(self, connection: StoreConnection) -> None: ...

    def close(self) -> None: ...


class PooledConnection:
    """One checked-out redis-py connection."""

    def __init__(self, connection: Connection):
        self.connection = connection

    def _execute(self, *args: Any) -> Any:
        self.connection.send_command(*args)
        return self.connection.read_response()

    def setex(self, name: str, time: int, value: str) -> Any:
        return self._execute("SETEX", name, time, value)

    def get(self, name: str) -> Optional[str]:
        return self._execute("GET", name)

    def delete(self, *names: str) -> int:
        return self._execute("DEL", *names)

    def hset(self, name: str, key: str, value: str) -> int:
        return self._execute("HSET", name, key, value)

    def hget(self, name: str, key: str) -> Optional[str]:
        return self._execute("HGET", name, key)

    def hgetall(self, name: str) -> dict[str, str]:
        reply = self._execute("HGETALL", name)
        if isinstance(reply, dict):
            return reply
        # RESP2 replies with a flat [field, value, field, value, ...] list
        return dict(zip(reply[::2], reply[1::2]))

    def close(self) -> None:
        self.connection.disconnect()


class RedisConnectionPool:
    """
    Borrow/return wrapper over ``redis.BlockingConnectionPool``.

    Tracks which connections are checked out so a connection can only be
    returned once, and refuses borrows after ``close()``. Borrowers
    blocked waiting for a connection when the pool closes are woken and
    get ``PoolClosedError``.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        *,
        max_active: int = 8,
        max_wait: float = 2.0,
        socket_timeout: float = 2.0,
        connection_pool: Optional[redis.BlockingConnectionPool] = None,
    ):
        if max_active < 1:
            raise ValueError(f"max_active must be at least 1 (got {max_active})")
        if max_wait < 0:
            raise ValueError(f"max_wait cannot be negative (got {max_wait})")

        self.host = host
        self.port = port
        self.db = db
        self.max_active = max_active
        self.max_wait = max_wait
        self.socket_timeout = socket_timeout

        if connection_pool is None:
            connection_pool = redis.BlockingConnectionPool(
                host=host,
                port=port,
                db=db,
                password=password,
                max_connections=max_active,
                timeout=max_wait,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
                decode_responses=True,
            )
        self.connection_pool = connection_pool

        self._lock = threading.Lock()
        self._checked_out: dict[int, PooledConnection] = {}
        self._waiting = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def borrow(self) -> PooledConnection:
        """
        Check a connection out of the pool.

        Raises:
            PoolClosedError: the pool has been closed
            redis.exceptions.ConnectionError: no connection became free
                within ``max_wait``, or a new one could not be opened
        """
        with self._lock:
            if self._closed:
                raise PoolClosedError("connection pool is closed")
            self._waiting += 1

        try:
            connection = self.connection_pool.get_connection()
        except Exception as e:
            if self._closed:
                raise PoolClosedError("connection pool is closed") from e
            raise
        finally:
            with self._lock:
                self._waiting -= 1

        with self._lock:
            if not self._closed:
                handle = PooledConnection(connection)
                self._checked_out[id(handle)] = handle
                return handle
            # Woken by close()
            connection.disconnect()
            self.connection_pool.release(connection)
        raise PoolClosedError("connection pool is closed")

    def _check_in(self, handle: StoreConnection) -> PooledConnection:
        # Caller holds the lock.
        checked_in = self._checked_out.pop(id(handle), None)
        if checked_in is None:
            raise PoolError("connection was not checked out from this pool")
        return checked_in

    def return_healthy(self, handle: StoreConnection) -> None:
        """Give a working connection back for reuse."""
        with self._lock:
            connection = self._check_in(handle).connection
            if self._closed:
                connection.disconnect()
            self.connection_pool.release(connection)

    def return_broken(self, handle: StoreConnection) -> None:
        """Drop the socket of a connection whose protocol state can't be trusted."""
        with self._lock:
            connection = self._check_in(handle).connection
            try:
                connection.disconnect()
            finally:
                self.connection_pool.release(connection)
        logger.debug("pool_connection_discarded", host=self.host, port=self.port)

    def close(self) -> None:
        """
        Disconnect every connection and stop handing out new ones.

        Connections still checked out are disconnected again when they
        are returned.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self.connection_pool.disconnect()
            # Wake borrowers blocked on the pool's queue
            for _ in range(self._waiting):
                try:
                    self.connection_pool.pool.put_nowait(None)
                except queue.Full:
                    break

        logger.info("pool_closed", host=self.host, port=self.port)

    def stats(self) -> dict[str, Any]:
        """Snapshot of pool occupancy."""
        with self._lock:
            return {
                "max_active": self.max_active,
                "checked_out": len(self._checked_out),
                "waiting": self._waiting,
                "closed": self._closed,
            }


__all__ = ["StoreConnection", "ConnectionPool", "PooledConnection", "RedisConnectionPool"]
