"""
Connection gateway.

Wraps a ConnectionPool so that pool failures never reach callers:
acquire() returns None when no connection can be had, and release() /
retire() log and absorb whatever the pool raises.
"""

from typing import Optional

from rediscache.cache.pool import ConnectionPool, StoreConnection
from rediscache.logging import pool_logger as logger


class ConnectionGateway:
    """
    Acquire, release and retire pooled connections.

    A connection that raised while checked out must be retired, not
    released: its protocol state is unknown and the next borrower would
    inherit it.

    Usage:
        gateway = ConnectionGateway(pool)
        conn = gateway.acquire()
        if conn is None:
            return False
        try:
            conn.setex(key, 60, value)
        except Exception:
            gateway.retire(conn)
            return False
        gateway.release(conn)
    """

    def __init__(self, pool: ConnectionPool):
        self.pool = pool

    def acquire(self) -> Optional[StoreConnection]:
        """Get a connection, or None if the pool cannot provide one."""
        try:
            return self.pool.borrow()
        except Exception as e:
            logger.warning(
                "pool_acquire_failed", error=str(e), error_type=type(e).__name__
            )
            return None

    def release(self, connection: Optional[StoreConnection]) -> None:
        """Return a healthy connection to the pool."""
        if connection is None:
            return
        try:
            self.pool.return_healthy(connection)
        except Exception as e:
            logger.warning(
                "pool_release_failed", error=str(e), error_type=type(e).__name__
            )

    def retire(self, connection: Optional[StoreConnection]) -> None:
        """Discard a broken connection so it is never reused."""
        if connection is None:
            return
        try:
            self.pool.return_broken(connection)
        except Exception as e:
            logger.warning(
                "pool_retire_failed", error=str(e), error_type=type(e).__name__
            )

    def close(self) -> None:
        """Tear down the underlying pool."""
        try:
            self.pool.close()
        except Exception as e:
            logger.warning("pool_close_failed", error=str(e), error_type=type(e).__name__)


__all__ = ["ConnectionGateway"]
