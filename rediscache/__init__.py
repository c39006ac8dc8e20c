"""
rediscache: pooled, typed Redis cache storage.

Usage:
    # Default client built from environment settings
    from rediscache import client
    client.set("city1", {"city": "1", "last_update": "2222"})

    # Explicit wiring
    from rediscache.cache import RedisConnectionPool, ConnectionGateway, StorageService

    # Config
    from rediscache.config import get_settings, Settings

    # Logging
    from rediscache.logging import get_logger, configure_logging
"""

__version__ = "1.0.0"
