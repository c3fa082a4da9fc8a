"""
Infrastructure package for the arcade compliance engine.

Centralizes database connectivity concerns (sync/async factories, pooling).
Keep this layer focused on I/O and resource management, decoupled from the
compliance rules.
"""

from arcade_compliance.infrastructure.db_factory import (
    PoolManager,
    apply_statement_timeout,
    build_dsn,
    create_async_pool,
    get_sync_connection,
    get_sync_pool,
)

__all__ = [
    "PoolManager",
    "apply_statement_timeout",
    "build_dsn",
    "create_async_pool",
    "get_sync_connection",
    "get_sync_pool",
]
