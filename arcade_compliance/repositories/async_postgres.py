"""
Async PostgreSQL lookups for the organization overview fan-out.

Uses asyncpg directly: the overview reads one machine list per arcade, and
those reads are issued concurrently over a shared asyncpg pool.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

import asyncpg

from arcade_compliance.domain.models import Arcade, Machine
from arcade_compliance.infrastructure.db_factory import create_async_pool
from arcade_compliance.repositories.postgres import ARCADE_COLUMNS, MACHINE_COLUMNS


class AsyncPostgresArcadeLookup:
    """
    Read-only arcade and machine lookups over an asyncpg pool.

    The pool is created lazily on first use; call ``close`` (or use the
    instance as an async context manager) to release it.
    """

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        pool_min_size: Optional[int] = None,
        pool_max_size: Optional[int] = None,
    ) -> None:
        self._dsn_override = dsn_override
        self.pool_min_size = pool_min_size
        self.pool_max_size = pool_max_size
        self._pool: Optional[asyncpg.Pool] = None
        self._pool_lock = asyncio.Lock()

    async def _get_pool(self) -> asyncpg.Pool:
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await create_async_pool(
                    dsn_override=self._dsn_override,
                    min_size=self.pool_min_size,
                    max_size=self.pool_max_size,
                )
            return self._pool

    async def list_arcades(self, organization_id: str) -> Sequence[Arcade]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"SELECT {ARCADE_COLUMNS} FROM public.arcades "
            "WHERE organization_id = $1 ORDER BY name",
            organization_id,
        )
        return [Arcade.model_validate(dict(row)) for row in rows]

    async def get_active_machines(self, arcade_id: str) -> Sequence[Machine]:
        pool = await self._get_pool()
        rows = await pool.fetch(
            f"SELECT {MACHINE_COLUMNS} FROM public.machines "
            "WHERE arcade_id = $1 AND is_active ORDER BY created_at DESC, id",
            arcade_id,
        )
        return [Machine.model_validate(dict(row)) for row in rows]

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    async def __aenter__(self) -> "AsyncPostgresArcadeLookup":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


__all__ = ["AsyncPostgresArcadeLookup"]
