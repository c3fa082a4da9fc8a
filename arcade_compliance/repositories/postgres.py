"""
PostgreSQL repository using a psycopg ConnectionPool.

Serial-number uniqueness is enforced by the ``machines_serial_number_key``
unique index; inserts and updates go straight to the database and a unique
violation is translated into ``DuplicateSerialNumberError``, so two concurrent
registrations of the same serial cannot both succeed.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import psycopg
from psycopg import errors, sql
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from arcade_compliance.config import get_settings
from arcade_compliance.domain.errors import (
    ArcadeNotFoundError,
    DuplicateSerialNumberError,
    MachineNotFoundError,
)
from arcade_compliance.domain.models import Arcade, Machine, MachineRegistration, MachineUpdate
from arcade_compliance.infrastructure.db_factory import apply_statement_timeout, get_sync_pool
from arcade_compliance.repositories.abstract import AbstractArcadeRepository
from arcade_compliance.utils.logging import get_logger

log = get_logger(__name__)

MACHINE_COLUMNS = (
    "id, arcade_id, serial_number, category, is_active, "
    "manufacturer, model, install_date, location"
)
ARCADE_COLUMNS = "id, organization_id, name, address"

_UPDATABLE = (
    "serial_number",
    "category",
    "is_active",
    "manufacturer",
    "model",
    "install_date",
    "location",
)


def _machine_from_row(row: Dict[str, Any]) -> Machine:
    return Machine.model_validate(row)


def _db_value(value: Any) -> Any:
    # Enums are stored by their tag.
    return getattr(value, "value", value)


class PostgresArcadeRepository(AbstractArcadeRepository):
    """
    Sync repository over the shared pool, or a private pool when a DSN is given.
    """

    def __init__(
        self,
        dsn_override: Optional[str] = None,
        pool_min_size: Optional[int] = None,
        pool_max_size: Optional[int] = None,
        statement_timeout_ms: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.pool_min_size = pool_min_size or settings.db_pool_min_size
        self.pool_max_size = pool_max_size or settings.db_pool_max_size
        self.statement_timeout_ms = (
            statement_timeout_ms
            if statement_timeout_ms is not None
            else settings.db_statement_timeout_ms
        )
        self._dsn_override = dsn_override
        self._pool_instance: Optional[ConnectionPool] = None
        self._owns_pool = False

    def _get_pool(self) -> ConnectionPool:
        if self._pool_instance is not None:
            return self._pool_instance
        if self._dsn_override:
            self._pool_instance = ConnectionPool(
                conninfo=self._dsn_override,
                min_size=self.pool_min_size,
                max_size=self.pool_max_size,
                open=True,
            )
            self._owns_pool = True
        else:
            self._pool_instance = get_sync_pool(
                min_size=self.pool_min_size, max_size=self.pool_max_size
            )
        return self._pool_instance

    def _fetch(self, query: Any, params: Sequence[Any], many: bool = False) -> Any:
        with self._get_pool().connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                apply_statement_timeout(cur, self.statement_timeout_ms)
                cur.execute(query, params)
                return cur.fetchall() if many else cur.fetchone()

    def get_arcade(self, arcade_id: str) -> Optional[Arcade]:
        row = self._fetch(
            f"SELECT {ARCADE_COLUMNS} FROM public.arcades WHERE id = %s;", (arcade_id,)
        )
        return Arcade.model_validate(row) if row else None

    def list_arcades(self, organization_id: str) -> Sequence[Arcade]:
        rows = self._fetch(
            f"SELECT {ARCADE_COLUMNS} FROM public.arcades "
            "WHERE organization_id = %s ORDER BY name;",
            (organization_id,),
            many=True,
        )
        return [Arcade.model_validate(row) for row in rows]

    def get_active_machines(self, arcade_id: str) -> Sequence[Machine]:
        rows = self._fetch(
            f"SELECT {MACHINE_COLUMNS} FROM public.machines "
            "WHERE arcade_id = %s AND is_active ORDER BY created_at DESC, id;",
            (arcade_id,),
            many=True,
        )
        return [_machine_from_row(row) for row in rows]

    def add_machine(self, registration: MachineRegistration) -> Machine:
        query = (
            "INSERT INTO public.machines "
            "(arcade_id, serial_number, category, manufacturer, model, install_date, location) "
            f"VALUES (%s, %s, %s, %s, %s, %s, %s) RETURNING {MACHINE_COLUMNS};"
        )
        params = (
            registration.arcade_id,
            registration.serial_number,
            _db_value(registration.category),
            registration.manufacturer,
            registration.model,
            registration.install_date,
            registration.location,
        )
        try:
            row = self._fetch(query, params)
        except errors.UniqueViolation as exc:
            raise DuplicateSerialNumberError(registration.serial_number) from exc
        except errors.ForeignKeyViolation as exc:
            raise ArcadeNotFoundError(registration.arcade_id) from exc
        log.info(
            "Machine registered",
            extra={"arcade_id": registration.arcade_id, "machine_id": row["id"]},
        )
        return _machine_from_row(row)

    def remove_machine(self, machine_id: str) -> Machine:
        row = self._fetch(
            f"DELETE FROM public.machines WHERE id = %s RETURNING {MACHINE_COLUMNS};",
            (machine_id,),
        )
        if row is None:
            raise MachineNotFoundError(machine_id)
        return _machine_from_row(row)

    def update_machine(self, machine_id: str, update: MachineUpdate) -> Machine:
        changes = {k: v for k, v in update.changes().items() if k in _UPDATABLE}
        if not changes:
            row = self._fetch(
                f"SELECT {MACHINE_COLUMNS} FROM public.machines WHERE id = %s;", (machine_id,)
            )
        else:
            assignments = sql.SQL(", ").join(
                sql.SQL("{} = %s").format(sql.Identifier(column)) for column in changes
            )
            query = sql.SQL(
                "UPDATE public.machines SET {}, updated_at = now() "
                "WHERE id = %s RETURNING {};"
            ).format(assignments, sql.SQL(MACHINE_COLUMNS))
            params = [_db_value(v) for v in changes.values()] + [machine_id]
            try:
                row = self._fetch(query, params)
            except errors.UniqueViolation as exc:
                raise DuplicateSerialNumberError(changes["serial_number"]) from exc
        if row is None:
            raise MachineNotFoundError(machine_id)
        return _machine_from_row(row)

    def close(self) -> None:
        if self._pool_instance is not None and self._owns_pool:
            try:
                self._pool_instance.close()
            except psycopg.Error as exc:
                log.warning("Failed to close repository pool", extra={"error": str(exc)})
        self._pool_instance = None
        self._owns_pool = False


__all__ = ["PostgresArcadeRepository"]
