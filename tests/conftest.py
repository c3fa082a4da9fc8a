"""
Pytest configuration for the arcade compliance engine.

Provides fixtures for:
- Machine record factories for the pure evaluator
- In-memory repository and service wiring
- Database connection management and schema setup for integration tests
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Generator, List

import psycopg
import pytest

from arcade_compliance.config import Settings
from arcade_compliance.domain.models import Machine
from arcade_compliance.repositories.memory import InMemoryArcadeRepository
from arcade_compliance.service import ArcadeComplianceService

from tests.factories import make_machines


@pytest.fixture
def machines_factory() -> Callable[..., List[Machine]]:
    return make_machines


@pytest.fixture
def repository() -> InMemoryArcadeRepository:
    return InMemoryArcadeRepository()


@pytest.fixture
def service(repository: InMemoryArcadeRepository) -> ArcadeComplianceService:
    return ArcadeComplianceService(repository)


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """
    Settings fixture with test-specific overrides.

    Can be overridden via environment variables in CI or local testing.
    """
    return Settings(
        db_host=os.getenv("DB_HOST", "localhost"),
        db_port=int(os.getenv("DB_PORT", "5432")),
        db_user=os.getenv("DB_USER", "postgres"),
        db_password=os.getenv("DB_PASSWORD", "postgres"),
        db_name=os.getenv("DB_NAME", "arcade_compliance"),
        log_level="DEBUG",
    )


@pytest.fixture(scope="session")
def test_dsn(test_settings: Settings) -> str:
    """
    Database connection string for tests.
    """
    return (
        f"postgresql://{test_settings.db_user}:{test_settings.db_password}"
        f"@{test_settings.db_host}:{test_settings.db_port}/{test_settings.db_name}"
    )


@pytest.fixture(scope="session")
def db_connection_available(test_dsn: str) -> bool:
    """
    Check if database is reachable.

    Used to conditionally skip integration tests when DB is not available.
    """
    try:
        with psycopg.connect(test_dsn, connect_timeout=5) as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
                cur.fetchone()
        return True
    except psycopg.Error:
        return False


@pytest.fixture(scope="session")
def db_connection(
    test_dsn: str, db_connection_available: bool
) -> Generator[psycopg.Connection, None, None]:
    """
    Provide a session-scoped database connection for integration tests.

    Skips tests if database is not available.
    """
    if not db_connection_available:
        pytest.skip("Database not available for integration tests")

    conn = psycopg.connect(test_dsn)
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="session")
def db_schema_initialized(db_connection: psycopg.Connection) -> bool:
    """
    Ensure the schema from db/init.sql exists (statements are idempotent).
    """
    init_sql_path = Path(__file__).parent.parent / "db" / "init.sql"
    with db_connection.cursor() as cur:
        cur.execute(init_sql_path.read_text(encoding="utf-8"))
    db_connection.commit()
    return True


@pytest.fixture(scope="function")
def clean_tables(db_connection: psycopg.Connection, db_schema_initialized: bool):
    """
    Empty all tables before and after each test function.
    """

    def _truncate() -> None:
        with db_connection.cursor() as cur:
            cur.execute(
                "TRUNCATE TABLE public.machines, public.arcades, public.organizations CASCADE;"
            )
        db_connection.commit()

    _truncate()
    yield
    _truncate()


@pytest.fixture(scope="function")
def seeded_organization(db_connection: psycopg.Connection, clean_tables) -> dict:
    """
    Seed one organization with two arcades (one empty).

    Returns the ids of the organization and its arcades.
    """
    with db_connection.cursor() as cur:
        cur.execute(
            "INSERT INTO public.organizations (name) VALUES (%s) RETURNING id;",
            ("Seaside Leisure Ltd",),
        )
        organization_id = cur.fetchone()[0]
        cur.execute(
            "INSERT INTO public.arcades (organization_id, name) VALUES (%s, %s) RETURNING id;",
            (organization_id, "Alpha Amusements"),
        )
        alpha_id = cur.fetchone()[0]
        cur.execute(
            "INSERT INTO public.arcades (organization_id, name) VALUES (%s, %s) RETURNING id;",
            (organization_id, "Bravo Arcade"),
        )
        bravo_id = cur.fetchone()[0]
    db_connection.commit()
    return {"organization_id": organization_id, "alpha_id": alpha_id, "bravo_id": bravo_id}
