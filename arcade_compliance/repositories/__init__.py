"""
Repositories package for the arcade compliance engine.

Re-exports the lookup interfaces and the concrete storage backends so callers
can import from ``arcade_compliance.repositories`` directly.
"""

from arcade_compliance.repositories.abstract import (
    AbstractArcadeRepository,
    ArcadeLookup,
    AsyncArcadeLookup,
    MachineLookup,
)
from arcade_compliance.repositories.async_postgres import AsyncPostgresArcadeLookup
from arcade_compliance.repositories.memory import InMemoryArcadeRepository
from arcade_compliance.repositories.postgres import PostgresArcadeRepository

__all__ = [
    # Abstracts
    "AbstractArcadeRepository",
    "ArcadeLookup",
    "AsyncArcadeLookup",
    "MachineLookup",
    # Concrete backends
    "AsyncPostgresArcadeLookup",
    "InMemoryArcadeRepository",
    "PostgresArcadeRepository",
]
