"""
Repository interfaces for the arcade compliance engine.

The compliance rules depend only on two lookups: the active machines of an
arcade, and the arcades of an organization. Storage backends implement
``AbstractArcadeRepository`` (sync) or ``AsyncArcadeLookup`` (async fan-out).
Serial-number uniqueness is enforced by ``add_machine`` / ``update_machine``,
never by the evaluator.
"""

from __future__ import annotations

import abc
from typing import Optional, Protocol, Sequence, runtime_checkable

from arcade_compliance.domain.models import Arcade, Machine, MachineRegistration, MachineUpdate


@runtime_checkable
class MachineLookup(Protocol):
    def get_active_machines(self, arcade_id: str) -> Sequence[Machine]:
        """Return the arcade's machines with ``is_active`` set."""
        ...


@runtime_checkable
class ArcadeLookup(Protocol):
    def list_arcades(self, organization_id: str) -> Sequence[Arcade]:
        """Return the organization's arcades, ordered by name."""
        ...


@runtime_checkable
class AsyncArcadeLookup(Protocol):
    async def list_arcades(self, organization_id: str) -> Sequence[Arcade]:
        ...

    async def get_active_machines(self, arcade_id: str) -> Sequence[Machine]:
        ...


class AbstractArcadeRepository(abc.ABC):
    """
    Storage for arcades and their machines.

    Subclasses must reject a registration or update whose serial number already
    belongs to another machine with ``DuplicateSerialNumberError``.
    """

    @abc.abstractmethod
    def get_arcade(self, arcade_id: str) -> Optional[Arcade]:
        raise NotImplementedError

    @abc.abstractmethod
    def list_arcades(self, organization_id: str) -> Sequence[Arcade]:
        raise NotImplementedError

    @abc.abstractmethod
    def get_active_machines(self, arcade_id: str) -> Sequence[Machine]:
        raise NotImplementedError

    @abc.abstractmethod
    def add_machine(self, registration: MachineRegistration) -> Machine:
        """
        Register a machine.

        Raises
        ------
        DuplicateSerialNumberError
            If the serial number exists anywhere in the system.
        ArcadeNotFoundError
            If the target arcade does not exist.
        """
        raise NotImplementedError

    @abc.abstractmethod
    def remove_machine(self, machine_id: str) -> Machine:
        """Delete a machine and return it. Raises ``MachineNotFoundError``."""
        raise NotImplementedError

    @abc.abstractmethod
    def update_machine(self, machine_id: str, update: MachineUpdate) -> Machine:
        raise NotImplementedError

    def close(self) -> None:
        """Release any held resources."""


__all__ = [
    "AbstractArcadeRepository",
    "ArcadeLookup",
    "AsyncArcadeLookup",
    "MachineLookup",
]
