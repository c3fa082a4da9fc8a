"""
In-process repository backed by dictionaries.

Used by tests, the file-based CLI commands and anywhere a database is not
available. A single lock guards the serial-number index so the uniqueness
check and the insert happen atomically.
"""

from __future__ import annotations

import threading
import uuid
from typing import Dict, List, Optional, Sequence

from arcade_compliance.domain.errors import (
    ArcadeNotFoundError,
    DuplicateSerialNumberError,
    MachineNotFoundError,
)
from arcade_compliance.domain.models import Arcade, Machine, MachineRegistration, MachineUpdate
from arcade_compliance.repositories.abstract import AbstractArcadeRepository


class InMemoryArcadeRepository(AbstractArcadeRepository):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._arcades: Dict[str, Arcade] = {}
        self._machines: Dict[str, Machine] = {}
        self._serials: Dict[str, str] = {}

    def add_arcade(
        self,
        organization_id: str,
        name: str,
        address: Optional[str] = None,
        arcade_id: Optional[str] = None,
    ) -> Arcade:
        arcade = Arcade(
            id=arcade_id or str(uuid.uuid4()),
            organization_id=organization_id,
            name=name,
            address=address,
        )
        with self._lock:
            self._arcades[arcade.id] = arcade
        return arcade

    def get_arcade(self, arcade_id: str) -> Optional[Arcade]:
        return self._arcades.get(arcade_id)

    def list_arcades(self, organization_id: str) -> Sequence[Arcade]:
        with self._lock:
            arcades = [a for a in self._arcades.values() if a.organization_id == organization_id]
        return sorted(arcades, key=lambda a: a.name)

    def get_active_machines(self, arcade_id: str) -> Sequence[Machine]:
        with self._lock:
            return [m for m in self._machines.values() if m.arcade_id == arcade_id and m.is_active]

    def list_machines(self, arcade_id: str) -> List[Machine]:
        """All machines of the arcade, inactive ones included."""
        with self._lock:
            return [m for m in self._machines.values() if m.arcade_id == arcade_id]

    def add_machine(self, registration: MachineRegistration) -> Machine:
        with self._lock:
            if registration.arcade_id not in self._arcades:
                raise ArcadeNotFoundError(registration.arcade_id)
            if registration.serial_number in self._serials:
                raise DuplicateSerialNumberError(registration.serial_number)
            machine = Machine(id=str(uuid.uuid4()), is_active=True, **registration.model_dump())
            self._machines[machine.id] = machine
            self._serials[machine.serial_number] = machine.id
        return machine

    def remove_machine(self, machine_id: str) -> Machine:
        with self._lock:
            machine = self._machines.pop(machine_id, None)
            if machine is None:
                raise MachineNotFoundError(machine_id)
            del self._serials[machine.serial_number]
        return machine

    def update_machine(self, machine_id: str, update: MachineUpdate) -> Machine:
        changes = update.changes()
        with self._lock:
            current = self._machines.get(machine_id)
            if current is None:
                raise MachineNotFoundError(machine_id)
            serial = changes.get("serial_number", current.serial_number)
            owner = self._serials.get(serial)
            if owner is not None and owner != machine_id:
                raise DuplicateSerialNumberError(serial)
            updated = current.model_copy(update=changes)
            del self._serials[current.serial_number]
            self._serials[updated.serial_number] = machine_id
            self._machines[machine_id] = updated
        return updated


__all__ = ["InMemoryArcadeRepository"]
