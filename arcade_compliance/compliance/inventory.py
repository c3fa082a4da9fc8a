"""
Onboarding machine-inventory validation.

Mirrors the pre-submission check of the onboarding flow: rows without a serial
number are ignored, at least one machine is required, serial numbers must be
unique within the submission, and the inventory must satisfy the B3 quota
before any machine is registered.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from arcade_compliance.compliance.evaluator import evaluate_arcade_compliance
from arcade_compliance.domain.errors import InventoryValidationError
from arcade_compliance.domain.models import (
    ComplianceCheckResult,
    MachineCategory,
    MachineRegistration,
)
from arcade_compliance.utils.logging import get_logger

log = get_logger(__name__)


class InventoryEntry(BaseModel):
    """
    One row of an onboarding machine inventory. Blank serial numbers are allowed
    here and mean "row not filled in yet".
    """

    serial_number: str = Field("", alias="serialNumber")
    category: MachineCategory = MachineCategory.C
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    location: Optional[str] = None
    install_date: Optional[date] = Field(None, alias="installDate")

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("serial_number", mode="before")
    @classmethod
    def strip_serial_number(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("manufacturer", "model", "location", "install_date", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_filled(self) -> bool:
        return bool(self.serial_number)

    def to_registration(self, arcade_id: str) -> MachineRegistration:
        return MachineRegistration(
            arcade_id=arcade_id,
            serial_number=self.serial_number,
            category=self.category,
            manufacturer=self.manufacturer,
            model=self.model,
            install_date=self.install_date,
            location=self.location,
        )


@dataclass(frozen=True)
class InventoryValidation:
    machines: Tuple[InventoryEntry, ...]
    compliance: ComplianceCheckResult

    def registrations(self, arcade_id: str) -> List[MachineRegistration]:
        return [entry.to_registration(arcade_id) for entry in self.machines]


def _parse(entries: Iterable[Any]) -> List[InventoryEntry]:
    return [e if isinstance(e, InventoryEntry) else InventoryEntry.model_validate(e) for e in entries]


def preview_inventory_compliance(entries: Iterable[Any]) -> ComplianceCheckResult:
    """Compliance of the filled-in rows, for live feedback while editing."""
    return evaluate_arcade_compliance(e for e in _parse(entries) if e.is_filled)


def validate_machine_inventory(entries: Iterable[Any]) -> InventoryValidation:
    """
    Validate an inventory before its machines are registered.

    Raises
    ------
    InventoryValidationError
        If no row has a serial number, a serial number repeats, or the B3 quota
        is exceeded (``compliance`` is attached in the last case).
    pydantic.ValidationError
        If a row carries an unknown category or malformed field.
    """
    filled = tuple(e for e in _parse(entries) if e.is_filled)
    if not filled:
        raise InventoryValidationError("Please add at least one machine with a serial number.")

    repeated = sorted(s for s, n in Counter(e.serial_number for e in filled).items() if n > 1)
    if repeated:
        raise InventoryValidationError(
            f"Duplicate serial numbers in inventory: {', '.join(repeated)}"
        )

    compliance = evaluate_arcade_compliance(filled)
    if not compliance.is_compliant:
        log.info(
            "Inventory rejected by B3 quota",
            extra={
                "total": compliance.machine_breakdown.total,
                "b3_count": compliance.machine_breakdown.b3_count,
            },
        )
        raise InventoryValidationError(
            f"Compliance issues detected: {', '.join(compliance.issues)}",
            compliance=compliance,
        )

    return InventoryValidation(machines=filled, compliance=compliance)


__all__ = [
    "InventoryEntry",
    "InventoryValidation",
    "preview_inventory_compliance",
    "validate_machine_inventory",
]
