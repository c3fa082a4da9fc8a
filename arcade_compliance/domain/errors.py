"""
Exceptions raised at the registration and lookup boundaries.

The compliance evaluator itself never raises for well-formed input; these
errors come from the repositories, the service and inventory validation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from arcade_compliance.domain.models import ComplianceCheckResult


class ArcadeComplianceError(Exception):
    """Base class for errors raised by this package."""


class DuplicateSerialNumberError(ArcadeComplianceError, ValueError):
    """Raised when a serial number is already registered to any machine."""

    def __init__(self, serial_number: str) -> None:
        self.serial_number = serial_number
        super().__init__(f"Machine with serial number {serial_number} already exists")


class MachineNotFoundError(ArcadeComplianceError, LookupError):
    def __init__(self, machine_id: str) -> None:
        self.machine_id = machine_id
        super().__init__("Machine not found")


class ArcadeNotFoundError(ArcadeComplianceError, LookupError):
    def __init__(self, arcade_id: str) -> None:
        self.arcade_id = arcade_id
        super().__init__(f"Arcade not found: {arcade_id}")


class InventoryValidationError(ArcadeComplianceError, ValueError):
    """
    Raised when an onboarding machine inventory cannot be submitted.

    ``compliance`` is set when the rejection comes from the B3 quota check.
    """

    def __init__(
        self, message: str, compliance: Optional["ComplianceCheckResult"] = None
    ) -> None:
        self.compliance = compliance
        super().__init__(message)


__all__ = [
    "ArcadeComplianceError",
    "ArcadeNotFoundError",
    "DuplicateSerialNumberError",
    "InventoryValidationError",
    "MachineNotFoundError",
]
