"""
Domain package for the arcade compliance engine.

Exports the machine taxonomy, records, result value objects and errors used
across the evaluator, repositories and service. Keep this package focused on
data definitions and validation concerns.
"""

from arcade_compliance.domain.errors import (
    ArcadeComplianceError,
    ArcadeNotFoundError,
    DuplicateSerialNumberError,
    InventoryValidationError,
    MachineNotFoundError,
)
from arcade_compliance.domain.models import (
    Arcade,
    ArcadeComplianceDetail,
    ArcadeRef,
    ArcadeSnapshot,
    ComplianceCheckResult,
    ComplianceSummary,
    Machine,
    MachineBreakdown,
    MachineCategory,
    MachineChangeResult,
    MachineRegistration,
    MachineUpdate,
    OrganizationComplianceOverview,
)

__all__ = [
    # Models
    "Arcade",
    "ArcadeComplianceDetail",
    "ArcadeRef",
    "ArcadeSnapshot",
    "ComplianceCheckResult",
    "ComplianceSummary",
    "Machine",
    "MachineBreakdown",
    "MachineCategory",
    "MachineChangeResult",
    "MachineRegistration",
    "MachineUpdate",
    "OrganizationComplianceOverview",
    # Errors
    "ArcadeComplianceError",
    "ArcadeNotFoundError",
    "DuplicateSerialNumberError",
    "InventoryValidationError",
    "MachineNotFoundError",
]
