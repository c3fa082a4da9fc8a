"""
Domain models for the arcade compliance engine.

Defines the machine category taxonomy, the machine and arcade records read from
storage, the inputs accepted at the registration boundary, and the value
objects produced by compliance evaluation. Result models serialize with the
camelCase keys consumed by API and UI code (``model_dump(by_alias=True)``).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

from pydantic import BaseModel, Field, field_validator


class MachineCategory(str, Enum):
    """
    Regulatory classification of a gaming machine.

    B3 machines carry the highest stakes and prizes and are capped at 20% of an
    arcade's active machines. OTHER covers unregulated devices (cranes,
    redemption machines), which only count toward the total.
    """

    B3 = "B3"
    C = "C"
    D = "D"
    OTHER = "OTHER"

    @classmethod
    def classify(cls, value: Any) -> "MachineCategory":
        """
        Map a raw category tag to a category, treating anything unrecognized as OTHER.

        Tags match exactly: "b3" or " B3 " is not B3.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value)
            except ValueError:
                return cls.OTHER
        return cls.OTHER


_FROZEN = {
    "frozen": True,
    "populate_by_name": True,
    "arbitrary_types_allowed": False,
}


def _strip_serial(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Machine(BaseModel):
    """
    A physical gaming device registered to an arcade.
    """

    id: str = Field(..., description="Primary key.")
    arcade_id: str = Field(..., alias="arcadeId", description="Owning arcade.")
    serial_number: str = Field(
        ..., alias="serialNumber", description="Globally unique serial number."
    )
    category: MachineCategory = Field(..., description="Regulatory category.")
    is_active: bool = Field(True, alias="isActive", description="Counted toward compliance.")
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    install_date: Optional[date] = Field(None, alias="installDate")
    location: Optional[str] = None

    model_config = _FROZEN


class Arcade(BaseModel):
    """
    A licensed premises owned by an organization.
    """

    id: str
    organization_id: str = Field(..., alias="organizationId")
    name: str
    address: Optional[str] = None

    model_config = _FROZEN


class MachineRegistration(BaseModel):
    """
    Input for registering a new machine to an arcade.
    """

    arcade_id: str = Field(..., alias="arcadeId", min_length=1)
    serial_number: str = Field(..., alias="serialNumber", min_length=1)
    category: MachineCategory
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    install_date: Optional[date] = Field(None, alias="installDate")
    location: Optional[str] = None

    model_config = _FROZEN

    @field_validator("serial_number", mode="before")
    @classmethod
    def strip_serial_number(cls, value: Any) -> Any:
        return _strip_serial(value)

    @field_validator("manufacturer", "model", "install_date", "location", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


class MachineUpdate(BaseModel):
    """
    Partial update of a machine. Only fields explicitly set are applied.
    """

    serial_number: Optional[str] = Field(None, alias="serialNumber", min_length=1)
    category: Optional[MachineCategory] = None
    is_active: Optional[bool] = Field(None, alias="isActive")
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    install_date: Optional[date] = Field(None, alias="installDate")
    location: Optional[str] = None

    model_config = _FROZEN

    @field_validator("serial_number", mode="before")
    @classmethod
    def strip_serial_number(cls, value: Any) -> Any:
        return _strip_serial(value)

    @field_validator("manufacturer", "model", "install_date", "location", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)

    def changes(self) -> dict:
        """Return only the fields the caller set, keyed by field name."""
        changes = self.model_dump(exclude_unset=True)
        # These columns are not nullable; None means "leave unchanged".
        for key in ("serial_number", "category", "is_active"):
            if key in changes and changes[key] is None:
                del changes[key]
        return changes


class MachineBreakdown(BaseModel):
    """
    Numeric summary of an arcade's active machines.

    ``total`` includes OTHER machines, which are not broken out separately.
    """

    total: int = Field(0, ge=0)
    b3_count: int = Field(0, alias="b3Count", ge=0)
    c_count: int = Field(0, alias="cCount", ge=0)
    d_count: int = Field(0, alias="dCount", ge=0)
    b3_percentage: float = Field(0.0, alias="b3Percentage", ge=0)
    max_b3_allowed: int = Field(0, alias="maxB3Allowed", ge=0)

    model_config = _FROZEN


class ComplianceCheckResult(BaseModel):
    """
    Verdict for one arcade, derived from its active machines at evaluation time.
    """

    is_compliant: bool = Field(..., alias="isCompliant")
    issues: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    machine_breakdown: MachineBreakdown = Field(..., alias="machineBreakdown")

    model_config = _FROZEN


class ArcadeRef(BaseModel):
    id: str
    name: str

    model_config = _FROZEN


class ArcadeComplianceDetail(BaseModel):
    arcade: ArcadeRef
    compliance: ComplianceCheckResult

    model_config = _FROZEN


class ComplianceSummary(BaseModel):
    total_arcades: int = Field(0, alias="totalArcades", ge=0)
    compliant_arcades: int = Field(0, alias="compliantArcades", ge=0)
    arcades_with_issues: int = Field(0, alias="arcadesWithIssues", ge=0)
    arcades_with_warnings: int = Field(0, alias="arcadesWithWarnings", ge=0)
    compliance_percentage: int = Field(0, alias="compliancePercentage", ge=0, le=100)

    model_config = _FROZEN


class OrganizationComplianceOverview(BaseModel):
    """
    Compliance of every arcade owned by an organization, plus a summary.
    """

    summary: ComplianceSummary
    arcade_details: Tuple[ArcadeComplianceDetail, ...] = Field((), alias="arcadeDetails")

    model_config = _FROZEN


class MachineChangeResult(BaseModel):
    """
    A machine after a registration or update, with the arcade's fresh compliance check.
    """

    machine: Machine
    compliance_check: ComplianceCheckResult = Field(..., alias="complianceCheck")

    model_config = _FROZEN


@dataclass(frozen=True)
class ArcadeSnapshot:
    """
    One arcade and the machines read for it, as handed to the aggregator.
    """

    id: str
    name: str
    machines: Sequence[Any] = field(default_factory=tuple)


__all__ = [
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
]
