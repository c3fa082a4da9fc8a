"""
Arcade Compliance - B3 machine quota engine for arcade operators.

This package evaluates gaming-machine inventories against the rule that B3
machines may not exceed 20% of an arcade's active machines, and provides:

- A pure single-arcade evaluator (verdict, issues, warnings, breakdown)
- An organization-wide aggregator with a compliance summary
- Onboarding inventory validation built on the same rule
- Repositories (in-memory, PostgreSQL, async PostgreSQL) that enforce
  global serial-number uniqueness at registration
- A service layer and CLI that recompute compliance on every read
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from arcade_compliance.compliance import (
    evaluate_arcade_compliance,
    evaluate_organization_compliance,
    preview_inventory_compliance,
    validate_machine_inventory,
)
from arcade_compliance.config import Settings, get_settings
from arcade_compliance.domain import (
    ArcadeSnapshot,
    ComplianceCheckResult,
    DuplicateSerialNumberError,
    Machine,
    MachineCategory,
    OrganizationComplianceOverview,
)
from arcade_compliance.service import (
    ArcadeComplianceService,
    get_organization_compliance_overview_async,
)
from arcade_compliance.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Compliance rules
    "evaluate_arcade_compliance",
    "evaluate_organization_compliance",
    "preview_inventory_compliance",
    "validate_machine_inventory",
    # Domain
    "ArcadeSnapshot",
    "ComplianceCheckResult",
    "DuplicateSerialNumberError",
    "Machine",
    "MachineCategory",
    "OrganizationComplianceOverview",
    # Service
    "ArcadeComplianceService",
    "get_organization_compliance_overview_async",
    # Logging
    "configure_logging",
    "get_logger",
]
