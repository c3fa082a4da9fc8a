"""
Compliance rules: the single-arcade B3 quota evaluator, the organization-wide
aggregator and the onboarding inventory validation built on the same rule.
"""

from arcade_compliance.compliance.aggregator import (
    evaluate_arcade_detail,
    evaluate_organization_compliance,
    summarize,
)
from arcade_compliance.compliance.evaluator import (
    B3_MAX_SHARE,
    CategoryCounts,
    count_categories,
    evaluate_arcade_compliance,
    max_b3_allowed_for,
)
from arcade_compliance.compliance.inventory import (
    InventoryEntry,
    InventoryValidation,
    preview_inventory_compliance,
    validate_machine_inventory,
)

__all__ = [
    "B3_MAX_SHARE",
    "CategoryCounts",
    "InventoryEntry",
    "InventoryValidation",
    "count_categories",
    "evaluate_arcade_compliance",
    "evaluate_arcade_detail",
    "evaluate_organization_compliance",
    "max_b3_allowed_for",
    "preview_inventory_compliance",
    "summarize",
    "validate_machine_inventory",
]
