"""
Single-arcade compliance evaluator.

Applies the B3 quota to an arcade's machines: B3 machines may not exceed 20% of
the total active machines, with the allowed maximum rounded down. The function
is pure; it reads nothing but its argument and is recomputed on every call.

Usage:
    from arcade_compliance.compliance.evaluator import evaluate_arcade_compliance

    result = evaluate_arcade_compliance(machines)
    print(result.is_compliant, result.machine_breakdown.max_b3_allowed)

Records may be model instances (``category`` / ``is_active`` attributes) or
mappings (``category`` plus ``is_active`` or ``isActive``). A missing active flag
means active. A missing or unrecognized category is counted as OTHER: it adds
to the total without being broken out, and no error is raised.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from arcade_compliance.domain.models import (
    ComplianceCheckResult,
    MachineBreakdown,
    MachineCategory,
)

B3_MAX_SHARE = 0.2
APPROACHING_LIMIT_FACTOR = 0.8
NO_MACHINES_WARNING = "No machines registered in this arcade"


@dataclass(frozen=True)
class CategoryCounts:
    total: int = 0
    b3: int = 0
    c: int = 0
    d: int = 0
    other: int = 0


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round to the given decimals with ties going up (not banker's rounding)."""
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


def _field(record: Any, *names: str, default: Any = None) -> Any:
    if isinstance(record, Mapping):
        for name in names:
            if name in record:
                return record[name]
        return default
    for name in names:
        if hasattr(record, name):
            return getattr(record, name)
    return default


def is_active(record: Any) -> bool:
    value = _field(record, "is_active", "isActive", default=True)
    return True if value is None else bool(value)


def category_of(record: Any) -> MachineCategory:
    return MachineCategory.classify(_field(record, "category"))


def count_categories(machines: Iterable[Any]) -> CategoryCounts:
    """
    Count active machines by category. Inactive records are skipped entirely.
    """
    tally = {category: 0 for category in MachineCategory}
    for machine in machines:
        if is_active(machine):
            tally[category_of(machine)] += 1
    return CategoryCounts(
        total=sum(tally.values()),
        b3=tally[MachineCategory.B3],
        c=tally[MachineCategory.C],
        d=tally[MachineCategory.D],
        other=tally[MachineCategory.OTHER],
    )


def max_b3_allowed_for(total: int) -> int:
    """Largest B3 count allowed for ``total`` active machines (20%, rounded down)."""
    return math.floor(total * B3_MAX_SHARE)


def evaluate_arcade_compliance(machines: Iterable[Any]) -> ComplianceCheckResult:
    """
    Evaluate the B3 quota for one arcade.

    Parameters
    ----------
    machines : iterable
        The arcade's machine records. Inactive records are ignored.

    Returns
    -------
    ComplianceCheckResult
        Verdict, issues, warnings and the machine breakdown. The verdict
        compares the B3 count with the allowed maximum; the rounded percentage
        is for display only.
    """
    counts = count_categories(machines)
    total = counts.total
    b3_count = counts.b3

    b3_percentage = (b3_count / total) * 100 if total > 0 else 0.0
    display_percentage = round_half_up(b3_percentage, 1)
    max_b3_allowed = max_b3_allowed_for(total)

    issues = []
    warnings = []

    if b3_count > max_b3_allowed:
        issues.append(
            f"B3 machine limit exceeded: {b3_count} B3 machines ({display_percentage:.1f}%) "
            f"exceeds the maximum allowed of {max_b3_allowed} "
            f"(20% of {total} total machines)"
        )

    if b3_count == max_b3_allowed and total > 0:
        warnings.append(
            f"B3 machine limit reached: {b3_count} B3 machines ({display_percentage:.1f}%) "
            "is at the maximum allowed limit"
        )
    elif b3_count >= max_b3_allowed * APPROACHING_LIMIT_FACTOR and total > 0:
        warnings.append(
            f"Approaching B3 machine limit: {b3_count} B3 machines ({display_percentage:.1f}%) "
            f"is close to the maximum allowed of {max_b3_allowed}"
        )

    if total == 0:
        warnings.append(NO_MACHINES_WARNING)

    return ComplianceCheckResult(
        is_compliant=b3_count <= max_b3_allowed,
        issues=tuple(issues),
        warnings=tuple(warnings),
        machine_breakdown=MachineBreakdown(
            total=total,
            b3_count=b3_count,
            c_count=counts.c,
            d_count=counts.d,
            b3_percentage=display_percentage,
            max_b3_allowed=max_b3_allowed,
        ),
    )


__all__ = [
    "B3_MAX_SHARE",
    "CategoryCounts",
    "NO_MACHINES_WARNING",
    "category_of",
    "count_categories",
    "evaluate_arcade_compliance",
    "is_active",
    "max_b3_allowed_for",
    "round_half_up",
]
