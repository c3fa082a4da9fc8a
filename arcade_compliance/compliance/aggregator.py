"""
Organization-wide compliance aggregation.

Runs the single-arcade evaluator once per arcade and summarizes the results.
Each evaluation depends only on its own arcade's machines, so callers are free
to gather the snapshots concurrently (see ``service.get_organization_compliance_overview_async``).
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Sequence

from arcade_compliance.compliance.evaluator import evaluate_arcade_compliance, round_half_up
from arcade_compliance.domain.models import (
    ArcadeComplianceDetail,
    ArcadeRef,
    ArcadeSnapshot,
    ComplianceSummary,
    OrganizationComplianceOverview,
)


def _machine_list(arcade_id: str, machines: Any) -> Sequence[Any]:
    if machines is None:
        return ()
    if isinstance(machines, (str, bytes, Mapping)) or not isinstance(machines, Iterable):
        raise TypeError(
            f"Machines of arcade {arcade_id} must be a list, got {type(machines).__name__}"
        )
    return tuple(machines)


def _as_snapshot(arcade: Any) -> ArcadeSnapshot:
    if isinstance(arcade, ArcadeSnapshot):
        return arcade
    if isinstance(arcade, Mapping):
        arcade_id = str(arcade["id"])
        machines = arcade.get("activeMachines", arcade.get("machines"))
        return ArcadeSnapshot(
            id=arcade_id, name=str(arcade["name"]), machines=_machine_list(arcade_id, machines)
        )
    arcade_id = str(arcade.id)
    return ArcadeSnapshot(
        id=arcade_id,
        name=str(arcade.name),
        machines=_machine_list(arcade_id, getattr(arcade, "machines", None)),
    )


def evaluate_arcade_detail(arcade: Any) -> ArcadeComplianceDetail:
    """Evaluate one arcade, keeping its identity alongside the result."""
    snapshot = _as_snapshot(arcade)
    return ArcadeComplianceDetail(
        arcade=ArcadeRef(id=snapshot.id, name=snapshot.name),
        compliance=evaluate_arcade_compliance(snapshot.machines),
    )


def summarize(details: Sequence[ArcadeComplianceDetail]) -> ComplianceSummary:
    """
    Count compliant, failing and warned arcades.

    The compliance percentage is rounded to the nearest whole number, unlike the
    floor used for the B3 allowance.
    """
    total_arcades = len(details)
    compliant_arcades = sum(1 for d in details if d.compliance.is_compliant)
    return ComplianceSummary(
        total_arcades=total_arcades,
        compliant_arcades=compliant_arcades,
        arcades_with_issues=sum(1 for d in details if d.compliance.issues),
        arcades_with_warnings=sum(1 for d in details if d.compliance.warnings),
        compliance_percentage=(
            int(round_half_up(compliant_arcades / total_arcades * 100))
            if total_arcades > 0
            else 0
        ),
    )


def evaluate_organization_compliance(arcades: Iterable[Any]) -> OrganizationComplianceOverview:
    """
    Evaluate every arcade of an organization.

    Parameters
    ----------
    arcades : iterable
        ``ArcadeSnapshot`` instances, or mappings with ``id``, ``name`` and
        ``activeMachines`` (or ``machines``).

    Returns
    -------
    OrganizationComplianceOverview
        Summary plus per-arcade details in input order. An organization with no
        arcades yields an all-zero summary.
    """
    details: List[ArcadeComplianceDetail] = [evaluate_arcade_detail(a) for a in arcades]
    return OrganizationComplianceOverview(summary=summarize(details), arcade_details=tuple(details))


__all__ = [
    "evaluate_arcade_detail",
    "evaluate_organization_compliance",
    "summarize",
]
