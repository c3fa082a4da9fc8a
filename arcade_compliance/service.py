"""
Application service for arcade machine compliance.

Wires the repositories to the compliance rules. Every operation re-reads the
current machine snapshot and recomputes the verdict; no compliance state is
stored or cached.

Usage:
    from arcade_compliance.repositories import InMemoryArcadeRepository
    from arcade_compliance.service import ArcadeComplianceService

    service = ArcadeComplianceService(InMemoryArcadeRepository())
    result = service.check_arcade_compliance(arcade_id)
"""

from __future__ import annotations

import asyncio
from typing import Optional

from arcade_compliance.compliance.aggregator import evaluate_organization_compliance
from arcade_compliance.compliance.evaluator import evaluate_arcade_compliance
from arcade_compliance.config import get_settings
from arcade_compliance.domain.errors import ArcadeNotFoundError
from arcade_compliance.domain.models import (
    ArcadeSnapshot,
    ComplianceCheckResult,
    MachineChangeResult,
    MachineRegistration,
    MachineUpdate,
    OrganizationComplianceOverview,
)
from arcade_compliance.repositories.abstract import AbstractArcadeRepository, AsyncArcadeLookup
from arcade_compliance.utils.logging import get_logger

log = get_logger(__name__)


def _log_verdict(arcade_id: str, result: ComplianceCheckResult) -> None:
    breakdown = result.machine_breakdown
    log.info(
        f"[COMPLIANCE] arcade {arcade_id}: {'compliant' if result.is_compliant else 'NON-COMPLIANT'}",
        extra={
            "arcade_id": arcade_id,
            "is_compliant": result.is_compliant,
            "total": breakdown.total,
            "b3_count": breakdown.b3_count,
            "max_b3_allowed": breakdown.max_b3_allowed,
            "issues": len(result.issues),
            "warnings": len(result.warnings),
        },
    )


def _log_overview(organization_id: str, overview: OrganizationComplianceOverview) -> None:
    summary = overview.summary
    log.info(
        f"[OVERVIEW] organization {organization_id}: "
        f"{summary.compliant_arcades}/{summary.total_arcades} arcades compliant",
        extra={
            "organization_id": organization_id,
            "total_arcades": summary.total_arcades,
            "compliance_percentage": summary.compliance_percentage,
        },
    )


class ArcadeComplianceService:
    """
    Compliance operations over an arcade repository.
    """

    def __init__(self, repository: AbstractArcadeRepository) -> None:
        self.repository = repository

    def check_arcade_compliance(self, arcade_id: str) -> ComplianceCheckResult:
        """
        Evaluate the B3 quota for an arcade's current active machines.

        Raises
        ------
        ArcadeNotFoundError
            If the arcade does not exist.
        """
        if self.repository.get_arcade(arcade_id) is None:
            raise ArcadeNotFoundError(arcade_id)
        return self._evaluate(arcade_id)

    def _evaluate(self, arcade_id: str) -> ComplianceCheckResult:
        result = evaluate_arcade_compliance(self.repository.get_active_machines(arcade_id))
        _log_verdict(arcade_id, result)
        return result

    def add_machine(self, registration: MachineRegistration) -> MachineChangeResult:
        """
        Register a machine and return it with the arcade's fresh compliance check.

        A registration that pushes the arcade over the quota is still stored; the
        returned check reports the issue.
        """
        machine = self.repository.add_machine(registration)
        return MachineChangeResult(machine=machine, compliance_check=self._evaluate(machine.arcade_id))

    def remove_machine(self, machine_id: str) -> ComplianceCheckResult:
        machine = self.repository.remove_machine(machine_id)
        log.info("Machine removed", extra={"machine_id": machine_id, "arcade_id": machine.arcade_id})
        return self._evaluate(machine.arcade_id)

    def update_machine(self, machine_id: str, update: MachineUpdate) -> MachineChangeResult:
        machine = self.repository.update_machine(machine_id, update)
        return MachineChangeResult(machine=machine, compliance_check=self._evaluate(machine.arcade_id))

    def get_organization_compliance_overview(
        self, organization_id: str
    ) -> OrganizationComplianceOverview:
        """
        Evaluate every arcade of the organization. No arcades yields a zero summary.
        """
        snapshots = [
            ArcadeSnapshot(
                id=arcade.id,
                name=arcade.name,
                machines=tuple(self.repository.get_active_machines(arcade.id)),
            )
            for arcade in self.repository.list_arcades(organization_id)
        ]
        overview = evaluate_organization_compliance(snapshots)
        _log_overview(organization_id, overview)
        return overview


async def get_organization_compliance_overview_async(
    lookup: AsyncArcadeLookup,
    organization_id: str,
    concurrency: Optional[int] = None,
) -> OrganizationComplianceOverview:
    """
    Build the organization overview, reading arcades' machines concurrently.

    Parameters
    ----------
    lookup : AsyncArcadeLookup
        Source of arcades and their active machines.
    organization_id : str
        Organization whose arcades are evaluated.
    concurrency : int | None
        Maximum machine reads in flight. Defaults to settings.overview_concurrency.

    Returns
    -------
    OrganizationComplianceOverview
        Details keep the order in which the lookup listed the arcades.

    Raises
    ------
    Exception
        The first error raised by a machine read. Reads still in flight are
        cancelled before it propagates.
    """
    limit = max(concurrency or get_settings().overview_concurrency, 1)
    semaphore = asyncio.Semaphore(limit)
    arcades = await lookup.list_arcades(organization_id)

    async def _snapshot(arcade) -> ArcadeSnapshot:
        async with semaphore:
            machines = await lookup.get_active_machines(arcade.id)
        return ArcadeSnapshot(id=arcade.id, name=arcade.name, machines=tuple(machines))

    log.debug(
        "Fetching arcade snapshots",
        extra={"organization_id": organization_id, "arcades": len(arcades), "concurrency": limit},
    )
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(_snapshot(arcade)) for arcade in arcades]
    except ExceptionGroup as failures:
        # Remaining reads were cancelled by the group; report the first failure.
        log.error(
            "Arcade snapshot fetch failed",
            extra={"organization_id": organization_id, "failures": len(failures.exceptions)},
        )
        raise failures.exceptions[0] from failures
    overview = evaluate_organization_compliance(task.result() for task in tasks)
    _log_overview(organization_id, overview)
    return overview


__all__ = [
    "ArcadeComplianceService",
    "get_organization_compliance_overview_async",
]
