"""
Integration tests for the PostgreSQL repositories.

These tests run against a real PostgreSQL instance and verify that:
1. The unique index rejects a serial number registered in any arcade
2. Registration, update and removal recompute compliance from stored rows
3. The async overview fan-out matches the sequential service

Run with: RUN_INTEGRATION_TESTS=1 pytest tests/integration/
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor

import pytest

from arcade_compliance.domain.errors import (
    ArcadeNotFoundError,
    DuplicateSerialNumberError,
    MachineNotFoundError,
)
from arcade_compliance.domain.models import MachineRegistration, MachineUpdate
from arcade_compliance.repositories.async_postgres import AsyncPostgresArcadeLookup
from arcade_compliance.repositories.postgres import PostgresArcadeRepository
from arcade_compliance.service import (
    ArcadeComplianceService,
    get_organization_compliance_overview_async,
)

pytestmark = pytest.mark.skipif(
    os.getenv("RUN_INTEGRATION_TESTS") != "1",
    reason="Set RUN_INTEGRATION_TESTS=1 to run integration tests against Postgres",
)

DEFAULT_POOL_MIN = 1
DEFAULT_POOL_MAX = 4
CONCURRENT_REGISTRATIONS = 8


@pytest.fixture
def repository(test_dsn: str, seeded_organization: dict):
    repo = PostgresArcadeRepository(
        dsn_override=test_dsn, pool_min_size=DEFAULT_POOL_MIN, pool_max_size=DEFAULT_POOL_MAX
    )
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture
def service(repository: PostgresArcadeRepository) -> ArcadeComplianceService:
    return ArcadeComplianceService(repository)


def _register(service, arcade_id: str, serial: str, category: str = "C"):
    return service.add_machine(
        MachineRegistration(arcade_id=arcade_id, serial_number=serial, category=category)
    )


def test_registration_returns_stored_machine_and_compliance(service, seeded_organization):
    alpha = seeded_organization["alpha_id"]
    for i in range(4):
        _register(service, alpha, f"ALPHA-C-{i}")

    result = _register(service, alpha, "ALPHA-B3-1", "B3")

    assert result.machine.arcade_id == alpha
    assert result.machine.is_active is True
    assert result.compliance_check.machine_breakdown.total == 5
    assert result.compliance_check.is_compliant is True


def test_duplicate_serial_number_rejected_across_arcades(service, repository, seeded_organization):
    _register(service, seeded_organization["alpha_id"], "SHARED-1")

    with pytest.raises(DuplicateSerialNumberError):
        _register(service, seeded_organization["bravo_id"], "SHARED-1", "D")

    assert repository.get_active_machines(seeded_organization["bravo_id"]) == []


def test_concurrent_registrations_of_one_serial_number_admit_exactly_one(
    service, seeded_organization
):
    alpha = seeded_organization["alpha_id"]

    def attempt(_: int) -> bool:
        try:
            _register(service, alpha, "RACE-1")
            return True
        except DuplicateSerialNumberError:
            return False

    with ThreadPoolExecutor(max_workers=DEFAULT_POOL_MAX) as executor:
        outcomes = list(executor.map(attempt, range(CONCURRENT_REGISTRATIONS)))

    assert outcomes.count(True) == 1


def test_registration_for_unknown_arcade_fails(service, seeded_organization):
    with pytest.raises(ArcadeNotFoundError):
        _register(service, "no-such-arcade", "ORPHAN-1")


def test_update_and_remove_recompute_compliance(service, seeded_organization):
    alpha = seeded_organization["alpha_id"]
    _register(service, alpha, "C-1")
    b3 = _register(service, alpha, "B3-1", "B3").machine
    assert service.check_arcade_compliance(alpha).is_compliant is False

    updated = service.update_machine(b3.id, MachineUpdate(is_active=False))
    assert updated.machine.is_active is False
    assert updated.compliance_check.is_compliant is True

    after_removal = service.remove_machine(b3.id)
    assert after_removal.machine_breakdown.total == 1

    with pytest.raises(MachineNotFoundError):
        service.remove_machine(b3.id)


def test_update_to_taken_serial_number_is_rejected(service, seeded_organization):
    alpha = seeded_organization["alpha_id"]
    _register(service, alpha, "SN-1")
    second = _register(service, alpha, "SN-2").machine

    with pytest.raises(DuplicateSerialNumberError):
        service.update_machine(second.id, MachineUpdate(serial_number="SN-1"))


def test_check_unknown_arcade_fails(service, seeded_organization):
    with pytest.raises(ArcadeNotFoundError):
        service.check_arcade_compliance("no-such-arcade")


@pytest.mark.asyncio
async def test_async_overview_matches_sequential_service(
    test_dsn: str, service, seeded_organization
):
    alpha, bravo = seeded_organization["alpha_id"], seeded_organization["bravo_id"]
    _register(service, alpha, "A-B3-1", "B3")
    _register(service, alpha, "A-C-1")

    async with AsyncPostgresArcadeLookup(
        dsn_override=test_dsn, pool_min_size=DEFAULT_POOL_MIN, pool_max_size=DEFAULT_POOL_MAX
    ) as lookup:
        overview = await get_organization_compliance_overview_async(
            lookup, seeded_organization["organization_id"], concurrency=2
        )

    sequential = service.get_organization_compliance_overview(
        seeded_organization["organization_id"]
    )
    assert overview == sequential
    assert [d.arcade.id for d in overview.arcade_details] == [alpha, bravo]
    assert overview.summary.total_arcades == 2
    # Alpha is over the quota; Bravo has no machines and only warns.
    assert overview.summary.compliant_arcades == 1
    assert overview.summary.compliance_percentage == 50
