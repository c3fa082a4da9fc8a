from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from arcade_compliance.compliance.evaluator import NO_MACHINES_WARNING
from arcade_compliance.compliance.inventory import (
    InventoryEntry,
    preview_inventory_compliance,
    validate_machine_inventory,
)
from arcade_compliance.domain.errors import InventoryValidationError
from arcade_compliance.domain.models import MachineCategory


def _rows(*categories: str) -> list[dict]:
    return [
        {"serialNumber": f"INV-{i:03d}", "category": category}
        for i, category in enumerate(categories)
    ]


def test_rows_without_serial_number_are_ignored():
    rows = _rows("C", "D") + [
        {"serialNumber": "", "category": "B3"},
        {"serialNumber": "   ", "category": "B3"},
        {"category": "B3"},
    ]

    validation = validate_machine_inventory(rows)

    assert len(validation.machines) == 2
    assert validation.compliance.machine_breakdown.b3_count == 0


def test_inventory_without_any_serial_number_is_rejected():
    with pytest.raises(InventoryValidationError) as excinfo:
        validate_machine_inventory([{"serialNumber": "  ", "category": "C"}])

    assert str(excinfo.value) == "Please add at least one machine with a serial number."
    assert excinfo.value.compliance is None


def test_empty_inventory_is_rejected():
    with pytest.raises(InventoryValidationError):
        validate_machine_inventory([])


def test_duplicate_serial_numbers_are_listed_in_order():
    rows = [
        {"serialNumber": "ZZ-1", "category": "C"},
        {"serialNumber": "AA-1", "category": "C"},
        {"serialNumber": "ZZ-1 ", "category": "D"},
        {"serialNumber": "AA-1", "category": "D"},
        {"serialNumber": "MM-1", "category": "D"},
    ]

    with pytest.raises(InventoryValidationError) as excinfo:
        validate_machine_inventory(rows)

    assert str(excinfo.value) == "Duplicate serial numbers in inventory: AA-1, ZZ-1"


def test_non_compliant_inventory_carries_its_compliance_result():
    with pytest.raises(InventoryValidationError) as excinfo:
        validate_machine_inventory(_rows("B3", "B3", "C", "C", "C"))

    exc = excinfo.value
    assert str(exc).startswith("Compliance issues detected: B3 machine limit exceeded: 2 B3 machines")
    assert exc.compliance is not None
    assert exc.compliance.is_compliant is False
    assert exc.compliance.machine_breakdown.max_b3_allowed == 1


def test_compliant_inventory_returns_registrations():
    rows = _rows("B3", "C", "C", "D", "D")
    rows[0].update({"manufacturer": "Novomatic", "installDate": "2024-03-01", "location": ""})

    validation = validate_machine_inventory(rows)

    assert validation.compliance.is_compliant is True
    registrations = validation.registrations("arcade-9")
    assert [r.serial_number for r in registrations] == [f"INV-{i:03d}" for i in range(5)]
    assert all(r.arcade_id == "arcade-9" for r in registrations)
    first = registrations[0]
    assert first.category is MachineCategory.B3
    assert first.manufacturer == "Novomatic"
    assert first.install_date == date(2024, 3, 1)
    assert first.location is None


def test_unknown_category_is_a_validation_error():
    with pytest.raises(ValidationError):
        validate_machine_inventory([{"serialNumber": "X-1", "category": "Z"}])


def test_entry_defaults_to_category_c():
    entry = InventoryEntry(serial_number=" S-1 ")

    assert entry.serial_number == "S-1"
    assert entry.category is MachineCategory.C
    assert entry.is_filled is True
    assert InventoryEntry(serial_number=None).is_filled is False


def test_preview_reports_partial_inventory():
    preview = preview_inventory_compliance(_rows("B3") + [{"serialNumber": "", "category": "C"}])

    assert preview.is_compliant is False
    assert preview.machine_breakdown.total == 1


def test_preview_of_blank_inventory_has_no_machines_warning():
    preview = preview_inventory_compliance([{"serialNumber": ""}])

    assert preview.is_compliant is True
    assert preview.warnings == (NO_MACHINES_WARNING,)
