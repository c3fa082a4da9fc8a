from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from arcade_compliance.domain.models import (
    Machine,
    MachineCategory,
    MachineRegistration,
    MachineUpdate,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("B3", MachineCategory.B3),
        ("D", MachineCategory.D),
        (" b3 ", MachineCategory.OTHER),
        ("b3", MachineCategory.OTHER),
        (MachineCategory.C, MachineCategory.C),
        ("crane", MachineCategory.OTHER),
        ("", MachineCategory.OTHER),
        (None, MachineCategory.OTHER),
        (3, MachineCategory.OTHER),
    ],
)
def test_category_classify(raw, expected):
    assert MachineCategory.classify(raw) is expected


def test_machine_accepts_camel_case_payload():
    machine = Machine.model_validate(
        {
            "id": "m-1",
            "arcadeId": "a-1",
            "serialNumber": "SN-1",
            "category": "B3",
            "isActive": False,
            "installDate": "2023-05-17",
        }
    )

    assert machine.arcade_id == "a-1"
    assert machine.is_active is False
    assert machine.install_date == date(2023, 5, 17)
    assert machine.model_dump(by_alias=True)["serialNumber"] == "SN-1"


def test_machine_is_immutable():
    machine = Machine(id="m-1", arcade_id="a-1", serial_number="SN-1", category="C")

    with pytest.raises(ValidationError):
        machine.category = MachineCategory.B3


def test_registration_strips_serial_and_blanks_optional_fields():
    registration = MachineRegistration(
        arcade_id="a-1",
        serial_number="  SN-7 ",
        category="D",
        manufacturer="  ",
        location="",
    )

    assert registration.serial_number == "SN-7"
    assert registration.manufacturer is None
    assert registration.location is None


@pytest.mark.parametrize("serial", ["", "   "])
def test_registration_requires_serial_number(serial):
    with pytest.raises(ValidationError):
        MachineRegistration(arcade_id="a-1", serial_number=serial, category="C")


def test_registration_rejects_unknown_category():
    with pytest.raises(ValidationError):
        MachineRegistration(arcade_id="a-1", serial_number="SN-1", category="B4")


def test_update_changes_only_include_fields_that_were_set():
    update = MachineUpdate(category="B3", location=None)

    assert update.changes() == {"category": MachineCategory.B3, "location": None}


def test_update_ignores_none_for_required_columns():
    update = MachineUpdate(serial_number=None, is_active=None, manufacturer="Reflex")

    assert update.changes() == {"manufacturer": "Reflex"}


def test_update_stores_blank_optional_fields_as_none():
    update = MachineUpdate(manufacturer="", location="   ", model="Rainbow Riches")

    assert update.changes() == {"manufacturer": None, "location": None, "model": "Rainbow Riches"}
