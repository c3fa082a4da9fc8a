import csv
import random
from pathlib import Path

from arcade_compliance import config
from arcade_compliance.domain.models import MachineCategory
from scripts import seed_demo_data


def test_get_settings_defaults():
    settings = config.get_settings()
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.db_name == "arcade_compliance"
    assert settings.db_statement_timeout_ms > 0
    assert settings.overview_concurrency > 0


def test_settings_accept_environment_aliases(monkeypatch):
    monkeypatch.setenv("OVERVIEW_CONCURRENCY", "7")
    monkeypatch.setenv("DB_NAME", "arcades_test")

    settings = config.Settings()

    assert settings.overview_concurrency == 7
    assert settings.db_name == "arcades_test"


def test_seed_script_writes_machines_csv(tmp_path: Path):
    csv_path = tmp_path / "machines.csv"
    arcade_ids = ["arcade-a", "arcade-b", "arcade-c"]

    written = seed_demo_data._generate_machines_csv(
        csv_path, arcade_ids, machines_per_arcade=4, seed=123
    )

    with csv_path.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == seed_demo_data.MACHINE_CSV_HEADER
    body = rows[1:]
    assert len(body) == written
    # Every arcade gets at least one machine.
    assert {row[0] for row in body} == set(arcade_ids)
    serials = [row[1] for row in body]
    assert len(serials) == len(set(serials))
    assert {row[2] for row in body} <= {c.value for c in MachineCategory}


def test_seed_script_is_deterministic(tmp_path: Path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"

    seed_demo_data._generate_machines_csv(first, ["a"], machines_per_arcade=6, seed=7)
    seed_demo_data._generate_machines_csv(second, ["a"], machines_per_arcade=6, seed=7)

    assert first.read_text(encoding="utf-8") == second.read_text(encoding="utf-8")
    arcades = seed_demo_data._generate_arcades(random.Random(7), 3)
    assert len({a.id for a in arcades}) == 3


def test_seed_serials_do_not_collide_across_organizations(tmp_path: Path):
    serials = []
    for seed in (1, 2):
        arcades = seed_demo_data._generate_arcades(random.Random(seed), 4)
        csv_path = tmp_path / f"org-{seed}.csv"
        seed_demo_data._generate_machines_csv(
            csv_path, [a.id for a in arcades], machines_per_arcade=8, seed=seed
        )
        with csv_path.open("r", newline="", encoding="utf-8") as f:
            serials.append({row["serial_number"] for row in csv.DictReader(f)})

    first, second = serials
    assert first and second
    assert first.isdisjoint(second)
