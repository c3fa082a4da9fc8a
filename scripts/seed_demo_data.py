"""
Demo data generation and loading script for the arcade compliance engine.

Implements deterministic pseudo-random organizations, arcades and machine
inventories, CSV emission, and Postgres COPY loading of the machines.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from pathlib import Path

import typer

from arcade_compliance.infrastructure.db_factory import build_dsn, get_sync_connection

app = typer.Typer(help="Generate demo arcades and machines and load them into Postgres.")

MACHINE_CSV_HEADER = [
    "arcade_id",
    "serial_number",
    "category",
    "is_active",
    "manufacturer",
    "model",
    "install_date",
    "location",
]

# Relative weights; most arcades stay under the B3 quota, some do not.
CATEGORY_WEIGHTS = {"B3": 2, "C": 5, "D": 6, "OTHER": 2}
MANUFACTURERS = ["Inspired", "Novomatic", "Reflex", "Bell-Fruit", "Astra"]
LOCATIONS = ["Front floor", "Back floor", "Mezzanine", "Entrance", "Bar area"]
TOWNS = ["Blackpool", "Brighton", "Great Yarmouth", "Skegness", "Margate", "Weston"]


@dataclass(frozen=True)
class DemoArcade:
    id: str
    name: str
    address: str


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _uuid(rng: random.Random) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4))


def _serial_prefix(arcade_id: str) -> str:
    # Arcade ids are unique across organizations, so serials derived from them are too.
    return arcade_id.replace("-", "").upper()


def _generate_arcades(rng: random.Random, count: int) -> list[DemoArcade]:
    arcades = []
    for i in range(count):
        town = rng.choice(TOWNS)
        arcades.append(
            DemoArcade(
                id=_uuid(rng),
                name=f"{town} Amusements #{i + 1}",
                address=f"{rng.randint(1, 200)} Promenade, {town}",
            )
        )
    return arcades


def _generate_machines_csv(
    csv_path: Path,
    arcade_ids: list[str],
    machines_per_arcade: int,
    seed: int,
) -> int:
    """
    Write one CSV row per machine. Serial numbers embed the arcade id, so they are
    unique across the file and across organizations seeded into the same database.

    Returns the number of rows written.
    """
    rng = random.Random(seed)
    categories = list(CATEGORY_WEIGHTS)
    weights = list(CATEGORY_WEIGHTS.values())
    base_date = date(2020, 1, 1)
    written = 0

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(MACHINE_CSV_HEADER)
        for arcade_id in arcade_ids:
            serial_prefix = _serial_prefix(arcade_id)
            # Vary inventory size so the 20% allowance changes between arcades.
            size = max(1, machines_per_arcade + rng.randint(-machines_per_arcade // 2, 3))
            for machine_index in range(size):
                category = rng.choices(categories, weights=weights)[0]
                manufacturer = rng.choice(MANUFACTURERS)
                writer.writerow(
                    [
                        arcade_id,
                        f"SN-{serial_prefix}-{machine_index:04d}",
                        category,
                        "t" if rng.random() > 0.1 else "f",
                        manufacturer,
                        f"{manufacturer[:3].upper()}-{rng.randint(100, 999)}",
                        (base_date + timedelta(days=rng.randint(0, 1800))).isoformat(),
                        rng.choice(LOCATIONS),
                    ]
                )
                written += 1
    return written


def _copy_into_db(
    dsn: str,
    organization_id: str,
    organization_name: str,
    arcades: list[DemoArcade],
    csv_path: Path,
) -> int:
    with get_sync_connection(dsn) as conn:
        with conn.cursor() as cur:
            cur.execute(
                "INSERT INTO public.organizations (id, name) VALUES (%s, %s);",
                (organization_id, organization_name),
            )
            cur.executemany(
                "INSERT INTO public.arcades (id, organization_id, name, address) "
                "VALUES (%s, %s, %s, %s);",
                [(a.id, organization_id, a.name, a.address) for a in arcades],
            )
            with cur.copy(
                """
                COPY public.machines (arcade_id, serial_number, category, is_active, manufacturer, model, install_date, location)
                FROM STDIN WITH (FORMAT csv, HEADER TRUE)
                """
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            cur.execute(
                "SELECT COUNT(*) FROM public.machines m JOIN public.arcades a ON a.id = m.arcade_id "
                "WHERE a.organization_id = %s;",
                (organization_id,),
            )
            loaded = cur.fetchone()[0]
        conn.commit()
    return loaded


@app.command()
def main(
    arcades: int = typer.Option(
        5,
        "--arcades",
        "-a",
        help="Number of arcades to generate.",
    ),
    machines_per_arcade: int = typer.Option(
        12,
        "--machines",
        "-m",
        help="Typical number of machines per arcade.",
    ),
    organization_name: str = typer.Option(
        "Seaside Leisure Ltd",
        "--organization",
        help="Name of the generated organization.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
) -> None:
    """
    Generate a demo organization and optionally load it into Postgres.
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="arcade_machines_"))
        csv_path = tmpdir / "machines.csv"

    rng = random.Random(seed)
    organization_id = _uuid(rng)
    demo_arcades = _generate_arcades(rng, arcades)

    typer.echo(f"Generating machines for {arcades} arcade(s) -> {csv_path} (seed={seed})")
    rows = _generate_machines_csv(
        csv_path, [a.id for a in demo_arcades], machines_per_arcade=machines_per_arcade, seed=seed
    )
    typer.echo(f"Wrote {rows:,} machines in {time.perf_counter() - start:.2f}s")

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    typer.echo("Loading organization, arcades and machines into Postgres...")
    loaded = _copy_into_db(_build_dsn(dsn), organization_id, organization_name, demo_arcades, csv_path)
    typer.echo(f"Loaded {loaded:,} machines. Organization id: {organization_id}")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
