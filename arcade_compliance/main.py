from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import ValidationError

from arcade_compliance.compliance.aggregator import evaluate_organization_compliance
from arcade_compliance.compliance.evaluator import evaluate_arcade_compliance
from arcade_compliance.compliance.inventory import validate_machine_inventory
from arcade_compliance.config import get_settings
from arcade_compliance.domain.errors import ArcadeComplianceError, InventoryValidationError
from arcade_compliance.domain.models import MachineCategory, MachineRegistration
from arcade_compliance.reporter import print_compliance, print_overview
from arcade_compliance.repositories.async_postgres import AsyncPostgresArcadeLookup
from arcade_compliance.repositories.postgres import PostgresArcadeRepository
from arcade_compliance.service import (
    ArcadeComplianceService,
    get_organization_compliance_overview_async,
)
from arcade_compliance.utils.logging import configure_logging

app = typer.Typer(help="Arcade machine compliance CLI.")

JSON_OPTION = typer.Option(False, "--json", help="Print the result as JSON instead of a table.")
DSN_OPTION = typer.Option(None, "--dsn", help="Optional DSN override for Postgres.")


@app.callback()
def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _load_records(path: Path, key: str) -> List[Any]:
    """Read a JSON list, or an object holding the list under ``key``."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.echo(f"Cannot read {path}: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        typer.echo(f"{path} must contain a JSON list (or an object with a '{key}' list).", err=True)
        raise typer.Exit(code=2)
    return data


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"statement_timeout={settings.db_statement_timeout_ms}ms "
        f"pool=({settings.db_pool_min_size},{settings.db_pool_max_size}) "
        f"overview_concurrency={settings.overview_concurrency}"
    )


@app.command()
def check(
    path: Path = typer.Argument(..., help="JSON file with a list of machine records."),
    as_json: bool = JSON_OPTION,
    fail_on_issues: bool = typer.Option(
        False, "--fail-on-issues", help="Exit with code 1 when the arcade is non-compliant."
    ),
) -> None:
    """
    Evaluate the B3 quota for the machines listed in a file.
    """
    result = evaluate_arcade_compliance(_load_records(path, "machines"))
    if as_json:
        _echo_json(result.model_dump(mode="json", by_alias=True))
    else:
        print_compliance(result, title=f"Compliance for {path.name}")
    if fail_on_issues and not result.is_compliant:
        raise typer.Exit(code=1)


@app.command()
def summarize(
    path: Path = typer.Argument(
        ..., help="JSON file with a list of arcades ({id, name, activeMachines})."
    ),
    as_json: bool = JSON_OPTION,
) -> None:
    """
    Aggregate compliance across the arcades listed in a file.
    """
    try:
        overview = evaluate_organization_compliance(_load_records(path, "arcades"))
    except (KeyError, AttributeError) as exc:
        typer.echo(f"Every arcade needs an 'id' and a 'name': {exc}", err=True)
        raise typer.Exit(code=2) from exc
    except TypeError as exc:
        typer.echo(f"Invalid arcade record: {exc}", err=True)
        raise typer.Exit(code=2) from exc
    if as_json:
        _echo_json(overview.model_dump(mode="json", by_alias=True))
    else:
        print_overview(overview)


@app.command("validate-inventory")
def validate_inventory(
    path: Path = typer.Argument(..., help="JSON file with onboarding inventory rows."),
    as_json: bool = JSON_OPTION,
) -> None:
    """
    Run the onboarding pre-submission check on a machine inventory.
    """
    try:
        validation = validate_machine_inventory(_load_records(path, "machines"))
    except InventoryValidationError as exc:
        typer.echo(str(exc), err=True)
        if exc.compliance is not None and not as_json:
            print_compliance(exc.compliance, title="Rejected inventory")
        raise typer.Exit(code=1) from exc
    except ValidationError as exc:
        typer.echo(f"Invalid inventory row: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    if as_json:
        _echo_json(
            {
                "machines": [m.model_dump(mode="json", by_alias=True) for m in validation.machines],
                "compliance": validation.compliance.model_dump(mode="json", by_alias=True),
            }
        )
    else:
        typer.echo(f"{len(validation.machines)} machine(s) ready to register.")
        print_compliance(validation.compliance, title="Inventory compliance")


@app.command()
def arcade(
    arcade_id: str = typer.Argument(..., help="Arcade identifier."),
    as_json: bool = JSON_OPTION,
    dsn: Optional[str] = DSN_OPTION,
) -> None:
    """
    Check the compliance of an arcade stored in Postgres.
    """
    repository = PostgresArcadeRepository(dsn_override=dsn)
    try:
        result = ArcadeComplianceService(repository).check_arcade_compliance(arcade_id)
    except ArcadeComplianceError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    finally:
        repository.close()
    if as_json:
        _echo_json(result.model_dump(mode="json", by_alias=True))
    else:
        print_compliance(result, title=f"Arcade {arcade_id}")


@app.command()
def overview(
    organization_id: str = typer.Argument(..., help="Organization identifier."),
    as_json: bool = JSON_OPTION,
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", "-c", min=1, help="Arcades read concurrently."
    ),
    dsn: Optional[str] = DSN_OPTION,
) -> None:
    """
    Compliance overview of every arcade in an organization stored in Postgres.
    """

    async def _run():
        async with AsyncPostgresArcadeLookup(dsn_override=dsn) as lookup:
            return await get_organization_compliance_overview_async(
                lookup, organization_id, concurrency=concurrency
            )

    result = asyncio.run(_run())
    if as_json:
        _echo_json(
            {
                "overview": result.model_dump(mode="json", by_alias=True),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )
    else:
        print_overview(result)


@app.command("register-machine")
def register_machine(
    arcade_id: str = typer.Argument(..., help="Arcade the machine belongs to."),
    serial_number: str = typer.Argument(..., help="Globally unique serial number."),
    category: MachineCategory = typer.Argument(..., help="Regulatory category."),
    manufacturer: Optional[str] = typer.Option(None, "--manufacturer"),
    model: Optional[str] = typer.Option(None, "--model"),
    location: Optional[str] = typer.Option(None, "--location"),
    install_date: Optional[datetime] = typer.Option(
        None, "--install-date", formats=["%Y-%m-%d"]
    ),
    as_json: bool = JSON_OPTION,
    dsn: Optional[str] = DSN_OPTION,
) -> None:
    """
    Register a machine and report the arcade's compliance afterwards.
    """
    try:
        registration = MachineRegistration(
            arcade_id=arcade_id,
            serial_number=serial_number,
            category=category,
            manufacturer=manufacturer,
            model=model,
            location=location,
            install_date=install_date.date() if install_date else None,
        )
    except ValidationError as exc:
        typer.echo(f"Invalid machine: {exc}", err=True)
        raise typer.Exit(code=2) from exc

    repository = PostgresArcadeRepository(dsn_override=dsn)
    try:
        result = ArcadeComplianceService(repository).add_machine(registration)
    except ArcadeComplianceError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    finally:
        repository.close()

    if as_json:
        _echo_json(result.model_dump(mode="json", by_alias=True))
    else:
        typer.echo(f"Registered machine {result.machine.id} ({result.machine.serial_number}).")
        print_compliance(result.compliance_check, title=f"Arcade {arcade_id}")


@app.command("remove-machine")
def remove_machine(
    machine_id: str = typer.Argument(..., help="Machine identifier."),
    as_json: bool = JSON_OPTION,
    dsn: Optional[str] = DSN_OPTION,
) -> None:
    """
    Delete a machine and report its arcade's compliance afterwards.
    """
    repository = PostgresArcadeRepository(dsn_override=dsn)
    try:
        result = ArcadeComplianceService(repository).remove_machine(machine_id)
    except ArcadeComplianceError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    finally:
        repository.close()
    if as_json:
        _echo_json(result.model_dump(mode="json", by_alias=True))
    else:
        print_compliance(result, title="Arcade after removal")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
