from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from arcade_compliance.domain.models import ComplianceCheckResult, OrganizationComplianceOverview


def _verdict(result: ComplianceCheckResult) -> str:
    if not result.is_compliant:
        return "[bold red]NON-COMPLIANT[/bold red]"
    if result.warnings:
        return "[yellow]COMPLIANT (warnings)[/yellow]"
    return "[bold green]COMPLIANT[/bold green]"


def print_compliance(
    result: ComplianceCheckResult,
    title: str = "Arcade Compliance",
    console: Optional[Console] = None,
) -> None:
    """
    Render one arcade's breakdown, then its issues and warnings verbatim.
    """
    console = console or Console()
    breakdown = result.machine_breakdown

    table = Table(
        title=f"{title}\n{_verdict(result)}",
        box=box.ROUNDED,
        caption="B3 machines may not exceed 20% of active machines (rounded down)",
    )
    table.add_column("Total", justify="right", style="magenta")
    table.add_column("B3", justify="right", style="cyan")
    table.add_column("C", justify="right")
    table.add_column("D", justify="right")
    table.add_column("B3 %", justify="right", style="bold")
    table.add_column("Max B3 Allowed", justify="right", style="green")
    table.add_row(
        str(breakdown.total),
        str(breakdown.b3_count),
        str(breakdown.c_count),
        str(breakdown.d_count),
        f"{breakdown.b3_percentage:.1f}",
        str(breakdown.max_b3_allowed),
    )
    console.print(table)

    for issue in result.issues:
        console.print(f"[red]✖ {issue}[/red]", highlight=False)
    for warning in result.warnings:
        console.print(f"[yellow]! {warning}[/yellow]", highlight=False)


def print_overview(
    overview: OrganizationComplianceOverview,
    console: Optional[Console] = None,
) -> None:
    """
    Render the organization summary and one row per arcade.

    Non-compliant arcades are listed first, then arcades with warnings.
    """
    console = console or Console()
    summary = overview.summary

    if not overview.arcade_details:
        console.print("[yellow]No arcades registered for this organization.[/yellow]")

    table = Table(
        title=(
            "Organization Compliance Overview\n"
            f"[dim]{summary.compliant_arcades}/{summary.total_arcades} compliant "
            f"({summary.compliance_percentage}%) │ issues: {summary.arcades_with_issues} "
            f"│ warnings: {summary.arcades_with_warnings}[/dim]"
        ),
        box=box.ROUNDED,
    )
    table.add_column("Arcade", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Total", justify="right", style="magenta")
    table.add_column("B3", justify="right")
    table.add_column("B3 %", justify="right")
    table.add_column("Max B3", justify="right", style="green")
    table.add_column("Issues", justify="right", style="red")
    table.add_column("Warnings", justify="right", style="yellow")

    def sort_key(detail) -> tuple:
        return (detail.compliance.is_compliant, not detail.compliance.warnings)

    for detail in sorted(overview.arcade_details, key=sort_key):
        result = detail.compliance
        breakdown = result.machine_breakdown
        table.add_row(
            detail.arcade.name,
            _verdict(result),
            str(breakdown.total),
            str(breakdown.b3_count),
            f"{breakdown.b3_percentage:.1f}",
            str(breakdown.max_b3_allowed),
            str(len(result.issues)),
            str(len(result.warnings)),
        )

    console.print(table)


__all__ = ["print_compliance", "print_overview"]
