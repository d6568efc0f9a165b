"""
pscdeploy - UI Components
Standardized headers, summaries and tables
"""

from typing import Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from pscdeploy.models.results import ResultStatus, RunReport

# Color scheme
BRAND_COLOR = "cyan"
SUCCESS_COLOR = "green"
WARNING_COLOR = "yellow"
ERROR_COLOR = "red"

STATUS_STYLES = {
    ResultStatus.SUCCESS: f"[{SUCCESS_COLOR}]✓ done[/{SUCCESS_COLOR}]",
    ResultStatus.FAILURE: f"[{ERROR_COLOR}]✗ failed[/{ERROR_COLOR}]",
    ResultStatus.SKIPPED: "[dim]- skipped[/dim]",
}


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized command header.

    Args:
        title: Main title (e.g., "Deploy", "Teardown")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)
    """
    if console is None:
        console = Console()

    prefix = "[bold color(214)]pscdeploy[/bold color(214)] [dim]›[/dim]"
    console.print(f" {prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f" {prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f" {prefix} {key}: [{BRAND_COLOR}]{value}[/{BRAND_COLOR}]")

    console.print()


def show_architecture(
    entry_point: str, internal_address: Optional[str], console: Console
) -> None:
    """Print the traffic path of a finished deployment."""
    internal = internal_address or "unknown"
    console.print()
    console.print("[bold]Architecture[/bold]")
    console.print("  External user")
    console.print("       │")
    console.print("  Cloud Armor (WAF/DDoS protection)")
    console.print("       │")
    console.print(f"  External LB: [{BRAND_COLOR}]http://{entry_point}[/{BRAND_COLOR}]")
    console.print("       │  via Private Service Connect")
    console.print(f"  Internal LB: [{BRAND_COLOR}]{internal}[/{BRAND_COLOR}] (backend project)")
    console.print("       │")
    console.print("  GKE cluster → nginx ingress → application")
    console.print()
    console.print(f"  Test: [bold]curl http://{entry_point}[/bold]")
    console.print(
        "  [dim]Health checks may take 5-10 minutes to pass before traffic flows.[/dim]"
    )


def phase_table(report: RunReport, title: str) -> Table:
    """Per-phase status table for a run report."""
    table = Table(title=title, title_justify="left", padding=(0, 1))
    table.add_column("Phase", style=BRAND_COLOR, no_wrap=True)
    table.add_column("Status")
    table.add_column("Details", style="dim")

    for result in report.phases:
        table.add_row(result.phase, STATUS_STYLES[result.status], Text(result.error or ""))

    return table
