"""pscdeploy - Doctor command"""

import shutil

import click
from rich.table import Table

from pscdeploy.base import BaseCommand
from pscdeploy.constants import CONFIG_FILENAME, REQUIRED_TOOLS
from pscdeploy.utils import check_prerequisites


class DoctorCommand(BaseCommand):
    """Pre-flight report: tools, config and input files."""

    def __init__(self, root=None, verbose: bool = False):
        super().__init__(root=root, verbose=verbose)
        self.table = Table(
            title="System Health Report", title_justify="left", padding=(0, 1)
        )
        self.table.add_column("Check", style="cyan", no_wrap=True)
        self.table.add_column("Status")
        self.table.add_column("Details", style="dim")

    def check_tools(self) -> None:
        for tool in REQUIRED_TOOLS:
            path = shutil.which(tool)
            if path:
                self.table.add_row(f"✅ {tool}", "[green]Installed[/green]", path)
            else:
                self.table.add_row(
                    f"❌ {tool}", "[red]Missing[/red]", f"Install {tool} first"
                )

    def check_inputs(self) -> bool:
        config = self.config
        config_file = self.root / CONFIG_FILENAME
        self.table.add_row(
            "✅ Config",
            "[green]Loaded[/green]",
            str(config_file) if config_file.exists() else "defaults",
        )

        result = check_prerequisites(config, require_tfvars=True)
        inputs = [e for e in result.errors if "is not installed" not in e]
        for error in inputs:
            self.table.add_row("❌ Input", "[red]Missing[/red]", error)
        for warning in result.warnings:
            self.table.add_row("⚠️  Input", "[yellow]Warning[/yellow]", warning)
        if not inputs:
            self.table.add_row(
                "✅ Inputs", "[green]OK[/green]", str(config.terraform_dir)
            )
        return result.is_valid

    def execute(self) -> None:
        self.show_header("Doctor", subtitle="Pre-flight checks")
        self.check_tools()
        ok = self.check_inputs()
        self.console.print(self.table)

        if not ok:
            self.console.print("\n[red]Deployment prerequisites are not met.[/red]")
            raise SystemExit(1)
        self.console.print("\n[green]Ready to deploy.[/green]")


@click.command()
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    help="Directory holding terraform/ and k8s-manifests/ (default: cwd)",
)
def doctor(root):
    """Check tools, configuration and input files"""
    DoctorCommand(root=root).run()
