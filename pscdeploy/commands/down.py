"""
Down Command

Tear down every resource in reverse phase order.
"""

import click

from pscdeploy.base import BaseCommand
from pscdeploy.orchestration import TeardownOrchestrator, build_topology
from pscdeploy.ui_components import phase_table
from pscdeploy.utils import ensure_prerequisites


class DownCommand(BaseCommand):
    """Runs the teardown orchestrator."""

    def __init__(self, root=None, yes: bool = False, verbose: bool = False):
        super().__init__(root=root, verbose=verbose)
        self.yes = yes

    def execute(self) -> None:
        config = self.config
        ensure_prerequisites(config, require_tfvars=False)

        self.show_header(
            "Teardown",
            subtitle="PSC resources, cluster workloads, then terraform destroy",
            details={"Root": self.root},
        )

        if not self.yes and not self._confirm_destruction():
            self.print_dim("Cancelled.")
            return

        logger = self.init_logger("down")
        # Confirmed above, so terraform must not prompt a second time
        topology = build_topology(config, logger, auto_approve=True)
        report = TeardownOrchestrator(topology, logger).run()

        self.console.print()
        self.console.print(phase_table(report, "Teardown Report"))

        if report.fatal_error:
            logger.log_error("Teardown failed", context=report.fatal_error)
            self.logs_hint()
            raise SystemExit(report.exit_code)

        if report.failed_phases:
            names = ", ".join(p.phase for p in report.failed_phases)
            logger.warning(f"Some cleanup steps failed ({names}); check for leftovers")

        self.console.print("\n[color(248)]All resources destroyed.[/color(248)]")
        self.logs_hint()

    def _confirm_destruction(self) -> bool:
        return self.confirm(
            "[bold red]Are you sure you want to destroy all infrastructure?[/bold red]",
            default=False,
        )


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    help="Directory holding terraform/ and k8s-manifests/ (default: cwd)",
)
def down(yes, verbose, root):
    """
    Destroy the topology (reverse of 'up')

    Project IDs, region and zone are read back from Terraform state, so
    this works without a prior 'up' in the same shell. Individual cleanup
    failures are reported and skipped; the command fails only when
    terraform destroy fails.

    \b
    Examples:
      pscdeploy down         # asks for confirmation
      pscdeploy down --yes   # CI/CD
    """
    cmd = DownCommand(root=root, yes=yes, verbose=verbose)
    cmd.run()
