"""
Up Command

Deploy the full cross-project topology.
"""

import click
from rich.markup import escape

from pscdeploy.base import BaseCommand
from pscdeploy.exceptions import PhaseFailedError
from pscdeploy.orchestration import DeploymentOrchestrator, PHASE_ORDER, build_topology
from pscdeploy.ui_components import show_architecture
from pscdeploy.utils import ensure_prerequisites


class UpCommand(BaseCommand):
    """Runs the deployment orchestrator."""

    def __init__(self, root=None, yes: bool = False, verbose: bool = False):
        super().__init__(root=root, verbose=verbose)
        self.yes = yes

    def execute(self) -> None:
        config = self.config
        ensure_prerequisites(config, require_tfvars=True)

        self.show_header(
            "Deploy",
            subtitle="Edge project → Private Service Connect → backend project",
            details={"Root": self.root, "Phases": len(PHASE_ORDER)},
        )

        logger = self.init_logger("up")
        topology = build_topology(config, logger, auto_approve=self.yes)

        try:
            report = DeploymentOrchestrator(topology, logger).run()
        except PhaseFailedError as e:
            logger.log_error(f"Phase '{e.phase}' failed", context=str(e.cause))
            discovered = {k: v for k, v in e.snapshot.items() if v}
            if discovered:
                self.console.print("\n[bold]Discovered before the failure:[/bold]")
                for key, value in discovered.items():
                    self.console.print(f"  {key}: [cyan]{escape(str(value))}[/cyan]")
            self.console.print(
                "\n[dim]Created resources were left in place. Fix the cause and "
                "rerun[/dim] [cyan]pscdeploy up[/cyan][dim], or run[/dim] "
                "[cyan]pscdeploy down[/cyan][dim] to remove them.[/dim]"
            )
            self.logs_hint()
            raise SystemExit(1)

        self.console.print("\n[bold green]Deployment complete.[/bold green]")
        show_architecture(
            report.entry_point, report.data.get("internal_address"), self.console
        )
        self.logs_hint()


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Auto-approve terraform apply")
@click.option("--verbose", "-v", is_flag=True, help="Show all command output")
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    help="Directory holding terraform/ and k8s-manifests/ (default: cwd)",
)
def up(yes, verbose, root):
    """
    Deploy infrastructure, cluster workloads and the PSC link

    \b
    Phases:
      1. Terraform apply (VPCs, GKE, external LB, Cloud Armor)
      2. kubectl credentials for the backend cluster
      3. nginx ingress controller
      4. Internal load balancer (waits for its IP)
      5. PSC service attachment + network endpoint group
      6. NEG wired into the external LB backend service
      7. Application workload

    Safe to rerun: existing resources are left as they are.

    \b
    Examples:
      pscdeploy up          # terraform asks before applying
      pscdeploy up --yes    # CI/CD
    """
    cmd = UpCommand(root=root, yes=yes, verbose=verbose)
    cmd.run()
