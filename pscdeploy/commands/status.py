"""
Status Command

Show Terraform outputs and which imperative resources currently exist.
"""

from typing import Any, Dict

import click
from rich.table import Table

from pscdeploy.base import BaseCommand
from pscdeploy.infra.gcloud import ResourceKind
from pscdeploy.models.context import PUBLIC_ADDRESS
from pscdeploy.orchestration import build_topology


class StatusCommand(BaseCommand):
    """Reports deployed state without changing anything."""

    def collect(self) -> Dict[str, Any]:
        topology = build_topology(self.config)
        context = topology.recover_context()

        service = topology.backend_service(context)
        neg = topology.endpoint_group(context)
        attachment = topology.service_attachment(context)
        compute = topology.compute

        return {
            "edge_project": context.edge_project,
            "backend_project": context.backend_project,
            "region": context.region,
            "zone": context.zone,
            "entry_point": context.get(PUBLIC_ADDRESS),
            "resources": {
                "service_attachment": compute.describe(
                    ResourceKind.SERVICE_ATTACHMENT,
                    attachment.name,
                    attachment.project,
                    attachment.region,
                )
                is not None,
                "network_endpoint_group": compute.describe(
                    ResourceKind.NETWORK_ENDPOINT_GROUP, neg.name, neg.project, neg.region
                )
                is not None,
                "backend_attached": topology.wiring.is_attached(service, neg),
            },
        }

    def execute(self) -> None:
        status = self.collect()

        if self.json_output:
            self.output_json(status)
            return

        self.show_header("Status")

        table = Table(title="Deployment", title_justify="left", padding=(0, 1))
        table.add_column("Item", style="cyan", no_wrap=True)
        table.add_column("Value")
        for key in ("edge_project", "backend_project", "region", "zone", "entry_point"):
            table.add_row(key, str(status[key] or "-"))
        for key, present in status["resources"].items():
            table.add_row(
                key, "[green]present[/green]" if present else "[yellow]absent[/yellow]"
            )
        self.console.print(table)


@click.command()
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    help="Directory holding terraform/ and k8s-manifests/ (default: cwd)",
)
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
def status(root, json_output):
    """Show outputs and PSC resource state"""
    StatusCommand(root=root, json_output=json_output).run()
