"""
Deployment Context

The state threaded through one deploy or teardown run.
"""

from dataclasses import dataclass, field, replace
from typing import Dict, Optional


# Logical names for discovered values
PUBLIC_ADDRESS = "public_address"
INTERNAL_ADDRESS = "internal_address"
FORWARDING_RULE = "forwarding_rule"
SERVICE_ATTACHMENT_URI = "service_attachment_uri"


@dataclass(frozen=True)
class DeploymentContext:
    """
    Run-scoped state passed from phase to phase.

    Phases never mutate a context in place; they return a copy with the
    values they discovered. Nothing here is persisted: Terraform outputs
    are the durable source of truth and teardown rebuilds from them.
    """

    edge_project: str = ""
    backend_project: str = ""
    region: str = ""
    zone: str = ""
    discovered: Dict[str, str] = field(default_factory=dict)

    def with_domains(
        self, edge_project: str, backend_project: str, region: str, zone: str
    ) -> "DeploymentContext":
        return replace(
            self,
            edge_project=edge_project,
            backend_project=backend_project,
            region=region,
            zone=zone,
        )

    def with_values(self, **values: str) -> "DeploymentContext":
        """Return a copy with additional discovered values."""
        merged = dict(self.discovered)
        merged.update(values)
        return replace(self, discovered=merged)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.discovered.get(name, default)

    def require(self, name: str) -> str:
        """Get a discovered value that an earlier phase must have produced."""
        value = self.discovered.get(name)
        if not value:
            raise KeyError(f"Discovered value '{name}' is not available")
        return value

    def snapshot(self) -> Dict[str, str]:
        """Flat view for diagnostics and JSON output."""
        return {
            "edge_project": self.edge_project,
            "backend_project": self.backend_project,
            "region": self.region,
            "zone": self.zone,
            **self.discovered,
        }
