"""
Cluster Workloads

kubectl facade for applying, deleting and waiting on workload manifests.
"""

from typing import Optional

from pscdeploy.exceptions import ClusterError
from pscdeploy.infra.runner import CommandRunner
from pscdeploy.models.results import ExecutionResult


class ClusterManager:
    """Applies and deletes manifests against the current kubectl context."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def get_credentials(self, cluster: str, zone: str, project: str) -> None:
        """
        Point kubectl at a GKE cluster.

        Raises:
            ClusterError: If gcloud cannot fetch credentials
        """
        self.runner.run(
            [
                "gcloud",
                "container",
                "clusters",
                "get-credentials",
                cluster,
                f"--zone={zone}",
                f"--project={project}",
            ],
            error_cls=ClusterError,
            description=f"Fetching credentials for {cluster}",
        )

    def apply(self, manifest: str) -> ExecutionResult:
        """Apply a manifest file or URL."""
        return self._kubectl(
            ["apply", "-f", manifest], description=f"Applying {_short(manifest)}"
        )

    def delete(self, manifest: str) -> ExecutionResult:
        """Delete the objects of a manifest; objects already gone are fine."""
        return self._kubectl(
            ["delete", "-f", manifest, "--ignore-not-found"],
            description=f"Deleting {_short(manifest)}",
        )

    def wait_ready(
        self, selector: str, timeout: int, namespace: Optional[str] = None
    ) -> ExecutionResult:
        """
        Block until pods matching selector are Ready.

        Raises:
            ClusterError: If the pods are not ready within timeout seconds
        """
        args = ["wait"]
        if namespace:
            args.append(f"--namespace={namespace}")
        args += [
            "--for=condition=ready",
            "pod",
            f"--selector={selector}",
            f"--timeout={timeout}s",
        ]
        return self._kubectl(args, description=f"Waiting for pods ({selector})")

    def get_load_balancer_ip(self, service: str, namespace: str) -> Optional[str]:
        """
        Read the address assigned to a LoadBalancer service.

        Returns None while no address is assigned or the service is not
        readable yet, so it can be used directly as a readiness probe.
        """
        result = self._kubectl(
            [
                "get",
                "svc",
                service,
                f"--namespace={namespace}",
                "-o",
                "jsonpath={.status.loadBalancer.ingress[0].ip}",
            ],
            check=False,
        )
        if result.is_failure:
            return None
        return result.stdout.strip() or None

    def _kubectl(
        self, args: list[str], check: bool = True, description: Optional[str] = None
    ) -> ExecutionResult:
        return self.runner.run(
            ["kubectl"] + args,
            check=check,
            error_cls=ClusterError,
            description=description,
        )


def _short(manifest: str) -> str:
    return manifest.rstrip("/").rsplit("/", 1)[-1]
