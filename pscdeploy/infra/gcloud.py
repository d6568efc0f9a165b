"""
GCP Compute API

Thin wrapper over `gcloud compute` for the imperative half of a run.
Resources are addressed by (project, region, name); region None means
the resource is global.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pscdeploy.constants import ALREADY_EXISTS_MARKERS, NOT_FOUND_MARKERS
from pscdeploy.exceptions import ResourceStepError
from pscdeploy.infra.runner import CommandRunner
from pscdeploy.models.results import ExecutionResult


class ResourceKind(Enum):
    """gcloud command group and REST collection for each resource kind."""

    FORWARDING_RULE = ("forwarding-rules", "forwardingRules")
    SERVICE_ATTACHMENT = ("service-attachments", "serviceAttachments")
    NETWORK_ENDPOINT_GROUP = ("network-endpoint-groups", "networkEndpointGroups")
    BACKEND_SERVICE = ("backend-services", "backendServices")

    def __init__(self, group: str, collection: str):
        self.group = group
        self.collection = collection


def is_not_found(result: ExecutionResult) -> bool:
    stderr = result.stderr.lower()
    return result.is_failure and any(m in stderr for m in NOT_FOUND_MARKERS)


def is_already_exists(result: ExecutionResult) -> bool:
    stderr = result.stderr.lower()
    return result.is_failure and any(m in stderr for m in ALREADY_EXISTS_MARKERS)


def resource_uri(
    kind: ResourceKind, name: str, project: str, region: Optional[str] = None
) -> str:
    """Relative resource path, e.g. projects/p/regions/r/serviceAttachments/n."""
    location = f"regions/{region}" if region else "global"
    return f"projects/{project}/{location}/{kind.collection}/{name}"


class ComputeClient:
    """Runs gcloud compute commands; callers interpret not-found/exists."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def run(
        self,
        kind: ResourceKind,
        verb: str,
        name: Optional[str],
        project: str,
        region: Optional[str] = None,
        extra_args: Optional[List[str]] = None,
        description: Optional[str] = None,
    ) -> ExecutionResult:
        """Run `gcloud compute <group> <verb>` without raising on failure."""
        args = ["gcloud", "compute", kind.group, verb]
        if name:
            args.append(name)
        args.append(f"--project={project}")
        if verb == "list":
            if region:
                args.append(f"--regions={region}")
        elif region:
            args.append(f"--region={region}")
        else:
            args.append("--global")
        args += extra_args or []

        return self.runner.run(
            args, check=False, error_cls=ResourceStepError, description=description
        )

    def describe(
        self, kind: ResourceKind, name: str, project: str, region: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Describe a resource.

        Returns:
            Parsed resource, or None if it does not exist

        Raises:
            ResourceStepError: On any failure other than not-found
        """
        result = self.run(kind, "describe", name, project, region, ["--format=json"])
        if is_not_found(result):
            return None
        if result.is_failure:
            raise ResourceStepError(
                f"Could not describe {kind.group} '{name}'",
                context=f"Command: {result.command}\nError: {result.stderr.strip()}",
            )
        try:
            return json.loads(result.stdout or "{}")
        except json.JSONDecodeError as e:
            raise ResourceStepError(
                f"Unreadable description of {kind.group} '{name}'", context=str(e)
            )

    def list_names(
        self, kind: ResourceKind, project: str, region: str, filter_expr: str
    ) -> List[str]:
        """
        List resource names matching a gcloud filter.

        Raises:
            ResourceStepError: If the list call fails
        """
        result = self.run(
            kind,
            "list",
            None,
            project,
            region,
            [f"--filter={filter_expr}", "--format=value(name)"],
        )
        if result.is_failure:
            raise ResourceStepError(
                f"Could not list {kind.group}",
                context=f"Command: {result.command}\nError: {result.stderr.strip()}",
            )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]
