"""
Idempotent Resource Steps

Check-then-act wrappers around the compute API. Every step is safe to
repeat: an existing resource is a successful no-op on create, an absent
one is a successful no-op on remove.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pscdeploy.exceptions import ResourceStepError
from pscdeploy.infra.gcloud import (
    ComputeClient,
    ResourceKind,
    is_already_exists,
    is_not_found,
    resource_uri,
)
from pscdeploy.logger import DeployLogger
from pscdeploy.models.results import StepOutcome


@dataclass(frozen=True)
class ResourceDescriptor:
    """An imperative resource identified by (project, region, name, kind)."""

    kind: ResourceKind
    name: str
    project: str
    region: Optional[str] = None
    create_args: List[str] = field(default_factory=list, compare=False)

    @property
    def uri(self) -> str:
        return resource_uri(self.kind, self.name, self.project, self.region)

    @property
    def label(self) -> str:
        return f"{self.kind.group}/{self.name}"


@dataclass(frozen=True)
class CapabilityChange:
    """
    A flag to turn on for an existing resource.

    attribute is the key in the resource description holding the current
    state; update_args is what `gcloud ... update` needs to reach it.
    """

    attribute: str
    desired: Any
    update_args: List[str]


class ImperativeResourceStep:
    """Runs ensure-exists / mutate / remove against the compute API."""

    def __init__(self, compute: ComputeClient, logger: Optional[DeployLogger] = None):
        self.compute = compute
        self.logger = logger

    def ensure_exists(self, descriptor: ResourceDescriptor) -> StepOutcome:
        """
        Create the resource unless it already exists.

        Raises:
            ResourceStepError: If describe or create fails
        """
        if self._describe(descriptor) is not None:
            self._log(f"{descriptor.label} already exists")
            return StepOutcome.EXISTS

        result = self.compute.run(
            descriptor.kind,
            "create",
            descriptor.name,
            descriptor.project,
            descriptor.region,
            descriptor.create_args,
            description=f"Creating {descriptor.label}",
        )
        if is_already_exists(result):
            # Created by someone else between describe and create
            self._log(f"{descriptor.label} already exists")
            return StepOutcome.EXISTS
        if result.is_failure:
            raise self._error("create", descriptor, result)

        self._log(f"Created {descriptor.label}")
        return StepOutcome.CREATED

    def mutate(
        self, descriptor: ResourceDescriptor, change: CapabilityChange
    ) -> StepOutcome:
        """
        Bring a capability flag of an existing resource to its target value.

        Raises:
            ResourceStepError: If the resource is missing or the update fails
        """
        current = self._describe(descriptor)
        if current is None:
            raise ResourceStepError(
                f"Cannot update {descriptor.label}: resource not found",
                context=f"Project: {descriptor.project}, region: {descriptor.region or 'global'}",
            )

        if current.get(change.attribute) == change.desired:
            self._log(f"{descriptor.label}: {change.attribute} already set")
            return StepOutcome.UNCHANGED

        result = self.compute.run(
            descriptor.kind,
            "update",
            descriptor.name,
            descriptor.project,
            descriptor.region,
            change.update_args,
            description=f"Updating {descriptor.label}",
        )
        if result.is_failure:
            raise self._error("update", descriptor, result)

        self._log(f"{descriptor.label}: set {change.attribute}")
        return StepOutcome.UPDATED

    def remove(self, descriptor: ResourceDescriptor) -> StepOutcome:
        """
        Delete the resource; a resource that is already gone is success.

        Raises:
            ResourceStepError: If delete fails for any other reason
        """
        result = self.compute.run(
            descriptor.kind,
            "delete",
            descriptor.name,
            descriptor.project,
            descriptor.region,
            ["--quiet"],
            description=f"Deleting {descriptor.label}",
        )
        if is_not_found(result):
            self._log(f"{descriptor.label} already absent")
            return StepOutcome.ABSENT
        if result.is_failure:
            raise self._error("delete", descriptor, result)

        self._log(f"Deleted {descriptor.label}")
        return StepOutcome.DELETED

    def _describe(self, descriptor: ResourceDescriptor) -> Optional[Dict[str, Any]]:
        return self.compute.describe(
            descriptor.kind, descriptor.name, descriptor.project, descriptor.region
        )

    def _error(self, verb: str, descriptor: ResourceDescriptor, result) -> ResourceStepError:
        return ResourceStepError(
            f"Failed to {verb} {descriptor.label}",
            context=f"Command: {result.command}\nError: {result.stderr.strip()}",
        )

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.log(message)
