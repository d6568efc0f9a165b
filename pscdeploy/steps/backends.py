"""
Backend Wiring

Attach/detach a network endpoint group on a global backend service.
"""

from typing import Any, Dict, List, Optional

from pscdeploy.exceptions import ResourceStepError, WiringConflictError
from pscdeploy.infra.gcloud import ComputeClient, is_already_exists, is_not_found
from pscdeploy.logger import DeployLogger
from pscdeploy.models.results import StepOutcome
from pscdeploy.steps.resources import ResourceDescriptor


def _group_paths(service: Dict[str, Any]) -> List[str]:
    """Backend group URLs reduced to their projects/... suffix."""
    paths = []
    for backend in service.get("backends") or []:
        group = backend.get("group", "")
        index = group.find("projects/")
        paths.append(group[index:] if index >= 0 else group)
    return paths


class BackendWiring:
    """
    Wires a NEG into a backend service.

    An attachment of exactly this NEG is success. A backend that carries a
    NEG of the same name from another project or region is a conflict and
    is reported, not hidden.
    """

    def __init__(self, compute: ComputeClient, logger: Optional[DeployLogger] = None):
        self.compute = compute
        self.logger = logger

    def is_attached(self, service: ResourceDescriptor, neg: ResourceDescriptor) -> bool:
        current = self._describe(service)
        return current is not None and neg.uri in _group_paths(current)

    def attach(
        self, service: ResourceDescriptor, neg: ResourceDescriptor
    ) -> StepOutcome:
        """
        Add neg as a backend of service.

        Raises:
            ResourceStepError: If the backend service is missing or the call fails
            WiringConflictError: If a same-named NEG with another target is attached
        """
        current = self._describe(service)
        if current is None:
            raise ResourceStepError(
                f"Backend service '{service.name}' not found",
                context=f"Project: {service.project}",
            )

        for path in _group_paths(current):
            if path == neg.uri:
                self._log(f"{neg.label} already attached to {service.name}")
                return StepOutcome.EXISTS
            if path.endswith(f"/{neg.kind.collection}/{neg.name}"):
                raise WiringConflictError(service.name, neg.uri, path)

        result = self.compute.run(
            service.kind,
            "add-backend",
            service.name,
            service.project,
            service.region,
            self._neg_args(neg),
            description=f"Attaching {neg.name} to {service.name}",
        )
        if is_already_exists(result):
            self._log(f"{neg.label} already attached to {service.name}")
            return StepOutcome.EXISTS
        if result.is_failure:
            raise ResourceStepError(
                f"Failed to attach {neg.name} to {service.name}",
                context=f"Command: {result.command}\nError: {result.stderr.strip()}",
            )

        self._log(f"Attached {neg.label} to {service.name}")
        return StepOutcome.CREATED

    def detach(
        self, service: ResourceDescriptor, neg: ResourceDescriptor
    ) -> StepOutcome:
        """
        Remove neg from service; not attached or service gone is success.

        Raises:
            ResourceStepError: If the remove call fails for another reason
        """
        current = self._describe(service)
        if current is None or neg.uri not in _group_paths(current):
            self._log(f"{neg.label} not attached to {service.name}")
            return StepOutcome.ABSENT

        result = self.compute.run(
            service.kind,
            "remove-backend",
            service.name,
            service.project,
            service.region,
            self._neg_args(neg) + ["--quiet"],
            description=f"Detaching {neg.name} from {service.name}",
        )
        if is_not_found(result):
            return StepOutcome.ABSENT
        if result.is_failure:
            raise ResourceStepError(
                f"Failed to detach {neg.name} from {service.name}",
                context=f"Command: {result.command}\nError: {result.stderr.strip()}",
            )

        self._log(f"Detached {neg.label} from {service.name}")
        return StepOutcome.DELETED

    def _describe(self, service: ResourceDescriptor) -> Optional[Dict[str, Any]]:
        return self.compute.describe(
            service.kind, service.name, service.project, service.region
        )

    @staticmethod
    def _neg_args(neg: ResourceDescriptor) -> List[str]:
        return [
            f"--network-endpoint-group={neg.name}",
            f"--network-endpoint-group-region={neg.region}",
        ]

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.log(message)
