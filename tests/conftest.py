"""
Pytest configuration and shared fixtures for pscdeploy tests.

Provides in-memory stand-ins for Terraform, the cluster and the gcloud
compute API so orchestrator runs can be exercised end to end without any
cloud access. All fakes append to one shared event list, which is what
the ordering tests assert on.
"""

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

from pscdeploy.core.config_loader import TopologyConfig
from pscdeploy.core.readiness import ReadinessPoller
from pscdeploy.exceptions import ClusterError, TerraformError
from pscdeploy.infra.gcloud import ComputeClient, ResourceKind
from pscdeploy.infra.terraform import TerraformOutputs
from pscdeploy.models.results import ExecutionResult
from pscdeploy.orchestration.phases import TopologyPhases


DEFAULT_OUTPUTS = {
    "project_a": "a",
    "project_b": "b",
    "region": "r1",
    "zone": "r1-a",
    "external_lb_ip": "1.2.3.4",
}

INTERNAL_IP = "10.0.0.5"
FORWARDING_RULE = "a1b2c3d4"


# ============================================================================
# Fakes
# ============================================================================


class FakeTerraform:
    """Terraform whose state is a dict of outputs."""

    def __init__(self, events: List[str], outputs: Optional[Dict[str, str]] = None):
        self.events = events
        self.outputs = dict(DEFAULT_OUTPUTS if outputs is None else outputs)
        self.applied = False
        self.fail_apply = False
        self.fail_destroy = False
        self.fail_outputs = False
        self.apply_calls = 0

    def init(self):
        self.events.append("terraform.init")

    def apply(self, auto_approve: bool = False) -> TerraformOutputs:
        self.events.append("terraform.apply")
        self.apply_calls += 1
        if self.fail_apply:
            raise TerraformError("Command failed: terraform apply")
        self.applied = True
        return self.get_outputs()

    def destroy(self, auto_approve: bool = False):
        self.events.append("terraform.destroy")
        if self.fail_destroy:
            raise TerraformError("Command failed: terraform destroy")
        self.applied = False

    def get_outputs(self) -> TerraformOutputs:
        if self.fail_outputs:
            raise TerraformError("Command failed: terraform output -json")
        return TerraformOutputs(
            raw_outputs={k: {"value": v} for k, v in self.outputs.items()}
        )

    def read_output(self, name: str) -> str:
        return self.get_outputs().require(name)


class FakeCluster:
    """Cluster that assigns the internal LB address after a few polls."""

    def __init__(self, events: List[str], address_on_probe: int = 3):
        self.events = events
        self.address_on_probe = address_on_probe
        self.probes = 0
        self.applied: List[str] = []
        self.fail_credentials = False
        self.fail_delete: set = set()

    def get_credentials(self, cluster: str, zone: str, project: str):
        self.events.append(f"cluster.credentials:{cluster}:{zone}:{project}")
        if self.fail_credentials:
            raise ClusterError("Command failed: gcloud container clusters get-credentials")

    def apply(self, manifest: str):
        self.events.append(f"cluster.apply:{_name(manifest)}")
        if manifest not in self.applied:
            self.applied.append(manifest)

    def delete(self, manifest: str):
        self.events.append(f"cluster.delete:{_name(manifest)}")
        if _name(manifest) in self.fail_delete:
            raise ClusterError(f"Command failed: kubectl delete -f {manifest}")
        if manifest in self.applied:
            self.applied.remove(manifest)

    def wait_ready(self, selector: str, timeout: int, namespace: Optional[str] = None):
        self.events.append(f"cluster.wait:{selector}")

    def get_load_balancer_ip(self, service: str, namespace: str) -> Optional[str]:
        self.probes += 1
        if self.address_on_probe and self.probes >= self.address_on_probe:
            return INTERNAL_IP
        return None


class FakeCompute(ComputeClient):
    """
    In-memory gcloud compute.

    run() mimics gcloud exit codes and stderr, so describe()/list_names()
    from the real client and the real step classes work on top of it.
    """

    def __init__(self, events: List[str]):
        super().__init__(runner=None)
        self.events = events
        self.resources: Dict[Tuple[str, str, Optional[str], str], dict] = {}
        self.create_count: Dict[Tuple[str, str, Optional[str], str], int] = {}
        self.failures: Dict[Tuple[str, str], str] = {}

    def add(self, kind: ResourceKind, name: str, project: str, region=None, **fields):
        self.resources[(kind.group, project, region, name)] = {"name": name, **fields}

    def get(self, kind: ResourceKind, name: str, project: str, region=None):
        return self.resources.get((kind.group, project, region, name))

    def fail(self, verb: str, kind: ResourceKind, stderr: str):
        self.failures[(verb, kind.group)] = stderr

    def run(
        self,
        kind,
        verb,
        name,
        project,
        region=None,
        extra_args=None,
        description=None,
    ) -> ExecutionResult:
        extra_args = extra_args or []
        command = f"gcloud compute {kind.group} {verb} {name or ''}".strip()
        if verb not in ("describe", "list"):
            self.events.append(f"compute.{verb}:{kind.group}/{name}")

        if (verb, kind.group) in self.failures:
            return ExecutionResult(1, "", self.failures[(verb, kind.group)], command)

        key = (kind.group, project, region, name)
        current = self.resources.get(key)
        args = _parse_args(extra_args)

        if verb == "list":
            wanted = args.get("filter", "").split("=", 1)[-1]
            names = [
                res["name"]
                for (group, proj, reg, _), res in self.resources.items()
                if group == kind.group
                and proj == project
                and reg == region
                and res.get("IPAddress") == wanted
            ]
            return ExecutionResult(0, "\n".join(names), "", command)

        if verb == "describe":
            if current is None:
                return ExecutionResult(1, "", _not_found(key), command)
            return ExecutionResult(0, json.dumps(current), "", command)

        if verb == "create":
            if current is not None:
                return ExecutionResult(
                    1, "", f"ERROR: The resource '{name}' already exists", command
                )
            self.resources[key] = {"name": name, **args}
            self.create_count[key] = self.create_count.get(key, 0) + 1
            return ExecutionResult(0, "", "", command)

        if current is None:
            return ExecutionResult(1, "", _not_found(key), command)

        if verb == "delete":
            del self.resources[key]
        elif verb == "update":
            if "allow-global-access" in args:
                current["allowGlobalAccess"] = True
        elif verb == "add-backend":
            group = (
                "https://www.googleapis.com/compute/v1/projects/"
                f"{project}/regions/{args['network-endpoint-group-region']}"
                f"/networkEndpointGroups/{args['network-endpoint-group']}"
            )
            backends = current.setdefault("backends", [])
            if any(b["group"] == group for b in backends):
                return ExecutionResult(1, "", "ERROR: Backend already exists", command)
            backends.append({"group": group})
        elif verb == "remove-backend":
            current["backends"] = [
                b
                for b in current.get("backends", [])
                if not b["group"].endswith(
                    f"/networkEndpointGroups/{args['network-endpoint-group']}"
                )
            ]
        return ExecutionResult(0, "", "", command)


def _parse_args(extra_args: List[str]) -> Dict[str, str]:
    parsed = {}
    for arg in extra_args:
        key, _, value = arg.lstrip("-").partition("=")
        parsed[key] = value or "true"
    return parsed


def _not_found(key) -> str:
    group, project, region, name = key
    location = f"regions/{region}" if region else "global"
    return (
        "ERROR: (gcloud.compute) Could not fetch resource:\n"
        f" - The resource 'projects/{project}/{location}/{group}/{name}' was not found"
    )


def _name(manifest: str) -> str:
    return Path(manifest).name


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def events() -> List[str]:
    return []


@pytest.fixture
def config(tmp_path) -> TopologyConfig:
    """Config rooted in a temp dir; the poller and teardown get fake sleeps."""
    return TopologyConfig(
        tmp_path,
        {
            "polling": {"interval": 10, "max_attempts": 60},
            "teardown": {"settle_delay": 30},
        },
    )


@pytest.fixture
def terraform(events) -> FakeTerraform:
    return FakeTerraform(events)


@pytest.fixture
def cluster(events) -> FakeCluster:
    return FakeCluster(events)


@pytest.fixture
def compute(events) -> FakeCompute:
    """Compute state as Terraform and the cluster leave it after phase 4."""
    fake = FakeCompute(events)
    fake.add(
        ResourceKind.FORWARDING_RULE,
        FORWARDING_RULE,
        "b",
        "r1",
        IPAddress=INTERNAL_IP,
        allowGlobalAccess=False,
    )
    fake.add(ResourceKind.BACKEND_SERVICE, "external-lb-backend", "a", None, backends=[])
    return fake


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def poller(sleeps) -> ReadinessPoller:
    return ReadinessPoller(sleep=sleeps.append, clock=lambda: 0.0)


@pytest.fixture
def topology(config, terraform, cluster, compute, poller) -> TopologyPhases:
    return TopologyPhases(
        config=config,
        terraform=terraform,
        cluster=cluster,
        compute=compute,
        poller=poller,
        auto_approve=True,
    )
