"""Wires the real terraform/kubectl/gcloud facades into TopologyPhases."""

from typing import Optional

from pscdeploy.core.config_loader import TopologyConfig
from pscdeploy.core.readiness import ReadinessPoller
from pscdeploy.infra.gcloud import ComputeClient
from pscdeploy.infra.kubernetes import ClusterManager
from pscdeploy.infra.runner import CommandRunner
from pscdeploy.infra.terraform import TerraformManager
from pscdeploy.logger import DeployLogger
from pscdeploy.orchestration.phases import TopologyPhases


def build_topology(
    config: TopologyConfig,
    logger: Optional[DeployLogger] = None,
    auto_approve: bool = False,
) -> TopologyPhases:
    runner = CommandRunner(logger)
    return TopologyPhases(
        config=config,
        terraform=TerraformManager(config.terraform_dir, runner),
        cluster=ClusterManager(runner),
        compute=ComputeClient(runner),
        poller=ReadinessPoller(logger),
        logger=logger,
        auto_approve=auto_approve,
    )
