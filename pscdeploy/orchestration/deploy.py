"""
Deployment Orchestrator

Runs the seven topology phases forward. Fail-fast: the first failing
phase aborts the run and leaves what was created in place for a rerun
or an explicit teardown.
"""

from typing import Optional

from pscdeploy.core.phases import run_forward
from pscdeploy.logger import DeployLogger
from pscdeploy.models.context import INTERNAL_ADDRESS, PUBLIC_ADDRESS, DeploymentContext
from pscdeploy.models.results import RunReport
from pscdeploy.orchestration.phases import TopologyPhases


class DeploymentOrchestrator:
    """Forward run over TopologyPhases."""

    def __init__(self, topology: TopologyPhases, logger: Optional[DeployLogger] = None):
        self.topology = topology
        self.logger = logger

    def run(self, context: Optional[DeploymentContext] = None) -> RunReport:
        """
        Deploy the whole topology.

        Returns:
            RunReport with entry_point set to the public address

        Raises:
            PhaseFailedError: Naming the failed phase, its cause and the
                context discovered up to that point
        """
        report = RunReport(operation="deploy")
        context = run_forward(
            self.topology.build(),
            context or DeploymentContext(),
            report,
            self.logger,
        )

        report.entry_point = context.require(PUBLIC_ADDRESS)
        report.data["internal_address"] = context.get(INTERNAL_ADDRESS)
        report.data["context"] = context.snapshot()

        if self.logger:
            self.logger.log(f"Deployment complete, entry point {report.entry_point}")
        return report
