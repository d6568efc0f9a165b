"""
Teardown Orchestrator

Undoes the topology phases in reverse order. Each inverse is isolated so
one failure does not stop the rest; only the final terraform destroy
decides whether the run failed.
"""

import time
from dataclasses import replace
from typing import Callable, List, Optional

from pscdeploy.core.phases import Phase, run_inverse
from pscdeploy.exceptions import PscDeployError
from pscdeploy.logger import DeployLogger
from pscdeploy.models.context import DeploymentContext
from pscdeploy.models.results import PhaseResult, ResultStatus, RunReport
from pscdeploy.orchestration.phases import CLUSTER_PHASES, TopologyPhases

RECOVER_CONTEXT = "Terraform state"


class TeardownOrchestrator:
    """Reverse run over TopologyPhases."""

    def __init__(
        self,
        topology: TopologyPhases,
        logger: Optional[DeployLogger] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.topology = topology
        self.logger = logger
        self.sleep = sleep

    def run(self) -> RunReport:
        """
        Tear the topology down.

        Returns:
            RunReport; fatal_error is set when the context could not be
            recovered or terraform destroy failed
        """
        report = RunReport(operation="teardown")

        if self.logger:
            self.logger.step("Reading Terraform state")
        try:
            context = self.topology.recover_context()
        except PscDeployError as e:
            report.phases.append(
                PhaseResult(RECOVER_CONTEXT, ResultStatus.FAILURE, str(e))
            )
            report.fatal_error = f"Could not read project IDs from Terraform state: {e}"
            if self.logger:
                self.logger.log_error(
                    "Could not read project IDs from Terraform state",
                    context=e.message,
                )
            return report

        report.phases.append(PhaseResult(RECOVER_CONTEXT, ResultStatus.SUCCESS))
        report.data["context"] = context.snapshot()
        if self.logger:
            self.logger.success(f"Edge project: {context.edge_project}")
            self.logger.success(f"Backend project: {context.backend_project}")

        phases = self._phases(context)
        run_inverse(phases, context, report, self.logger, sleep=self.sleep)
        return report

    def _phases(self, context: DeploymentContext) -> List[Phase]:
        phases = self.topology.build()
        if self._bind_cluster(context):
            return phases

        # Without credentials kubectl points at whatever context is current
        return [
            replace(phase, inverse=None) if phase.name in CLUSTER_PHASES else phase
            for phase in phases
        ]

    def _bind_cluster(self, context: DeploymentContext) -> bool:
        try:
            self.topology.bind_cluster(context)
        except PscDeployError as e:
            if self.logger:
                self.logger.warning(
                    f"Cluster credentials unavailable, skipping workload cleanup: {e.message}"
                )
            return False
        return True
