"""
Deploy and teardown orchestration over the topology phases.
"""

from .phases import PHASE_ORDER, TopologyPhases
from .deploy import DeploymentOrchestrator
from .teardown import TeardownOrchestrator
from .factory import build_topology

__all__ = [
    "PHASE_ORDER",
    "TopologyPhases",
    "DeploymentOrchestrator",
    "TeardownOrchestrator",
    "build_topology",
]
