"""
pscdeploy Core

Configuration, the phase model and readiness polling.
"""

from .config_loader import ConfigLoader, TopologyConfig, load_config
from .phases import Phase, run_forward, run_inverse
from .readiness import ReadinessCondition, ReadinessPoller

__all__ = [
    "ConfigLoader",
    "TopologyConfig",
    "load_config",
    "Phase",
    "run_forward",
    "run_inverse",
    "ReadinessCondition",
    "ReadinessPoller",
]
