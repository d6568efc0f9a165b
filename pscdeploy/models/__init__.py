"""
pscdeploy Domain Models

Clean dataclass-based models for type-safe data handling.
"""

from .results import (
    ResultStatus,
    StepOutcome,
    ExecutionResult,
    ValidationResult,
    PhaseResult,
    RunReport,
)
from .context import DeploymentContext

__all__ = [
    # Results
    "ResultStatus",
    "StepOutcome",
    "ExecutionResult",
    "ValidationResult",
    "PhaseResult",
    "RunReport",
    # Context
    "DeploymentContext",
]
