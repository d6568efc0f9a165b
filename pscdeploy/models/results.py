"""
Result Models

Dataclass models for operation results and command outputs.
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from enum import Enum


class ResultStatus(Enum):
    """Status of an operation result."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"


class StepOutcome(Enum):
    """What an imperative step actually did."""

    CREATED = "created"
    EXISTS = "exists"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    ABSENT = "absent"

    @property
    def is_noop(self) -> bool:
        return self in (StepOutcome.EXISTS, StepOutcome.UNCHANGED, StepOutcome.ABSENT)


@dataclass
class ExecutionResult:
    """Result of a command execution (subprocess)."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    command: str = ""

    @property
    def is_success(self) -> bool:
        """Check if execution succeeded."""
        return self.returncode == 0

    @property
    def is_failure(self) -> bool:
        """Check if execution failed."""
        return self.returncode != 0

    def __repr__(self) -> str:
        return f"ExecutionResult(returncode={self.returncode}, command='{self.command[:50]}...')"


@dataclass
class ValidationResult:
    """Result of a validation operation."""

    is_valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if validation has errors."""
        return len(self.errors) > 0

    def add_error(self, error: str) -> None:
        """Add an error to the validation result."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning to the validation result."""
        self.warnings.append(warning)

    def __repr__(self) -> str:
        return f"ValidationResult(valid={self.is_valid}, errors={len(self.errors)}, warnings={len(self.warnings)})"


@dataclass
class PhaseResult:
    """Result of a single deploy phase or teardown inverse."""

    phase: str
    status: ResultStatus
    error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status == ResultStatus.FAILURE


@dataclass
class RunReport:
    """Outcome of a full deploy or teardown run."""

    operation: str
    phases: list[PhaseResult] = field(default_factory=list)
    entry_point: Optional[str] = None
    fatal_error: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed_phases(self) -> list[PhaseResult]:
        return [p for p in self.phases if p.is_failure]

    @property
    def exit_code(self) -> int:
        """0 when the run completed; tolerated teardown failures do not count."""
        return 1 if self.fatal_error else 0
