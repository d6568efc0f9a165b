"""
pscdeploy Exception Hierarchy

Clean exception hierarchy for consistent error handling across the CLI
and the deploy/teardown orchestrators.
"""

from typing import Optional


class PscDeployError(Exception):
    """Base exception for all pscdeploy errors."""

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class PrerequisiteMissingError(PscDeployError):
    """Raised when a required tool or input file is absent."""

    def __init__(self, missing: list[str], hint: Optional[str] = None):
        self.missing = missing
        message = f"Missing prerequisites: {', '.join(missing)}"
        super().__init__(message, hint)


class ConfigurationError(PscDeployError):
    """Raised when configuration is invalid or a required output is missing."""

    pass


class TerraformError(PscDeployError):
    """Raised when Terraform operations fail."""

    pass


class ClusterError(PscDeployError):
    """Raised when cluster credential or workload operations fail."""

    pass


class ResourceStepError(PscDeployError):
    """Raised when an imperative cloud API step fails."""

    pass


class WiringConflictError(ResourceStepError):
    """Raised when a backend is attached with a different target than expected."""

    def __init__(self, backend_service: str, expected: str, found: str):
        self.backend_service = backend_service
        self.expected = expected
        self.found = found
        message = (
            f"Backend service '{backend_service}' already references a "
            f"different endpoint group with the same name"
        )
        context = f"Expected: {expected}\nFound: {found}"
        super().__init__(message, context)


class ReadinessTimeoutError(PscDeployError):
    """Raised when a polled condition never became true within its budget."""

    def __init__(self, description: str, attempts: int, elapsed: float):
        self.description = description
        self.attempts = attempts
        self.elapsed = elapsed
        message = f"Timed out waiting for {description}"
        context = f"{attempts} attempt(s) over {elapsed:.1f}s"
        super().__init__(message, context)


class PhaseFailedError(PscDeployError):
    """Raised when a deploy phase fails; carries the phase and run context."""

    def __init__(self, phase: str, cause: Exception, snapshot: dict):
        self.phase = phase
        self.cause = cause
        self.snapshot = snapshot
        message = f"Phase '{phase}' failed: {cause}"
        context = ", ".join(f"{k}={v}" for k, v in snapshot.items() if v) or None
        super().__init__(message, context)
