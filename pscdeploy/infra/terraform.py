"""
Terraform Utilities

Terraform operations manager: the declarative half of a run. The whole
graph is applied or destroyed as one unit; callers only see success,
failure, and the named outputs.
"""

import json
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass

from pscdeploy.infra.runner import CommandRunner
from pscdeploy.models.results import ExecutionResult
from pscdeploy.exceptions import ConfigurationError, TerraformError


@dataclass
class TerraformOutputs:
    """Terraform outputs with type-safe access."""

    raw_outputs: Dict[str, Any]

    def get_value(self, key: str, default: Any = None) -> Any:
        """Get output value by key."""
        output = self.raw_outputs.get(key, {})
        return output.get("value", default)

    def require(self, key: str) -> str:
        """
        Get a required string output.

        Raises:
            ConfigurationError: If the output is absent or empty
        """
        value = self.get_value(key)
        if value is None or value == "":
            available = ", ".join(sorted(self.raw_outputs)) or "none"
            raise ConfigurationError(
                f"Terraform output '{key}' is missing",
                context=f"Available outputs: {available}",
            )
        return str(value)


class TerraformManager:
    """
    Manages Terraform operations with clean interfaces.

    Responsibilities:
    - Initialize Terraform
    - Apply/destroy operations
    - Output queries
    """

    def __init__(self, terraform_dir: Path, runner: CommandRunner):
        """
        Initialize Terraform manager.

        Args:
            terraform_dir: Directory holding the root module and terraform.tfvars
            runner: Command runner bound to the run logger
        """
        self.terraform_dir = Path(terraform_dir)
        self.runner = runner

    def _run_command(
        self,
        args: list[str],
        capture_output: bool = True,
        description: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Run Terraform command.

        Raises:
            TerraformError: If command fails
        """
        return self.runner.run(
            ["terraform"] + args,
            cwd=self.terraform_dir,
            capture_output=capture_output,
            error_cls=TerraformError,
            description=description,
        )

    def init(self) -> ExecutionResult:
        """
        Initialize Terraform.

        Raises:
            TerraformError: If init fails
        """
        return self._run_command(
            ["init", "-input=false", "-no-color"], description="terraform init"
        )

    def apply(self, auto_approve: bool = False) -> TerraformOutputs:
        """
        Apply Terraform configuration.

        Without auto-approve Terraform runs attached to the terminal so the
        operator can review the plan and answer its prompt.

        Args:
            auto_approve: Auto-approve changes

        Returns:
            Outputs after a successful apply

        Raises:
            TerraformError: If apply fails
        """
        if auto_approve:
            self._run_command(
                ["apply", "-no-color", "-compact-warnings", "-auto-approve"],
                description="terraform apply",
            )
        else:
            self._run_command(["apply"], capture_output=False)

        return self.get_outputs()

    def destroy(self, auto_approve: bool = False) -> ExecutionResult:
        """
        Destroy Terraform-managed infrastructure.

        Args:
            auto_approve: Auto-approve destruction

        Raises:
            TerraformError: If destroy fails
        """
        if auto_approve:
            return self._run_command(
                ["destroy", "-no-color", "-auto-approve"],
                description="terraform destroy",
            )
        return self._run_command(["destroy"], capture_output=False)

    def get_outputs(self) -> TerraformOutputs:
        """
        Get Terraform outputs.

        Raises:
            TerraformError: If command fails or output is not valid JSON
        """
        result = self._run_command(["output", "-json"])

        if not result.stdout.strip():
            return TerraformOutputs(raw_outputs={})

        try:
            return TerraformOutputs(raw_outputs=json.loads(result.stdout))
        except json.JSONDecodeError as e:
            raise TerraformError(
                "Could not parse terraform output", context=str(e)
            )

    def read_output(self, name: str) -> str:
        """
        Read one required output from persisted state.

        Raises:
            TerraformError: If terraform output fails
            ConfigurationError: If the output is missing
        """
        return self.get_outputs().require(name)
