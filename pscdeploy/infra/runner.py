"""
Command Runner

Shared subprocess execution for the terraform, gcloud and kubectl facades.
"""

import subprocess
from pathlib import Path
from typing import Optional, Type

from rich.live import Live
from rich.padding import Padding
from rich.spinner import Spinner
from rich.text import Text

from pscdeploy.exceptions import PscDeployError
from pscdeploy.logger import DeployLogger, console
from pscdeploy.models.results import ExecutionResult


class CommandRunner:
    """
    Runs external CLI commands and records them in the run log.

    Every command and its output goes to the log file; the console shows a
    spinner per described command unless the logger is verbose.
    """

    def __init__(self, logger: Optional[DeployLogger] = None):
        self.logger = logger

    def run(
        self,
        args: list[str],
        cwd: Optional[Path] = None,
        capture_output: bool = True,
        check: bool = True,
        error_cls: Type[PscDeployError] = PscDeployError,
        description: Optional[str] = None,
    ) -> ExecutionResult:
        """
        Run a command.

        Args:
            args: Full command line (e.g., ['kubectl', 'apply', '-f', path])
            cwd: Working directory
            capture_output: Capture stdout/stderr; False attaches the terminal
            check: Raise error_cls on non-zero exit
            error_cls: Exception type raised on failure
            description: Spinner label

        Returns:
            ExecutionResult

        Raises:
            error_cls: If the command fails (check=True) or cannot be started
        """
        cmd_string = " ".join(args)
        if self.logger:
            self.logger.log_command(cmd_string)

        try:
            if capture_output and description and not self._verbose:
                result = self._run_with_spinner(args, cwd, description)
            else:
                result = subprocess.run(
                    args,
                    cwd=cwd,
                    capture_output=capture_output,
                    text=True,
                    check=False,
                )
        except OSError as e:
            raise error_cls(
                f"Failed to execute {args[0]}",
                context=f"Command: {cmd_string}, Error: {e}",
            )

        exec_result = ExecutionResult(
            returncode=result.returncode,
            stdout=(result.stdout or "") if capture_output else "",
            stderr=(result.stderr or "") if capture_output else "",
            command=cmd_string,
        )

        if self.logger:
            self.logger.log_output(exec_result.stdout, "stdout")
            self.logger.log_output(exec_result.stderr, "stderr")

        if check and exec_result.is_failure:
            raise error_cls(
                f"Command failed: {cmd_string}",
                context=f"Exit code: {exec_result.returncode}\nError: {exec_result.stderr.strip()}",
            )

        return exec_result

    @property
    def _verbose(self) -> bool:
        return bool(self.logger and self.logger.verbose)

    def _run_with_spinner(
        self, args: list[str], cwd: Optional[Path], description: str
    ) -> subprocess.CompletedProcess:
        spinner = Spinner("dots", text=f"[cyan]{description}...[/cyan]")

        with Live(
            Padding(spinner, (0, 0, 0, 2)),
            console=console,
            refresh_per_second=10,
        ) as live:
            result = subprocess.run(
                args, cwd=cwd, capture_output=True, text=True, check=False
            )

            if result.returncode == 0:
                mark = Text("  ✓ ", style="dim")
            else:
                mark = Text("  ✗ ", style="red")
            mark.append(description, style="dim")
            live.update(mark)

        return result
