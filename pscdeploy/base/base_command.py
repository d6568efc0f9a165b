"""
Base Command Class

Abstract base for all pscdeploy CLI commands.
Provides common functionality and structure.
"""

from abc import ABC, abstractmethod
from typing import Optional, Any, Dict
import json
from rich.console import Console
from rich.markup import escape

from pscdeploy.core.config_loader import TopologyConfig, load_config
from pscdeploy.exceptions import PscDeployError
from pscdeploy.logger import DeployLogger
from pscdeploy.ui_components import show_header
from pscdeploy.utils import get_root


class BaseCommand(ABC):
    """
    Abstract base command class.

    Provides:
    - Config loading
    - Logger initialization
    - Header display
    - Error handling and exit codes
    - JSON output support
    """

    def __init__(
        self,
        root: Optional[str] = None,
        verbose: bool = False,
        json_output: bool = False,
    ):
        self.verbose = verbose
        self.json_output = json_output
        self.console = Console()
        self.root = get_root(root)
        self.logger: Optional[DeployLogger] = None
        self._config: Optional[TopologyConfig] = None

    @property
    def config(self) -> TopologyConfig:
        if self._config is None:
            self._config = load_config(self.root)
        return self._config

    def init_logger(self, command_name: str) -> Optional[DeployLogger]:
        """
        Initialize command logger (skip in JSON mode).

        Args:
            command_name: Command name, used for the log directory

        Returns:
            DeployLogger instance or None if JSON mode
        """
        if self.json_output:
            return None
        self.logger = DeployLogger(
            command_name, self.config.logs_dir, verbose=self.verbose
        )
        return self.logger

    def output_json(self, data: Dict[str, Any], exit_code: int = 0) -> None:
        """
        Output data as JSON and exit.

        Args:
            data: Data to output as JSON
            exit_code: Exit code (0 for success, non-zero for error)
        """
        print(json.dumps(data, indent=2))
        if exit_code != 0:
            raise SystemExit(exit_code)

    def output_json_error(
        self, error: str, details: Optional[Dict[str, Any]] = None, exit_code: int = 1
    ) -> None:
        """Output error as JSON and exit."""
        error_data: Dict[str, Any] = {"error": error}
        if details:
            error_data["details"] = details
        self.output_json(error_data, exit_code=exit_code)

    def show_header(
        self,
        title: str,
        subtitle: Optional[str] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Show command header (skip in JSON or verbose mode)."""
        if not self.verbose and not self.json_output:
            show_header(
                title=title,
                subtitle=subtitle,
                details=details,
                console=self.console,
            )

    def print_error(self, message: str) -> None:
        """Print error message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[red]✗ {escape(message)}[/red]")

    def print_dim(self, message: str) -> None:
        """Print dim message (skip in JSON mode)."""
        if not self.json_output:
            self.console.print(f"[dim]{escape(message)}[/dim]")

    def confirm(self, question: str, default: bool = False) -> bool:
        """
        Ask for user confirmation.

        Args:
            question: Question to ask
            default: Default answer

        Returns:
            True if confirmed
        """
        default_str = "y" if default else "n"
        self.console.print(
            f"{question} [bold bright_white]\\[y/n][/bold bright_white] [dim]({default_str})[/dim]: ",
            end="",
        )
        answer = input().strip().lower()

        if not answer:
            return default

        return answer in ["y", "yes"]

    def logs_hint(self) -> None:
        if self.logger and not self.json_output:
            self.console.print(f"\n[dim]Logs saved to:[/dim] {self.logger.log_path}\n")

    @abstractmethod
    def execute(self, **kwargs) -> None:
        """
        Execute command logic.

        Must be implemented by subclasses.
        """
        pass

    def run(self, **kwargs) -> None:
        """
        Run command with error handling.

        Args:
            **kwargs: Command arguments
        """
        try:
            self.execute(**kwargs)
        except KeyboardInterrupt:
            self.console.print("\n[yellow]⚠️  Operation cancelled by user[/yellow]")
            self.logs_hint()
            raise SystemExit(130)
        except SystemExit:
            raise
        except PscDeployError as e:
            if self.json_output:
                self.output_json_error(e.message, {"context": e.context})
            if self.logger:
                self.logger.log_error(e.message, context=e.context)
            else:
                self.print_error(e.message)
                if e.context:
                    self.print_dim(e.context)
            self.logs_hint()
            raise SystemExit(1)
        except Exception as e:
            # Generic error handling
            error_type = type(e).__name__
            self.console.print(
                f"\n[bold red]✗ {error_type}:[/bold red] {escape(str(e))}\n"
            )
            if self.logger:
                self.logger.log_error(f"{error_type}: {e}")
            self.logs_hint()
            raise SystemExit(1)
        finally:
            if self.logger:
                self.logger.close()
