"""
Run logs for pscdeploy

Every deploy/teardown run writes a plain-text log under
logs/{operation}/{date}/{time}_{operation}.log while the console shows a
compact phase view (or the raw stream with --verbose).
"""

import re
from pathlib import Path
from datetime import datetime
from typing import Optional, TextIO
from rich.console import Console
from rich.markup import escape

from pscdeploy.constants import LOG_DATE_FORMAT, LOG_TIME_FORMAT

console = Console()

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

RULE = "=" * 80
ERROR_RULE = "!" * 80

# Console style for each level when streaming verbosely
LEVEL_STYLES = {"ERROR": "red", "WARNING": "yellow", "DEBUG": "dim"}


class DeployLogger:
    """
    File log plus console progress for one pscdeploy run.

    Phase headers, successes and warnings go to both the log and the
    console; command lines and subprocess output reach the console only in
    verbose mode. Errors are framed in the log so they are easy to grep.
    """

    def __init__(self, operation: str, log_root: Path, verbose: bool = False):
        self.operation = operation
        self.verbose = verbose
        self.console = console
        self.current_step = ""
        self.has_errors = False

        started = datetime.now()
        run_dir = Path(log_root) / operation / started.strftime(LOG_DATE_FORMAT)
        run_dir.mkdir(parents=True, exist_ok=True)
        self.log_path: Path = (
            run_dir / f"{started.strftime(LOG_TIME_FORMAT)}_{operation}.log"
        )

        # Line-buffered so `tail -f` follows along
        self.log_file: Optional[TextIO] = open(self.log_path, "w", buffering=1)
        self._write(
            f"\n{RULE}\npscdeploy {operation}\n{RULE}\n"
            f"Started: {started.isoformat()}\n{RULE}\n\n"
        )

    def _write(self, text: str) -> None:
        if self.log_file:
            self.log_file.write(text)
            self.log_file.flush()

    def log(self, message: str, level: str = "INFO"):
        """Append a timestamped line; echo it to the console when verbose."""
        self._write(f"[{datetime.now():%H:%M:%S}] [{level}] {message}\n")

        if self.verbose:
            style = LEVEL_STYLES.get(level)
            text = escape(message)
            self.console.print(f"[{style}]{text}[/{style}]" if style else text)

    def log_command(self, command: str):
        self.log(f"Executing: {command}", "DEBUG")

    def log_output(self, output: str, stream: str = "stdout"):
        """Record subprocess output, one prefixed line per output line."""
        if not output:
            return

        plain = ANSI_ESCAPE.sub("", output)
        self._write("".join(f"  [{stream}] {line}\n" for line in plain.splitlines()))

        if self.verbose:
            self.console.print(output, markup=False, highlight=False)

    def log_error(self, error: str, context: Optional[str] = None):
        """
        Record a failure and show it on the console.

        Args:
            error: What failed
            context: Extra detail such as exit code or stderr
        """
        self.has_errors = True

        detail = f"\nContext: {context}\n" if context else ""
        self._write(
            f"\n{ERROR_RULE}\nERROR OCCURRED\n{ERROR_RULE}\n{error}\n{detail}{ERROR_RULE}\n\n"
        )

        if not self.verbose:
            self.console.print()
        self.console.print(f"[bold red]✗ {escape(error)}[/bold red]")
        if context:
            self.console.print(f"  [color(208)]{escape(context)}[/color(208)]")

    def step(self, step_name: str):
        """Start a phase such as "[3/7] Internal load balancer"."""
        quiet = not self.verbose
        if self.current_step and quiet:
            self.console.print()

        self.current_step = step_name
        self.log(f"Step: {step_name}")

        if quiet:
            self.console.print(f"[color(214)]▶[/color(214)] [white]{escape(step_name)}[/white]")

    def success(self, message: str):
        self.log(message)
        if not self.verbose:
            self.console.print(f"  [dim]✓ {escape(message)}[/dim]")

    def warning(self, message: str):
        self.log(message, "WARNING")
        if not self.verbose:
            self.console.print(f"  [yellow]⚠[/yellow] [dim]{escape(message)}[/dim]")

    def close(self):
        """Write the footer with the run status and close the file."""
        if not self.log_file:
            return

        status = "FAILED" if self.has_errors else "SUCCESS"
        self._write(
            f"\n{RULE}\nCompleted: {datetime.now().isoformat()}\n"
            f"Status: {status}\n{RULE}\n"
        )
        self.log_file.close()
        self.log_file = None
