"""
Phase Model

A run is an ordered list of phases. Deploy executes forward actions in
declaration order and stops at the first failure; teardown executes
inverse actions in reverse declaration order and keeps going past
failures unless the phase's inverse is marked fatal.
"""

import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from pscdeploy.exceptions import PhaseFailedError
from pscdeploy.logger import DeployLogger
from pscdeploy.models.context import DeploymentContext
from pscdeploy.models.results import PhaseResult, ResultStatus, RunReport

ForwardAction = Callable[[DeploymentContext], DeploymentContext]
InverseAction = Callable[[DeploymentContext], None]


@dataclass(frozen=True)
class Phase:
    """One named step of a run and, optionally, how to undo it."""

    name: str
    forward: ForwardAction
    inverse: Optional[InverseAction] = None
    fatal_inverse: bool = False
    settle_before_inverse: float = 0.0


def run_forward(
    phases: Sequence[Phase],
    context: DeploymentContext,
    report: RunReport,
    logger: Optional[DeployLogger] = None,
) -> DeploymentContext:
    """
    Run forward actions in order, threading the context through.

    Raises:
        PhaseFailedError: On the first failing phase; later phases never run
    """
    total = len(phases)
    for index, phase in enumerate(phases, start=1):
        if logger:
            logger.step(f"[{index}/{total}] {phase.name}")
        try:
            context = phase.forward(context)
        except Exception as e:
            report.phases.append(PhaseResult(phase.name, ResultStatus.FAILURE, str(e)))
            raise PhaseFailedError(phase.name, e, context.snapshot()) from e
        report.phases.append(PhaseResult(phase.name, ResultStatus.SUCCESS))
    return context


def run_inverse(
    phases: Sequence[Phase],
    context: DeploymentContext,
    report: RunReport,
    logger: Optional[DeployLogger] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunReport:
    """
    Run inverse actions in reverse declaration order.

    A failing inverse is logged and recorded, and the next one still runs.
    A failing fatal inverse sets report.fatal_error.
    """
    ordered: List[Phase] = list(reversed(phases))
    total = len(ordered)
    for index, phase in enumerate(ordered, start=1):
        if phase.inverse is None:
            report.phases.append(PhaseResult(phase.name, ResultStatus.SKIPPED))
            continue

        if logger:
            logger.step(f"[{index}/{total}] Undo {phase.name}")

        if phase.settle_before_inverse > 0:
            if logger:
                logger.log(
                    f"Waiting {phase.settle_before_inverse:.0f}s for cluster cleanup"
                )
            sleep(phase.settle_before_inverse)

        try:
            phase.inverse(context)
        except Exception as e:
            report.phases.append(PhaseResult(phase.name, ResultStatus.FAILURE, str(e)))
            if phase.fatal_inverse:
                report.fatal_error = f"{phase.name}: {e}"
                if logger:
                    logger.log_error(f"Undo {phase.name} failed", context=str(e))
            elif logger:
                logger.warning(f"Undo {phase.name} failed, continuing: {e}")
            continue

        report.phases.append(PhaseResult(phase.name, ResultStatus.SUCCESS))
        if logger:
            logger.success(f"Undid {phase.name}")

    return report
