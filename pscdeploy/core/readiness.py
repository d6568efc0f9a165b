"""
Readiness Polling

Bounded polling for state that an external system publishes some time
after a triggering action (e.g. the address of an internal load balancer).
"""

import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

from pscdeploy.exceptions import ReadinessTimeoutError
from pscdeploy.logger import DeployLogger

V = TypeVar("V")


@dataclass
class ReadinessCondition(Generic[V]):
    """What to poll for and how long to keep trying."""

    probe: Callable[[], Optional[V]]
    interval: float
    max_attempts: int
    description: str = "condition"


class ReadinessPoller:
    """
    Polls a probe until it returns a value.

    The probe runs immediately, then after each `interval` sleep, for at
    most `max_attempts` invocations. Sleep and clock are injectable so tests
    run without waiting.
    """

    def __init__(
        self,
        logger: Optional[DeployLogger] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = logger
        self.sleep = sleep
        self.clock = clock

    def wait_for(
        self,
        probe: Callable[[], Optional[V]],
        interval: float,
        max_attempts: int,
        description: str = "condition",
    ) -> V:
        """
        Return the first non-None probe result.

        Raises:
            ValueError: If max_attempts < 1
            ReadinessTimeoutError: If every attempt returned None
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        started = self.clock()
        for attempt in range(1, max_attempts + 1):
            value = probe()
            if value is not None:
                self._log(f"{description}: ready after {attempt} attempt(s)")
                return value

            self._log(f"Waiting for {description}... ({attempt}/{max_attempts})")
            if attempt < max_attempts:
                self.sleep(interval)

        raise ReadinessTimeoutError(description, max_attempts, self.clock() - started)

    def wait_for_condition(self, condition: ReadinessCondition[V]) -> V:
        return self.wait_for(
            condition.probe,
            condition.interval,
            condition.max_attempts,
            condition.description,
        )

    def _log(self, message: str) -> None:
        if self.logger:
            self.logger.log(message)
