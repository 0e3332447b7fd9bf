"""
Async Test Poller

Starts a long-running drive operation through the execution gate, then
sleeps and polls its status until it completes, the drive errors out, or the
maximum wait runs out.
"""

import time
from typing import Any, Callable, Optional

from .exceptions import BurnInProcessError, BurnInTimeoutError
from .execution_gate import ExecutionGate, SimulatedResult
from .models import (
    OperationStatus,
    PollResult,
    PollResultKind,
    PollState,
    StatusKind,
)
from burninkit.logger import get_module_logger

logger = get_module_logger(__name__)

MIN_DERIVED_INTERVAL = 10
MAX_DERIVED_INTERVAL = 30 * 60


def resolve_interval(
    configured: Optional[float],
    expected_minutes: Optional[int],
    default: float,
) -> float:
    """
    Pick the poll interval for an operation.

    An explicitly configured interval wins. Otherwise the interval is a
    twentieth of the drive's expected duration, clamped to 10 s .. 30 min,
    so short tests stay responsive and long ones are not polled needlessly.

    Example:
        >>> resolve_interval(None, 2, 60)
        10
        >>> resolve_interval(None, 600, 60)
        1800
    """
    if configured is not None:
        return configured
    if expected_minutes:
        derived = expected_minutes * 60 / 20
        return max(MIN_DERIVED_INTERVAL, min(MAX_DERIVED_INTERVAL, derived))
    return default


def resolve_max_wait(
    configured_minutes: Optional[float],
    expected_minutes: Optional[int],
) -> Optional[float]:
    """
    Pick the maximum wait (seconds) for an operation, ``None`` = unbounded.

    A configured value wins (``0`` means unbounded). Otherwise the wait is
    twice the drive's expected duration plus 30 minutes.
    """
    if configured_minutes is not None:
        return configured_minutes * 60 if configured_minutes > 0 else None
    if expected_minutes:
        return (expected_minutes * 2 + 30) * 60
    return None


class AsyncTestPoller:
    """
    Generic start-then-poll loop.

    The caller supplies ``start()`` (state-mutating, routed through the
    gate) and ``status()`` (read-only, returns an OperationStatus). The
    poller never raises phase-level errors; everything ends up in the
    returned PollResult.

    Example:
        >>> poller = AsyncTestPoller(gate, interval_seconds=60, max_wait_seconds=3600)
        >>> result = poller.poll("smartctl -t short /dev/sdb", start, status)
        >>> result.kind
        <PollResultKind.COMPLETED: 'completed'>
    """

    def __init__(
        self,
        gate: ExecutionGate,
        interval_seconds: float,
        max_wait_seconds: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.gate = gate
        self.interval_seconds = interval_seconds
        self.max_wait_seconds = max_wait_seconds
        self._sleep = sleep
        self._clock = clock

    def poll(
        self,
        description: str,
        start: Callable[[], Any],
        status: Callable[[], OperationStatus],
    ) -> PollResult:
        """
        Drive one operation to a terminal state.

        Args:
            description: Command line of the start action (logged / recorded)
            start: Starts the operation; errors become START_FAILED
            status: Returns the current OperationStatus; errors become DEVICE_ERROR

        Returns:
            PollResult: Terminal result with the final PollState
        """
        state = PollState()

        try:
            started = self.gate.perform(description, start)
        except (BurnInProcessError, BurnInTimeoutError, OSError) as e:
            logger.error(f"Failed to start '{description}': {e}")
            state.terminal = True
            state.last_status_text = str(e)
            return PollResult(PollResultKind.START_FAILED, text=str(e), state=state)

        if isinstance(started, SimulatedResult):
            state.terminal = True
            state.last_percent = 100.0
            state.last_status_text = 'simulated'
            return PollResult(
                PollResultKind.COMPLETED,
                success=True,
                text=f"Simulated: {description}",
                simulated=True,
                state=state,
            )

        begin = self._clock()
        while True:
            wait = self.interval_seconds
            if self.max_wait_seconds is not None:
                remaining = self.max_wait_seconds - state.elapsed_seconds
                if remaining <= 0:
                    return self._timeout(description, state)
                wait = min(wait, remaining)

            self._sleep(wait)
            state.elapsed_seconds = self._clock() - begin
            state.ticks += 1

            try:
                observation = status()
            except (BurnInProcessError, BurnInTimeoutError, OSError) as e:
                observation = OperationStatus.device_error(str(e))

            state.last_status_text = observation.text
            if observation.percent is not None:
                state.last_percent = observation.percent
            self._log_tick(description, state)

            if observation.kind is StatusKind.COMPLETED:
                state.terminal = True
                return PollResult(
                    PollResultKind.COMPLETED,
                    success=observation.success,
                    text=observation.text,
                    state=state,
                )

            if observation.kind is StatusKind.DEVICE_ERROR:
                logger.error(f"Device error during '{description}': {observation.text}")
                state.terminal = True
                return PollResult(PollResultKind.DEVICE_ERROR, text=observation.text, state=state)

    def _timeout(self, description: str, state: PollState) -> PollResult:
        text = f"Timeout after {state.elapsed_seconds:.0f} seconds (limit {self.max_wait_seconds:.0f})"
        logger.error(f"'{description}': {text}")
        state.terminal = True
        return PollResult(PollResultKind.TIMEOUT, text=text, state=state)

    @staticmethod
    def _log_tick(description: str, state: PollState) -> None:
        percent = f"{state.last_percent:.1f}%" if state.last_percent is not None else "?"
        logger.info(
            f"[{description}] {percent} after {state.elapsed_seconds:.0f}s - {state.last_status_text}"
        )
