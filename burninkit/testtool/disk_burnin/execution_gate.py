"""
Execution Mode Gate

Every state-mutating command issued by the burn-in sequence goes through an
ExecutionGate. The live gate runs the action; the simulated gate only
records what would have run and hands back a synthetic success, so the rest
of the sequence can proceed without touching the drive.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List

from burninkit.logger import get_module_logger

logger = get_module_logger(__name__)


@dataclass(frozen=True)
class SimulatedResult:
    """Placeholder result returned instead of running an action."""
    description: str


class ExecutionGate(ABC):
    """
    Policy object consulted before any state-mutating action.

    Example:
        >>> gate = create_execution_gate(dry_run=True)
        >>> gate.perform("smartctl -t short /dev/sdb", start_test)
        SimulatedResult(description='smartctl -t short /dev/sdb')
    """

    simulated = False

    @abstractmethod
    def perform(self, description: str, action: Callable[[], Any]) -> Any:
        """
        Perform (or pretend to perform) a state-mutating action.

        Args:
            description: Human-readable command line of the action
            action: Zero-argument callable doing the real work

        Returns:
            The action's result, or a SimulatedResult
        """


class LiveExecutionGate(ExecutionGate):
    """Runs every action."""

    def perform(self, description: str, action: Callable[[], Any]) -> Any:
        logger.debug(f"Executing: {description}")
        return action()


class SimulatedExecutionGate(ExecutionGate):
    """Never runs an action; records its description instead."""

    simulated = True

    def __init__(self):
        self.recorded: List[str] = []

    def perform(self, description: str, action: Callable[[], Any]) -> SimulatedResult:
        self.recorded.append(description)
        logger.info(f"[DRY RUN] Would run: {description}")
        return SimulatedResult(description)


def create_execution_gate(dry_run: bool) -> ExecutionGate:
    """Pick the gate variant for the requested execution mode."""
    if dry_run:
        return SimulatedExecutionGate()
    return LiveExecutionGate()
