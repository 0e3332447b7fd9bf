"""
Disk Burn-In Controller

Sequence controller for the burn-in of one drive.

This module provides the BurnInController class that:
- Probes the drive once
- Runs SMART short, destructive scan and SMART extended phases in order
- Keeps going after a failed phase so the report covers every phase
- Hands the resulting RunReport to the report writer
"""

import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .config import BurnInConfig
from .device_probe import DriveProbe
from .exceptions import BurnInConfigError, BurnInError, BurnInProcessError, BurnInTimeoutError
from .execution_gate import ExecutionGate, create_execution_gate
from .models import Drive, RunReport, TestPhase
from .phases import PhaseExecutor, default_executors
from .process_manager import BurnInProcessManager
from .report import BurnInReportWriter
from burninkit.logger import Logger, LogSection, get_module_logger

logger = get_module_logger(__name__)


class ControllerState(Enum):
    NOT_STARTED = 'not_started'
    RUNNING_PHASE = 'running_phase'
    COMPLETED = 'completed'


class BurnInController:
    """
    Burn-in sequence controller.

    States: NOT_STARTED -> RUNNING_PHASE(0..2) -> COMPLETED. Every phase is
    attempted regardless of earlier failures. Drive probe errors
    (DeviceNotFoundError, ProbeFailedError) abort before any phase runs.

    Attributes:
        config (dict): Complete burn-in configuration
        state (ControllerState): Current state of the sequence
        current_phase (TestPhase): Phase being run, None outside RUNNING_PHASE
        drive (Drive): Probed drive, None before execution
        report (RunReport): Result of the last execution
        status (bool): Overall result (True=success, False=failure)

    Example:
        >>> controller = BurnInController('/dev/sdb', dry_run=False, full_pass=True)
        >>> report = controller.execute()
        >>> print(f"Status: {controller.status}")
        >>> for outcome in report.outcomes:
        ...     print(outcome.phase.name, outcome.status.value)
    """

    def __init__(
        self,
        device: str,
        process_manager: Optional[BurnInProcessManager] = None,
        probe: Optional[DriveProbe] = None,
        gate: Optional[ExecutionGate] = None,
        executors: Optional[List[PhaseExecutor]] = None,
        report_writer: Optional[BurnInReportWriter] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        **kwargs
    ):
        """
        Initialize burn-in controller.

        Args:
            device: Device path of the drive under test
            process_manager: smartctl/badblocks runner (built from config if omitted)
            probe: Drive probe (built from config if omitted)
            gate: Execution mode gate (chosen from ``dry_run`` if omitted)
            executors: Phase executors in execution order (defaults to all three)
            report_writer: Report collaborator (built from ``log_dir`` if omitted)
            sleep: Sleep function used between polls
            clock: Monotonic clock used for timing
            **kwargs: Configuration parameters (see BurnInConfig.DEFAULT_CONFIG)

        Raises:
            BurnInConfigError: If a configuration value is invalid
        """
        self.config: Dict[str, Any] = BurnInConfig.get_default_config()
        self.set_config(device=device, **kwargs)

        self._process_manager = process_manager
        self._probe = probe
        self._gate = gate
        self._executors = executors
        self._report_writer = report_writer
        self._sleep = sleep
        self._clock = clock

        self.state = ControllerState.NOT_STARTED
        self.current_phase: Optional[TestPhase] = None
        self.drive: Optional[Drive] = None
        self.report: Optional[RunReport] = None
        self.status: bool = True

        logger.debug(f"BurnInController initialized for {device}")

    def set_config(self, **kwargs) -> None:
        """
        Update configuration parameters.

        Raises:
            BurnInConfigError: If validation fails
        """
        try:
            BurnInConfig.validate_config(kwargs)
        except ValueError as e:
            raise BurnInConfigError(f"Invalid configuration: {e}")

        self.config = BurnInConfig.merge_config(self.config, kwargs)

    def execute(self) -> RunReport:
        """
        Run the whole burn-in sequence.

        Returns:
            RunReport: Exactly one outcome per phase, in phase order

        Raises:
            DeviceNotFoundError: If the device is not a block device
            ProbeFailedError: If the drive cannot be queried
            BurnInError: If the controller is already running
        """
        if self.state is ControllerState.RUNNING_PHASE:
            raise BurnInError("Burn-in sequence is already running")

        config = dict(self.config)
        device = config['device']
        process_manager = self._process_manager or BurnInProcessManager(
            smartctl_path=config['smartctl_path'],
            badblocks_path=config['badblocks_path'],
            command_timeout=config['command_timeout_seconds'],
        )
        gate = self._gate or create_execution_gate(config['dry_run'])
        probe = self._probe or DriveProbe(process_manager)
        executors = self._executors or default_executors(process_manager, gate, self._sleep, self._clock)
        self._check_order(executors)

        self.state = ControllerState.NOT_STARTED
        self.current_phase = None
        self.report = None

        # Pre-run errors propagate; no phase has started yet
        drive = probe.probe(device)
        self.drive = drive

        writer = self._report_writer or BurnInReportWriter(config['log_dir'])
        Logger.attach_run_log(str(writer.log_path(drive)))
        try:
            report = self._run_phases(drive, config, gate, process_manager, executors)
            writer.write(report)
        finally:
            Logger.detach_run_log()

        self.report = report
        self.status = report.success
        return report

    def _run_phases(
        self,
        drive: Drive,
        config: Dict[str, Any],
        gate: ExecutionGate,
        process_manager: BurnInProcessManager,
        executors: List[PhaseExecutor],
    ) -> RunReport:
        mode = 'DRY RUN' if gate.simulated else 'LIVE'
        LogSection(f"Burn-in of {drive.path}: {drive.model} / {drive.serial} ({mode})", logger)
        if gate.simulated:
            logger.info("Dry run: commands are logged, nothing is written to the drive")
        else:
            logger.warning(f"ALL DATA ON {drive.path} WILL BE DESTROYED")

        report = RunReport(drive=drive, simulated=gate.simulated, started_at=datetime.now())
        self.report = report

        if config['log_smart_snapshots']:
            self._log_smart_snapshot(process_manager, drive, 'before burn-in')

        for executor in executors:
            self.state = ControllerState.RUNNING_PHASE
            self.current_phase = executor.phase
            outcome = executor.run(drive, config)
            report.outcomes.append(outcome)
            self.status = report.success

        self.state = ControllerState.COMPLETED
        self.current_phase = None

        if config['log_smart_snapshots']:
            self._log_smart_snapshot(process_manager, drive, 'after burn-in')

        report.finished_at = datetime.now()
        return report

    @staticmethod
    def _check_order(executors: List[PhaseExecutor]) -> None:
        phases = [executor.phase for executor in executors]
        if phases != TestPhase.ordered():
            raise BurnInConfigError(
                f"Executors must cover {[p.name for p in TestPhase.ordered()]} in order, "
                f"got {[p.name for p in phases]}"
            )

    @staticmethod
    def _log_smart_snapshot(process_manager: BurnInProcessManager, drive: Drive, label: str) -> None:
        try:
            result = process_manager.run_smartctl(['-x'], drive.path)
        except (BurnInProcessError, BurnInTimeoutError) as e:
            logger.warning(f"SMART snapshot {label} unavailable: {e}")
            return

        logger.info(f"SMART information {label}:")
        for line in result.stdout.splitlines():
            logger.info(f"    {line}")

    def get_status(self) -> Dict[str, Any]:
        """
        Get current execution status.

        Returns:
            Dictionary with status information:
            - state: Controller state name
            - current_phase: Phase being run, or None
            - completed_phases: Number of phases with an outcome
            - status: Overall result so far
            - dry_run: Whether commands are simulated
        """
        return {
            'state': self.state.value,
            'current_phase': self.current_phase.name if self.current_phase else None,
            'completed_phases': len(self.report.outcomes) if self.report else 0,
            'status': self.status,
            'dry_run': self.config['dry_run'],
        }

    def __repr__(self) -> str:
        """String representation of controller."""
        return (
            f"BurnInController("
            f"device={self.config['device']}, "
            f"state={self.state.value}, "
            f"status={self.status})"
        )
