"""
Burn-In Phase Executors

One executor per phase: SMART short self-test, destructive badblocks scan
and SMART extended self-test. Each executor starts its operation through
the execution gate, waits for it with the AsyncTestPoller and turns the
terminal poll result into a PhaseOutcome. Phase-level errors never escape
``run()``.
"""

import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from .exceptions import (
    BurnInProcessError,
    BurnInTimeoutError,
    DeviceError,
    StartFailedError,
)
from .execution_gate import ExecutionGate
from .models import (
    Drive,
    OperationStatus,
    PhaseOutcome,
    PhaseStatus,
    PollResult,
    PollResultKind,
    TestPhase,
)
from .output_parser import SmartOutputParser
from .poller import AsyncTestPoller, resolve_interval, resolve_max_wait
from .process_manager import BurnInProcessManager
from burninkit.logger import get_module_logger, LogResult

logger = get_module_logger(__name__)

REASON_TIMEOUT = 'Timeout'
REASON_START_FAILED = 'StartFailed'
REASON_DEVICE_ERROR = 'DeviceError'
REASON_TEST_FAILED = 'TestFailed'
REASON_BAD_BLOCKS = 'BadBlocks'
REASON_SOLID_STATE = 'SolidState'

# badblocks write patterns, in scan order
SCAN_PATTERNS = ('0xaa', '0x55', '0xff', '0x00')


class PhaseExecutor(ABC):
    """
    Base class for phase executors.

    Subclasses implement ``_execute``; ``run`` adds timing, logging and the
    guarantee that process-level errors become a FAILED outcome.
    """

    phase: TestPhase

    def __init__(
        self,
        process_manager: BurnInProcessManager,
        gate: ExecutionGate,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.process_manager = process_manager
        self.gate = gate
        self._sleep = sleep
        self._clock = clock

    def run(self, drive: Drive, config: Dict[str, Any]) -> PhaseOutcome:
        """
        Run this phase against a drive.

        Args:
            drive: Probed drive record
            config: Complete burn-in configuration

        Returns:
            PhaseOutcome: Never raises for phase-level failures
        """
        logger.info(f"Starting phase: {self.phase.value} on {drive.path}")
        begin = self._clock()

        try:
            outcome = self._execute(drive, config)
        except (BurnInProcessError, BurnInTimeoutError, OSError) as e:
            logger.error(f"{self.phase.value} failed: {e}")
            outcome = PhaseOutcome(
                phase=self.phase,
                status=PhaseStatus.FAILED,
                diagnostics=str(e),
                reason=REASON_DEVICE_ERROR,
            )

        outcome.elapsed_seconds = self._clock() - begin

        if outcome.status is PhaseStatus.SKIPPED:
            logger.info(f"{self.phase.value} skipped: {outcome.diagnostics}")
        else:
            LogResult(
                not outcome.is_failure,
                f"{self.phase.value}: {outcome.status.value} ({outcome.elapsed_seconds:.0f}s)",
                logger,
            )
        return outcome

    @abstractmethod
    def _execute(self, drive: Drive, config: Dict[str, Any]) -> PhaseOutcome:
        """Phase-specific work."""

    def _poller(self, interval: float, max_wait: Optional[float]) -> AsyncTestPoller:
        return AsyncTestPoller(
            self.gate,
            interval_seconds=interval,
            max_wait_seconds=max_wait,
            sleep=self._sleep,
            clock=self._clock,
        )

    def _error_log(self, drive: Drive) -> str:
        """Self-test and error logs of the drive (read-only)."""
        try:
            result = self.process_manager.run_smartctl(['-l', 'selftest', '-l', 'error'], drive.path)
        except (BurnInProcessError, BurnInTimeoutError) as e:
            return f"(error log unavailable: {e})"
        return result.stdout.strip()


# ---------------------------------------------------------------------------
# SMART self-tests
# ---------------------------------------------------------------------------

class SmartSelfTestPhase(PhaseExecutor):
    """
    Runs one SMART self-test (``smartctl -t <type>``) and waits for it.

    On timeout the self-test is aborted with ``smartctl -X`` so the next
    phase finds the drive idle.
    """

    test_type: str = ''
    interval_key: str = ''
    timeout_key: str = ''
    default_interval: float = 60

    @abstractmethod
    def expected_minutes(self, drive: Drive) -> Optional[int]:
        """Drive-reported duration of this self-test in minutes."""

    def _execute(self, drive: Drive, config: Dict[str, Any]) -> PhaseOutcome:
        expected = self.expected_minutes(drive)
        interval = resolve_interval(config.get(self.interval_key), expected, self.default_interval)
        max_wait = resolve_max_wait(config.get(self.timeout_key), expected)
        logger.info(
            f"{self.phase.value}: expected {expected if expected is not None else '?'} min, "
            f"polling every {interval:.0f}s, "
            f"max wait {'unbounded' if max_wait is None else f'{max_wait:.0f}s'}"
        )

        pm = self.process_manager
        description = f"{pm.smartctl_path} -t {self.test_type} {drive.path}"

        def start():
            result = pm.run_smartctl(['-t', self.test_type], drive.path)
            output = (result.stdout + result.stderr).strip()
            if pm.smartctl_failed(result) or not SmartOutputParser.self_test_started(output):
                raise StartFailedError(
                    f"Drive rejected {self.test_type} self-test (exit status {result.returncode}): {output}"
                )
            return result

        def status() -> OperationStatus:
            result = pm.run_smartctl(['-a'], drive.path)
            if pm.smartctl_failed(result):
                raise DeviceError(
                    f"smartctl could not read {drive.path} (exit status {result.returncode})"
                )
            return SmartOutputParser.parse_self_test_status(result.stdout)

        poll_result = self._poller(interval, max_wait).poll(description, start, status)

        if poll_result.kind is PollResultKind.TIMEOUT:
            self._abort_self_test(drive)

        return self._outcome(drive, poll_result)

    def _abort_self_test(self, drive: Drive) -> None:
        pm = self.process_manager
        try:
            self.gate.perform(
                f"{pm.smartctl_path} -X {drive.path}",
                lambda: pm.run_smartctl(['-X'], drive.path),
            )
        except (BurnInProcessError, BurnInTimeoutError) as e:
            logger.warning(f"Failed to abort self-test on {drive.path}: {e}")

    def _outcome(self, drive: Drive, poll_result: PollResult) -> PhaseOutcome:
        if poll_result.succeeded:
            return PhaseOutcome(self.phase, PhaseStatus.PASSED, diagnostics=poll_result.text)

        if poll_result.kind is PollResultKind.TIMEOUT:
            return PhaseOutcome(
                self.phase,
                PhaseStatus.ABORTED,
                diagnostics=poll_result.text,
                reason=REASON_TIMEOUT,
            )

        reason = {
            PollResultKind.START_FAILED: REASON_START_FAILED,
            PollResultKind.DEVICE_ERROR: REASON_DEVICE_ERROR,
        }.get(poll_result.kind, REASON_TEST_FAILED)
        diagnostics = f"{poll_result.text}\n{self._error_log(drive)}".strip()
        return PhaseOutcome(self.phase, PhaseStatus.FAILED, diagnostics=diagnostics, reason=reason)


class SmartShortPhase(SmartSelfTestPhase):
    phase = TestPhase.SMART_SHORT
    test_type = 'short'
    interval_key = 'short_poll_interval_seconds'
    timeout_key = 'short_timeout_minutes'
    default_interval = 60

    def expected_minutes(self, drive: Drive) -> Optional[int]:
        return drive.short_test_minutes


class SmartExtendedPhase(SmartSelfTestPhase):
    phase = TestPhase.SMART_EXTENDED
    test_type = 'long'
    interval_key = 'extended_poll_interval_seconds'
    timeout_key = 'extended_timeout_minutes'
    default_interval = 15 * 60

    def expected_minutes(self, drive: Drive) -> Optional[int]:
        return drive.extended_test_minutes


# ---------------------------------------------------------------------------
# Destructive scan
# ---------------------------------------------------------------------------

class DestructiveScanPhase(PhaseExecutor):
    """
    Destructive write/read-verify scan with badblocks.

    Runs one badblocks pass per write pattern (0xaa, 0x55, 0xff, 0x00).
    With ``full_pass`` off, badblocks stops at the first bad block
    (``-e 1``) and no further pattern is scanned. With ``full_pass`` on,
    every pattern is scanned and the phase fails iff any bad block was found.
    Solid-state drives are skipped.

    Attributes:
        pass_counts: Distinct bad blocks known after each completed pass.
    """

    phase = TestPhase.DESTRUCTIVE_SCAN

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pass_counts: List[int] = []

    def _execute(self, drive: Drive, config: Dict[str, Any]) -> PhaseOutcome:
        self.pass_counts = []

        if drive.is_solid_state:
            return PhaseOutcome(
                self.phase,
                PhaseStatus.SKIPPED,
                diagnostics=f"{drive.path} is a solid-state drive; destructive scan not applicable",
                reason=REASON_SOLID_STATE,
            )

        full_pass = config['full_pass']
        max_wait = resolve_max_wait(config.get('scan_timeout_minutes'), None)
        poller = self._poller(config['scan_poll_interval_seconds'], max_wait)
        log_dir = Path(config['log_dir'])

        found: Set[int] = set()
        notes: List[str] = []

        for pattern in SCAN_PATTERNS:
            bb_path = log_dir / f"burnin-{drive.label}.{pattern}.bb"
            progress_path = log_dir / f"burnin-{drive.label}.{pattern}.progress"
            cmd = self._command(drive, config, pattern, bb_path)

            # the pass must be over before anything else touches the device
            try:
                poll_result = poller.poll(
                    ' '.join(cmd),
                    lambda: self._start(drive, cmd, bb_path, progress_path),
                    lambda: self._status(pattern, bb_path, progress_path),
                )
            finally:
                self._finish_process()

            if not poll_result.simulated:
                found.update(self._read_bad_blocks(bb_path))
            self.pass_counts.append(len(found))
            notes.append(f"pattern {pattern}: {poll_result.text} ({len(found)} bad blocks so far)")

            if poll_result.kind is PollResultKind.TIMEOUT:
                return self._scan_outcome(PhaseStatus.ABORTED, REASON_TIMEOUT, notes, found)
            if poll_result.kind is PollResultKind.START_FAILED:
                return self._scan_outcome(PhaseStatus.FAILED, REASON_START_FAILED, notes, found)
            if poll_result.kind is PollResultKind.DEVICE_ERROR:
                notes.append(self._error_log(drive))
                return self._scan_outcome(PhaseStatus.FAILED, REASON_DEVICE_ERROR, notes, found)
            if found and not full_pass:
                notes.append(f"Stopping after pattern {pattern}: bad block found")
                notes.append(self._error_log(drive))
                return self._scan_outcome(PhaseStatus.FAILED, REASON_BAD_BLOCKS, notes, found)

        if found:
            notes.append(self._error_log(drive))
            return self._scan_outcome(PhaseStatus.FAILED, REASON_BAD_BLOCKS, notes, found)
        return self._scan_outcome(PhaseStatus.PASSED, '', notes, found)

    def _command(self, drive: Drive, config: Dict[str, Any], pattern: str, bb_path: Path) -> List[str]:
        cmd = [
            self.process_manager.badblocks_path,
            '-b', str(config['block_size']),
            '-c', str(config['blocks_at_once']),
            '-w', '-s', '-v',
            '-t', pattern,
            '-o', str(bb_path),
        ]
        if not config['full_pass']:
            cmd += ['-e', '1']
        cmd.append(drive.path)
        return cmd

    def _start(self, drive: Drive, cmd: List[str], bb_path: Path, progress_path: Path) -> int:
        pm = self.process_manager
        busy = pm.find_processes_for_device(pm.badblocks_path, drive.path)
        if busy:
            raise StartFailedError(
                f"{drive.path} is already being scanned by badblocks (PID {', '.join(map(str, busy))})"
            )
        bb_path.unlink(missing_ok=True)
        return pm.start_process(cmd, str(progress_path))

    def _status(self, pattern: str, bb_path: Path, progress_path: Path) -> OperationStatus:
        output = self._read_text(progress_path)
        code = self.process_manager.returncode()
        errors = SmartOutputParser.parse_badblocks_errors(output) or ''

        if code is None:
            percent = SmartOutputParser.parse_badblocks_progress(output)
            return OperationStatus.in_progress(percent, f"pattern {pattern} {errors}".strip())

        blocks = self._read_bad_blocks(bb_path)
        if code == 0:
            return OperationStatus.completed(
                not blocks, f"pattern {pattern} finished, {len(blocks)} bad blocks {errors}".strip()
            )
        if blocks:
            return OperationStatus.completed(
                False, f"pattern {pattern} stopped (exit status {code}), {len(blocks)} bad blocks"
            )

        tail = ' '.join(output.replace('\b', '').split()[-20:])
        return OperationStatus.device_error(f"badblocks exited with status {code}: {tail}")

    def _finish_process(self) -> None:
        try:
            self.process_manager.stop_process()
        except BurnInProcessError as e:
            logger.warning(f"Graceful stop failed, killing badblocks: {e}")
            self.process_manager.kill_process()

    def _read_bad_blocks(self, bb_path: Path) -> List[int]:
        return SmartOutputParser.parse_bad_blocks(self._read_text(bb_path))

    @staticmethod
    def _read_text(path: Path) -> str:
        try:
            return path.read_text(encoding='utf-8', errors='replace')
        except FileNotFoundError:
            return ''

    def _scan_outcome(self, status: PhaseStatus, reason: str, notes: List[str], found: Set[int]) -> PhaseOutcome:
        return PhaseOutcome(
            self.phase,
            status,
            diagnostics='\n'.join(notes),
            reason=reason,
            bad_block_count=len(found),
            bad_blocks=sorted(found),
        )


def default_executors(
    process_manager: BurnInProcessManager,
    gate: ExecutionGate,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> List[PhaseExecutor]:
    """Executors for every phase, in execution order."""
    return [
        SmartShortPhase(process_manager, gate, sleep, clock),
        DestructiveScanPhase(process_manager, gate, sleep, clock),
        SmartExtendedPhase(process_manager, gate, sleep, clock),
    ]
