"""
Disk Burn-In Package

This package provides a sequence controller for unattended burn-in of
storage drives: SMART short self-test, destructive badblocks write/verify
scan and SMART extended self-test.

Main Components:
- BurnInController: Sequence controller producing a RunReport
- BurnInConfig: Configuration management and validation
- DriveProbe: Reads static drive attributes
- AsyncTestPoller: Start-then-poll loop for long drive operations
- Phase executors: SmartShortPhase, DestructiveScanPhase, SmartExtendedPhase
- Execution gates: live or dry-run execution of state-mutating commands
- Custom exceptions for error handling

Usage:
    from burninkit.testtool.disk_burnin import BurnInController

    controller = BurnInController('/dev/sdb', dry_run=False)
    report = controller.execute()

    if controller.status:
        print("Burn-in PASSED")
    else:
        print("Burn-in FAILED")
"""

__version__ = '1.0.0'

from .exceptions import (
    BurnInError,
    BurnInConfigError,
    DeviceNotFoundError,
    ProbeFailedError,
    BurnInProcessError,
    StartFailedError,
    DeviceError,
    BurnInTimeoutError,
)

from .config import BurnInConfig
from .models import (
    Drive,
    MediaType,
    TestPhase,
    PhaseStatus,
    PhaseOutcome,
    PollState,
    PollResult,
    RunReport,
)
from .process_manager import BurnInProcessManager
from .execution_gate import (
    ExecutionGate,
    LiveExecutionGate,
    SimulatedExecutionGate,
    SimulatedResult,
    create_execution_gate,
)
from .device_probe import DriveProbe
from .poller import AsyncTestPoller
from .phases import (
    PhaseExecutor,
    SmartShortPhase,
    DestructiveScanPhase,
    SmartExtendedPhase,
)
from .report import BurnInReportWriter
from .controller import BurnInController, ControllerState

__all__ = [
    # Exceptions
    'BurnInError',
    'BurnInConfigError',
    'DeviceNotFoundError',
    'ProbeFailedError',
    'BurnInProcessError',
    'StartFailedError',
    'DeviceError',
    'BurnInTimeoutError',
    # Config
    'BurnInConfig',
    # Data model
    'Drive',
    'MediaType',
    'TestPhase',
    'PhaseStatus',
    'PhaseOutcome',
    'PollState',
    'PollResult',
    'RunReport',
    # Collaborators
    'BurnInProcessManager',
    'ExecutionGate',
    'LiveExecutionGate',
    'SimulatedExecutionGate',
    'SimulatedResult',
    'create_execution_gate',
    'DriveProbe',
    'AsyncTestPoller',
    'PhaseExecutor',
    'SmartShortPhase',
    'DestructiveScanPhase',
    'SmartExtendedPhase',
    'BurnInReportWriter',
    # Controller
    'BurnInController',
    'ControllerState',
]
