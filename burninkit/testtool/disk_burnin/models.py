"""
Disk Burn-In Data Model

Plain data classes shared by the probe, the poller, the phase executors
and the sequence controller.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Dict, Any


# ---------------------------------------------------------------------------
# Drive
# ---------------------------------------------------------------------------

class MediaType(Enum):
    ROTATIONAL = 'rotational'
    SOLID_STATE = 'solid-state'


@dataclass(frozen=True)
class Drive:
    """
    Static attributes of the drive under test.

    Attributes:
        path:                  Device path, e.g. ``/dev/sdb``.
        model:                 Model string reported by the drive.
        serial:                Serial number reported by the drive.
        capacity_bytes:        Addressable capacity (0 when unknown).
        media_type:            Rotational or solid-state.
        short_test_minutes:    Recommended SMART short test polling time.
        extended_test_minutes: Recommended SMART extended test polling time.
    """
    path: str
    model: str
    serial: str
    capacity_bytes: int = 0
    media_type: MediaType = MediaType.ROTATIONAL
    short_test_minutes: Optional[int] = None
    extended_test_minutes: Optional[int] = None

    @property
    def is_solid_state(self) -> bool:
        return self.media_type is MediaType.SOLID_STATE

    @property
    def label(self) -> str:
        """Model and serial joined into a filename-safe token."""
        raw = f"{self.model}_{self.serial}"
        return re.sub(r'[^A-Za-z0-9._-]+', '_', raw).strip('_')


# ---------------------------------------------------------------------------
# Phases and outcomes
# ---------------------------------------------------------------------------

class TestPhase(Enum):
    """Burn-in phases in execution order."""
    SMART_SHORT = 'SMART short self-test'
    DESTRUCTIVE_SCAN = 'Destructive write/verify scan'
    SMART_EXTENDED = 'SMART extended self-test'

    # keep pytest from collecting this enum
    __test__ = False

    @classmethod
    def ordered(cls) -> List['TestPhase']:
        return [cls.SMART_SHORT, cls.DESTRUCTIVE_SCAN, cls.SMART_EXTENDED]


class PhaseStatus(Enum):
    PASSED = 'PASSED'
    FAILED = 'FAILED'
    SKIPPED = 'SKIPPED'
    ABORTED = 'ABORTED'


@dataclass
class PhaseOutcome:
    """
    Result of one burn-in phase.

    Attributes:
        phase:           Phase that produced this outcome.
        status:          Terminal status of the phase.
        elapsed_seconds: Wall time spent in the phase.
        diagnostics:     Free-form text, usually from the drive's error logs.
        reason:          Short cause tag (``Timeout``, ``StartFailed``, ...).
        bad_block_count: Distinct bad blocks found (destructive scan only).
        bad_blocks:      Bad block numbers (destructive scan only).
    """
    phase: TestPhase
    status: PhaseStatus
    elapsed_seconds: float = 0.0
    diagnostics: str = ''
    reason: str = ''
    bad_block_count: Optional[int] = None
    bad_blocks: List[int] = field(default_factory=list)

    @property
    def is_failure(self) -> bool:
        return self.status in (PhaseStatus.FAILED, PhaseStatus.ABORTED)


# ---------------------------------------------------------------------------
# Polling
# ---------------------------------------------------------------------------

class StatusKind(Enum):
    IN_PROGRESS = 'in_progress'
    COMPLETED = 'completed'
    DEVICE_ERROR = 'device_error'


@dataclass
class OperationStatus:
    """One observation returned by a phase's ``status()`` callable."""
    kind: StatusKind
    percent: Optional[float] = None
    success: bool = False
    text: str = ''

    @classmethod
    def in_progress(cls, percent: Optional[float] = None, text: str = '') -> 'OperationStatus':
        return cls(StatusKind.IN_PROGRESS, percent=percent, text=text)

    @classmethod
    def completed(cls, success: bool, text: str = '') -> 'OperationStatus':
        return cls(StatusKind.COMPLETED, percent=100.0 if success else None, success=success, text=text)

    @classmethod
    def device_error(cls, text: str = '') -> 'OperationStatus':
        return cls(StatusKind.DEVICE_ERROR, text=text)


@dataclass
class PollState:
    """Transient wait-loop state, owned by the poller for one operation."""
    elapsed_seconds: float = 0.0
    last_percent: Optional[float] = None
    last_status_text: str = ''
    ticks: int = 0
    terminal: bool = False


class PollResultKind(Enum):
    COMPLETED = 'completed'
    DEVICE_ERROR = 'device_error'
    START_FAILED = 'start_failed'
    TIMEOUT = 'timeout'


@dataclass
class PollResult:
    """Terminal result of one poll loop."""
    kind: PollResultKind
    success: bool = False
    text: str = ''
    simulated: bool = False
    state: PollState = field(default_factory=PollState)

    @property
    def succeeded(self) -> bool:
        return self.kind is PollResultKind.COMPLETED and self.success


# ---------------------------------------------------------------------------
# Run report
# ---------------------------------------------------------------------------

@dataclass
class RunReport:
    """
    Ordered phase outcomes for one burn-in invocation.

    ``success`` is True iff no phase FAILED or ABORTED.
    """
    drive: Drive
    outcomes: List[PhaseOutcome] = field(default_factory=list)
    simulated: bool = False
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return not any(outcome.is_failure for outcome in self.outcomes)

    @property
    def bad_blocks(self) -> List[int]:
        for outcome in self.outcomes:
            if outcome.phase is TestPhase.DESTRUCTIVE_SCAN:
                return list(outcome.bad_blocks)
        return []

    def outcome_for(self, phase: TestPhase) -> Optional[PhaseOutcome]:
        for outcome in self.outcomes:
            if outcome.phase is phase:
                return outcome
        return None

    def summary(self) -> Dict[str, Any]:
        return {
            'device': self.drive.path,
            'model': self.drive.model,
            'serial': self.drive.serial,
            'simulated': self.simulated,
            'success': self.success,
            'phases': [
                {
                    'phase': outcome.phase.name,
                    'status': outcome.status.value,
                    'elapsed_seconds': round(outcome.elapsed_seconds, 1),
                    'reason': outcome.reason,
                    'bad_block_count': outcome.bad_block_count,
                }
                for outcome in self.outcomes
            ],
        }
