"""
smartctl / badblocks Output Parser

Extracts drive identity, self-test progress and bad-block data from the
plain-text output of smartctl (ATA, SCSI and NVMe flavours) and badblocks.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from .models import OperationStatus
from burninkit.logger import get_module_logger

logger = get_module_logger(__name__)


# ---------------------------------------------------------------------------
# Identity data class
# ---------------------------------------------------------------------------

@dataclass
class DriveIdentity:
    """
    Fields parsed from ``smartctl -i -c``.

    Attributes:
        model:                 Device model / product string.
        serial:                Serial number.
        capacity_bytes:        User capacity in bytes, ``None`` if absent.
        rotation:              ``'ssd'``, ``'rpm'`` or ``None`` when not reported.
        short_test_minutes:    Recommended short self-test polling time.
        extended_test_minutes: Recommended extended self-test polling time.
    """
    model: str = ''
    serial: str = ''
    capacity_bytes: Optional[int] = None
    rotation: Optional[str] = None
    short_test_minutes: Optional[int] = None
    extended_test_minutes: Optional[int] = None


class SmartOutputParser:
    """
    Parser for smartctl and badblocks text output.

    Example:
        >>> identity = SmartOutputParser.parse_identity(output)
        >>> identity.model
        'WDC WD40EFRX-68N32N0'
        >>> SmartOutputParser.parse_self_test_status(smart_all_output).kind
        <StatusKind.IN_PROGRESS: 'in_progress'>
    """

    _PATTERNS = {
        'model': re.compile(r'^(?:Device Model|Model Number|Product):\s*(.+?)\s*$', re.MULTILINE),
        'serial': re.compile(r'^Serial [Nn]umber:\s*(.+?)\s*$', re.MULTILINE),
        'capacity': re.compile(
            r'^(?:User Capacity|Total NVM Capacity|Namespace 1 Size/Capacity):\s*([\d,.]+)',
            re.MULTILINE,
        ),
        'rotation': re.compile(r'^Rotation Rate:\s*(.+?)\s*$', re.MULTILINE),
        'short_minutes': re.compile(
            r'Short self-test routine\s+recommended polling time:\s*\(\s*(\d+)\s*\)\s*minutes',
            re.IGNORECASE,
        ),
        'extended_minutes': re.compile(
            r'Extended self-test routine\s+recommended polling time:\s*\(\s*(\d+)\s*\)\s*minutes',
            re.IGNORECASE,
        ),
        # ATA: "Self-test routine in progress... 90% of test remaining."
        'ata_in_progress': re.compile(
            r'Self-test routine in progress\.*\s*(\d+)%\s+of\s+(?:the\s+)?test remaining',
            re.IGNORECASE,
        ),
        # NVMe: "Self-test status: Short self-test in progress (27% completed)"
        'nvme_in_progress': re.compile(r'self-test in progress\s*\((\d+)%\s*completed\)', re.IGNORECASE),
        # SCSI: "Background short  Self test in progress ..."
        'scsi_in_progress': re.compile(r'(?<!No )Self[- ]test in progress', re.IGNORECASE),
        'ata_passed': re.compile(r'previous self-test routine completed\s+without error', re.IGNORECASE),
        'ata_failed': re.compile(
            r'previous self-test completed having|of the test failed'
            r'|self-test routine was (?:aborted|interrupted)'
            r'|fatal error or unknown test error',
            re.IGNORECASE,
        ),
        # First row of the ATA/SCSI ("# 1") or NVMe ("0") self-test log
        'log_row': re.compile(
            r'^\s*(?:#\s*1|0)\s+((?:Short|Extended|Background|Foreground|Offline|Conveyance|Selective).*)$',
            re.MULTILINE | re.IGNORECASE,
        ),
        'test_started': re.compile(r'has begun', re.IGNORECASE),
        'bb_progress': re.compile(r'(\d+(?:\.\d+)?)%\s+done'),
        'bb_errors': re.compile(r'\((\d+)/(\d+)/(\d+) errors\)'),
    }

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @classmethod
    def parse_identity(cls, text: str) -> DriveIdentity:
        """
        Parse ``smartctl -i -c`` output.

        Missing fields stay at their defaults; callers decide which ones
        are mandatory.
        """
        identity = DriveIdentity()

        match = cls._PATTERNS['model'].search(text)
        if match:
            identity.model = match.group(1)

        match = cls._PATTERNS['serial'].search(text)
        if match:
            identity.serial = match.group(1)

        match = cls._PATTERNS['capacity'].search(text)
        if match:
            digits = re.sub(r'[^\d]', '', match.group(1))
            identity.capacity_bytes = int(digits) if digits else None

        match = cls._PATTERNS['rotation'].search(text)
        if match:
            rate = match.group(1)
            if 'solid state' in rate.lower():
                identity.rotation = 'ssd'
            elif re.search(r'\d+\s*rpm', rate, re.IGNORECASE):
                identity.rotation = 'rpm'

        match = cls._PATTERNS['short_minutes'].search(text)
        if match:
            identity.short_test_minutes = int(match.group(1))

        match = cls._PATTERNS['extended_minutes'].search(text)
        if match:
            identity.extended_test_minutes = int(match.group(1))

        return identity

    # ------------------------------------------------------------------
    # SMART self-tests
    # ------------------------------------------------------------------

    @classmethod
    def self_test_started(cls, text: str) -> bool:
        """True if ``smartctl -t`` output confirms the test has begun."""
        return bool(cls._PATTERNS['test_started'].search(text))

    @classmethod
    def parse_self_test_status(cls, text: str) -> OperationStatus:
        """
        Classify ``smartctl -a`` output into a poll observation.

        Order of checks: explicit in-progress markers, the ATA execution
        status, then the newest self-test log entry. Output that carries
        none of these is reported as in progress with unknown percentage.
        """
        match = cls._PATTERNS['ata_in_progress'].search(text)
        if match:
            remaining = int(match.group(1))
            return OperationStatus.in_progress(100.0 - remaining, f"{remaining}% of test remaining")

        match = cls._PATTERNS['nvme_in_progress'].search(text)
        if match:
            done = int(match.group(1))
            return OperationStatus.in_progress(float(done), f"{done}% completed")

        if cls._PATTERNS['scsi_in_progress'].search(text):
            return OperationStatus.in_progress(None, 'self-test in progress')

        if cls._PATTERNS['ata_passed'].search(text):
            return OperationStatus.completed(True, 'self-test completed without error')

        match = cls._PATTERNS['ata_failed'].search(text)
        if match:
            return OperationStatus.completed(False, f"self-test failed: {match.group(0)}")

        match = cls._PATTERNS['log_row'].search(text)
        if match:
            row = ' '.join(match.group(1).split())
            lowered = row.lower()
            if 'in progress' in lowered:
                return OperationStatus.in_progress(None, row)
            if 'completed without error' in lowered or re.search(r'\bcompleted\s+-', lowered):
                return OperationStatus.completed(True, row)
            if 'fail' in lowered or 'abort' in lowered or 'interrupt' in lowered:
                return OperationStatus.completed(False, row)

        return OperationStatus.in_progress(None, 'self-test status not reported')

    # ------------------------------------------------------------------
    # badblocks
    # ------------------------------------------------------------------

    @classmethod
    def parse_badblocks_progress(cls, text: str) -> Optional[float]:
        """Last ``NN.NN% done`` value in badblocks ``-s`` output, if any."""
        matches = cls._PATTERNS['bb_progress'].findall(text)
        if not matches:
            return None
        return float(matches[-1])

    @classmethod
    def parse_badblocks_errors(cls, text: str) -> Optional[str]:
        """Last ``(read/write/corruption errors)`` triple in badblocks output."""
        matches = cls._PATTERNS['bb_errors'].findall(text)
        if not matches:
            return None
        read, write, corrupt = matches[-1]
        return f"{read}/{write}/{corrupt} errors"

    @staticmethod
    def parse_bad_blocks(text: str) -> List[int]:
        """Block numbers from a badblocks ``-o`` output file, one per line."""
        blocks = []
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                blocks.append(int(line))
            except ValueError:
                logger.warning(f"Ignoring unparseable bad block entry: {line!r}")
        return blocks
