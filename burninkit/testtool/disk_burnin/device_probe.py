"""
Device Capability Probe

Reads the static attributes of a drive (model, serial, capacity, media type
and recommended self-test durations). Read-only: nothing here changes the
state of the drive.
"""

import os
import stat
from pathlib import Path
from typing import Optional

from .exceptions import (
    BurnInProcessError,
    BurnInTimeoutError,
    DeviceNotFoundError,
    ProbeFailedError,
)
from .models import Drive, MediaType
from .output_parser import SmartOutputParser
from .process_manager import BurnInProcessManager
from burninkit.logger import get_module_logger

logger = get_module_logger(__name__)

SYSFS_BLOCK_ROOT = '/sys/block'
SECTOR_BYTES = 512


class DriveProbe:
    """
    Builds a Drive record from ``smartctl -i -c`` and sysfs.

    Media type falls back to rotational whenever the drive does not clearly
    report itself as solid-state.

    Example:
        >>> probe = DriveProbe(BurnInProcessManager())
        >>> drive = probe.probe('/dev/sdb')
        >>> drive.media_type
        <MediaType.ROTATIONAL: 'rotational'>
    """

    def __init__(
        self,
        process_manager: Optional[BurnInProcessManager] = None,
        sysfs_root: str = SYSFS_BLOCK_ROOT,
    ):
        self.process_manager = process_manager or BurnInProcessManager()
        self.sysfs_root = Path(sysfs_root)

    def probe(self, device: str) -> Drive:
        """
        Query a drive for its static attributes.

        Args:
            device: Device path, e.g. ``/dev/sdb``

        Returns:
            Drive: Populated drive record

        Raises:
            DeviceNotFoundError: If ``device`` is not a block device
            ProbeFailedError: If smartctl fails or its output is unusable
        """
        self._require_block_device(device)

        try:
            result = self.process_manager.run_smartctl(['-i', '-c'], device)
        except (BurnInProcessError, BurnInTimeoutError) as e:
            raise ProbeFailedError(f"smartctl could not query {device}: {e}")

        if self.process_manager.smartctl_failed(result):
            raise ProbeFailedError(
                f"smartctl failed on {device} (exit status {result.returncode}): "
                f"{(result.stderr or result.stdout).strip()}"
            )

        identity = SmartOutputParser.parse_identity(result.stdout)
        if not identity.model or not identity.serial:
            raise ProbeFailedError(f"Could not read model/serial number of {device}")

        capacity = identity.capacity_bytes
        if capacity is None:
            capacity = self._sysfs_capacity(device)

        drive = Drive(
            path=device,
            model=identity.model,
            serial=identity.serial,
            capacity_bytes=capacity or 0,
            media_type=self._media_type(device, identity.rotation),
            short_test_minutes=identity.short_test_minutes,
            extended_test_minutes=identity.extended_test_minutes,
        )
        logger.info(
            f"Probed {device}: model={drive.model}, serial={drive.serial}, "
            f"capacity={drive.capacity_bytes} bytes, media={drive.media_type.value}"
        )
        return drive

    @staticmethod
    def _require_block_device(device: str) -> None:
        try:
            mode = os.stat(device).st_mode
        except FileNotFoundError:
            raise DeviceNotFoundError(f"Device not found: {device}")
        except OSError as e:
            raise DeviceNotFoundError(f"Cannot stat {device}: {e}")

        if not stat.S_ISBLK(mode):
            raise DeviceNotFoundError(f"{device} is not a block device")

    def _media_type(self, device: str, rotation: Optional[str]) -> MediaType:
        if rotation == 'ssd':
            return MediaType.SOLID_STATE
        if rotation == 'rpm':
            return MediaType.ROTATIONAL

        # smartctl did not say; ask the kernel
        flag = self._read_sysfs(device, 'queue/rotational')
        if flag == '0':
            return MediaType.SOLID_STATE
        return MediaType.ROTATIONAL

    def _sysfs_capacity(self, device: str) -> Optional[int]:
        sectors = self._read_sysfs(device, 'size')
        if sectors and sectors.isdigit():
            return int(sectors) * SECTOR_BYTES
        return None

    def _read_sysfs(self, device: str, attribute: str) -> Optional[str]:
        name = os.path.basename(os.path.realpath(device))
        path = self.sysfs_root / name / attribute
        try:
            return path.read_text().strip()
        except OSError:
            return None
