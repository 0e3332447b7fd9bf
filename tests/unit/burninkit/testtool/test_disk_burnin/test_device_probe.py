"""
Unit tests for the drive capability probe.
"""

import stat
from unittest.mock import Mock, patch

import pytest

from burninkit.testtool.disk_burnin.device_probe import DriveProbe
from burninkit.testtool.disk_burnin.exceptions import (
    BurnInTimeoutError,
    DeviceNotFoundError,
    ProbeFailedError,
)
from burninkit.testtool.disk_burnin.models import MediaType

from burnin_samples import ATA_IDENTITY, NVME_IDENTITY, SCSI_SSD_IDENTITY, completed

DEVICE = '/dev/sdzz'


@pytest.fixture
def sysfs_root(tmp_path):
    root = tmp_path / 'sys' / 'block'
    (root / 'sdzz' / 'queue').mkdir(parents=True)
    return root


def _write_sysfs(root, attribute, value):
    path = root / 'sdzz' / attribute
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{value}\n")


class TestDriveProbe:
    """Test suite for DriveProbe."""

    def setup_method(self):
        self.block_device = patch.object(DriveProbe, '_require_block_device')
        self.block_device.start()

    def teardown_method(self):
        self.block_device.stop()

    def _probe(self, process_manager, sysfs_root, stdout, returncode=0):
        process_manager.run_smartctl.return_value = completed(stdout, returncode)
        return DriveProbe(process_manager, sysfs_root=str(sysfs_root))

    def test_probe_ata(self, process_manager, sysfs_root):
        drive = self._probe(process_manager, sysfs_root, ATA_IDENTITY).probe(DEVICE)

        assert drive.path == DEVICE
        assert drive.model == 'WDC WD40EFRX-68N32N0'
        assert drive.serial == 'WD-WCC7K1234567'
        assert drive.capacity_bytes == 4000787030016
        assert drive.media_type is MediaType.ROTATIONAL
        assert drive.short_test_minutes == 2
        assert drive.extended_test_minutes == 497
        process_manager.run_smartctl.assert_called_once_with(['-i', '-c'], DEVICE)

    def test_probe_is_repeatable(self, process_manager, sysfs_root):
        probe = self._probe(process_manager, sysfs_root, ATA_IDENTITY)

        assert probe.probe(DEVICE) == probe.probe(DEVICE)

    def test_rotation_rate_wins_over_sysfs(self, process_manager, sysfs_root):
        _write_sysfs(sysfs_root, 'queue/rotational', 0)

        drive = self._probe(process_manager, sysfs_root, ATA_IDENTITY).probe(DEVICE)

        assert drive.media_type is MediaType.ROTATIONAL

    def test_solid_state_from_rotation_rate(self, process_manager, sysfs_root):
        drive = self._probe(process_manager, sysfs_root, SCSI_SSD_IDENTITY).probe(DEVICE)

        assert drive.media_type is MediaType.SOLID_STATE

    def test_solid_state_from_sysfs(self, process_manager, sysfs_root):
        _write_sysfs(sysfs_root, 'queue/rotational', 0)

        drive = self._probe(process_manager, sysfs_root, NVME_IDENTITY).probe(DEVICE)

        assert drive.media_type is MediaType.SOLID_STATE

    def test_sysfs_rotational_flag(self, process_manager, sysfs_root):
        _write_sysfs(sysfs_root, 'queue/rotational', 1)

        drive = self._probe(process_manager, sysfs_root, NVME_IDENTITY).probe(DEVICE)

        assert drive.media_type is MediaType.ROTATIONAL

    def test_unknown_media_defaults_to_rotational(self, process_manager, sysfs_root):
        drive = self._probe(process_manager, sysfs_root, NVME_IDENTITY).probe(DEVICE)

        assert drive.media_type is MediaType.ROTATIONAL

    def test_capacity_from_sysfs(self, process_manager, sysfs_root):
        _write_sysfs(sysfs_root, 'size', 7814037168)
        output = ATA_IDENTITY.replace('User Capacity:', 'Unknown Capacity:')

        drive = self._probe(process_manager, sysfs_root, output).probe(DEVICE)

        assert drive.capacity_bytes == 7814037168 * 512

    def test_capacity_unknown(self, process_manager, sysfs_root):
        output = ATA_IDENTITY.replace('User Capacity:', 'Unknown Capacity:')

        drive = self._probe(process_manager, sysfs_root, output).probe(DEVICE)

        assert drive.capacity_bytes == 0

    def test_smartctl_fatal_exit_status(self, process_manager, sysfs_root):
        probe = self._probe(process_manager, sysfs_root, 'Smartctl open device: /dev/sdzz failed', returncode=2)

        with pytest.raises(ProbeFailedError, match="exit status 2"):
            probe.probe(DEVICE)

    def test_smartctl_timeout(self, process_manager, sysfs_root):
        process_manager.run_smartctl.side_effect = BurnInTimeoutError("Command timed out")
        probe = DriveProbe(process_manager, sysfs_root=str(sysfs_root))

        with pytest.raises(ProbeFailedError, match="could not query"):
            probe.probe(DEVICE)

    def test_missing_serial(self, process_manager, sysfs_root):
        output = ATA_IDENTITY.replace('Serial Number:', 'Serial Unknown:')
        probe = self._probe(process_manager, sysfs_root, output)

        with pytest.raises(ProbeFailedError, match="model/serial"):
            probe.probe(DEVICE)

    def test_non_fatal_exit_status_accepted(self, process_manager, sysfs_root):
        # bit 2: some SMART command failed, identity is still usable
        drive = self._probe(process_manager, sysfs_root, ATA_IDENTITY, returncode=4).probe(DEVICE)

        assert drive.serial == 'WD-WCC7K1234567'


class TestRequireBlockDevice:
    """Test suite for block device validation."""

    def test_missing_device(self, tmp_path):
        with pytest.raises(DeviceNotFoundError, match="Device not found"):
            DriveProbe._require_block_device(str(tmp_path / 'sdzz'))

    def test_regular_file(self, tmp_path):
        path = tmp_path / 'disk.img'
        path.write_bytes(b'\0' * 512)

        with pytest.raises(DeviceNotFoundError, match="not a block device"):
            DriveProbe._require_block_device(str(path))

    def test_block_device(self):
        with patch('burninkit.testtool.disk_burnin.device_probe.os.stat',
                   return_value=Mock(st_mode=stat.S_IFBLK | 0o660)):
            DriveProbe._require_block_device(DEVICE)

    def test_probe_never_calls_smartctl_for_missing_device(self, process_manager, tmp_path):
        probe = DriveProbe(process_manager, sysfs_root=str(tmp_path))

        with pytest.raises(DeviceNotFoundError):
            probe.probe(str(tmp_path / 'missing'))

        process_manager.run_smartctl.assert_not_called()
