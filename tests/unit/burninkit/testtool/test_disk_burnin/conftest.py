"""
Pytest configuration and fixtures for disk burn-in unit tests.
"""

import pytest
from unittest.mock import Mock

from burninkit.testtool.disk_burnin.config import BurnInConfig
from burninkit.testtool.disk_burnin.models import Drive, MediaType
from burninkit.testtool.disk_burnin.process_manager import BurnInProcessManager

from burnin_samples import ERROR_LOG, FakeClock, completed


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def rotational_drive():
    return Drive(
        path='/dev/sdzz',
        model='WDC WD40EFRX-68N32N0',
        serial='WD-WCC7K1234567',
        capacity_bytes=4000787030016,
        media_type=MediaType.ROTATIONAL,
        short_test_minutes=2,
        extended_test_minutes=497,
    )


@pytest.fixture
def solid_state_drive():
    return Drive(
        path='/dev/nvme9n1',
        model='Samsung SSD 970 EVO Plus 1TB',
        serial='S4EWNX0R123456A',
        capacity_bytes=1000204886016,
        media_type=MediaType.SOLID_STATE,
    )


@pytest.fixture
def config(tmp_path):
    """Default configuration writing into a temporary log directory."""
    return BurnInConfig.build({
        'device': '/dev/sdzz',
        'log_dir': str(tmp_path),
        'log_smart_snapshots': False,
    })


@pytest.fixture
def process_manager():
    """Mocked process manager with real smartctl exit-status handling."""
    manager = Mock()
    manager.smartctl_path = 'smartctl'
    manager.badblocks_path = 'badblocks'
    manager.smartctl_failed = BurnInProcessManager.smartctl_failed
    manager.find_processes_for_device.return_value = []
    manager.returncode.return_value = 0
    manager.run_smartctl.return_value = completed(ERROR_LOG)
    return manager
