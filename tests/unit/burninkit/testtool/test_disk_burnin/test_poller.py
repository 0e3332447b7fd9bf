"""
Unit tests for the async test poller.
"""

from unittest.mock import Mock

import pytest

from burninkit.testtool.disk_burnin.exceptions import DeviceError, StartFailedError
from burninkit.testtool.disk_burnin.execution_gate import LiveExecutionGate, SimulatedExecutionGate
from burninkit.testtool.disk_burnin.models import OperationStatus, PollResultKind
from burninkit.testtool.disk_burnin.poller import (
    AsyncTestPoller,
    resolve_interval,
    resolve_max_wait,
)


class TestResolveInterval:
    """Test suite for poll interval derivation."""

    @pytest.mark.parametrize('configured,expected_minutes,default,result', [
        (5, 100, 60, 5),          # configured wins
        (None, 100, 60, 300),     # a twentieth of the expected duration
        (None, 2, 60, 10),        # clamped low
        (None, 600, 60, 1800),    # clamped high
        (None, None, 60, 60),     # nothing known
    ])
    def test_resolve_interval(self, configured, expected_minutes, default, result):
        assert resolve_interval(configured, expected_minutes, default) == result


class TestResolveMaxWait:
    """Test suite for maximum wait derivation."""

    @pytest.mark.parametrize('configured,expected_minutes,result', [
        (30, 2, 1800),
        (0, 2, None),             # 0 = unbounded
        (None, 2, 2040),          # twice the expected duration plus 30 minutes
        (None, None, None),
    ])
    def test_resolve_max_wait(self, configured, expected_minutes, result):
        assert resolve_max_wait(configured, expected_minutes) == result


class TestAsyncTestPoller:
    """Test suite for AsyncTestPoller."""

    def _poller(self, fake_clock, gate=None, interval=60, max_wait=None):
        return AsyncTestPoller(
            gate or LiveExecutionGate(),
            interval_seconds=interval,
            max_wait_seconds=max_wait,
            sleep=fake_clock.sleep,
            clock=fake_clock,
        )

    def test_completes_after_polling(self, fake_clock):
        start = Mock()
        status = Mock(side_effect=[
            OperationStatus.in_progress(10.0, '90% of test remaining'),
            OperationStatus.in_progress(60.0, '40% of test remaining'),
            OperationStatus.completed(True, 'self-test completed without error'),
        ])

        result = self._poller(fake_clock).poll('smartctl -t short /dev/sdb', start, status)

        start.assert_called_once_with()
        assert result.kind is PollResultKind.COMPLETED
        assert result.succeeded
        assert result.simulated is False
        assert result.state.ticks == 3
        assert result.state.elapsed_seconds == 180
        assert result.state.last_percent == 100.0
        assert result.state.terminal is True
        assert fake_clock.sleeps == [60, 60, 60]

    def test_completed_with_failure(self, fake_clock):
        status = Mock(return_value=OperationStatus.completed(False, 'read failure'))

        result = self._poller(fake_clock).poll('smartctl -t short /dev/sdb', Mock(), status)

        assert result.kind is PollResultKind.COMPLETED
        assert result.success is False
        assert not result.succeeded
        assert result.text == 'read failure'

    def test_simulated_never_polls(self, fake_clock):
        gate = SimulatedExecutionGate()
        start = Mock()
        status = Mock()

        result = self._poller(fake_clock, gate=gate).poll('smartctl -t long /dev/sdb', start, status)

        start.assert_not_called()
        status.assert_not_called()
        assert result.kind is PollResultKind.COMPLETED
        assert result.succeeded
        assert result.simulated is True
        assert result.state.ticks == 0
        assert fake_clock.sleeps == []
        assert gate.recorded == ['smartctl -t long /dev/sdb']

    def test_start_failed(self, fake_clock):
        start = Mock(side_effect=StartFailedError("Drive rejected short self-test"))
        status = Mock()

        result = self._poller(fake_clock).poll('smartctl -t short /dev/sdb', start, status)

        assert result.kind is PollResultKind.START_FAILED
        assert 'rejected' in result.text
        status.assert_not_called()
        assert fake_clock.sleeps == []

    def test_start_os_error(self, fake_clock):
        start = Mock(side_effect=PermissionError("[Errno 13] Permission denied: '/var/log/burnin'"))
        status = Mock()

        result = self._poller(fake_clock).poll('badblocks /dev/sdb', start, status)

        assert result.kind is PollResultKind.START_FAILED
        assert 'Permission denied' in result.text
        status.assert_not_called()

    def test_status_os_error(self, fake_clock):
        status = Mock(side_effect=PermissionError("[Errno 13] Permission denied: 'bb.progress'"))

        result = self._poller(fake_clock).poll('badblocks /dev/sdb', Mock(), status)

        assert result.kind is PollResultKind.DEVICE_ERROR
        assert result.state.terminal is True

    def test_device_error_from_status(self, fake_clock):
        status = Mock(side_effect=[
            OperationStatus.in_progress(40.0),
            DeviceError("smartctl could not read /dev/sdb"),
        ])

        result = self._poller(fake_clock).poll('smartctl -t short /dev/sdb', Mock(), status)

        assert result.kind is PollResultKind.DEVICE_ERROR
        assert result.state.last_percent == 40.0
        assert result.state.ticks == 2

    def test_device_error_observation(self, fake_clock):
        status = Mock(return_value=OperationStatus.device_error('badblocks exited with status 1'))

        result = self._poller(fake_clock).poll('badblocks /dev/sdb', Mock(), status)

        assert result.kind is PollResultKind.DEVICE_ERROR
        assert result.text == 'badblocks exited with status 1'

    def test_percent_kept_when_not_reported(self, fake_clock):
        status = Mock(side_effect=[
            OperationStatus.in_progress(40.0),
            OperationStatus.in_progress(None, 'self-test status not reported'),
            OperationStatus.device_error('gone'),
        ])

        result = self._poller(fake_clock).poll('smartctl -t short /dev/sdb', Mock(), status)

        assert result.state.last_percent == 40.0

    def test_timeout(self, fake_clock):
        status = Mock(return_value=OperationStatus.in_progress(5.0))

        result = self._poller(fake_clock, interval=60, max_wait=150).poll(
            'smartctl -t long /dev/sdb', Mock(), status
        )

        assert result.kind is PollResultKind.TIMEOUT
        assert fake_clock.sleeps == [60, 60, 30]
        assert result.state.ticks == 3
        assert result.state.elapsed_seconds == 150
        assert 'Timeout' in result.text

    def test_unbounded_wait(self, fake_clock):
        statuses = [OperationStatus.in_progress(float(i)) for i in range(100)]
        statuses.append(OperationStatus.completed(True))
        status = Mock(side_effect=statuses)

        result = self._poller(fake_clock, interval=600).poll('badblocks /dev/sdb', Mock(), status)

        assert result.succeeded
        assert result.state.ticks == 101
