"""
Unit tests for execution mode gates.
"""

from unittest.mock import Mock

from burninkit.testtool.disk_burnin.execution_gate import (
    LiveExecutionGate,
    SimulatedExecutionGate,
    SimulatedResult,
    create_execution_gate,
)


class TestExecutionGate:
    """Test suite for live and simulated gates."""

    def test_create_live(self):
        gate = create_execution_gate(dry_run=False)
        assert isinstance(gate, LiveExecutionGate)
        assert gate.simulated is False

    def test_create_simulated(self):
        gate = create_execution_gate(dry_run=True)
        assert isinstance(gate, SimulatedExecutionGate)
        assert gate.simulated is True

    def test_live_runs_action(self):
        action = Mock(return_value='started')

        assert LiveExecutionGate().perform('smartctl -t short /dev/sdb', action) == 'started'
        action.assert_called_once_with()

    def test_simulated_never_runs_action(self):
        action = Mock()
        gate = SimulatedExecutionGate()

        result = gate.perform('smartctl -t short /dev/sdb', action)

        action.assert_not_called()
        assert result == SimulatedResult('smartctl -t short /dev/sdb')
        assert gate.recorded == ['smartctl -t short /dev/sdb']

    def test_simulated_logs_command(self, caplog):
        gate = SimulatedExecutionGate()

        with caplog.at_level('INFO'):
            gate.perform('badblocks -w /dev/sdb', Mock())

        assert '[DRY RUN] Would run: badblocks -w /dev/sdb' in caplog.text
