"""Tests for OSC broadcast of solve results."""

import pytest

from temperament_solver.models import OctaWeighting, RatioSpec, SolverInput
from temperament_solver.osc_sender import (
    MockSolutionBroadcaster,
    SolutionBroadcaster,
    result_messages,
)
from temperament_solver.solver import solve


@pytest.fixture
def result():
    return solve(SolverInput(scale_size=12, targets=(RatioSpec(3, 2), RatioSpec(5, 4))))


class TestResultMessages:
    """Tests for result_messages function."""

    def test_order_and_count(self, result):
        """Summary messages, one per interval row, then done."""
        messages = result_messages(result, 261.6256)
        addresses = [address for address, _ in messages]
        assert addresses[:4] == ["/solver/generator", "/solver/period", "/solver/notes", "/solver/frequencies"]
        assert addresses[-1] == "/solver/done"
        assert addresses.count("/solver/interval") == len(result.intervals)
        assert messages[-1][1] == [len(result.intervals)]

    def test_fixed_period_payload(self, result):
        """Solves without a period fit send zeros for the period."""
        period = dict(result_messages(result, 261.6256))["/solver/period"]
        assert period == [0.0, 0.0, 0]

    def test_stretched_period_payload(self):
        """Rank-2 solves send their period, stretch and warning flag."""
        stretched = solve(SolverInput(
            scale_size=12, octa_weighting=OctaWeighting(enabled=True), octave_stiffness=0.0
        ))
        period = dict(result_messages(stretched, 261.6256))["/solver/period"]
        assert period[0] == pytest.approx(stretched.optimized_period_cents)
        assert period[1] == pytest.approx(stretched.period_stretch_cents)
        assert period[2] == (1 if stretched.period_stretch_warning else 0)

    def test_interval_payload(self, result):
        """Interval rows are flattened into OSC-friendly values."""
        first = next(args for address, args in result_messages(result, 261.6256)
                     if address == "/solver/interval")
        it = result.intervals[0]
        assert first[:5] == [it.i, it.j, it.step, 3, 2]
        assert first[9] == "P5"
        assert first[10] in (0, 1)

    def test_custom_prefix(self, result):
        """Addresses follow the given prefix."""
        messages = result_messages(result, 440.0, prefix="/tuning")
        assert all(address.startswith("/tuning/") for address, _ in messages)


class TestMockSolutionBroadcaster:
    """Tests for MockSolutionBroadcaster."""

    def test_closed_sends_nothing(self, result):
        """Nothing is logged before the connection is opened."""
        broadcaster = MockSolutionBroadcaster(verbose=False)
        assert broadcaster.send_result(result, 261.6256) == 0
        assert broadcaster.get_log() == []

    def test_logs_messages(self, result):
        """Messages are logged in send order."""
        with MockSolutionBroadcaster(verbose=False) as broadcaster:
            sent = broadcaster.send_result(result, 261.6256)
            log = broadcaster.get_log()
        assert sent == len(log) == len(result.intervals) + 5
        assert log[0] == {"address": "/solver/generator", "args": [result.generator_cents]}
        assert not broadcaster.is_open

    def test_clear_log(self, result):
        """clear_log empties the log."""
        with MockSolutionBroadcaster(verbose=False) as broadcaster:
            broadcaster.send_result(result, 261.6256)
            broadcaster.clear_log()
            assert broadcaster.get_log() == []

    def test_verbose_output(self, result, capsys):
        """Verbose mocks print what they would send."""
        with MockSolutionBroadcaster(port=9100) as broadcaster:
            broadcaster.send_result(result, 261.6256)
        out = capsys.readouterr().out
        assert "[MockOSC] Opened connection to 127.0.0.1:9100" in out
        assert "[MockOSC] Connection closed" in out


class TestSolutionBroadcaster:
    """Tests for SolutionBroadcaster without a network peer."""

    def test_defaults(self):
        """Defaults point at the local visualizer port."""
        broadcaster = SolutionBroadcaster()
        assert (broadcaster.host, broadcaster.port) == ("127.0.0.1", 9001)
        assert not broadcaster.is_open

    def test_closed_sends_nothing(self, result):
        """An unopened broadcaster sends nothing."""
        assert SolutionBroadcaster().send_result(result, 261.6256) == 0
