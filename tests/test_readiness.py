"""Tests for agent readiness polling."""

import threading
from unittest.mock import patch

import pytest

from orchestrix.readiness import (
    countdown,
    pane_shows_ready_prompt,
    wait_for_idle,
    wait_for_ready,
)

READY_PANE = "╭─────────────╮\n│ > Try \"refactor ui.py\" │\n╰─────────────╯"


class FakeClock:
    """Monotonic clock advanced by the patched sleep."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    fake = FakeClock()
    with patch('orchestrix.readiness.time.sleep', side_effect=fake.sleep):
        yield fake


def scripted(*outputs):
    """capture() that returns outputs in order, repeating the last one."""
    remaining = list(outputs)

    def capture():
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]
    return capture


class TestPaneShowsReadyPrompt:
    def test_ready(self):
        assert pane_shows_ready_prompt(READY_PANE)

    def test_loading(self):
        assert not pane_shows_ready_prompt("✽ Sublimating… ─────")

    def test_empty_shell(self):
        assert not pane_shows_ready_prompt("$ claude\n")


class TestWaitForReady:
    def test_immediately_ready(self, clock):
        assert wait_for_ready(scripted(READY_PANE), timeout=10, clock=clock)
        assert clock.now == 0

    def test_becomes_ready(self, clock):
        capture = scripted("$ claude", "✽ Sublimating…", READY_PANE)
        assert wait_for_ready(capture, timeout=10, interval=0.5, clock=clock)
        assert clock.now == 1.0

    def test_timeout(self, clock):
        assert not wait_for_ready(scripted("$ claude"), timeout=3, interval=1, clock=clock)
        assert clock.now == 3

    def test_cancelled(self):
        cancel = threading.Event()
        cancel.set()
        assert not wait_for_ready(scripted(READY_PANE), timeout=10, cancel=cancel)


class TestWaitForIdle:
    def test_quiet_pane(self, clock):
        assert wait_for_idle(scripted("loaded"), quiet_period=2, timeout=10, interval=1, clock=clock)
        assert clock.now == 2

    def test_changing_output_resets_quiet_period(self, clock):
        capture = scripted("a", "ab", "abc", "abc")
        assert wait_for_idle(capture, quiet_period=2, timeout=10, interval=1, clock=clock)
        assert clock.now == 4

    def test_never_quiet(self, clock):
        counter = iter(range(1000))
        assert not wait_for_idle(lambda: str(next(counter)), quiet_period=2, timeout=5, interval=1, clock=clock)

    def test_cancelled(self):
        cancel = threading.Event()
        cancel.set()
        assert not wait_for_idle(scripted("x"), quiet_period=2, timeout=5, cancel=cancel)


class TestCountdown:
    @patch('orchestrix.readiness.time.sleep')
    def test_full_wait(self, mock_sleep):
        lines = []
        assert countdown(3, "Agents should be ready now!", lines.append)

        assert mock_sleep.call_count == 3
        assert "3 seconds remaining" in lines[0]
        assert "Agents should be ready now!" in lines[-1]

    def test_cancelled(self):
        cancel = threading.Event()
        cancel.set()
        assert not countdown(5, "done", lambda text: None, cancel)
