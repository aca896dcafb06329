"""
Readiness polling for freshly launched agent windows.

Replaces blind startup sleeps with bounded polls of pane content. Both waits
are best-effort: a timeout is reported to the caller, which decides whether
to proceed anyway.
"""

import threading
import time
from typing import Callable, Optional

# Shown while Claude Code is still loading
LOADING_INDICATORS = ("sublimating",)

# Claude Code ready indicators (verified from tmux panes):
# "✽ Sublimating…" → separator lines "─────" → "> Try 'refactor ui.py'"
READY_INDICATORS = (
    "> try",
    "─────",
)

POLL_INTERVAL = 0.5


def pane_shows_ready_prompt(output: str) -> bool:
    output_lower = output.lower()
    if any(indicator in output_lower for indicator in LOADING_INDICATORS):
        return False
    return any(indicator in output_lower for indicator in READY_INDICATORS)


def wait_for_ready(
    capture: Callable[[], str],
    timeout: float,
    interval: float = POLL_INTERVAL,
    cancel: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Poll a pane until the agent's input prompt appears.

    Args:
        capture: Returns current pane content
        timeout: Maximum wait time in seconds
        interval: Delay between polls
        cancel: Optional event that aborts the wait when set
        clock: Monotonic clock (injectable for tests)

    Returns:
        True if the prompt was detected, False on timeout or cancellation
    """
    deadline = clock() + timeout
    while True:
        if cancel is not None and cancel.is_set():
            return False
        if pane_shows_ready_prompt(capture()):
            return True
        if clock() >= deadline:
            return False
        if cancel is not None:
            if cancel.wait(interval):
                return False
        else:
            time.sleep(interval)


def wait_for_idle(
    capture: Callable[[], str],
    quiet_period: float,
    timeout: float,
    interval: float = POLL_INTERVAL,
    cancel: Optional[threading.Event] = None,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """
    Poll a pane until its content stops changing for quiet_period seconds.

    Used after activation: a persona that has finished loading stops
    printing and waits for input.

    Returns:
        True once the pane has been quiet long enough, False on timeout or
        cancellation
    """
    start = clock()
    deadline = start + timeout
    last_output = capture()
    last_change = start

    while True:
        if cancel is not None and cancel.is_set():
            return False

        now = clock()
        if now - last_change >= quiet_period:
            return True
        if now >= deadline:
            return False

        if cancel is not None:
            if cancel.wait(interval):
                return False
        else:
            time.sleep(interval)

        output = capture()
        if output != last_output:
            last_output = output
            last_change = clock()


def countdown(seconds: int, label: str, echo: Callable[[str], None], cancel: Optional[threading.Event] = None) -> bool:
    """
    Blocking fixed wait with a per-second progress line.

    Returns:
        True if the full wait elapsed, False if cancelled
    """
    for remaining in range(int(seconds), 0, -1):
        echo(f"\r   {remaining:2d} seconds remaining...")
        if cancel is not None:
            if cancel.wait(1):
                return False
        else:
            time.sleep(1)
    echo(f"\r   {label}      \n")
    return True
