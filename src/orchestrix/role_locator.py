"""
Determine which agent role fired a stop event and which window it lives in.

Strategies, in priority order:

1. AGENT_ID exported into the window's shell by the bootstrapper
2. /tmp/orchestrix-<session>-current-agent.txt written by the gateway
   before it dispatches to an agent
3. Process inspection: the first conventional window running the agent CLI
4. Content heuristic: the first window whose recent output mentions HANDOFF
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from orchestrix.config import get_current_agent_file, get_setting
from orchestrix.context import FileReader, ResolutionContext
from orchestrix.roles import AGENT_WINDOWS, ARCHITECT, normalize_role

HANDOFF_PATTERN = re.compile(r'handoff', re.IGNORECASE)

ENGINEERING_ARCHITECT_PREFIX = 'architect-engineering'


@dataclass(frozen=True)
class RoleLocation:
    role: str
    window: str
    method: str


def find_window_for_role(backend, session_name: str, role: str) -> Optional[str]:
    """
    Map a canonical role to a window name in the session.

    Tries an exact name, then (architect only) any architect-engineering*
    window, then any window prefixed with the role name.

    Returns:
        Matching window name, or None if nothing matches
    """
    windows = backend.list_windows(session_name)

    if role in windows:
        return role

    if role == ARCHITECT:
        for name in windows:
            if name.startswith(ENGINEERING_ARCHITECT_PREFIX):
                return name

    for name in windows:
        if name.startswith(role):
            return name

    return None


def _from_hint(backend, session_name: str, hint: Optional[str], method: str) -> Optional[RoleLocation]:
    role = normalize_role(hint)
    if role is None:
        return None
    # Addressing by bare role name may capture nothing; that's acceptable
    window = find_window_for_role(backend, session_name, role) or role
    return RoleLocation(role=role, window=window, method=method)


def locate_by_env(ctx: ResolutionContext, backend, session_name: str) -> Optional[RoleLocation]:
    return _from_hint(backend, session_name, ctx.env_agent, "env")


def locate_by_hint_file(
    ctx: ResolutionContext,
    backend,
    session_name: str,
    files: Optional[FileReader] = None,
) -> Optional[RoleLocation]:
    files = files or FileReader()
    hint = files.read_line(get_current_agent_file(session_name))
    return _from_hint(backend, session_name, hint, "agent-file")


def locate_by_process(
    backend,
    session_name: str,
    windows: Iterable[str] = AGENT_WINDOWS,
    executable: Optional[str] = None,
) -> Optional[RoleLocation]:
    """Select the first window whose attached process runs the agent CLI."""
    executable = executable or str(get_setting('agent_executable'))
    for window in windows:
        pid = backend.pane_pid(session_name, window)
        if not pid:
            continue
        if executable in backend.process_args(pid):
            role = normalize_role(window)
            if role:
                return RoleLocation(role=role, window=window, method="process")
    return None


def locate_by_handoff(
    backend,
    session_name: str,
    windows: Iterable[str] = AGENT_WINDOWS,
    lines: Optional[int] = None,
) -> Optional[RoleLocation]:
    """Select the first window whose recent output contains a handoff marker."""
    if lines is None:
        lines = int(get_setting('handoff_scan_lines'))
    for window in windows:
        output = backend.capture_pane(session_name, window, lines)
        if output and HANDOFF_PATTERN.search(output):
            role = normalize_role(window)
            if role:
                return RoleLocation(role=role, window=window, method="handoff")
    return None


def locate_role(
    ctx: ResolutionContext,
    backend,
    session_name: str,
    files: Optional[FileReader] = None,
) -> Optional[RoleLocation]:
    """
    Locate the role (and its window) that produced the stop event.

    Args:
        ctx: Resolution context (carries the AGENT_ID hint)
        backend: Multiplexer backend
        session_name: Resolved workspace
        files: State file reader

    Returns:
        RoleLocation, or None if no strategy identified a role
    """
    return (
        locate_by_env(ctx, backend, session_name)
        or locate_by_hint_file(ctx, backend, session_name, files)
        or locate_by_process(backend, session_name)
        or locate_by_handoff(backend, session_name)
    )
