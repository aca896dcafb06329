"""
Multiplexer interface: the subset of tmux orchestrix needs.

Enumeration goes through libtmux; everything that tmux exposes more directly
on the command line (pane capture, key sends, process lookup) goes through
subprocess. Read operations never raise: a missing server, session or window
yields an empty result so callers can fall through to their next strategy.
"""

import logging
import shutil
import subprocess
import time
from typing import Any, List, Optional

import libtmux

logger = logging.getLogger(__name__)


def get_server():
    """Get libtmux server instance."""
    try:
        return libtmux.Server()
    except Exception:
        return None


def target(session_name: str, window: Optional[str] = None) -> str:
    """Build a tmux target string ('session' or 'session:window')."""
    if window is None or window == '':
        return session_name
    return f"{session_name}:{window}"


class TmuxBackend:
    """Thin adapter over tmux used by the resolver, locator, dispatcher and bootstrapper."""

    def __init__(self, server: Any = None):
        self._server = server

    @property
    def server(self):
        if self._server is None:
            self._server = get_server()
        return self._server

    # ========== Queries ==========

    def is_available(self) -> bool:
        """Check that the tmux binary is installed."""
        return shutil.which('tmux') is not None

    def list_sessions(self) -> List[str]:
        """
        List live session names in server enumeration order.

        Returns empty list if tmux is unavailable or no server is running.
        """
        server = self.server
        if not server:
            return []
        try:
            return [s.session_name for s in server.sessions]
        except Exception as e:
            logger.debug(f"Could not list tmux sessions: {e}")
            return []

    def has_session(self, session_name: str) -> bool:
        return session_name in self.list_sessions()

    def find_session(self, session_name: str):
        """Find tmux session by name."""
        server = self.server
        if not server:
            return None
        try:
            for session in server.sessions:
                if session.session_name == session_name:
                    return session
        except Exception:
            return None
        return None

    def list_windows(self, session_name: str) -> List[str]:
        """
        List window names in a session.

        Returns empty list if tmux unavailable or session not found.
        """
        session = self.find_session(session_name)
        if not session:
            return []
        try:
            return [w.window_name for w in session.windows]
        except Exception:
            return []

    def pane_pid(self, session_name: str, window: str) -> Optional[str]:
        """Get the PID of the process attached to a window's active pane."""
        result = self._run(
            ['tmux', 'display-message', '-t', target(session_name, window), '-p', '#{pane_pid}']
        )
        if result is None or result.returncode != 0:
            return None
        pid = result.stdout.strip()
        return pid or None

    def process_args(self, pid: str) -> str:
        """Get the full command line of a process ('' if it doesn't exist)."""
        result = self._run(['ps', '-p', str(pid), '-o', 'args='])
        if result is None or result.returncode != 0:
            return ''
        return result.stdout.strip()

    def capture_pane(self, session_name: str, window: str, lines: int = 500) -> str:
        """
        Capture the last lines of a window's scroll-back buffer.

        Args:
            session_name: Tmux session name
            window: Window name (or index)
            lines: How many lines of history to include

        Returns:
            Captured text, or empty string if the window doesn't exist
        """
        result = self._run([
            'tmux', 'capture-pane',
            '-t', target(session_name, window),
            '-p', '-S', f'-{int(lines)}',
        ])
        if result is None or result.returncode != 0:
            return ''
        return result.stdout

    def _run(self, cmd: List[str]) -> Optional[subprocess.CompletedProcess]:
        try:
            return subprocess.run(cmd, capture_output=True, text=True, check=False)
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"{cmd[0]} failed: {e}")
            return None

    # ========== Commands ==========

    def send_keys(self, window_target: str, keys: str, enter: bool = False) -> None:
        """Send literal keys to a window, optionally followed by C-m."""
        cmd = ['tmux', 'send-keys', '-t', window_target, keys]
        if enter:
            cmd.append('C-m')
        subprocess.run(cmd, check=True)

    def send_command(self, window_target: str, command: str, enter_delay: float = 1.0) -> None:
        """
        Type a command into a window, then press Enter after a pause.

        Without the pause, Enter can be processed before the agent's input box
        has finished receiving the pasted text.
        """
        subprocess.run(['tmux', 'send-keys', '-t', window_target, command], check=True)
        time.sleep(enter_delay)
        subprocess.run(['tmux', 'send-keys', '-t', window_target, 'Enter'], check=True)

    def new_session(self, session_name: str, window_name: str, cwd: str) -> None:
        subprocess.run([
            'tmux', 'new-session', '-d',
            '-s', session_name,
            '-n', window_name,
            '-c', cwd,
        ], check=True)

    def new_window(self, session_name: str, index: int, window_name: str, cwd: str) -> None:
        subprocess.run([
            'tmux', 'new-window',
            '-t', target(session_name, str(index)),
            '-n', window_name,
            '-c', cwd,
        ], check=True)

    def set_option(self, session_name: str, option: str, value: str) -> None:
        subprocess.run(['tmux', 'set-option', '-t', session_name, option, value], check=True)

    def kill_session(self, session_name: str) -> None:
        subprocess.run(['tmux', 'kill-session', '-t', session_name], check=True)

    def select_window(self, window_target: str) -> None:
        # Focus is cosmetic; don't fail the caller if the window is gone
        subprocess.run(['tmux', 'select-window', '-t', window_target], check=False)

    def attach_session(self, session_name: str) -> int:
        """Attach the current terminal to a session (blocks until detach)."""
        return subprocess.run(['tmux', 'attach-session', '-t', session_name], check=False).returncode
