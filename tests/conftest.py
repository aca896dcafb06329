"""
Shared pytest fixtures for orchestrix tests.

This module provides commonly used fixtures to reduce duplication across test files.
Fixtures are automatically discovered by pytest when placed in conftest.py.
"""

import pytest
from pathlib import Path
from click.testing import CliRunner


# =============================================================================
# FAKE MULTIPLEXER
# =============================================================================

class FakeBackend:
    """
    In-memory stand-in for TmuxBackend.

    sessions maps session name -> list of window names (in enumeration order).
    panes maps (session, window) -> captured text.
    pids maps (session, window) -> pane pid; processes maps pid -> command line.
    """

    def __init__(self, sessions=None, panes=None, pids=None, processes=None, available=True):
        self.sessions = {name: list(windows) for name, windows in (sessions or {}).items()}
        self.panes = dict(panes or {})
        self.pids = dict(pids or {})
        self.processes = dict(processes or {})
        self.available = available

        self.keys_sent = []
        self.commands_sent = []
        self.capture_calls = []
        self.options = []
        self.killed = []
        self.selected = []
        self.attached = []
        self.calls = []

    # Queries

    def is_available(self):
        return self.available

    def list_sessions(self):
        return list(self.sessions)

    def has_session(self, session_name):
        return session_name in self.sessions

    def list_windows(self, session_name):
        return list(self.sessions.get(session_name, []))

    def pane_pid(self, session_name, window):
        return self.pids.get((session_name, window))

    def process_args(self, pid):
        return self.processes.get(pid, '')

    def capture_pane(self, session_name, window, lines=500):
        self.capture_calls.append((session_name, window, lines))
        return self.panes.get((session_name, window), '')

    # Commands

    def send_keys(self, window_target, keys, enter=False):
        self.keys_sent.append((window_target, keys, enter))
        self.calls.append(('send_keys', window_target, keys))

    def send_command(self, window_target, command, enter_delay=1.0):
        self.commands_sent.append((window_target, command))
        self.calls.append(('send_command', window_target, command))

    def new_session(self, session_name, window_name, cwd):
        self.sessions[session_name] = [window_name]
        self.calls.append(('new_session', session_name, window_name))

    def new_window(self, session_name, index, window_name, cwd):
        self.sessions[session_name].append(window_name)
        self.calls.append(('new_window', session_name, window_name))

    def set_option(self, session_name, option, value):
        self.options.append((option, value))

    def kill_session(self, session_name):
        self.killed.append(session_name)
        self.sessions.pop(session_name, None)
        self.calls.append(('kill_session', session_name))

    def select_window(self, window_target):
        self.selected.append(window_target)

    def attach_session(self, session_name):
        self.attached.append(session_name)
        return 0


@pytest.fixture
def make_backend():
    """
    Factory for FakeBackend instances.

    Usage:
        def test_resolve(make_backend):
            backend = make_backend(sessions={"u1-bp-a": ["sm", "dev"]})
    """
    return FakeBackend


# =============================================================================
# CLI FIXTURES
# =============================================================================

@pytest.fixture
def cli_runner():
    """
    Provide Click CLI test runner.

    Usage:
        def test_my_command(cli_runner):
            from orchestrix.cli import cli
            result = cli_runner.invoke(cli, ['my-command', '--flag'])
            assert result.exit_code == 0
    """
    return CliRunner()


# =============================================================================
# CONFIG FIXTURES
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """
    Point config at temporary files so tests never touch /tmp/acp-stop-hook.log
    or the real webhook secret.
    """
    from orchestrix import config

    monkeypatch.delenv('ACP_GATEWAY_URL', raising=False)
    monkeypatch.delenv('WEBHOOK_SECRET', raising=False)
    config._CONFIG_CACHE = {
        **config._defaults(),
        'hook_log_file': str(tmp_path / 'logs' / 'acp-stop-hook.log'),
        'webhook_secret_file': str(tmp_path / 'o' / 'webhook-secret.txt'),
    }
    yield config._CONFIG_CACHE
    config._CONFIG_CACHE = None


@pytest.fixture
def reset_config_cache():
    """
    Reset the config module cache before and after test.

    Usage:
        def test_config(reset_config_cache):
            # Config cache is cleared
            cfg = config.get_config()
    """
    from orchestrix import config
    config._CONFIG_CACHE = None
    yield
    config._CONFIG_CACHE = None


# =============================================================================
# LOGGER / PROJECT FIXTURES
# =============================================================================

@pytest.fixture
def hook_log(tmp_path):
    """Path to a temporary hook log file (not yet created)."""
    return tmp_path / "hook.log"


@pytest.fixture
def hook_logger(hook_log):
    from orchestrix.logging import HookLogger
    return HookLogger(log_file=hook_log)


@pytest.fixture
def project_dir(tmp_path):
    """
    Create a temporary project directory with .orchestrix-core structure.

    Usage:
        def test_project(project_dir):
            core = project_dir / ".orchestrix-core"
    """
    project = tmp_path / "test-project"
    (project / ".orchestrix-core" / "scripts").mkdir(parents=True)
    return project


@pytest.fixture
def agent_hint_files():
    """
    Write /tmp/orchestrix-<session>-current-agent.txt hint files and remove
    them after the test.

    Usage:
        def test_hint(agent_hint_files):
            agent_hint_files('u1-bp-a', 'dev')
    """
    from orchestrix.config import get_current_agent_file

    written = []

    def write(session_name: str, content: str) -> Path:
        path = get_current_agent_file(session_name)
        path.write_text(content)
        written.append(path)
        return path

    yield write

    for path in written:
        path.unlink(missing_ok=True)
