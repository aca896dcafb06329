"""
Workspace bootstrapper: create a fresh four-agent tmux session.

Window layout (named by role id, created in this order):
  0: architect
  1: sm        <- workflow starts here
  2: dev
  3: qa

Each window exports its identity (AGENT_ID, ORCHESTRIX_SESSION,
ORCHESTRIX_LOG) before the agent CLI is launched, so the stop hook can later
tell which agent fired. Bootstrapping replaces an existing session of the
same name; it never adds to one.
"""

import shlex
import shutil
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

import click

from orchestrix.config import get_repository_id, get_setting
from orchestrix.logging import HookLogger
from orchestrix.readiness import countdown, wait_for_idle, wait_for_ready
from orchestrix.roles import DISPLAY_NAMES, ROLES, SCRUM_MASTER, activation_command
from orchestrix.session_naming import handoff_log_path, local_session_name, sanitize_repo_id
from orchestrix.tmux_utils import TmuxBackend, target

COMMAND = "start"

STATUS_OPTIONS = (
    ("status-left-length", "20"),
    ("status-right-length", "60"),
    ("window-status-format", "#I:#W"),
    ("window-status-current-format", "#I:#W*"),
)


class BootstrapError(RuntimeError):
    """Raised when a workspace cannot be bootstrapped."""


@dataclass
class BootstrapTimings:
    """Bootstrap waits, in seconds. Fixed values, not computed."""

    startup_timeout: float = 90
    command_enter_delay: float = 1
    activation_delay: float = 2
    load_timeout: float = 15
    load_quiet_period: float = 3

    @classmethod
    def from_config(cls) -> "BootstrapTimings":
        return cls(
            startup_timeout=float(get_setting('startup_timeout')),
            command_enter_delay=float(get_setting('command_enter_delay')),
            activation_delay=float(get_setting('activation_delay')),
            load_timeout=float(get_setting('load_timeout')),
            load_quiet_period=float(get_setting('load_quiet_period')),
        )


@dataclass
class BootstrapResult:
    session: str
    repo_id: str
    log_file: Path
    agents_ready: bool
    agents_loaded: bool


def derive_repo_id(project_root: Path, repository_id: Optional[str] = None) -> str:
    """
    Determine the repository id used to name the workspace.

    Priority: explicit repository_id > core-config.yaml repository_id >
    project directory name. The result is sanitized for tmux.

    Raises:
        BootstrapError: If nothing usable remains after sanitizing
    """
    repo_id = repository_id or get_repository_id(project_root)
    if not repo_id:
        repo_id = Path(project_root).resolve().name
    repo_id = sanitize_repo_id(repo_id)
    if not repo_id:
        raise BootstrapError(f"Cannot derive a repository id for {project_root}")
    return repo_id


def window_environment(role: str, session_name: str, log_file: Path) -> Dict[str, str]:
    return {
        "AGENT_ID": role,
        "ORCHESTRIX_SESSION": session_name,
        "ORCHESTRIX_LOG": str(log_file),
    }


class Bootstrapper:
    """Creates the session, launches agents and drives activation."""

    def __init__(
        self,
        project_root: Path,
        repository_id: Optional[str] = None,
        backend=None,
        logger: Optional[HookLogger] = None,
        timings: Optional[BootstrapTimings] = None,
        agent_command: Optional[str] = None,
        auto_start_command: Optional[str] = None,
        fixed_wait: bool = False,
        echo: Callable[..., None] = click.echo,
        cancel: Optional[threading.Event] = None,
    ):
        self.project_root = Path(project_root).resolve()
        self.repo_id = derive_repo_id(self.project_root, repository_id)
        self.session_name = local_session_name(self.repo_id)
        self.log_file = handoff_log_path(self.repo_id)
        self.backend = backend or TmuxBackend()
        self.logger = logger or HookLogger()
        self.timings = timings or BootstrapTimings.from_config()
        self.agent_command = agent_command or str(get_setting('agent_command'))
        self.auto_start_command = auto_start_command or str(get_setting('auto_start_command'))
        self.fixed_wait = fixed_wait
        self.echo = echo
        self.cancel = cancel

    def _target(self, role: str) -> str:
        return target(self.session_name, role)

    def check_prerequisites(self) -> None:
        if not self.backend.is_available():
            raise BootstrapError("tmux is not installed")
        parts = self.agent_command.split()
        if not parts:
            raise BootstrapError("agent_command is empty; set agent_command in ~/.orchestrix/config.yaml")
        executable = parts[0]
        if shutil.which(executable) is None:
            raise BootstrapError(
                f"Agent command '{executable}' not available; "
                "set agent_command in ~/.orchestrix/config.yaml"
            )

    def create_session(self) -> None:
        """Create the session and its four windows, replacing any existing one."""
        if self.backend.has_session(self.session_name):
            self.echo(f"Warning: Session '{self.session_name}' already exists, closing...")
            self.logger.log_warning(COMMAND, "Replacing existing session", {"session": self.session_name})
            self.backend.kill_session(self.session_name)

        self.echo(f"Creating tmux session: {self.session_name}")
        cwd = str(self.project_root)
        for index, role in enumerate(ROLES):
            if index == 0:
                self.backend.new_session(self.session_name, role, cwd)
                for option, value in STATUS_OPTIONS:
                    self.backend.set_option(self.session_name, option, value)
            else:
                self.backend.new_window(self.session_name, index, role, cwd)
            self._inject_identity(index, role)

    def _inject_identity(self, index: int, role: str) -> None:
        window = self._target(role)
        for key, value in window_environment(role, self.session_name, self.log_file).items():
            self.backend.send_keys(window, f"export {key}={shlex.quote(value)}", enter=True)
        self.backend.send_keys(window, "clear", enter=True)
        self.backend.send_keys(window, f"echo '{DISPLAY_NAMES[role]} Agent (Window {index})'", enter=True)
        self.backend.send_keys(window, "echo ''", enter=True)

    def launch_agents(self) -> None:
        self.echo(f"Starting {self.agent_command} in all windows...")
        for role in ROLES:
            self.backend.send_keys(self._target(role), self.agent_command, enter=True)

    def wait_for_agents(self) -> bool:
        """Wait until every window shows the agent prompt (or the startup bound expires)."""
        timeout = self.timings.startup_timeout
        if self.fixed_wait:
            self.echo(f"\nWaiting {int(timeout)}s for agents to start...\n")
            return countdown(int(timeout), "Agents should be ready now!", self._echo_inline, self.cancel)

        self.echo(f"\nWaiting up to {int(timeout)}s for agents to start...\n")
        start = time.monotonic()
        all_ready = True
        for role in ROLES:
            remaining = max(0.0, timeout - (time.monotonic() - start))
            ready = wait_for_ready(
                lambda role=role: self.backend.capture_pane(self.session_name, role, 50),
                timeout=remaining,
                cancel=self.cancel,
            )
            if ready:
                self.echo(f"   [{role}] ready")
            else:
                all_ready = False
                self.echo(f"   [{role}] not ready after {int(timeout)}s, continuing anyway")
                self.logger.log_warning(COMMAND, "Agent not ready before startup timeout", {
                    "session": self.session_name,
                    "window": role,
                    "timeout": timeout,
                })
        return all_ready

    def activate_agents(self) -> None:
        self.echo("Auto-activating agents...\n")
        for index, role in enumerate(ROLES):
            self.echo(f"   [Window {index}] Activating {DISPLAY_NAMES[role]}...")
            self.backend.send_command(
                self._target(role),
                activation_command(role),
                enter_delay=self.timings.command_enter_delay,
            )
            if index < len(ROLES) - 1:
                time.sleep(self.timings.activation_delay)
        self.echo("\nAll agents activated!")

    def wait_for_load(self) -> bool:
        timeout = self.timings.load_timeout
        if self.fixed_wait:
            self.echo(f"\nWaiting {int(timeout)}s for agents to load...\n")
            return countdown(int(timeout), "Agents should be ready now!", self._echo_inline, self.cancel)

        self.echo(f"\nWaiting up to {int(timeout)}s for agents to load...\n")
        start = time.monotonic()
        loaded = True
        for role in ROLES:
            remaining = max(0.0, timeout - (time.monotonic() - start))
            if not wait_for_idle(
                lambda role=role: self.backend.capture_pane(self.session_name, role, 50),
                quiet_period=self.timings.load_quiet_period,
                timeout=remaining,
                cancel=self.cancel,
            ):
                loaded = False
        if not loaded:
            self.logger.log_warning(COMMAND, "Agents still printing after load timeout", {
                "session": self.session_name,
                "timeout": timeout,
            })
        return loaded

    def start_workflow(self) -> None:
        self.echo(f"\nStarting workflow in {DISPLAY_NAMES[SCRUM_MASTER]} window...")
        sm_window = self._target(SCRUM_MASTER)
        self.backend.send_command(
            sm_window,
            self.auto_start_command,
            enter_delay=self.timings.command_enter_delay,
        )
        self.backend.select_window(sm_window)

    def _echo_inline(self, text: str) -> None:
        self.echo(text, nl=False)

    def run(self) -> BootstrapResult:
        start_time = time.time()
        self.echo(f"Working directory: {self.project_root}")
        self.echo(f"Repository ID: {self.repo_id}")
        self.echo(f"tmux Session: {self.session_name}")
        self.echo(f"Log file: {self.log_file}")

        self.logger.log_command_start(COMMAND, {
            "project_root": str(self.project_root),
            "session": self.session_name,
            "repo_id": self.repo_id,
        })

        try:
            self.check_prerequisites()
            self.create_session()
            self.launch_agents()
            agents_ready = self.wait_for_agents()
            self.activate_agents()
            agents_loaded = self.wait_for_load()
            self.start_workflow()
        except Exception as e:
            self.logger.log_error(COMMAND, "Bootstrap failed", {
                "error_type": type(e).__name__,
                "reason": str(e),
                "session": self.session_name,
            })
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        self.logger.log_command_complete(COMMAND, duration_ms, {
            "session": self.session_name,
            "agents_ready": agents_ready,
            "agents_loaded": agents_loaded,
        })

        return BootstrapResult(
            session=self.session_name,
            repo_id=self.repo_id,
            log_file=self.log_file,
            agents_ready=agents_ready,
            agents_loaded=agents_loaded,
        )


def print_summary(result: BootstrapResult, echo: Callable[..., None] = click.echo) -> None:
    """Echo the window layout and navigation help."""
    echo("")
    echo("===============================================")
    echo("Orchestrix automation started!")
    echo("===============================================")
    echo("")
    echo("Window Layout:")
    for index, role in enumerate(ROLES):
        marker = " (current window) <- workflow started" if role == SCRUM_MASTER else ""
        echo(f"  Window {index}: {DISPLAY_NAMES[role]}{marker}")
    echo("")
    echo("tmux navigation:")
    echo("  Ctrl+b -> 0/1/2/3   Jump to window")
    echo("  Ctrl+b -> n/p       Next/Previous window")
    echo("  Ctrl+b -> d         Detach (runs in background)")
    echo("  Ctrl+b -> [         Scroll mode (q to exit)")
    echo("")
    echo(f"Monitor: tail -f {result.log_file}")
    echo(f"Reconnect: tmux attach -t {result.session}")
    echo("")


def bootstrap(
    project_root: Path,
    repository_id: Optional[str] = None,
    attach: bool = True,
    **kwargs,
) -> str:
    """
    Bootstrap a workspace and optionally attach to it.

    Args:
        project_root: Repository checkout the agents work in
        repository_id: Overrides core-config.yaml repository_id
        attach: Attach the terminal to the session when done
        **kwargs: Bootstrapper overrides (backend, timings, fixed_wait, ...)

    Returns:
        Workspace (session) name

    Raises:
        BootstrapError: If prerequisites are missing
    """
    bootstrapper = Bootstrapper(project_root, repository_id, **kwargs)
    result = bootstrapper.run()
    print_summary(result, bootstrapper.echo)
    if attach:
        bootstrapper.backend.attach_session(result.session)
    return result.session
