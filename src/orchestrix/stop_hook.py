"""
Stop-hook pipeline: forward a finished agent turn to the orchestration gateway.

Triggered by: Stop (host runtime fires it once per agent turn)
Flow: resolve workspace -> resolve role -> liveness gate -> capture -> POST

Every failure mode is a silent, logged no-op. Stop events fire far more often
than they carry useful signal and the runtime ignores hook exit codes, so the
pipeline never raises and the process always exits 0.
"""

import sys
import time
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from orchestrix.config import get_setting, get_webhook_secret
from orchestrix.context import (
    EnvProvider,
    FileReader,
    ResolutionContext,
    build_context,
    parse_hook_input,
)
from orchestrix.dispatch import dispatch
from orchestrix.liveness import (
    LivenessClassifier,
    TranscriptPatternClassifier,
    is_still_working,
    read_transcript_tail,
)
from orchestrix.logging import HookLogger
from orchestrix.role_locator import RoleLocation, locate_role
from orchestrix.roles import is_heavy_task_role
from orchestrix.tmux_utils import TmuxBackend
from orchestrix.workspace_resolver import (
    Resolution,
    ResolutionStatus,
    resolve_blueprint_id,
    resolve_workspace,
)

COMMAND = "stop-hook"


class HookOutcome(Enum):
    """How a stop-hook invocation ended."""

    SENT = "SENT"
    SEND_FAILED = "SEND_FAILED"
    NO_SECRET = "NO_SECRET"
    NO_TMUX = "NO_TMUX"
    NO_WORKSPACE = "NO_WORKSPACE"
    AMBIGUOUS_WORKSPACE = "AMBIGUOUS_WORKSPACE"
    NO_BLUEPRINT_ID = "NO_BLUEPRINT_ID"
    NO_AGENT = "NO_AGENT"
    STILL_WORKING = "STILL_WORKING"


class StopHook:
    """One stop-hook invocation with injectable collaborators."""

    def __init__(
        self,
        project_root: Path,
        backend=None,
        logger: Optional[HookLogger] = None,
        env: Optional[EnvProvider] = None,
        files: Optional[FileReader] = None,
        classifier: Optional[LivenessClassifier] = None,
        secret: Optional[str] = None,
        cwd: Optional[str] = None,
    ):
        self.project_root = Path(project_root)
        self.backend = backend or TmuxBackend()
        self.logger = logger or HookLogger()
        self.env = env or EnvProvider()
        self.files = files or FileReader()
        self.classifier = classifier
        self.secret = secret
        self.cwd = cwd

    def _log_resolution(self, result: Resolution) -> None:
        if result.found:
            self.logger.log_event(COMMAND, f"{result.detail}: {result.session}", {"method": result.method})
        elif result.status is ResolutionStatus.AMBIGUOUS:
            self.logger.log_error(COMMAND, "Ambiguous session matching", {
                "method": result.method,
                "reason": result.detail,
                "candidates": list(result.candidates),
            })
        elif result.detail:
            self.logger.log_warning(COMMAND, result.detail, {"method": result.method})

    def resolve(self, hook_input: Dict[str, Any]) -> Tuple[ResolutionContext, Resolution, Optional[str], Optional[RoleLocation], Optional[HookOutcome]]:
        """
        Resolve workspace, blueprint id and role without side effects.

        Returns:
            (context, workspace resolution, blueprint id, role location, failure)
            where failure is None when everything resolved
        """
        ctx = build_context(
            self.project_root,
            hook_input,
            backend=self.backend,
            env=self.env,
            files=self.files,
            cwd=self.cwd,
        )
        self.logger.log_event(COMMAND, "Context assembled", ctx.to_log_dict())

        resolution = resolve_workspace(ctx, on_attempt=self._log_resolution)
        if resolution.status is ResolutionStatus.AMBIGUOUS:
            return ctx, resolution, None, None, HookOutcome.AMBIGUOUS_WORKSPACE
        if not resolution.found:
            return ctx, resolution, None, None, HookOutcome.NO_WORKSPACE

        session_name = resolution.session
        blueprint_id = resolve_blueprint_id(ctx, session_name)
        if not blueprint_id:
            return ctx, resolution, None, None, HookOutcome.NO_BLUEPRINT_ID

        location = locate_role(ctx, self.backend, session_name, files=self.files)
        if location is None:
            return ctx, resolution, blueprint_id, None, HookOutcome.NO_AGENT

        return ctx, resolution, blueprint_id, location, None

    def run(self, hook_input: Dict[str, Any]) -> HookOutcome:
        secret = self.secret if self.secret is not None else get_webhook_secret(self.env.environ)
        if not secret:
            self.logger.log_error(COMMAND, "WEBHOOK_SECRET not configured")
            return HookOutcome.NO_SECRET

        if not self.backend.is_available():
            self.logger.log_error(COMMAND, "tmux not found")
            return HookOutcome.NO_TMUX

        ctx, resolution, blueprint_id, location, failure = self.resolve(hook_input)
        if failure is HookOutcome.NO_WORKSPACE:
            self.logger.log_event(COMMAND, "EXIT: No session found")
            return failure
        if failure is HookOutcome.AMBIGUOUS_WORKSPACE:
            self.logger.log_event(COMMAND, "EXIT: Ambiguous session matching")
            return failure
        if failure is HookOutcome.NO_BLUEPRINT_ID:
            self.logger.log_error(COMMAND, f"Cannot determine blueprint_id from session: {resolution.session}")
            return failure
        if failure is HookOutcome.NO_AGENT:
            self.logger.log_error(COMMAND, "Cannot determine agent_id", {"session": resolution.session})
            return failure

        session_name = resolution.session
        self.logger.log_event(COMMAND, f"Agent ID: {location.role}, Window: {location.window}", {
            "session": session_name,
            "blueprint_id": blueprint_id,
            "method": location.method,
        })

        if is_heavy_task_role(location.role):
            if self._still_working(location.role, ctx.transcript_path):
                return HookOutcome.STILL_WORKING

        result = dispatch(
            self.backend,
            session_name,
            location.window,
            blueprint_id,
            location.role,
            secret,
            logger=self.logger,
        )
        return HookOutcome.SENT if result.ok else HookOutcome.SEND_FAILED

    def _still_working(self, role: str, transcript_path: Optional[str]) -> bool:
        tail_chars = int(get_setting('transcript_tail_chars'))
        tail = read_transcript_tail(transcript_path, tail_chars)
        if tail is None:
            self.logger.log_event(COMMAND, "transcript_path not available or file not found, proceeding anyway", {
                "role": role,
            })
            return False

        classifier = self.classifier or TranscriptPatternClassifier(tail_chars)
        if is_still_working(role, tail, classifier):
            reason = getattr(classifier, 'last_reason', None) or "classifier"
            self.logger.log_event(COMMAND, f"{role} agent still working ({reason}), skipping webhook", {
                "role": role,
            })
            return True

        self.logger.log_event(COMMAND, "No working state found in transcript, proceeding", {"role": role})
        return False


def run_stop_hook(
    project_root: Path,
    hook_input: Optional[Dict[str, Any]] = None,
    **kwargs,
) -> HookOutcome:
    """
    Run the stop-hook pipeline once.

    Args:
        project_root: Project root (resolved from the hook script location)
        hook_input: Parsed host runtime payload
        **kwargs: Collaborator overrides passed to StopHook

    Returns:
        HookOutcome describing how the invocation ended
    """
    hook = StopHook(project_root, **kwargs)
    start_time = time.time()
    hook.logger.log_command_start(COMMAND, {
        "project_root": str(project_root),
        "transcript_path": (hook_input or {}).get("transcript_path") or "<not provided>",
    })
    outcome = hook.run(hook_input or {})
    duration_ms = int((time.time() - start_time) * 1000)
    hook.logger.log_command_complete(COMMAND, duration_ms, {"outcome": outcome.value})
    return outcome


def main(project_root: Path, stdin=None) -> int:
    """
    Hook entry point: read the runtime payload from stdin and run the pipeline.

    Unexpected errors are logged and swallowed; the exit code is always 0.
    """
    if stdin is None:
        stdin = sys.stdin

    try:
        raw = stdin.read()
    except (OSError, ValueError):
        raw = ''

    try:
        run_stop_hook(project_root, parse_hook_input(raw))
    except Exception as e:
        try:
            HookLogger().log_error(COMMAND, "Unexpected failure", {
                "error_type": type(e).__name__,
                "reason": str(e),
            })
        except OSError:
            pass
    return 0
