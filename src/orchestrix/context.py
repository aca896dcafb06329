"""
Resolution context for a single stop-hook invocation.

All ambient signals (environment variables, hint files, live tmux state) are
read exactly once, here, into a ResolutionContext. The resolver and locator
then work from that value plus the backend, so each source can be replaced in
tests.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from orchestrix.config import get_blueprint_id_file
from orchestrix.session_naming import extract_user_token


class EnvProvider:
    """Read-only view of the invocation environment."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ

    @property
    def environ(self) -> Mapping[str, str]:
        return self._environ

    def get(self, name: str) -> Optional[str]:
        value = self._environ.get(name, '')
        value = value.strip() if value else ''
        return value or None


class FileReader:
    """Reads small single-line state files."""

    def read_line(self, path: Path) -> Optional[str]:
        """
        Read a state file and strip newlines.

        Returns:
            File content, or None if the file is missing, unreadable or empty
        """
        try:
            path = Path(path)
            if not path.is_file():
                return None
            value = path.read_text(errors='replace').replace('\n', '').replace('\r', '').strip()
        except OSError:
            return None
        return value or None


@dataclass
class ResolutionContext:
    """Everything the stop hook knows about where it was fired from."""

    project_root: Path
    caller_cwd: str
    env_session: Optional[str] = None
    env_agent: Optional[str] = None
    persisted_blueprint_id: Optional[str] = None
    transcript_path: Optional[str] = None
    live_sessions: List[str] = field(default_factory=list)

    @property
    def user_token(self) -> Optional[str]:
        return extract_user_token(self.caller_cwd)

    def to_log_dict(self) -> Dict[str, Any]:
        return {
            'project_root': str(self.project_root),
            'cwd': self.caller_cwd,
            'env_session': self.env_session,
            'env_agent': self.env_agent,
            'persisted_blueprint_id': self.persisted_blueprint_id,
            'transcript_path': self.transcript_path,
            'live_sessions': len(self.live_sessions),
        }


def parse_hook_input(raw: str) -> Dict[str, Any]:
    """
    Parse the JSON payload the host runtime writes to the hook's stdin.

    Malformed or non-object input yields an empty payload rather than an
    error; the payload only carries optional hints.
    """
    if not raw or not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return data if isinstance(data, dict) else {}


def build_context(
    project_root: Path,
    hook_input: Optional[Dict[str, Any]] = None,
    backend=None,
    env: Optional[EnvProvider] = None,
    files: Optional[FileReader] = None,
    cwd: Optional[str] = None,
) -> ResolutionContext:
    """
    Assemble the resolution context from its sources.

    The caller's working directory only carries a signal when it has the
    gateway layout (/users/<token>/blueprints/...). Any other cwd (the host
    runtime may run hooks from anywhere) is replaced by the project root.

    Args:
        project_root: Project root resolved from the hook script location
        hook_input: Parsed host runtime payload
        backend: Multiplexer backend (TmuxBackend or a test double)
        env: Environment source
        files: State file reader
        cwd: Caller working directory (defaults to os.getcwd())

    Returns:
        Populated ResolutionContext
    """
    hook_input = hook_input or {}
    env = env or EnvProvider()
    files = files or FileReader()
    project_root = Path(project_root)

    if cwd is None:
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = ''
    if not extract_user_token(cwd):
        cwd = str(project_root)

    transcript_path = hook_input.get('transcript_path')
    if not isinstance(transcript_path, str) or not transcript_path:
        transcript_path = None

    live_sessions = backend.list_sessions() if backend is not None else []

    return ResolutionContext(
        project_root=project_root,
        caller_cwd=cwd,
        env_session=env.get('ORCHESTRIX_SESSION'),
        env_agent=env.get('AGENT_ID'),
        persisted_blueprint_id=files.read_line(get_blueprint_id_file(project_root)),
        transcript_path=transcript_path,
        live_sessions=list(live_sessions),
    )
