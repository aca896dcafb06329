"""
Workspace (tmux session) naming utilities.

Two naming schemes coexist:

- Gateway-managed workspaces: ``u<user-token>-bp-<blueprint-id>``, where the
  user token also appears in the agent's working directory as
  ``/users/<user-token>/blueprints/...``.
- Locally bootstrapped workspaces: ``orchestrix-<repo-id>``.
"""

import re
from pathlib import Path
from typing import Optional, Union

SESSION_SEPARATOR = 'bp'
LOCAL_SESSION_PREFIX = 'orchestrix-'

# User tokens are hex ids (UUIDs with dashes)
USER_PATH_PATTERN = re.compile(r'/users/([a-f0-9-]+)/blueprints/')

# Non-greedy token: user tokens never contain "-bp-", so the first
# separator always ends the token and the rest is the blueprint id.
SESSION_PATTERN = re.compile(r'^u([a-f0-9-]+?)-bp-([A-Za-z0-9_-]+)$')

RECOGNIZED_SESSION_PATTERN = re.compile(r'^(u[a-f0-9-]+-bp-|orchestrix-)')


def extract_user_token(path: Union[str, Path, None]) -> Optional[str]:
    """
    Extract the user token from a working directory path.

    Args:
        path: Directory path (e.g., '/srv/users/9f3a/blueprints/abc/repo')

    Returns:
        User token, or None if the path doesn't have the expected shape
    """
    if not path:
        return None
    match = USER_PATH_PATTERN.search(str(path))
    if not match:
        return None
    return match.group(1)


def user_prefix(user_token: str) -> str:
    """Session name prefix shared by all of a user's workspaces."""
    return f"u{user_token}-{SESSION_SEPARATOR}-"


def build_session_name(user_token: str, blueprint_id: str) -> str:
    return f"{user_prefix(user_token)}{blueprint_id}"


def parse_blueprint_id(session_name: str) -> Optional[str]:
    """
    Extract the blueprint id from a canonical session name.

    Examples:
        >>> parse_blueprint_id('u123-bp-abc')
        'abc'
        >>> parse_blueprint_id('orchestrix-my-repo') is None
        True
    """
    if not session_name:
        return None
    match = SESSION_PATTERN.match(session_name)
    if not match:
        return None
    return match.group(2)


def parse_user_token(session_name: str) -> Optional[str]:
    if not session_name:
        return None
    match = SESSION_PATTERN.match(session_name)
    return match.group(1) if match else None


def is_recognized_session(session_name: str) -> bool:
    """True for gateway-managed or locally bootstrapped workspace names."""
    return bool(session_name) and bool(RECOGNIZED_SESSION_PATTERN.match(session_name))


def sanitize_repo_id(repo_id: str) -> str:
    """
    Reduce a repository id to characters tmux accepts in session names.

    Keeps alphanumerics, dash and underscore only.
    """
    return re.sub(r'[^a-zA-Z0-9_-]', '', repo_id or '')


def local_session_name(repo_id: str) -> str:
    return f"{LOCAL_SESSION_PREFIX}{repo_id}"


def handoff_log_path(repo_id: str) -> Path:
    """Log file exported to every agent window as ORCHESTRIX_LOG."""
    return Path('/tmp') / f"orchestrix-{repo_id}-handoff.log"
