"""Lightweight configuration loader for orchestrix.

Reads optional settings from ~/.orchestrix/config.yaml with safe defaults.
A few keys can also be supplied by the environment, which wins over the file
(the gateway and host runtime set these when they launch agents).

Supported keys:
- gateway_url: orchestration gateway base URL (env: ACP_GATEWAY_URL)
- webhook_secret_file: file holding the shared webhook secret
- hook_log_file: append-only stop-hook log
- capture_lines: scroll-back lines forwarded per stop event (default: 500)
- handoff_scan_lines: lines scanned for a HANDOFF marker (default: 50)
- transcript_tail_chars: transcript tail inspected for liveness (default: 500)
- request_timeout: gateway POST timeout in seconds (default: 10)
- agent_executable: token expected in an agent process command line
- agent_command: command typed into each window to launch an agent
- startup_timeout, command_enter_delay, activation_delay, load_timeout,
  load_quiet_period: bootstrap timings in seconds
- auto_start_command: instruction sent to the scrum-master after activation
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import yaml

_CONFIG_CACHE: Optional[Dict[str, Any]] = None

# Environment variable -> config key
_ENV_OVERRIDES = {
    'ACP_GATEWAY_URL': 'gateway_url',
}

CORE_DIR_NAME = '.orchestrix-core'


def _defaults() -> Dict[str, Any]:
    home = Path.home()
    return {
        'gateway_url': 'https://ws.youlidao.ai',
        'webhook_secret_file': str(home / 'o' / 'webhook-secret.txt'),
        'hook_log_file': '/tmp/acp-stop-hook.log',
        'capture_lines': 500,
        'handoff_scan_lines': 50,
        'transcript_tail_chars': 500,
        'request_timeout': 10,
        'agent_executable': 'claude',
        'agent_command': 'claude',
        'startup_timeout': 90,
        'command_enter_delay': 1,
        'activation_delay': 2,
        'load_timeout': 15,
        'load_quiet_period': 3,
        'auto_start_command': '1',
    }


def get_config_path() -> Path:
    return Path.home() / '.orchestrix' / 'config.yaml'


def get_config() -> Dict[str, Any]:
    """Load config.yaml once and cache the result."""
    global _CONFIG_CACHE
    if _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    cfg_path = get_config_path()
    data: Dict[str, Any] = {}
    if cfg_path.exists():
        try:
            loaded = yaml.safe_load(cfg_path.read_text())
            if isinstance(loaded, dict):
                data = loaded
        except Exception:
            # Ignore malformed configs; fall back to defaults
            data = {}

    merged = {**_defaults(), **data}
    for env_var, key in _ENV_OVERRIDES.items():
        value = os.environ.get(env_var)
        if value:
            merged[key] = value

    _CONFIG_CACHE = merged
    return merged


def get_setting(key: str) -> Any:
    return get_config().get(key, _defaults().get(key))


def get_gateway_url() -> str:
    return str(get_setting('gateway_url')).rstrip('/')


def get_hook_log_file() -> Path:
    return Path(str(get_setting('hook_log_file'))).expanduser()


def get_webhook_secret(env: Optional[Mapping[str, str]] = None) -> str:
    """
    Get the shared webhook secret.

    The secret file takes priority; the WEBHOOK_SECRET environment variable is
    only consulted when the file is missing.

    Args:
        env: Environment mapping (defaults to os.environ)

    Returns:
        Secret with newlines stripped, or empty string if not configured
    """
    if env is None:
        env = os.environ

    secret_file = Path(str(get_setting('webhook_secret_file'))).expanduser()
    if secret_file.is_file():
        try:
            return secret_file.read_text().replace('\n', '')
        except OSError:
            return ''
    return env.get('WEBHOOK_SECRET', '')


def get_core_dir(project_root: Path) -> Path:
    return Path(project_root) / CORE_DIR_NAME


def get_blueprint_id_file(project_root: Path) -> Path:
    """Path of the persisted blueprint id written by the gateway."""
    return get_core_dir(project_root) / 'blueprint-id.txt'


def get_current_agent_file(session_name: str) -> Path:
    """Path of the per-workspace hint naming the agent last dispatched to."""
    return Path('/tmp') / f'orchestrix-{session_name}-current-agent.txt'


def get_repository_id(project_root: Path) -> str:
    """
    Read repository_id from the project's core-config.yaml.

    Returns:
        The configured repository id, or empty string if missing or unreadable
    """
    config_file = get_core_dir(project_root) / 'core-config.yaml'
    if not config_file.exists():
        return ''

    try:
        loaded = yaml.safe_load(config_file.read_text())
    except (yaml.YAMLError, OSError):
        return ''

    value = _find_key(loaded, 'repository_id')
    if value is None:
        return ''
    return str(value).strip().strip('\'"').replace(' ', '')


def _find_key(data: Any, key: str) -> Any:
    """Depth-first lookup of the first occurrence of key in nested mappings."""
    if not isinstance(data, dict):
        return None
    if data.get(key) is not None:
        return data[key]
    for value in data.values():
        found = _find_key(value, key)
        if found is not None:
            return found
    return None
