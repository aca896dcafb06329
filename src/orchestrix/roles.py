"""
Agent role identities shared by the bootstrapper and the stop hook.

Windows in a workspace are named by canonical role id. Finer-grained
technical sub-roles (e.g. 'architect-engineering') alias to their canonical
role.
"""

from typing import Dict, Optional, Tuple

ARCHITECT = 'architect'
SCRUM_MASTER = 'sm'
DEVELOPER = 'dev'
QA = 'qa'

# Window creation order in a freshly bootstrapped workspace
ROLES: Tuple[str, ...] = (ARCHITECT, SCRUM_MASTER, DEVELOPER, QA)

# Scan order used when inspecting windows for the role that fired a stop event
AGENT_WINDOWS: Tuple[str, ...] = (
    SCRUM_MASTER,
    DEVELOPER,
    ARCHITECT,
    'architect-engineering',
    QA,
)

# Roles whose turns are long enough that a stop event may be a mid-turn pause
HEAVY_TASK_ROLES = frozenset({DEVELOPER, QA})

ROLE_ALIASES: Dict[str, str] = {
    'scrum-master': SCRUM_MASTER,
    'scrum_master': SCRUM_MASTER,
    'developer': DEVELOPER,
}

DISPLAY_NAMES: Dict[str, str] = {
    ARCHITECT: 'Architect',
    SCRUM_MASTER: 'SM',
    DEVELOPER: 'Dev',
    QA: 'QA',
}


def normalize_role(value: Optional[str]) -> Optional[str]:
    """
    Map a role token to its canonical role id.

    Any token beginning with 'architect' resolves to the architect role.
    Canonical ids map to themselves, so the mapping is idempotent.

    Args:
        value: Raw role token (window name, hint file content, env var)

    Returns:
        Canonical role id, or None if the token is not a known role
    """
    if not value:
        return None

    token = value.strip().lower()
    if not token:
        return None

    if token.startswith(ARCHITECT):
        return ARCHITECT
    if token in ROLES:
        return token
    return ROLE_ALIASES.get(token)


def activation_command(role: str) -> str:
    """Slash command that loads the given role's agent persona."""
    return f"/o {role}"


def is_heavy_task_role(role: str) -> bool:
    return role in HEAVY_TASK_ROLES
