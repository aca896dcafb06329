"""
Path utilities for orchestrix.

Project root discovery for the CLI and the hook script. The host runtime may
run hooks from a directory outside the project, so the hook script resolves
the project from its own location rather than trusting the caller's cwd.
"""

import os
import subprocess
from pathlib import Path
from typing import Optional, Union

from orchestrix.config import CORE_DIR_NAME


def get_git_root(start_path: Optional[str] = None) -> Optional[str]:
    """Find git repository root from start_path (or cwd).

    Args:
        start_path: Directory to start search from (default: cwd)

    Returns:
        Git root path as string, or None if not in a git repository
    """
    if start_path is None:
        start_path = os.getcwd()

    try:
        result = subprocess.run(
            ['git', 'rev-parse', '--show-toplevel'],
            cwd=start_path,
            capture_output=True,
            text=True,
            check=True
        )
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError, NotADirectoryError):
        return None


def find_project_root(start_path: Optional[str] = None) -> Optional[str]:
    """Find the directory holding .orchestrix-core by walking up from start_path (or cwd).

    Stops at the git root boundary so a stray .orchestrix-core above the
    repository is never picked up.

    Args:
        start_path: Directory to start search from (default: cwd)

    Returns:
        Path to directory containing .orchestrix-core/, or None if not found
    """
    if start_path is None:
        start_path = os.getcwd()

    current = Path(start_path).resolve()

    git_root = get_git_root(str(current)) if current.is_dir() else None
    git_root_path = Path(git_root).resolve() if git_root else None

    while current != current.parent:
        if (current / CORE_DIR_NAME).is_dir():
            return str(current)

        if git_root_path and current == git_root_path:
            return None

        current = current.parent

    return None


def project_root_from_script(script_path: Union[str, Path]) -> Path:
    """
    Resolve the project root from a hook script path.

    Hook scripts live in <project>/.orchestrix-core/scripts/. Relative paths
    are resolved against the current directory first, which is where the
    runtime that invoked the script with that relative path was standing.

    Args:
        script_path: Path the script was invoked with (e.g. __file__)

    Returns:
        Absolute project root
    """
    return Path(os.path.abspath(script_path)).resolve().parent.parent.parent


def resolve_project_root(project: Optional[str] = None) -> Path:
    """
    Resolve the project root for CLI commands.

    Priority: explicit --project > nearest .orchestrix-core ancestor >
    git root > cwd.
    """
    if project:
        return Path(project).expanduser().resolve()

    found = find_project_root()
    if found:
        return Path(found)

    git_root = get_git_root()
    if git_root:
        return Path(git_root)

    return Path.cwd().resolve()
