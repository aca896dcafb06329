"""
Project setup for orchestrix: install the stop hook script and register it
with Claude Code.
"""

import json
import shutil
from pathlib import Path

import click

from orchestrix.config import get_core_dir

HOOK_SCRIPT_NAME = "acp-stop-hook.py"

# git rev-parse keeps the hook working when Claude Code runs it from a
# subdirectory (or from outside the project entirely)
HOOK_COMMAND = (
    'python3 "$(git rev-parse --show-toplevel)/.orchestrix-core/scripts/'
    f'{HOOK_SCRIPT_NAME}"'
)


def bundled_hook_script() -> Path:
    """Location of the hook script shipped with this package."""
    return Path(__file__).resolve().parent / "hooks" / HOOK_SCRIPT_NAME


def install_hook_script(project_root: Path) -> Path:
    """
    Copy the stop hook script into <project>/.orchestrix-core/scripts/.

    Returns:
        Path of the installed script
    """
    scripts_dir = get_core_dir(project_root) / "scripts"
    scripts_dir.mkdir(parents=True, exist_ok=True)
    hook_script = scripts_dir / HOOK_SCRIPT_NAME
    shutil.copyfile(bundled_hook_script(), hook_script)
    hook_script.chmod(0o755)
    return hook_script


def setup_stop_hook(project_root: Path) -> bool:
    """
    Install the stop hook and register it in <project>/.claude/settings.json.

    Creates the settings file if needed. Registration is idempotent.

    Returns:
        True if the hook was newly registered, False if already present
    """
    hook_script = install_hook_script(project_root)
    click.echo(f"✓ Installed hook script: {hook_script}")

    settings_file = Path(project_root) / ".claude" / "settings.json"
    settings = {}
    if settings_file.exists():
        try:
            settings = json.loads(settings_file.read_text())
        except json.JSONDecodeError as e:
            raise click.ClickException(f"Cannot parse {settings_file}: {e}")

    stop_hooks = settings.setdefault("hooks", {}).setdefault("Stop", [])

    for hook_config in stop_hooks:
        for hook in hook_config.get("hooks", []):
            if hook.get("command") == HOOK_COMMAND:
                click.echo("✓ Hook already registered in settings.json")
                return False

    stop_hooks.append({
        "hooks": [
            {
                "type": "command",
                "command": HOOK_COMMAND,
            }
        ]
    })

    settings_file.parent.mkdir(parents=True, exist_ok=True)
    settings_file.write_text(json.dumps(settings, indent=2) + "\n")
    click.echo(f"✓ Registered Stop hook in {settings_file}")
    click.echo("  → Restart Claude Code for hook to take effect")
    return True
