import click
import sys
from pathlib import Path

from orchestrix import __version__
from orchestrix.bootstrap import BootstrapError, bootstrap
from orchestrix.logging import HookLogger
from orchestrix.path_utils import resolve_project_root


@click.group()
@click.version_option(version=__version__, prog_name="orchestrix")
def cli():
    """Multi-agent tmux workspace tools."""
    pass


@cli.command()
@click.option('--project', type=click.Path(exists=True, file_okay=False), help='Project directory (defaults to nearest .orchestrix-core ancestor)')
@click.option('--repo-id', help='Repository id used to name the session (overrides core-config.yaml)')
@click.option('--no-attach', is_flag=True, help='Do not attach to the session when done')
@click.option('--fixed-wait', is_flag=True, help='Use fixed startup/load waits instead of polling the panes')
def start(project, repo_id, no_attach, fixed_wait):
    """Create a fresh architect/sm/dev/qa workspace and start the workflow.

    \b
    Replaces any existing session for the same repository, launches one
    agent per window, activates each role and sends the auto-start
    command to the SM window.
    """
    project_root = resolve_project_root(project)
    try:
        bootstrap(project_root, repo_id, attach=not no_attach, fixed_wait=fixed_wait)
    except BootstrapError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command(name='stop-hook')
@click.option('--project', type=click.Path(file_okay=False), help='Project directory (defaults to nearest .orchestrix-core ancestor)')
def stop_hook_cmd(project):
    """Forward the finished agent turn to the gateway (reads hook JSON from stdin).

    Always exits 0. Diagnostics go to the hook log.
    """
    from orchestrix.stop_hook import main as run_hook

    run_hook(resolve_project_root(project), click.get_text_stream('stdin'))
    sys.exit(0)


@cli.command()
@click.option('--project', type=click.Path(exists=True, file_okay=False), help='Project directory (defaults to nearest .orchestrix-core ancestor)')
def resolve(project):
    """Show which workspace and agent a stop event would resolve to.

    Dry run: nothing is captured or sent.
    """
    from orchestrix.stop_hook import StopHook

    hook = StopHook(resolve_project_root(project))
    ctx, resolution, blueprint_id, location, failure = hook.resolve({})

    click.echo(f"Project:      {ctx.project_root}")
    click.echo(f"Session:      {resolution.session or '-'} ({resolution.method}: {resolution.detail or resolution.status.value})")
    click.echo(f"Blueprint ID: {blueprint_id or '-'}")
    if location:
        click.echo(f"Agent:        {location.role} (window {location.window}, via {location.method})")
    else:
        click.echo("Agent:        -")
    if failure:
        click.echo(f"Result:       {failure.value}")


@cli.command(name='install-hook')
@click.option('--project', type=click.Path(exists=True, file_okay=False), help='Project directory (defaults to nearest .orchestrix-core ancestor)')
def install_hook(project):
    """Install the stop hook and register it in .claude/settings.json."""
    from orchestrix.init import setup_stop_hook

    setup_stop_hook(resolve_project_root(project))


@cli.command()
@click.option('--limit', '-n', default=20, show_default=True, help='Number of entries to show')
@click.option('--command', 'command_filter', type=click.Choice(['stop-hook', 'start']), help='Only show entries for this command')
@click.option('--level', 'level_filter', type=click.Choice(['INFO', 'WARN', 'ERROR']), help='Only show entries with this level')
@click.option('--log-file', type=click.Path(dir_okay=False), help='Log file to read (defaults to configured hook log)')
def logs(limit, command_filter, level_filter, log_file):
    """Show recent stop-hook and bootstrap log entries (newest first)."""
    logger = HookLogger(Path(log_file) if log_file else None)
    entries = logger.read_logs(limit=limit, command_filter=command_filter, level_filter=level_filter)
    if not entries:
        click.echo("No log entries found.")
        return

    for entry in entries:
        click.echo(f"{entry['timestamp']} {entry['level']:<5} [{entry['command']}] {entry['message']}")


if __name__ == '__main__':
    cli()
