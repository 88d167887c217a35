"""
Watch Folder Agent CLI
Command-line interface for agent management and configuration.
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import Config, ConfigManager
from .daemon import WatchFolderDaemon, build_engine
from .events import EventLog
from .exceptions import ConfigError, ScanError
from .keychain import KeychainManager
from .logger import configure_logging
from .models import NEVER_TRACKED, format_timestamp
from .reconciler import diff
from .scanner import DirectoryScanner
from .state_store import StateStore
from .utils import check_folder_access, format_duration

console = Console()


def _load_config(config_path: Optional[Path]) -> Config:
    try:
        return ConfigManager(config_path).load()
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option('--config', 'config_path', type=click.Path(path_type=Path), default=None,
              help="Path to config.json")
@click.pass_context
def cli(ctx, config_path):
    """Watch Folder Agent - upload new and changed files from a folder"""
    ctx.obj = {'config_path': config_path}


@cli.command()
@click.pass_context
def setup(ctx):
    """Run interactive setup wizard."""
    console.print("\n[bold cyan]Watch Folder Agent Setup[/bold cyan]\n")

    config_manager = ConfigManager(ctx.obj['config_path'])

    console.print("[bold]Upload Server[/bold]")
    server = click.prompt("Server")
    verify_ssl = click.confirm("Verify SSL certificates?", default=True)

    console.print("\n[bold]Identity[/bold]")
    user_id = click.prompt("User ID")
    user_key = click.prompt("User Key", hide_input=True)
    folder_id = click.prompt("Destination Folder ID")

    console.print("\n[bold]Folder Sync[/bold]")
    watch_folder = click.prompt("Watch Folder")
    info_file_path = click.prompt("State record path", default="~/.watchfolder/folder-info.txt")
    file_pattern = click.prompt("File pattern", default="*.mp4")
    interval_ms = click.prompt("Polling interval (ms)", default=10000, type=int)

    if not check_folder_access(watch_folder):
        console.print("[red]Watch folder is not accessible![/red]")
        if not click.confirm("Continue anyway?"):
            sys.exit(1)
    else:
        console.print("[green]✓ Watch folder accessible[/green]")

    try:
        config = Config(
            server=server,
            verify_ssl=verify_ssl,
            user_id=user_id,
            folder_id=folder_id,
            watch_folder=watch_folder,
            info_file_path=info_file_path,
            file_pattern=file_pattern,
            interval_ms=interval_ms
        )
    except ValueError as e:
        console.print(f"[red]Invalid settings:[/red] {e}")
        sys.exit(1)

    config_manager.save(config)
    console.print(f"\n[green]✓ Configuration saved to {config_manager.config_path}[/green]")

    KeychainManager().store_user_key(user_id, user_key)
    console.print("[green]✓ User key stored in keychain[/green]")

    console.print("\n[bold green]✓ Setup complete![/bold green]")
    console.print("\nNext steps:")
    console.print("  1. Preview: [cyan]watchfolder-agent plan[/cyan]")
    console.print("  2. Start the agent: [cyan]watchfolder-agent start[/cyan]")


@cli.command()
@click.pass_context
def start(ctx):
    """Run the agent in the foreground."""
    WatchFolderDaemon(ctx.obj['config_path']).start()


@cli.command(name='run-once')
@click.pass_context
def run_once(ctx):
    """Run a single sync cycle and exit."""
    config = _load_config(ctx.obj['config_path'])
    configure_logging(log_level=config.log_level, console=True)

    try:
        engine = build_engine(config)
    except ConfigError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    result = engine.run_cycle()

    table = Table(title=f"Cycle {result.cycle_id}", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Result")
    table.add_column("Time", justify="right")

    for outcome in result.outcomes:
        status = "[green]uploaded[/green]" if outcome.success else f"[red]failed: {escape(outcome.error_message or '')}[/red]"
        table.add_row(outcome.task.name, status, f"{outcome.duration_ms} ms")

    if result.outcomes:
        console.print(table)

    console.print(f"\n[bold]Stats:[/bold] {result.stats} in {format_duration(result.duration)}")

    if not result.success:
        console.print(f"[red]{escape(result.error)}[/red]")
        sys.exit(1)
    if result.failed:
        sys.exit(2)


@cli.command()
@click.pass_context
def plan(ctx):
    """Show what the next cycle would upload, without uploading."""
    config = _load_config(ctx.obj['config_path'])

    try:
        current = DirectoryScanner(config.file_pattern).scan(config.watch_path)
    except ScanError as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    result = diff(StateStore(config.info_path).load(), current, config.watch_path)

    if not result.plan:
        console.print("[green]All files in sync[/green]")
        return

    table = Table(title="Upload Plan", show_header=True)
    table.add_column("File", style="cyan")
    table.add_column("Change")
    table.add_column("Recorded")
    table.add_column("Current", style="green")

    for task in result.plan:
        table.add_row(
            task.name,
            "new" if task.is_new else "modified",
            format_timestamp(task.revert_timestamp),
            format_timestamp(task.new_timestamp)
        )

    console.print(table)
    console.print(f"\n[bold]Stats:[/bold] {result.stats.to_dict()}")


@cli.command()
@click.pass_context
def status(ctx):
    """Show the state record and recent events."""
    config = _load_config(ctx.obj['config_path'])
    store = StateStore(config.info_path)

    console.print("\n[bold cyan]Watch Folder Agent Status[/bold cyan]\n")
    console.print(f"[bold]Watch folder:[/bold] {config.watch_folder}")
    console.print(f"[bold]State record:[/bold] {store.path}")

    if not store.exists():
        console.print("\n[yellow]No state record yet[/yellow]")
    else:
        table = Table(title="Tracked Files", show_header=True)
        table.add_column("File", style="cyan")
        table.add_column("Last Uploaded Modification", style="green")

        for record in store.records():
            if record.last_known_modified_at is NEVER_TRACKED:
                table.add_row(record.name, "[red]pending retry[/red]")
            else:
                table.add_row(record.name, format_timestamp(record.last_known_modified_at))

        console.print(table)

    if config.event_log_path:
        events = EventLog.read(config.event_log_path, limit=10)
        if events:
            console.print("\n[bold]Recent Events:[/bold]")
            for event in events:
                style = "red" if event.level == EventLog.ERROR else "dim"
                console.print(f"  [{style}][{event.event_id}] {escape(event.message)}[/{style}]")


@cli.command(name='config')
@click.pass_context
def show_config(ctx):
    """Show the effective configuration."""
    config = _load_config(ctx.obj['config_path'])

    table = Table(show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    for key, value in sorted(config.masked().items()):
        table.add_row(key, str(value))

    console.print(table)


if __name__ == '__main__':
    cli()
