"""
CLI interface for todo collection.

Usage:
    todo-collector refresh
    todo-collector sync
    todo-collector move today --line 3
    todo-collector watch
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from .api import TodoCollector
from .logging_config import configure_console_logging, enable_debug_mode
from .types import validate_group
from .watcher import POLL_INTERVAL, watch as run_watch


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"todo-collector {version('todo-collector')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_vault_override: Optional[Path] = None


def _vault_callback(value: Optional[Path]):
    global _vault_override
    if value is not None:
        _vault_override = value


def _get_vault_override() -> Optional[Path]:
    return _vault_override


app = typer.Typer(
    name="todo-collector",
    help="Collect unchecked markdown tasks into one document, with two-way sync.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    vault: Annotated[Optional[Path], typer.Option(
        "--vault", "-C",
        envvar="TODO_COLLECTOR_VAULT",
        help="Vault directory (default: current directory)",
        callback=_vault_callback,
        is_eager=True,
    )] = None,
):
    """Collect unchecked markdown tasks into one document, with two-way sync."""


# -----------------------------------------------------------------------------
# Common Options
# -----------------------------------------------------------------------------

VaultOption = Annotated[
    Optional[Path],
    typer.Option(
        "--vault", "-C",
        envvar="TODO_COLLECTOR_VAULT",
        help="Vault directory (default: current directory)"
    )
]


def _get_collector(vault: Optional[Path]) -> TodoCollector:
    """Open the vault, handling errors gracefully."""
    import atexit

    actual_vault = vault if vault is not None else _get_vault_override()
    if actual_vault is None:
        actual_vault = Path.cwd()
    if not Path(actual_vault).expanduser().is_dir():
        typer.echo(f"Error: not a directory: {actual_vault}", err=True)
        raise typer.Exit(1)

    try:
        tc = TodoCollector(actual_vault)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    atexit.register(tc.close)
    return tc


def _check_group(group: str) -> str:
    try:
        return validate_group(group)
    except ValueError as e:
        raise typer.BadParameter(str(e))


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def refresh(vault: VaultOption = None):
    """Collect tasks from all documents and rewrite the todo document."""
    tc = _get_collector(vault)
    if not tc.collect_and_write():
        typer.echo("Error: refresh failed (see the ops log for details)", err=True)
        raise typer.Exit(1)
    typer.echo(f"Updated {tc.output_path}", err=True)


@app.command()
def sync(vault: VaultOption = None):
    """
    Apply edits made in the todo document to the source documents.

    Tasks checked in the todo document are checked in their source;
    tasks unchecked there are unchecked in their source. Lines moved
    under another section header change the task's group.
    """
    tc = _get_collector(vault)
    result = tc.process_checked_items()
    if result is None:
        if not tc.store.exists(tc.output_path):
            typer.echo(f"Nothing to sync: {tc.output_path} does not exist", err=True)
            return
        typer.echo("Error: sync failed (see the ops log for details)", err=True)
        raise typer.Exit(1)
    for item in result.checked:
        typer.echo(f"[x] {item}")
    for item in result.unchecked:
        typer.echo(f"[ ] {item}")
    if result.groups_changed:
        typer.echo("Groups updated", err=True)


@app.command()
def move(
    group: Annotated[str, typer.Argument(
        help="Target group: today, tomorrow, week or backlog",
        callback=_check_group,
    )],
    line: Annotated[Optional[int], typer.Option(
        "--line", "-l",
        help="Line number (1-based) of the task in the todo document",
    )] = None,
    item: Annotated[Optional[str], typer.Option(
        "--item", "-i",
        help='Task as shown in the todo document: "Task text [[Source]]"',
    )] = None,
    vault: VaultOption = None,
):
    """
    Move a task to a time group.

    Requires time groups to be enabled (config enable_time_groups true).
    """
    if (line is None) == (item is None):
        typer.echo("Error: give exactly one of --line or --item", err=True)
        raise typer.Exit(1)

    tc = _get_collector(vault)
    if not tc.settings.enable_time_groups:
        typer.echo("Error: time groups are disabled (todo-collector config enable_time_groups true)", err=True)
        raise typer.Exit(1)

    if line is not None:
        moved = tc.move_task_at(line, group)
    else:
        moved = tc.move_task_line(f"- [ ] {item}", group)
    if not moved:
        typer.echo("Error: no task on that line", err=True)
        raise typer.Exit(1)
    typer.echo(f"Moved to {group}", err=True)


@app.command()
def reorder(
    dragged: Annotated[str, typer.Argument(help='Task to move: "Task text [[Source]]"')],
    target: Annotated[str, typer.Argument(help='Task to place it next to')],
    after: Annotated[bool, typer.Option(
        "--after",
        help="Insert after the target instead of before it",
    )] = False,
    vault: VaultOption = None,
):
    """Place one task directly before (or after) another, adopting its group."""
    tc = _get_collector(vault)
    tc.reorder_item(dragged, target, insert_before=not after)


@app.command()
def drop(
    from_line: Annotated[int, typer.Argument(help="Line number of the task being dragged")],
    to_line: Annotated[int, typer.Argument(help="Line number it is dropped on")],
    vault: VaultOption = None,
):
    """
    Drag a task line of the todo document onto another line.

    Dropping onto a section header moves the task into that section.
    """
    tc = _get_collector(vault)
    result = tc.apply_drop(from_line, to_line)
    if result is None:
        typer.echo("Nothing moved", err=True)


@app.command("open")
def open_cmd(
    print_only: Annotated[bool, typer.Option(
        "--print", "-p",
        help="Print the path instead of opening it",
    )] = False,
    vault: VaultOption = None,
):
    """Open the todo document in the default application."""
    tc = _get_collector(vault)
    path = tc.aggregate_file()
    if not path.exists():
        tc.collect_and_write()
    if print_only:
        typer.echo(str(path))
        return
    typer.launch(str(path))


@app.command()
def watch(
    interval: Annotated[float, typer.Option(
        "--interval",
        help="Seconds between checks for changed documents",
    )] = POLL_INTERVAL,
    vault: VaultOption = None,
):
    """
    Keep the todo document up to date until interrupted.

    Edits to the todo document are synced back to the sources; edits to any
    other document re-collect tasks.
    """
    tc = _get_collector(vault)
    typer.echo(f"Watching {tc.vault} (Ctrl-C to stop)", err=True)
    try:
        asyncio.run(run_watch(tc, interval=interval))
    except KeyboardInterrupt:
        typer.echo("Stopped.", err=True)


@app.command()
def config(
    key: Annotated[Optional[str], typer.Argument(
        help="Setting to show or change (e.g., decay_days)",
    )] = None,
    value: Annotated[Optional[str], typer.Argument(
        help="New value; lists are comma-separated",
    )] = None,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
    )] = False,
    vault: VaultOption = None,
):
    """
    Show or change settings.

    \b
    Examples:
        todo-collector config                          # Show all settings
        todo-collector config decay_days               # Show one setting
        todo-collector config decay_days 7             # Change a setting
        todo-collector config exclude_folders "templates, archive"
    """
    tc = _get_collector(vault)
    settings = tc.settings.to_record()

    if key is None:
        if output_json:
            typer.echo(json.dumps(settings, indent=2))
        else:
            typer.echo(f"file: {tc.state_dir / 'todo-collector.toml'}")
            for name, current in settings.items():
                typer.echo(f"{name}: {_format_value(current)}")
        return

    if key not in settings:
        typer.echo(
            f"Error: unknown setting {key!r} (expected one of: {', '.join(settings)})",
            err=True,
        )
        raise typer.Exit(1)

    if value is None:
        if output_json:
            typer.echo(json.dumps({key: settings[key]}))
        else:
            typer.echo(_format_value(settings[key]))
        return

    try:
        refreshed = tc.update_setting(key, value)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"{key}: {_format_value(getattr(tc.settings, key))}")
    if refreshed:
        typer.echo(f"Updated {tc.output_path}", err=True)


def _format_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ", ".join(value)
    return str(value)


# -----------------------------------------------------------------------------

def main():
    configure_console_logging()
    if os.environ.get("TODO_COLLECTOR_VERBOSE") == "1":
        enable_debug_mode()
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="todo-collector CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
