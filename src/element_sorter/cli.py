"""
Main CLI entry point for Element Sorter
"""

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from element_sorter import __version__
from element_sorter.commands.sort import SortCommand
from element_sorter.core.backup_manager import BackupManager
from element_sorter.core.base_processor import ProcessingStatus
from element_sorter.core.config import Config
from element_sorter.core.reporting import ConsoleReporter
from element_sorter.core.selection import SelectionRange

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".element-sorter.yaml"


def _parse_selection(ctx, param, value: str | None) -> SelectionRange | None:
    if value is None:
        return None
    try:
        return SelectionRange.parse(value)
    except ValueError as e:
        raise click.BadParameter(str(e)) from e


def _parse_lines(ctx, param, value: str | None) -> tuple[int, int] | None:
    if value is None:
        return None
    first, separator, last = value.partition(":")
    try:
        lines = (int(first), int(last or first))
    except ValueError as e:
        raise click.BadParameter(f"Expected FIRST:LAST, got {value!r}") from e
    if lines[0] < 1 or lines[1] < lines[0]:
        raise click.BadParameter(f"Invalid line range: {value}")
    return lines


@click.group()
@click.version_option(
    version=__version__,
    prog_name="element-sorter",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Configuration file path",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress output",
)
@click.pass_context
def cli(
    ctx,
    config: str | None,
    verbose: bool,
    quiet: bool,
):
    """Reorder the fields and methods of Java classes

    Members are grouped (static fields, plain fields, annotated fields,
    methods, nested types) and sorted by static, visibility and name,
    keeping their leading comments attached.
    """
    ctx.ensure_object(dict)

    if config:
        ctx.obj["config"] = Config.from_file(Path(config))
        ctx.obj["config"].apply_env_vars()
    else:
        ctx.obj["config"] = Config.load_hierarchy(Path.cwd())

    if verbose:
        ctx.obj["config"].verbose = True
        logging.getLogger().setLevel(logging.DEBUG)

    if quiet:
        ctx.obj["config"].quiet = True
        logging.getLogger().setLevel(logging.WARNING)


@cli.command()
@click.argument(
    "path",
    type=click.Path(exists=True),
)
@click.option(
    "--selection",
    "-s",
    callback=_parse_selection,
    help="Only sort members fully inside START:END (character offsets)",
)
@click.option(
    "--lines",
    "-l",
    callback=_parse_lines,
    help="Only sort members fully inside FIRST:LAST (1-based lines)",
)
@click.option(
    "--recursive",
    "-r",
    is_flag=True,
    help="Process directories recursively",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Preview changes without applying",
)
@click.option(
    "--no-backup",
    is_flag=True,
    help="Skip creating backup files",
)
@click.option(
    "--check",
    is_flag=True,
    help="Exit with status 1 if any file would change, without writing",
)
@click.pass_context
def sort(
    ctx,
    path: str,
    selection: SelectionRange | None,
    lines: tuple[int, int] | None,
    recursive: bool,
    dry_run: bool,
    no_backup: bool,
    check: bool,
):
    """Sort class members in a Java file or directory

    Examples:
        element-sorter sort src/main/java/Foo.java
        element-sorter sort src/main/java -r --dry-run
        element-sorter sort Foo.java --lines 12:30
    """
    config = ctx.obj["config"]
    if selection is not None and lines is not None:
        raise click.UsageError("Use either --selection or --lines, not both")

    errors = config.validate()
    if errors:
        for error in errors:
            click.echo(f"Configuration error: {error}", err=True)
        sys.exit(2)

    config.dry_run = config.dry_run or dry_run or check
    if no_backup:
        config.backup.enabled = False

    reporter = ConsoleReporter(quiet=config.quiet)
    command = SortCommand(config, reporter)
    result = command.execute(
        Path(path), recursive=recursive, selection=selection, lines=lines
    )

    if Path(path).is_dir() and result.message:
        reporter.info(result.message)

    if result.status == ProcessingStatus.ERROR:
        sys.exit(1)
    if check and command.changed_files:
        click.echo(f"{len(command.changed_files)} files would be sorted", err=True)
        sys.exit(1)
    sys.exit(0)


@cli.command()
@click.pass_context
def init(ctx):
    """Initialize configuration in current directory

    Creates a default .element-sorter.yaml configuration file in the
    current directory.
    """
    config_path = Path.cwd() / CONFIG_FILE_NAME

    if config_path.exists():
        click.confirm(f"{config_path} already exists. Overwrite?", abort=True)

    Config().save(config_path)

    click.echo(f"Created configuration file: {config_path}")
    click.echo("Edit this file to customize your settings.")


@cli.command()
@click.option(
    "--sessions",
    is_flag=True,
    help="List backup sessions",
)
@click.option(
    "--restore",
    help="Restore from backup session ID",
)
@click.option(
    "--clean",
    is_flag=True,
    help="Clean old backup sessions",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Do not ask for confirmation",
)
@click.pass_context
def backup(
    ctx,
    sessions: bool,
    restore: str | None,
    clean: bool,
    yes: bool,
):
    """Manage backup sessions

    View, restore, or clean backup sessions created by the sort command.
    """
    config = ctx.obj["config"]
    manager = BackupManager.from_config(config.backup)

    if sessions:
        all_sessions = manager.list_sessions()
        if not all_sessions:
            click.echo("No backup sessions found.")
            return

        table = Table(title=f"{len(all_sessions)} backup sessions")
        table.add_column("Session", style="cyan")
        table.add_column("Files", justify="right")
        table.add_column("Compressed")
        for session in all_sessions:
            files = session.get("files_backed_up")
            table.add_row(
                session["session_id"],
                str(len(files)) if files is not None else "?",
                "yes" if session.get("compressed") else "no",
            )
        Console().print(table)

    elif restore:
        if not yes:
            click.confirm(f"Restore all files from session {restore}?", abort=True)
        if manager.restore_session(restore):
            click.echo(f"Successfully restored session: {restore}")
        else:
            click.echo(f"Failed to restore session: {restore}", err=True)
            sys.exit(1)

    elif clean:
        if not yes:
            click.confirm(
                f"Remove backup sessions older than {config.backup.keep_sessions} most recent?",
                abort=True,
            )
        removed = manager.cleanup_old_sessions()
        click.echo(f"Removed {removed} old backup sessions.")

    else:
        click.echo("Use --sessions, --restore, or --clean")


def main():
    """Main entry point"""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user.", err=True)
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if "--verbose" in sys.argv or "-v" in sys.argv:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
