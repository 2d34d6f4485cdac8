"""
Main CLI for dojocho using Click.

Commands:
    dojo add <source> [--force]   Fetch a pack and make it active
    dojo remove <name>            Remove an installed pack
    dojo list                     List installed packs
"""

import sys
import traceback
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from . import __version__
from .acquire import DojoError, PackAcquirer
from .config import find_config_file, find_project_root, load_config
from .config.schema import AppConfig
from .logging import configure_logging
from .project import list_installed_packs, remove_pack

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_CONFIG_ERROR = 3
EXIT_INTERRUPTED = 130

ADD_HELP = """Fetch a pack and make it the active one.

\b
SOURCE can be:
  Local path:   dojo add ./path/to/pack
  npm package:  dojo add @dojocho/effect-ts
  Registry:     dojo add effect-ts
  URL:          dojo add https://example.com/pack.tgz
"""


def _first_line(error: BaseException) -> str:
    return str(error).strip().splitlines()[0] if str(error).strip() else type(error).__name__


def _load(project_root: Path, cli_args: dict[str, Any]) -> AppConfig:
    """Load config and set up logging, exiting with EXIT_CONFIG_ERROR on failure."""
    try:
        config = load_config(config_path=find_config_file(project_root), cli_args=cli_args)
    except (FileNotFoundError, ValidationError, ValueError) as e:
        click.echo(f"Configuration error: {_first_line(e)}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    configure_logging(config.logging, quiet=cli_args.get("quiet", False))
    return config


@click.group()
@click.version_option(version=__version__, prog_name="dojo")
def main() -> None:
    """dojo - practice katas with training packs wired into your coding agents."""
    pass


@main.command(help=ADD_HELP)
@click.argument("source")
@click.option("--force", is_flag=True, help="Replace an existing pack with the same name")
@click.option("-v", "--verbose", count=True, help="More technical output (-v, -vv)")
@click.option("--quiet", is_flag=True, help="Only print errors")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Also write JSON logs to this file",
)
@click.option("--timeout", type=float, help="HTTP timeout in seconds")
def add(source: str, force: bool, **kwargs: Any) -> None:
    # The project is wherever .dojorc lives; a fresh project starts in the CWD
    project_root = find_project_root()
    config = _load(project_root, kwargs)

    try:
        result = PackAcquirer(project_root, config).add(source, force=force)
    except KeyboardInterrupt:
        click.echo("\nInterrupted.", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except DojoError as e:
        click.echo(f"Error: {_first_line(e)}", err=True)
        sys.exit(EXIT_FAILED)
    except (OSError, ValueError) as e:
        click.echo(f"Unexpected error: {_first_line(e)}", err=True)
        if kwargs.get("verbose", 0) > 1:
            traceback.print_exc()
        sys.exit(EXIT_FAILED)

    if not kwargs.get("quiet"):
        location = result.location.relative_to(project_root.absolute()).as_posix()
        click.echo(f"\n  Location:  {location}")
        click.echo(f"  Active:    {result.name}")
        if result.wiring.agents_wired:
            click.echo(f"  Agents:    {', '.join(sorted(result.wiring.agents_wired))}")
        if result.wiring.agents_failed:
            click.echo(f"  Skipped:   {', '.join(sorted(result.wiring.agents_failed))}", err=True)


@main.command()
@click.argument("name")
def remove(name: str) -> None:
    """Remove an installed pack and its agent links."""
    project_root = find_project_root()
    config = _load(project_root, {"quiet": True})
    try:
        result = remove_pack(project_root, config, name)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILED)
    click.echo(f'Pack "{result.name}" removed.')


@main.command("list")
def list_packs() -> None:
    """List installed packs."""
    project_root = find_project_root()
    config = _load(project_root, {"quiet": True})
    packs = list_installed_packs(project_root, config)
    if not packs:
        click.echo("  No packs installed.")
        return
    for pack in packs:
        marker = "*" if pack.active else " "
        click.echo(f"  {marker} {pack.name}")
