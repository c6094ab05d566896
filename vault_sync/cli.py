"""Command-line interface for vault-sync."""

import logging
from typing import List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from . import __version__
from .backend import SecretBackend, VaultBackend
from .config import DEFAULT_EXPORT_PATH, DEFAULT_FILE, DEFAULT_VAULT_ADDR, Mode, RunConfig
from .core import export_to_file, import_from_file
from .errors import ConfigError, VaultSyncError

app = typer.Typer(
    name="vault-sync",
    help="Import secrets from a YAML file into Vault, or export Vault paths into one",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool) -> None:
    """Send vault_sync log records to stderr through rich."""
    logger = logging.getLogger("vault_sync")
    logger.handlers.clear()
    logger.addHandler(
        RichHandler(console=err_console, show_time=False, show_path=False, markup=False)
    )
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def create_backend(config: RunConfig) -> SecretBackend:
    return VaultBackend.from_config(config)


def fail(message: str) -> NoReturn:
    console.print(f"[red]✗ Error:[/red] {escape(message)}", style="bold red")
    raise typer.Exit(code=1)


def version_callback(value: bool):
    if value:
        console.print(f"vault-sync {__version__}")
        raise typer.Exit(code=0)


@app.command()
def main(
    file: str = typer.Option(
        DEFAULT_FILE, "--file", "-f", help="File to import from / export to"
    ),
    import_: bool = typer.Option(False, "--import", help="Enable importing data into Vault"),
    export: bool = typer.Option(False, "--export", help="Enable exporting data from Vault"),
    export_paths: List[str] = typer.Option(
        [DEFAULT_EXPORT_PATH],
        "--export-paths",
        help="Which paths to export (repeat or comma-separate)",
    ),
    ignore_errors: bool = typer.Option(
        False, "--ignore-errors", help="Do not exit on read/write errors"
    ),
    vault_addr: str = typer.Option(
        DEFAULT_VAULT_ADDR, "--vault-addr", envvar="VAULT_ADDR", help="Vault API address"
    ),
    vault_token: Optional[str] = typer.Option(
        None,
        "--vault-token",
        envvar="VAULT_TOKEN",
        help="Vault token (default: contents of ~/.vault-token)",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Print program version and exit",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print verbose output"),
):
    """
    Synchronize secrets between a YAML key file and Vault.

    Import files are rendered as templates first, so values can be taken
    from the environment with {{ env("NAME", "default") }}.

    Examples:
        \b
        # Write everything below secret/ into vault.yaml
        vault-sync --export

        \b
        # Export two trees into a named file
        vault-sync --export --export-paths secret/app,secret/db -f backup.yaml

        \b
        # Apply a key file, continuing past failures
        vault-sync --import -f vault.yaml --ignore-errors
    """
    try:
        config = RunConfig.from_options(
            file=file,
            do_import=import_,
            do_export=export,
            export_paths=export_paths,
            ignore_errors=ignore_errors,
            vault_addr=vault_addr,
            vault_token=vault_token,
            verbose=verbose,
        )
    except ConfigError as e:
        fail(str(e))

    setup_logging(config.verbose)

    try:
        backend = create_backend(config)
        if config.mode == Mode.EXPORT:
            count = export_to_file(config, backend)
            console.print(f"[green]✓[/green] Exported {count} keys to {escape(str(config.file))}")
        else:
            count = import_from_file(config, backend)
            console.print(f"[green]✓[/green] Applied {count} keys from {escape(str(config.file))}")
    except (VaultSyncError, OSError) as e:
        fail(str(e))


if __name__ == "__main__":
    app()
