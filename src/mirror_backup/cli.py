"""Command-line interface for the mirror backup application."""

import sys
from pathlib import Path
from typing import Optional

import click
from rich import print as rprint
from rich.console import Console

from . import __version__
from .config.settings import BackupConfig, CredentialsConfig
from .models import BackupResult
from .sync.backup_manager import BackupManager
from .utils.file_utils import FileHelper
from .utils.logging import setup_logging
from .utils.progress import UploadProgress

console = Console()
error_console = Console(stderr=True)

DEFAULT_CONFIG = Path('config/config.yaml')
DEFAULT_CREDENTIALS = Path('config/credentials.yaml')


def load_settings(config: Optional[Path], credentials: Optional[Path]):
    """Load settings and credentials, falling back to defaults and the environment."""
    if config is not None:
        backup_config = BackupConfig.from_yaml(config)
    elif DEFAULT_CONFIG.exists():
        backup_config = BackupConfig.from_yaml(DEFAULT_CONFIG)
    else:
        backup_config = BackupConfig()

    credentials_path = credentials or DEFAULT_CREDENTIALS
    if credentials_path.exists():
        creds_config = CredentialsConfig.from_yaml(credentials_path)
    else:
        creds_config = CredentialsConfig.from_env()

    return backup_config, creds_config


@click.command()
@click.version_option(version=__version__)
@click.argument('local_root',
                type=click.Path(path_type=Path),
                default=Path('.'),
                required=False)
@click.option('--config', '-c',
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Path to configuration file (default: config/config.yaml if present)')
@click.option('--credentials',
              type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Path to credentials file (default: config/credentials.yaml, then environment)')
@click.option('--log-level',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Override the configured log level')
def cli(local_root: Path, config: Optional[Path], credentials: Optional[Path], log_level: Optional[str]):
    """Mirror LOCAL_ROOT (default: current directory) into the cloud backup folder.

    Folders are recreated remotely under the backup root folder and every file
    whose name is not already present remotely is uploaded.
    """
    try:
        backup_config, creds_config = load_settings(config, credentials)
        setup_logging(
            log_level=log_level or backup_config.log_level,
            log_file=backup_config.log_file,
        )

        backup_manager = BackupManager(backup_config, progress=UploadProgress(console))
        backup_manager.initialize_client(creds_config)
    except Exception as e:
        error_console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)

    exit_code = backup_manager.run(local_root)
    if exit_code != 0:
        error_console.print(f"❌ Backup of {local_root} failed", style="red bold")
        sys.exit(exit_code)

    _display_backup_result(backup_manager.result)


def _display_backup_result(result: BackupResult):
    """Print the counters of a finished run."""
    rprint(f"\n📊 [bold]Backup of {result.local_root} complete:[/bold]")
    rprint(f"   • Files found: {result.files_found}")
    rprint(f"   • Files uploaded: [green]{result.files_uploaded}[/green]")
    rprint(f"   • Files skipped: [yellow]{result.files_skipped}[/yellow]")
    rprint(f"   • Folders created: {result.folders_created}")
    rprint(f"   • Data transferred: {FileHelper.format_file_size(result.bytes_transferred)}")
    rprint(f"   • Duration: {result.duration:.1f}s")


if __name__ == '__main__':
    cli()
