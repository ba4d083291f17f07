"""Timestamped vault backup utility.

Usage (from repo root):
  python -m scripts.backup --dest backups/
"""
from __future__ import annotations
from datetime import datetime
from pathlib import Path
import click
from src.lib.storage import VaultStorage, StorageError

@click.command()
@click.option('--dest', type=click.Path(file_okay=False, path_type=Path), default=Path('backups'), help='Destination directory for backups.')
@click.option('--vault', type=click.Path(dir_okay=False, path_type=Path), default=None, help='Vault file (defaults to $VAULT_PATH).')
def main(dest: Path, vault: Path | None):
	vs = VaultStorage(vault)
	if not vs.data_file_exists():
		click.echo(f"No vault at {vs.path}; nothing to backup.")
		raise SystemExit(1)
	stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
	try:
		target = vs.create_backup(dest / f"{vs.path.stem}_{stamp}{vs.path.suffix}")
	except StorageError as e:
		click.echo(f"Error: {e}")
		raise SystemExit(1)
	click.echo(f"Backup written: {target}")

if __name__ == '__main__':  # pragma: no cover
	main()
