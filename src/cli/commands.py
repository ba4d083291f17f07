"""CLI commands implemented with click.

Every command unlocks the vault with the master password, works on the
in-memory record list and, when it changed anything, saves the full list.
"""
from __future__ import annotations
import json, logging, click
from config.settings import LOG_LEVEL, MIN_MASTER_PASSWORD_LENGTH, GENERATED_PASSWORD_LENGTH
from src.lib.crypto import CryptoError, check_password_strength, generate_password
from src.lib.storage import VaultStorage, StorageError
from src.lib.utils import RecordManager, RecordError, EDITABLE_FIELDS

WRONG_PASSWORD = 'Invalid master password or corrupt vault'

def _unlock(vs: VaultStorage, password: str) -> RecordManager | None:
	if not vs.data_file_exists():
		click.echo('Error: No vault (run init)')
		return None
	records = vs.load(password)
	if records is None:
		click.echo(f'Error: {WRONG_PASSWORD}')
		return None
	return RecordManager(records)

@click.group()
@click.option('--verbose', '-v', is_flag=True, help='Log vault operations to stderr.')
def cli(verbose):
	"""Encrypted credential vault"""
	if verbose:
		logging.basicConfig(level=LOG_LEVEL, format='%(levelname)s %(name)s: %(message)s')

@cli.command()
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--force', is_flag=True, help='Recreate if vault already exists.')
def init(password, force):
	"""Initialise a new, empty encrypted vault."""
	vs = VaultStorage()
	if vs.data_file_exists() and not force:
		click.echo('Error: Vault exists (use --force to recreate)')
		return
	if len(password) < MIN_MASTER_PASSWORD_LENGTH:
		click.echo(f'Error: Master password must be at least {MIN_MASTER_PASSWORD_LENGTH} characters')
		return
	_score, fb = check_password_strength(password)
	try:
		vs.save([], password)
		click.echo(f'Vault created. Master password: {fb}')
	except (CryptoError, StorageError) as e:
		click.echo(f'Error: {e}')

@cli.command()
@click.option('--password', prompt=True, hide_input=True)
@click.option('--site', prompt=True)
@click.option('--url', default='')
@click.option('--username', default='')
@click.option('--email', default='')
@click.option('--secret', default=None, help='Password to store (prompted if omitted).')
@click.option('--generate', is_flag=True, help='Generate the stored password.')
@click.option('--notes', default='')
def add(password, site, url, username, email, secret, generate, notes):
	"""Add a credential record."""
	vs = VaultStorage()
	try:
		rm = _unlock(vs, password)
		if rm is None:
			return
		if generate:
			secret = generate_password()
		elif secret is None:
			secret = click.prompt('Secret', hide_input=True, default='', show_default=False)
		rec = rm.add(site=site, url=url, username=username, email=email, secret=secret, notes=notes)
		vs.save(rm.records, password)
		click.echo(f'Added {rec.id}.')
	except (CryptoError, StorageError, RecordError) as e:
		click.echo(f'Error: {e}')

@cli.command('list')
@click.option('--password', prompt=True, hide_input=True)
@click.option('--search', default=None, help='Filter on site, username, email or url.')
def list_records(password, search):
	"""List records, optionally filtered."""
	vs = VaultStorage()
	try:
		rm = _unlock(vs, password)
		if rm is None:
			return
		for r in rm.search(search):
			who = r.username or r.email or '-'
			click.echo(f'{r.id}: {r.site} [{who}]')
	except (CryptoError, StorageError) as e:
		click.echo(f'Error: {e}')

@cli.command('show')
@click.argument('record_id')
@click.option('--password', prompt=True, hide_input=True)
def show_record(record_id, password):
	"""Show a record, secret included."""
	vs = VaultStorage()
	try:
		rm = _unlock(vs, password)
		if rm is None:
			return
		rec = rm.get(record_id)
		if rec is None:
			click.echo('Not found')
			return
		click.echo(f"ID: {rec.id}\nSite: {rec.site}\nURL: {rec.url}\nUsername: {rec.username}\nEmail: {rec.email}\nSecret: {rec.secret}\n---\n{rec.notes}")
	except (CryptoError, StorageError) as e:
		click.echo(f'Error: {e}')

@cli.command('edit')
@click.argument('record_id')
@click.option('--password', prompt=True, hide_input=True)
@click.option('--site', default=None)
@click.option('--url', default=None)
@click.option('--username', default=None)
@click.option('--email', default=None)
@click.option('--secret', default=None)
@click.option('--generate', is_flag=True, help='Replace the secret with a generated one.')
@click.option('--notes', default=None)
def edit_record(record_id, password, generate, **values):
	"""Update the given fields of a record."""
	vs = VaultStorage()
	try:
		rm = _unlock(vs, password)
		if rm is None:
			return
		if generate:
			values['secret'] = generate_password()
		rm.update(record_id, **{k: values[k] for k in EDITABLE_FIELDS})
		vs.save(rm.records, password)
		click.echo(f'Updated {record_id}.')
	except (CryptoError, StorageError, RecordError) as e:
		click.echo(f'Error: {e}')

@cli.command('delete')
@click.argument('record_id')
@click.option('--password', prompt=True, hide_input=True)
def delete_record(record_id, password):
	"""Delete a record."""
	vs = VaultStorage()
	try:
		rm = _unlock(vs, password)
		if rm is None:
			return
		rec = rm.delete(record_id)
		vs.save(rm.records, password)
		click.echo(f"Deleted '{rec.site}'.")
	except (CryptoError, StorageError, RecordError) as e:
		click.echo(f'Error: {e}')

@cli.command('generate')
@click.option('--length', default=GENERATED_PASSWORD_LENGTH, show_default=True, type=int)
def generate_cmd(length):
	"""Print a generated password."""
	try:
		click.echo(generate_password(length))
	except CryptoError as e:
		click.echo(f'Error: {e}')

@cli.command('pw-strength')
@click.argument('password')
def pw_strength_cmd(password):
	"""Score a candidate password."""
	score, fb = check_password_strength(password)
	click.echo(f"Score: {score} -> {fb}")

@cli.command()
@click.argument('dest', required=False, type=click.Path(dir_okay=False))
def backup(dest):
	"""Copy the vault file to DEST (timestamped beside the vault by default)."""
	try:
		click.echo(f'Backup written: {VaultStorage().create_backup(dest)}')
	except StorageError as e:
		click.echo(f'Error: {e}')

@cli.command()
@click.argument('src', type=click.Path(dir_okay=False))
@click.option('--password', prompt=True, hide_input=True)
def restore(src, password):
	"""Replace the vault with SRC after checking it opens with the password."""
	try:
		if VaultStorage().restore_from_backup(src, password):
			click.echo('Vault restored.')
		else:
			click.echo(f'Error: {WRONG_PASSWORD}; vault left unchanged')
	except (CryptoError, StorageError) as e:
		click.echo(f'Error: {e}')

@cli.command()
def info():
	"""Show vault file information (no password needed)."""
	click.echo(json.dumps(VaultStorage().info(), indent=2))
