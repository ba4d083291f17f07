"""Vault store: owns the vault file and its .tmp / .bak siblings.

Save: serialize -> encrypt -> write <path>.tmp -> copy old vault to
<path>.bak -> os.replace(<path>.tmp, <path>). The vault path always holds
a complete blob, old or new.
"""
from __future__ import annotations
import json, os, shutil, time, logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
from config.settings import DEFAULT_VAULT_PATH, TMP_SUFFIX, BAK_SUFFIX, BACKUP_RETENTION_DAYS
from .crypto import VaultCrypto, AuthenticationError, MalformedInputError, InvalidArgumentError
from .utils import Record

log = logging.getLogger(__name__)

class StorageError(Exception):
	pass

class CorruptDataError(StorageError):
	"""Payload decrypted but is not a JSON list of record objects."""

class PersistenceError(StorageError):
	"""I/O failure while reading, writing or promoting the vault file."""

def serialize_records(records: Iterable[Union[Record, Mapping[str, Any]]]) -> bytes:
	items = [r.to_dict() if isinstance(r, Record) else Record.from_dict(r).to_dict() for r in records]
	seen = set()
	for item in items:
		if item['id'] in seen:
			raise InvalidArgumentError(f'Duplicate record id: {item["id"]}')
		seen.add(item['id'])
	return json.dumps(items, ensure_ascii=False).encode('utf-8')

def deserialize_records(text: str) -> List[Record]:
	try:
		data = json.loads(text)
	except json.JSONDecodeError as e:
		raise CorruptDataError(f'Invalid vault payload: {e.msg}') from e
	if not isinstance(data, list):
		raise CorruptDataError('Vault payload is not a list')
	if not all(isinstance(item, dict) for item in data):
		raise CorruptDataError('Vault payload contains a non-object record')
	return [Record.from_dict(item) for item in data]

def _restrict(path: Path) -> None:
	os.chmod(path, 0o600)

class VaultStorage:
	def __init__(self, path: Path | str | None = None, crypto: VaultCrypto | None = None, backup_retention_days: float | None = None):
		# Resolve path dynamically to honor environment overrides in tests
		if path is not None:
			self.path = Path(path)
		else:
			env_path = os.environ.get('VAULT_PATH')
			self.path = Path(env_path) if env_path else DEFAULT_VAULT_PATH
		self.crypto = crypto or VaultCrypto()
		self.backup_retention_days = BACKUP_RETENTION_DAYS if backup_retention_days is None else backup_retention_days

	@property
	def tmp_path(self) -> Path:
		return self.path.with_name(self.path.name + TMP_SUFFIX)

	@property
	def bak_path(self) -> Path:
		return self.path.with_name(self.path.name + BAK_SUFFIX)

	def data_file_exists(self) -> bool:
		return self.path.is_file()

	def info(self) -> Dict[str, Any]:
		if not self.data_file_exists():
			return {'exists': False, 'path': str(self.path)}
		stat = self.path.stat()
		return {
			'exists': True,
			'path': str(self.path),
			'size': stat.st_size,
			'modified': datetime.fromtimestamp(stat.st_mtime).isoformat(),
			'backup': self.bak_path.exists(),
		}

	def save(self, records: Iterable[Union[Record, Mapping[str, Any]]], password: str) -> bool:
		"""Encrypt and atomically persist the full record list."""
		if records is None:
			raise InvalidArgumentError('Records must not be None')
		if not password:
			raise InvalidArgumentError('Password empty')
		blob = self.crypto.encrypt(serialize_records(records), password)
		try:
			self.path.parent.mkdir(parents=True, exist_ok=True)
			with open(self.tmp_path, 'wb') as f:
				f.write(blob)
				f.flush()
				os.fsync(f.fileno())
			_restrict(self.tmp_path)
			self._promote(self.tmp_path)
		except OSError as e:
			log.error('Failed to save vault %s', self.path, exc_info=True)
			self._discard(self.tmp_path)
			raise PersistenceError(f'Failed to save vault: {e}') from e
		log.info('Vault saved -> %s', self.path)
		self.prune_backup()
		return True

	def load(self, password: str) -> Optional[List[Record]]:
		"""Return the records, [] for a missing or empty file, None on wrong password."""
		if not password:
			raise InvalidArgumentError('Password empty')
		if not self.path.exists():
			return []
		try:
			raw = self.path.read_bytes()
		except OSError as e:
			raise PersistenceError(f'Failed to read vault: {e}') from e
		if not raw:
			return []
		return self._open(raw, password)

	def create_backup(self, dest: Path | str | None = None) -> Path:
		if not self.data_file_exists():
			raise PersistenceError('No vault to backup')
		if dest is None:
			stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
			dest = self.path.with_name(f'{self.path.stem}_{stamp}{self.path.suffix}')
		dest = Path(dest)
		try:
			dest.parent.mkdir(parents=True, exist_ok=True)
			shutil.copy2(self.path, dest)
		except OSError as e:
			raise PersistenceError(f'Failed to backup vault: {e}') from e
		log.info('Vault backed up to: %s', dest)
		return dest

	def restore_from_backup(self, src: Path | str, password: str) -> bool:
		"""Replace the vault with `src` if it opens under `password`.

		Returns False and leaves the live vault untouched when it does not.
		"""
		if not password:
			raise InvalidArgumentError('Password empty')
		src = Path(src)
		if not src.is_file():
			raise PersistenceError('Backup file does not exist')
		try:
			raw = src.read_bytes()
		except OSError as e:
			raise PersistenceError(f'Failed to read backup: {e}') from e
		try:
			records = self._open(raw, password)
		except (MalformedInputError, CorruptDataError) as e:
			log.warning('Rejected backup %s: %s', src, e)
			return False
		if records is None:
			log.warning('Rejected backup %s: wrong password or corrupt', src)
			return False
		try:
			self.path.parent.mkdir(parents=True, exist_ok=True)
			shutil.copyfile(src, self.tmp_path)
			_restrict(self.tmp_path)
			self._promote(self.tmp_path)
		except OSError as e:
			log.error('Failed to restore vault %s', self.path, exc_info=True)
			self._discard(self.tmp_path)
			raise PersistenceError(f'Failed to restore vault: {e}') from e
		log.info('Vault restored from: %s', src)
		return True

	def prune_backup(self) -> bool:
		"""Drop <path>.bak once it is older than the retention window. Best effort."""
		try:
			if not self.bak_path.exists():
				return False
			window = self.backup_retention_days * 86400
			if window > 0 and time.time() - self.bak_path.stat().st_mtime < window:
				return False
			self.bak_path.unlink()
		except OSError as e:
			log.warning('Could not prune %s: %s', self.bak_path, e)
			return False
		log.info('Pruned stale backup %s', self.bak_path)
		return True

	def _open(self, raw: bytes, password: str) -> Optional[List[Record]]:
		try:
			text = self.crypto.decrypt(raw, password).decode('utf-8')
		except (AuthenticationError, UnicodeDecodeError):
			# non-UTF-8 output means a wrong key got past the padding check
			return None
		return deserialize_records(text)

	def _promote(self, staged: Path) -> None:
		if self.path.exists():
			# keep the old mtime so .bak age is the age of that version
			shutil.copy2(self.path, self.bak_path)
			_restrict(self.bak_path)
		os.replace(staged, self.path)

	@staticmethod
	def _discard(path: Path) -> None:
		try:
			path.unlink(missing_ok=True)
		except OSError as e:
			log.warning('Could not remove %s: %s', path, e)
