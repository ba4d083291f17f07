"""Project configuration settings.

Constants for key derivation, the vault file layout and its siblings.
Paths and retention can be overridden through the environment.
"""

from pathlib import Path
import os

def _env_int(name: str, default: int) -> int:
	"""Integer from the environment; unset or malformed values give `default`."""
	try:
		return int(os.environ.get(name, default))
	except ValueError:
		return default

# Security / crypto
DEFAULT_ITERATIONS = 100_000  # PBKDF2-HMAC-SHA256
SALT_LENGTH = 16
KEY_LENGTH = 32  # AES-256
IV_LENGTH = 16   # AES block size
BLOCK_SIZE_BITS = 128  # PKCS7 padding unit
MIN_BLOB_LENGTH = SALT_LENGTH + IV_LENGTH + 1

# Vault
DEFAULT_VAULT_PATH = Path(os.environ.get("VAULT_PATH", "vault_data/vault.dat"))
TMP_SUFFIX = ".tmp"
BAK_SUFFIX = ".bak"
BACKUP_RETENTION_DAYS = _env_int("VAULT_BACKUP_RETENTION_DAYS", 7)

# Passwords
MIN_MASTER_PASSWORD_LENGTH = 4
GENERATED_PASSWORD_LENGTH = 16

# Logging
LOG_LEVEL = os.environ.get("VAULT_LOG_LEVEL", "INFO")

__all__ = [
	'DEFAULT_ITERATIONS','SALT_LENGTH','KEY_LENGTH','IV_LENGTH','BLOCK_SIZE_BITS','MIN_BLOB_LENGTH',
	'DEFAULT_VAULT_PATH','TMP_SUFFIX','BAK_SUFFIX','BACKUP_RETENTION_DAYS',
	'MIN_MASTER_PASSWORD_LENGTH','GENERATED_PASSWORD_LENGTH','LOG_LEVEL'
]
