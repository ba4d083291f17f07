"""Cipher engine: PBKDF2 key derivation and AES-256-CBC blobs.

Blob layout: salt (16) || iv (16) || ciphertext (PKCS7 padded).
Also hosts the password generator and strength checker.
"""
from __future__ import annotations
import secrets, string
from typing import Tuple
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.backends import default_backend
from config.settings import (
	DEFAULT_ITERATIONS, SALT_LENGTH, KEY_LENGTH, IV_LENGTH, BLOCK_SIZE_BITS, MIN_BLOB_LENGTH,
	GENERATED_PASSWORD_LENGTH
)

class CryptoError(Exception):
	pass

class MalformedInputError(CryptoError):
	"""Blob too short to hold salt, iv and at least one ciphertext byte."""

class AuthenticationError(CryptoError):
	"""Wrong password or corrupted ciphertext; CBC cannot tell them apart."""

class InvalidArgumentError(CryptoError, ValueError):
	pass

class VaultCrypto:
	def __init__(self, iterations: int = DEFAULT_ITERATIONS):
		self._backend = default_backend()
		self.iterations = iterations

	def generate_salt(self) -> bytes:
		return secrets.token_bytes(SALT_LENGTH)

	def derive_key(self, password: str, salt: bytes) -> bytes:
		if not password:
			raise InvalidArgumentError("Password empty")
		if len(salt) != SALT_LENGTH:
			raise InvalidArgumentError(f"Salt must be {SALT_LENGTH} bytes")
		kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=KEY_LENGTH, salt=salt, iterations=self.iterations, backend=self._backend)
		return kdf.derive(password.encode('utf-8'))

	def encrypt(self, data: bytes, password: str) -> bytes:
		salt = self.generate_salt()
		key = self.derive_key(password, salt)
		iv = secrets.token_bytes(IV_LENGTH)
		padder = padding.PKCS7(BLOCK_SIZE_BITS).padder()
		padded = padder.update(data) + padder.finalize()
		enc = Cipher(algorithms.AES(key), modes.CBC(iv), backend=self._backend).encryptor()
		ct = enc.update(padded) + enc.finalize()
		return salt + iv + ct

	def decrypt(self, blob: bytes, password: str) -> bytes:
		if len(blob) < MIN_BLOB_LENGTH:
			raise MalformedInputError(f"Blob shorter than {MIN_BLOB_LENGTH} bytes")
		salt = blob[:SALT_LENGTH]
		iv = blob[SALT_LENGTH:SALT_LENGTH + IV_LENGTH]
		ct = blob[SALT_LENGTH + IV_LENGTH:]
		key = self.derive_key(password, salt)
		dec = Cipher(algorithms.AES(key), modes.CBC(iv), backend=self._backend).decryptor()
		unpadder = padding.PKCS7(BLOCK_SIZE_BITS).unpadder()
		try:
			padded = dec.update(ct) + dec.finalize()
			return unpadder.update(padded) + unpadder.finalize()
		except ValueError as e:
			# bad padding or ciphertext not a whole number of blocks
			raise AuthenticationError("Decryption failed") from e

def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
	"""Random password with at least one upper, lower, digit and symbol."""
	symbols = '!@#$%^&*()_+-=[]{}|;:,.<>?'
	pools = [string.ascii_uppercase, string.ascii_lowercase, string.digits, symbols]
	if length < len(pools):
		raise InvalidArgumentError(f"Length must be at least {len(pools)}")
	alphabet = ''.join(pools)
	chars = [secrets.choice(p) for p in pools]
	chars += [secrets.choice(alphabet) for _ in range(length - len(pools))]
	secrets.SystemRandom().shuffle(chars)
	return ''.join(chars)

def check_password_strength(password: str) -> Tuple[int, str]:
	score = 0; fb = []
	L = len(password)
	if L >= 12: score += 30
	elif L >= 8: score += 20; fb.append('Use 12+ chars')
	else: fb.append('Too short (min 8)')
	sets = [any(c.islower() for c in password), any(c.isupper() for c in password), any(c.isdigit() for c in password), any(not c.isalnum() for c in password)]
	score += sum(sets)*15
	if sum(sets) < 4: fb.append('Add diverse character sets')
	common = ['password','qwerty','abc','123','111']
	if any(p in password.lower() for p in common):
		score -= 15; fb.append('Avoid common patterns')
	if L and len(set(password)) < L*0.6:
		score -= 10; fb.append('Too many repeats')
	score = max(0, min(100, score))
	if score >= 80: label='Very Strong'
	elif score >= 60: label='Strong'
	elif score >= 40: label='Moderate'
	elif score >= 20: label='Weak'
	else: label='Very Weak'
	text = f"{label} ({score}/100)"
	if fb: text += ' - ' + ', '.join(fb)
	return score, text
