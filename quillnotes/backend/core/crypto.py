"""
Note Content Encryption.

Symmetric encryption of note content. Ciphertext is a Fernet token
(AES-128-CBC + HMAC-SHA256, IV and timestamp embedded), so decryption needs
nothing but the token and the key.

Keys come from a KeyProvider. The deployed provider derives a single
process-wide key from the NOTE_ENCRYPTION_KEY secret; the context argument
(the note owner) is accepted so per-user keys or rotation can be added
without touching call sites.

Usage:
    from quillnotes.backend.core.crypto import get_note_cipher

    cipher = get_note_cipher()
    token = cipher.encrypt("secret", context=owner_id)

    result = cipher.try_decrypt(token, context=owner_id)
    if result.ok:
        plaintext = result.plaintext
"""

import base64
from dataclasses import dataclass
from functools import lru_cache
from typing import Protocol

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from quillnotes.backend.core.exceptions import DecryptionError
from quillnotes.backend.core.logging import get_logger

logger = get_logger(__name__)


class KeyProvider(Protocol):
    """Source of Fernet keys for note encryption."""

    def get_key(self, context: str | None = None) -> bytes:
        """Return a urlsafe-base64 encoded 32-byte key for the given context."""
        ...


def derive_key(passphrase: str, salt: bytes, iterations: int) -> bytes:
    """Derive a Fernet key from a passphrase with PBKDF2-HMAC-SHA256."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt,
        iterations=iterations,
    )
    return base64.urlsafe_b64encode(kdf.derive(passphrase.encode("utf-8")))


class StaticKeyProvider:
    """One key for every context, derived once from a static passphrase."""

    def __init__(self, passphrase: str, salt: bytes, iterations: int) -> None:
        if not passphrase:
            raise ValueError("Encryption passphrase must not be empty")
        self._passphrase = passphrase
        self._salt = salt
        self._iterations = iterations
        self._key: bytes | None = None

    def get_key(self, context: str | None = None) -> bytes:
        if self._key is None:
            self._key = derive_key(self._passphrase, self._salt, self._iterations)
        return self._key


@dataclass(frozen=True)
class DecryptResult:
    """Outcome of a decryption attempt: plaintext or the failure."""

    plaintext: str | None = None
    error: DecryptionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the plaintext or raise the carried DecryptionError."""
        if self.error is not None:
            raise self.error
        return self.plaintext or ""

    def value_or(self, default: str) -> str:
        """Return the plaintext, or default when decryption failed."""
        return default if self.error is not None else (self.plaintext or "")


class NoteCipher:
    """Encrypts and decrypts note content with keys from a KeyProvider."""

    def __init__(self, key_provider: KeyProvider) -> None:
        self._key_provider = key_provider
        self._fernets: dict[bytes, Fernet] = {}

    def _fernet(self, context: str | None) -> Fernet:
        key = self._key_provider.get_key(context)
        fernet = self._fernets.get(key)
        if fernet is None:
            fernet = Fernet(key)
            self._fernets[key] = fernet
        return fernet

    def encrypt(self, plaintext: str, context: str | None = None) -> str:
        """Encrypt plaintext, returning the token as a str."""
        token = self._fernet(context).encrypt(plaintext.encode("utf-8"))
        return token.decode("ascii")

    def try_decrypt(self, ciphertext: str, context: str | None = None) -> DecryptResult:
        """
        Decrypt a token without raising.

        Malformed input, a wrong key or non-UTF-8 payloads all produce a
        failed result; the failure is logged here and the caller decides
        the fallback.
        """
        try:
            data = self._fernet(context).decrypt(ciphertext)
            return DecryptResult(plaintext=data.decode("utf-8"))
        except (InvalidToken, ValueError, TypeError) as e:
            logger.warning(
                "Note decryption failed",
                extra={"error_type": type(e).__name__, "length": len(ciphertext or "")},
            )
            return DecryptResult(error=DecryptionError(f"Decryption failed: {type(e).__name__}"))

    def decrypt(self, ciphertext: str, context: str | None = None) -> str:
        """Decrypt a token, returning the input unchanged if it cannot be decrypted."""
        return self.try_decrypt(ciphertext, context).value_or(ciphertext)


@lru_cache
def get_note_cipher() -> NoteCipher:
    """Get the process-wide cipher configured from security.yaml and .env."""
    from quillnotes.backend.core.config import get_app_config, get_settings

    encryption = get_app_config().security.note_encryption
    provider = StaticKeyProvider(
        passphrase=get_settings().note_encryption_key,
        salt=encryption.kdf_salt.encode("utf-8"),
        iterations=encryption.kdf_iterations,
    )
    return NoteCipher(provider)
