"""
Deterministic field encryption.

Promotion abuse checks compare stored ciphertexts for equality, so the same
plaintext must always encrypt to the same value. AES-256-CBC is used with a
fixed all-zero IV and PKCS7 padding; this leaks plaintext equality, which is
exactly the property the usage lookups rely on.
"""

import base64
import logging
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from budget_hotel.config.settings import MIN_ENCRYPTION_KEY_LENGTH
from budget_hotel.core.exceptions import InvalidConfigurationError

logger = logging.getLogger(__name__)

_ZERO_IV = bytes(16)


class EncryptionService:
    """Deterministic string encryption keyed from configuration"""

    def __init__(self, encryption_key: Optional[str]):
        if not encryption_key or len(encryption_key) < MIN_ENCRYPTION_KEY_LENGTH:
            raise InvalidConfigurationError(
                f"Encryption key must be at least {MIN_ENCRYPTION_KEY_LENGTH} characters long",
                config_key="ENCRYPTION_KEY",
            )
        self._key = encryption_key.encode("utf-8")[:32]

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(_ZERO_IV))

    def encrypt(self, plaintext: Optional[str]) -> Optional[str]:
        """Encrypt string and return base64 encoded result. Empty input is returned unchanged."""
        if not plaintext:
            return plaintext
        try:
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
            encryptor = self._cipher().encryptor()
            encrypted = encryptor.update(padded) + encryptor.finalize()
            return base64.b64encode(encrypted).decode("ascii")
        except Exception as e:
            logger.error(f"String encryption failed: {str(e)}")
            raise ValueError("Encryption failed") from e

    def decrypt(self, ciphertext: Optional[str]) -> Optional[str]:
        """Decrypt base64 encoded encrypted string. Empty input is returned unchanged."""
        if not ciphertext:
            return ciphertext
        try:
            encrypted = base64.b64decode(ciphertext.encode("ascii"), validate=True)
            decryptor = self._cipher().decryptor()
            padded = decryptor.update(encrypted) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            plain = unpadder.update(padded) + unpadder.finalize()
            return plain.decode("utf-8")
        except Exception as e:
            logger.error(f"String decryption failed: {str(e)}")
            raise ValueError("Decryption failed") from e


__all__ = ["EncryptionService"]
