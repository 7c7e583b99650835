"""
Field encryption using AES-256-GCM.

Token format is base64(nonce || ciphertext || tag) with a 12-byte nonce,
so each stored field is a single text column.

The key is the secret string padded with "0" (or truncated) to 32 bytes.
There is no salt and no KDF iteration: tokens written by earlier
deployments must keep decrypting with the same ENCRYPT_KEY.
"""

import base64
import binascii
import os
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..errors import ConfigError, DecryptionError

KEY_LENGTH_BYTES = 32  # 256 bits

# AES-GCM configuration
NONCE_LENGTH_BYTES = 12  # 96 bits, recommended for AES-GCM
TAG_LENGTH_BYTES = 16


def derive_key(secret: str) -> bytes:
    """
    Turn the configured secret into a 256-bit AES key.

    Args:
        secret: The ENCRYPT_KEY string

    Returns:
        32-byte key suitable for AES-256-GCM
    """
    return secret.encode("utf-8").ljust(KEY_LENGTH_BYTES, b"0")[:KEY_LENGTH_BYTES]


def encrypt(plaintext: str, secret: str) -> str:
    """
    Encrypt plaintext using AES-256-GCM with a fresh random nonce.

    Args:
        plaintext: String to encrypt
        secret: The configured secret string

    Returns:
        Base64 token holding nonce, ciphertext and tag
    """
    nonce = os.urandom(NONCE_LENGTH_BYTES)
    ciphertext = AESGCM(derive_key(secret)).encrypt(nonce, plaintext.encode("utf-8"), None)
    return base64.b64encode(nonce + ciphertext).decode("ascii")


def decrypt(token: str, secret: str) -> str:
    """
    Decrypt a token produced by encrypt().

    Args:
        token: Base64 token
        secret: The configured secret string

    Returns:
        Decrypted plaintext string

    Raises:
        DecryptionError: malformed token, wrong secret or tampered data
    """
    try:
        combined = base64.b64decode(token, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecryptionError("Token is not valid base64") from e

    if len(combined) < NONCE_LENGTH_BYTES + TAG_LENGTH_BYTES:
        raise DecryptionError("Token is too short")

    nonce, ciphertext = combined[:NONCE_LENGTH_BYTES], combined[NONCE_LENGTH_BYTES:]
    try:
        plaintext = AESGCM(derive_key(secret)).decrypt(nonce, ciphertext, None)
    except InvalidTag as e:
        raise DecryptionError("Authentication failed (wrong key or tampered data)") from e

    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecryptionError("Decrypted data is not UTF-8") from e


class SecretCipher:
    """Binds the configured secret so callers don't pass it around."""

    def __init__(self, secret: str):
        if not secret:
            raise ConfigError("Encryption secret must not be empty")
        self._secret = secret

    def encrypt(self, plaintext: str) -> str:
        return encrypt(plaintext, self._secret)

    def decrypt(self, token: str) -> str:
        return decrypt(token, self._secret)

    def encrypt_optional(self, plaintext: Optional[str]) -> Optional[str]:
        """Encrypt, passing empty/None through as None."""
        return self.encrypt(plaintext) if plaintext else None

    def decrypt_optional(self, token: Optional[str]) -> Optional[str]:
        return self.decrypt(token) if token else None
