# Tests for field encryption: key derivation, token layout, failure modes

import base64

import pytest

from vaultbot.errors import ConfigError, DecryptionError
from vaultbot.vault.crypto import (
    KEY_LENGTH_BYTES,
    NONCE_LENGTH_BYTES,
    TAG_LENGTH_BYTES,
    SecretCipher,
    decrypt,
    derive_key,
    encrypt,
)


class TestDeriveKey:
    def test_short_secret_is_padded_with_zeros(self):
        assert derive_key("abc") == b"abc" + b"0" * 29

    def test_long_secret_is_truncated(self):
        key = derive_key("x" * 50)
        assert key == b"x" * KEY_LENGTH_BYTES

    def test_non_ascii_secret_is_encoded_before_padding(self):
        key = derive_key("密钥")
        assert len(key) == KEY_LENGTH_BYTES
        assert key.startswith("密钥".encode("utf-8"))


class TestRoundTrip:
    @pytest.mark.parametrize("plaintext", [
        "",
        "hunter2",
        "账号 user@example.com",
        "-----BEGIN KEY-----\nabc\n-----END KEY-----",
        "emoji 🔑 and tabs\t",
    ])
    def test_decrypt_returns_original(self, plaintext):
        assert decrypt(encrypt(plaintext, "s3cret"), "s3cret") == plaintext

    def test_wrong_secret_fails(self):
        token = encrypt("hunter2", "right-secret")
        with pytest.raises(DecryptionError):
            decrypt(token, "wrong-secret")

    def test_each_call_uses_fresh_nonce(self):
        first = encrypt("same", "s3cret")
        second = encrypt("same", "s3cret")
        assert first != second
        assert base64.b64decode(first)[:NONCE_LENGTH_BYTES] != base64.b64decode(second)[:NONCE_LENGTH_BYTES]

    def test_token_layout(self):
        token = encrypt("abcd", "s3cret")
        raw = base64.b64decode(token)
        assert len(raw) == NONCE_LENGTH_BYTES + 4 + TAG_LENGTH_BYTES


class TestMalformedTokens:
    def test_tampered_ciphertext_fails(self):
        raw = bytearray(base64.b64decode(encrypt("hunter2", "s3cret")))
        raw[-1] ^= 0x01
        with pytest.raises(DecryptionError):
            decrypt(base64.b64encode(bytes(raw)).decode(), "s3cret")

    def test_not_base64_fails(self):
        with pytest.raises(DecryptionError):
            decrypt("not base64!!", "s3cret")

    def test_too_short_fails(self):
        with pytest.raises(DecryptionError):
            decrypt(base64.b64encode(b"short").decode(), "s3cret")


class TestSecretCipher:
    def test_empty_secret_rejected(self):
        with pytest.raises(ConfigError):
            SecretCipher("")

    def test_optional_helpers_pass_none_through(self):
        cipher = SecretCipher("s3cret")
        assert cipher.encrypt_optional(None) is None
        assert cipher.encrypt_optional("") is None
        assert cipher.decrypt_optional(None) is None

    def test_round_trip(self):
        cipher = SecretCipher("s3cret")
        assert cipher.decrypt(cipher.encrypt("pw")) == "pw"
        assert cipher.decrypt_optional(cipher.encrypt_optional("note")) == "note"

    def test_interoperates_with_module_functions(self):
        cipher = SecretCipher("s3cret")
        assert decrypt(cipher.encrypt("pw"), "s3cret") == "pw"
