"""Error types shared across Vaultbot."""


class VaultbotError(Exception):
    """Base class for all Vaultbot errors."""


class ConfigError(VaultbotError):
    """Required configuration is missing or invalid. Fatal at startup."""


class ValidationError(VaultbotError):
    """User input could not be accepted (bad date, empty field, bad syntax).

    The message is shown to the user as-is.
    """


class NotFoundError(VaultbotError):
    """A record id does not exist."""

    def __init__(self, record_id: int):
        super().__init__(f"Secret {record_id} not found")
        self.record_id = record_id


class UnauthorizedError(VaultbotError):
    """Sender is not the configured owner."""


class DecryptionError(VaultbotError):
    """A ciphertext token could not be decrypted (tampered, wrong secret, malformed)."""


class StoreError(VaultbotError):
    """The database failed to execute a statement."""
