"""Vaultbot: a single-user Telegram secret keeper."""

__version__ = "0.1.0"
