"""Encryption, text cleanup and expiry helpers for stored secrets."""

from .crypto import derive_key, encrypt, decrypt, SecretCipher
from .normalize import normalize
from .expiry import (
    QUICK_PICK_DAYS,
    Urgency,
    classify_urgency,
    current_date,
    days_until,
    expiry_after,
    parse_expiry_date,
)

__all__ = [
    'derive_key',
    'encrypt',
    'decrypt',
    'SecretCipher',
    'normalize',
    'QUICK_PICK_DAYS',
    'Urgency',
    'classify_urgency',
    'current_date',
    'days_until',
    'expiry_after',
    'parse_expiry_date',
]
