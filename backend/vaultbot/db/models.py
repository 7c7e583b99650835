"""Database models for Vaultbot."""

import json
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

# Site value marking a freeform record (SSH key, note). Its whole body is
# encrypted into the password column and account is empty.
RAW_SITE = "raw"


@dataclass
class SecretRecord:
    """A stored secret as it sits in the database (sensitive fields encrypted)."""
    id: int
    name: str
    site: str
    account: str = ""             # ciphertext token, empty for raw records
    password: str = ""            # ciphertext token; raw body for raw records
    extra: Optional[str] = None   # ciphertext token
    expires_at: Optional[date] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_raw(self) -> bool:
        return self.site == RAW_SITE


@dataclass
class SecretSummary:
    """Plaintext-only view used by list and search results."""
    id: int
    name: str
    site: str
    expires_at: Optional[date] = None

    @property
    def label(self) -> str:
        return f"{self.name} ({self.site})"


class SessionStep(str, Enum):
    """Where a user is in the guided save flow."""
    IDLE = "idle"
    ASK_SITE = "ask_site"
    ASK_ACCOUNT = "ask_account"
    ASK_PASSWORD = "ask_password"
    ASK_EXPIRY = "ask_expiry"
    ASK_EXTRA = "ask_extra"


@dataclass
class SessionData:
    """Fields collected so far. Plaintext, short-lived."""
    name: Optional[str] = None
    site: Optional[str] = None
    account: Optional[str] = None
    password: Optional[str] = None
    expires_at: Optional[date] = None
    extra: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps({
            "name": self.name,
            "site": self.site,
            "account": self.account,
            "password": self.password,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "extra": self.extra,
        })

    @classmethod
    def from_json(cls, raw) -> "SessionData":
        data = json.loads(raw) if isinstance(raw, (str, bytes)) else dict(raw or {})
        expires_at = data.get("expires_at")
        return cls(
            name=data.get("name"),
            site=data.get("site"),
            account=data.get("account"),
            password=data.get("password"),
            expires_at=date.fromisoformat(expires_at) if expires_at else None,
            extra=data.get("extra"),
        )


@dataclass
class Session:
    """One pending guided save per user."""
    user_id: int
    step: SessionStep = SessionStep.IDLE
    data: SessionData = field(default_factory=SessionData)
    updated_at: Optional[datetime] = None

    @property
    def is_idle(self) -> bool:
        return self.step == SessionStep.IDLE
