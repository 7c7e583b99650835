"""
Shared pytest fixtures for the Vaultbot test suite.

The engine and reminder tests run against in-memory stand-ins for the two
repositories and the Telegram transport; repository SQL is tested
separately against a mocked asyncpg connection.
"""

import copy
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from unittest.mock import AsyncMock

import pytest

from vaultbot.bot.engine import ConversationEngine
from vaultbot.db.models import SecretRecord, SecretSummary, Session
from vaultbot.vault.crypto import SecretCipher

OWNER_ID = 4242
STRANGER_ID = 9999
TODAY = date(2026, 3, 10)
SECRET = "unit-test-secret"


class RecordingTransport:
    """ChatTransport that keeps everything it was asked to send."""

    def __init__(self):
        self.sent: list[dict] = []
        self.answered: list[str] = []

    async def send_text(self, chat_id, text):
        self.sent.append({"chat_id": chat_id, "text": text, "buttons": None})

    async def send_text_with_buttons(self, chat_id, text, buttons):
        self.sent.append({"chat_id": chat_id, "text": text, "buttons": buttons})

    async def answer_callback(self, callback_id):
        self.answered.append(callback_id)

    @property
    def last(self) -> dict:
        return self.sent[-1]

    def button_data(self, index: int = -1) -> list[str]:
        """Flattened callback_data of a sent message's buttons."""
        return [button.callback_data for row in self.sent[index]["buttons"] for button in row]


class InMemorySecretRepository:
    """Same contract as SecretRepository, backed by a dict."""

    def __init__(self):
        self.rows: dict[int, SecretRecord] = {}
        self._next_id = 1
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)
        self.mutations = 0

    async def insert(self, name, site, account, password, extra=None, expires_at=None):
        self._clock += timedelta(seconds=1)
        record = SecretRecord(
            id=self._next_id,
            name=name,
            site=site,
            account=account,
            password=password,
            extra=extra,
            expires_at=expires_at,
            created_at=self._clock,
        )
        self.rows[record.id] = record
        self._next_id += 1
        self.mutations += 1
        return record

    async def get(self, secret_id):
        return copy.deepcopy(self.rows.get(secret_id))

    async def delete(self, secret_id):
        if secret_id not in self.rows:
            return False
        del self.rows[secret_id]
        self.mutations += 1
        return True

    async def update_expiry(self, secret_id, expires_at):
        if secret_id not in self.rows:
            return False
        self.rows[secret_id].expires_at = expires_at
        self.mutations += 1
        return True

    @staticmethod
    def _summary(record):
        return SecretSummary(record.id, record.name, record.site, record.expires_at)

    def _newest_first(self):
        return sorted(self.rows.values(), key=lambda r: (r.created_at, r.id), reverse=True)

    async def search(self, term, limit=5):
        term = term.lower()
        hits = [r for r in self._newest_first() if term in r.name.lower() or term in r.site.lower()]
        return [self._summary(r) for r in hits[:limit]]

    async def list_all(self):
        return [self._summary(r) for r in self._newest_first()]

    async def list_expiring_within(self, days, today=None):
        cutoff = (today or TODAY) + timedelta(days=days)
        due = [r for r in self.rows.values() if r.expires_at is not None and r.expires_at <= cutoff]
        due.sort(key=lambda r: (r.expires_at, r.id))
        return [self._summary(r) for r in due]


class InMemorySessionRepository:
    """Same contract as SessionRepository without the timeout clock."""

    def __init__(self):
        self.rows: dict[int, Session] = {}

    async def get(self, user_id, now=None):
        session = self.rows.get(user_id)
        return copy.deepcopy(session) if session else Session(user_id=user_id)

    async def set(self, session, now=None):
        session.updated_at = now or datetime.now(timezone.utc)
        self.rows[session.user_id] = copy.deepcopy(session)
        return session

    async def clear(self, user_id):
        self.rows.pop(user_id, None)


class FakePool:
    """Minimal asyncpg.Pool stand-in handing out one mocked connection."""

    def __init__(self, conn: Optional[AsyncMock] = None):
        self.conn = conn or AsyncMock()

    @asynccontextmanager
    async def acquire(self):
        yield self.conn


@pytest.fixture
def cipher():
    return SecretCipher(SECRET)


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def secrets_repo():
    return InMemorySecretRepository()


@pytest.fixture
def sessions_repo():
    return InMemorySessionRepository()


@pytest.fixture
def engine(transport, secrets_repo, sessions_repo, cipher):
    return ConversationEngine(
        transport=transport,
        secrets=secrets_repo,
        sessions=sessions_repo,
        cipher=cipher,
        allowed_user_id=OWNER_ID,
        today=lambda: TODAY,
    )


@pytest.fixture
def fake_pool():
    return FakePool()
