# Tests for the HTTP surface. The lifespan never runs here: app.state is filled by hand.

import pytest
from fastapi.testclient import TestClient

from vaultbot.api import webhook
from vaultbot.config import Settings
from vaultbot.main import create_app

ADMIN_KEY = "admin-key"


class RecordingEngine:
    def __init__(self, fail=False):
        self.messages = []
        self.callbacks = []
        self.fail = fail

    async def handle_message(self, chat_id, user_id, text):
        if self.fail:
            raise RuntimeError("boom")
        self.messages.append((chat_id, user_id, text))

    async def handle_callback(self, callback_id, user_id, chat_id, data):
        self.callbacks.append((callback_id, user_id, chat_id, data))


class StubTelegram:
    def __init__(self):
        self.webhooks = []
        self.commands_set = False

    async def set_webhook(self, url, secret_token=""):
        self.webhooks.append((url, secret_token))
        return {"ok": True, "result": True}

    async def set_my_commands(self):
        self.commands_set = True


def _settings(**overrides):
    values = dict(
        telegram_bot_token="token",
        allowed_user_id=4242,
        encrypt_key="k",
        admin_secret=ADMIN_KEY,
        database_url="postgresql://localhost/vault",
        reminder_interval=0,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def engine_stub():
    return RecordingEngine()


@pytest.fixture
def telegram_stub():
    return StubTelegram()


def _client(settings, engine, telegram):
    app = create_app(settings)
    app.state.settings = settings
    app.state.engine = engine
    app.state.telegram = telegram
    return TestClient(app)


@pytest.fixture
def client(engine_stub, telegram_stub):
    return _client(_settings(), engine_stub, telegram_stub)


MESSAGE_UPDATE = {
    "update_id": 1,
    "message": {
        "message_id": 10,
        "from": {"id": 4242, "is_bot": False, "first_name": "Owner"},
        "chat": {"id": 4242, "type": "private"},
        "date": 1760000000,
        "text": "gpt",
    },
}

CALLBACK_UPDATE = {
    "update_id": 2,
    "callback_query": {
        "id": "cb-9",
        "from": {"id": 4242, "is_bot": False, "first_name": "Owner"},
        "message": {"message_id": 11, "chat": {"id": 4242, "type": "private"}},
        "data": "view_3",
    },
}


class TestWebhook:
    def test_message_reaches_engine(self, client, engine_stub):
        response = client.post("/webhook", json=MESSAGE_UPDATE)

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert engine_stub.messages == [(4242, 4242, "gpt")]

    def test_callback_reaches_engine(self, client, engine_stub):
        client.post("/webhook", json=CALLBACK_UPDATE)
        assert engine_stub.callbacks == [("cb-9", 4242, 4242, "view_3")]

    def test_non_text_update_is_acknowledged(self, client, engine_stub):
        update = {"update_id": 3, "message": {"message_id": 1, "chat": {"id": 4242}, "from": {"id": 4242}}}
        response = client.post("/webhook", json=update)

        assert response.status_code == 200
        assert engine_stub.messages == []

    def test_engine_failure_is_still_acknowledged(self, telegram_stub):
        client = _client(_settings(), RecordingEngine(fail=True), telegram_stub)
        response = client.post("/webhook", json=MESSAGE_UPDATE)
        assert response.status_code == 200

    def test_secret_header_enforced_when_configured(self, engine_stub, telegram_stub):
        client = _client(_settings(webhook_secret="hook-secret"), engine_stub, telegram_stub)

        assert client.post("/webhook", json=MESSAGE_UPDATE).status_code == 403
        wrong = {"X-Telegram-Bot-Api-Secret-Token": "nope"}
        assert client.post("/webhook", json=MESSAGE_UPDATE, headers=wrong).status_code == 403
        assert engine_stub.messages == []

        right = {"X-Telegram-Bot-Api-Secret-Token": "hook-secret"}
        assert client.post("/webhook", json=MESSAGE_UPDATE, headers=right).status_code == 200
        assert len(engine_stub.messages) == 1


class TestAdminEndpoints:
    @pytest.mark.parametrize("query", ["", "?key=wrong"])
    def test_set_webhook_requires_admin_key(self, client, telegram_stub, query):
        assert client.get(f"/setWebhook{query}").status_code == 403
        assert telegram_stub.webhooks == []

    def test_set_webhook_registers_origin(self, client, telegram_stub):
        response = client.get(f"/setWebhook?key={ADMIN_KEY}")

        assert response.status_code == 200
        assert response.json()["webhook_url"] == "http://testserver/webhook"
        assert telegram_stub.webhooks == [("http://testserver/webhook", "")]
        assert telegram_stub.commands_set

    def test_init_requires_admin_key(self, client):
        assert client.get("/init?key=wrong").status_code == 403

    def test_init_runs_migrations(self, client, monkeypatch):
        pool = object()
        applied = []

        async def fake_get_db_pool():
            return pool

        async def fake_run_migrations(p):
            applied.append(p)

        monkeypatch.setattr(webhook, "get_db_pool", fake_get_db_pool)
        monkeypatch.setattr(webhook, "run_migrations", fake_run_migrations)

        response = client.get(f"/init?key={ADMIN_KEY}")

        assert response.status_code == 200
        assert applied == [pool]

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
