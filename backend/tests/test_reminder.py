# Tests for the expiry reminder report and job

import asyncio
from datetime import timedelta

import pytest

from vaultbot.bot.reminder import ReminderJob, build_report, group_by_bucket, reminder_loop
from vaultbot.db.models import SecretSummary
from vaultbot.errors import StoreError

from conftest import OWNER_ID, TODAY


def _due(id, name, offset):
    return SecretSummary(id=id, name=name, site="site", expires_at=TODAY + timedelta(days=offset))


class TestBuckets:
    def test_each_day_offset_lands_in_its_bucket(self):
        summaries = [
            _due(1, "late", -1),
            _due(2, "now", 0),
            _due(3, "next", 1),
            _due(4, "soon", 3),
            _due(5, "week", 7),
            _due(6, "later", 8),
            SecretSummary(7, "never", "site", None),
        ]
        groups = group_by_bucket(summaries, TODAY)

        assert {key: [s.name for s in items] for key, items in groups.items()} == {
            "expired": ["late"],
            "today": ["now"],
            "tomorrow": ["next"],
            "within_3": ["soon"],
            "within_7": ["week"],
        }

    def test_report_sections_in_fixed_order(self):
        report = build_report([_due(1, "b", 5), _due(2, "a", -2), _due(3, "c", 0)], TODAY)

        assert report == (
            "⏰ 到期提醒\n\n"
            "⚠️ 已过期：\n• a\n\n"
            "🔴 今天到期：\n• c\n\n"
            "🟢 7天内：\n• b"
        )

    def test_nothing_due_gives_no_report(self):
        assert build_report([], TODAY) is None
        assert build_report([_due(1, "far", 20)], TODAY) is None


class TestReminderJob:
    @pytest.mark.asyncio
    async def test_sends_one_message_to_owner(self, secrets_repo, transport):
        for offset in (-1, 0, 2, 5, 10):
            await secrets_repo.insert(f"d{offset}", "site", "a", "p", None, TODAY + timedelta(days=offset))
        mutations = secrets_repo.mutations

        sent = await ReminderJob(secrets_repo, transport, OWNER_ID, today=lambda: TODAY).run()

        assert sent is True
        assert len(transport.sent) == 1
        text = transport.last["text"]
        assert transport.last["chat_id"] == OWNER_ID
        for name in ("d-1", "d0", "d2", "d5"):
            assert f"• {name}" in text
        assert "d10" not in text
        assert secrets_repo.mutations == mutations

    @pytest.mark.asyncio
    async def test_stays_quiet_when_nothing_due(self, secrets_repo, transport):
        await secrets_repo.insert("far", "site", "a", "p", None, TODAY + timedelta(days=30))

        sent = await ReminderJob(secrets_repo, transport, OWNER_ID, today=lambda: TODAY).run()

        assert sent is False
        assert transport.sent == []


class _CountingJob:
    def __init__(self, error=None):
        self.runs = 0
        self.error = error

    async def run(self):
        self.runs += 1
        if self.error is not None:
            raise self.error
        return True


class TestReminderLoop:
    @pytest.mark.asyncio
    async def test_exits_on_shutdown_without_running(self):
        job = _CountingJob()
        shutdown = asyncio.Event()
        shutdown.set()

        await asyncio.wait_for(reminder_loop(job, 60, shutdown), timeout=1)

        assert job.runs == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [StoreError("database unavailable"), RuntimeError("report bug")])
    async def test_keeps_running_after_failures(self, error):
        job = _CountingJob(error=error)
        shutdown = asyncio.Event()
        task = asyncio.create_task(reminder_loop(job, 0.01, shutdown))

        await asyncio.sleep(0.1)
        shutdown.set()
        await asyncio.wait_for(task, timeout=1)

        assert job.runs >= 2
