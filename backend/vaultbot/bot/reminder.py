"""Periodic expiry reminder sent to the owner."""

import asyncio
from datetime import date
from typing import Callable, Optional, Sequence

from ..db.models import SecretSummary
from ..db.secrets import SecretRepository
from ..errors import VaultbotError
from ..logging import get_logger
from ..telegram.client import ChatTransport
from ..vault.expiry import current_date, days_until

logger = get_logger("reminder")

REMINDER_WINDOW_DAYS = 7

# Bucket headers in report order
BUCKETS = (
    ("expired", "⚠️ 已过期："),
    ("today", "🔴 今天到期："),
    ("tomorrow", "🔴 明天到期："),
    ("within_3", "🟡 3天内："),
    ("within_7", "🟢 7天内："),
)


def _bucket_for(days: int) -> Optional[str]:
    if days < 0:
        return "expired"
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    if days <= 3:
        return "within_3"
    if days <= REMINDER_WINDOW_DAYS:
        return "within_7"
    return None


def group_by_bucket(summaries: Sequence[SecretSummary], today: date) -> dict[str, list[SecretSummary]]:
    """Split records into reminder buckets, keeping input order inside each."""
    groups: dict[str, list[SecretSummary]] = {key: [] for key, _ in BUCKETS}
    for summary in summaries:
        if summary.expires_at is None:
            continue
        bucket = _bucket_for(days_until(summary.expires_at, today))
        if bucket:
            groups[bucket].append(summary)
    return groups


def build_report(summaries: Sequence[SecretSummary], today: date) -> Optional[str]:
    """Render the reminder text, or None when nothing is due."""
    groups = group_by_bucket(summaries, today)
    sections = []
    for key, header in BUCKETS:
        if groups[key]:
            lines = "\n".join(f"• {summary.name}" for summary in groups[key])
            sections.append(f"{header}\n{lines}")
    if not sections:
        return None
    return "⏰ 到期提醒\n\n" + "\n\n".join(sections)


class ReminderJob:
    """Reads due records and sends one consolidated report. Never writes."""

    def __init__(
        self,
        secrets: SecretRepository,
        transport: ChatTransport,
        chat_id: int,
        today: Callable[[], date] = current_date,
    ):
        self.secrets = secrets
        self.transport = transport
        self.chat_id = chat_id
        self._today = today

    async def run(self) -> bool:
        """Send the report if anything is due. Returns True when a message went out."""
        today = self._today()
        summaries = await self.secrets.list_expiring_within(REMINDER_WINDOW_DAYS, today)
        report = build_report(summaries, today)
        if report is None:
            logger.info("No secrets due, no reminder sent")
            return False
        await self.transport.send_text(self.chat_id, report)
        logger.info(f"Sent expiry reminder covering {len(summaries)} secret(s)")
        return True


async def reminder_loop(
    job: ReminderJob,
    interval: float,
    shutdown_event: asyncio.Event,
):
    """Run the reminder every interval seconds until shutdown is signaled.

    The first run happens one interval after startup so restarts don't
    resend the report. Failures are logged and the loop keeps going.
    """
    while True:
        # Wait for the interval, but exit immediately on shutdown
        try:
            await asyncio.wait_for(shutdown_event.wait(), timeout=interval)
            break
        except asyncio.TimeoutError:
            pass

        try:
            await job.run()
        except VaultbotError as e:
            logger.error(f"Reminder run failed: {e}")
        except Exception:
            logger.exception("Reminder run crashed")
