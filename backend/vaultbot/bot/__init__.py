"""Conversation handling and reminders."""

from .engine import ConversationEngine
from .reminder import ReminderJob, build_report, reminder_loop

__all__ = [
    "ConversationEngine",
    "ReminderJob",
    "build_report",
    "reminder_loop",
]
