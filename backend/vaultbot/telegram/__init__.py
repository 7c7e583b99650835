"""Telegram Bot API transport."""

from .client import BOT_COMMANDS, Button, ButtonGrid, ChatTransport, TelegramClient
from .models import CallbackQuery, TelegramChat, TelegramMessage, TelegramUser, Update

__all__ = [
    "BOT_COMMANDS",
    "Button",
    "ButtonGrid",
    "ChatTransport",
    "TelegramClient",
    "CallbackQuery",
    "TelegramChat",
    "TelegramMessage",
    "TelegramUser",
    "Update",
]
