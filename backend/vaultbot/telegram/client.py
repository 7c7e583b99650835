"""HTTP client for the Telegram Bot API."""

from dataclasses import dataclass
from typing import Protocol

import httpx

from ..logging import get_logger

logger = get_logger("telegram")

# Command menu registered with setMyCommands
BOT_COMMANDS = [
    {"command": "list", "description": "📋 查看所有条目"},
    {"command": "expiring", "description": "⏰ 即将到期"},
    {"command": "cancel", "description": "❌ 取消当前操作"},
    {"command": "help", "description": "❓ 帮助"},
]


@dataclass(frozen=True)
class Button:
    """Inline keyboard button carrying an encoded callback payload."""
    text: str
    callback_data: str

    def to_dict(self) -> dict:
        return {"text": self.text, "callback_data": self.callback_data}


ButtonGrid = list[list[Button]]


class ChatTransport(Protocol):
    """Outbound side of the chat channel. Fire-and-forget."""

    async def send_text(self, chat_id: int, text: str) -> None: ...

    async def send_text_with_buttons(self, chat_id: int, text: str, buttons: ButtonGrid) -> None: ...

    async def answer_callback(self, callback_id: str) -> None: ...


class TelegramClient:
    """Async client for the Bot API methods Vaultbot uses.

    Send failures are logged and swallowed: the bot never retries a
    message and the webhook must still answer Telegram.
    """

    def __init__(self, token: str, api_base: str = "https://api.telegram.org", timeout: float = 10.0):
        self.base_url = f"{api_base.rstrip('/')}/bot{token}"
        self._client = httpx.AsyncClient(timeout=timeout)

    async def close(self):
        await self._client.aclose()

    async def _call(self, method: str, payload: dict) -> dict | None:
        try:
            resp = await self._client.post(f"{self.base_url}/{method}", json=payload)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Telegram {method} failed: HTTP {e.response.status_code} {e.response.text[:200]}")
        except httpx.HTTPError as e:
            logger.warning(f"Telegram {method} failed: {type(e).__name__}: {e}")
        return None

    async def send_text(self, chat_id: int, text: str) -> None:
        await self._call("sendMessage", {"chat_id": chat_id, "text": text})

    async def send_text_with_buttons(self, chat_id: int, text: str, buttons: ButtonGrid) -> None:
        await self._call("sendMessage", {
            "chat_id": chat_id,
            "text": text,
            "reply_markup": {
                "inline_keyboard": [[button.to_dict() for button in row] for row in buttons],
            },
        })

    async def answer_callback(self, callback_id: str) -> None:
        await self._call("answerCallbackQuery", {"callback_query_id": callback_id})

    async def set_webhook(self, url: str, secret_token: str = "") -> dict | None:
        """Point Telegram at our webhook URL."""
        payload = {"url": url}
        if secret_token:
            payload["secret_token"] = secret_token
        result = await self._call("setWebhook", payload)
        logger.info(f"setWebhook {url}: {result}")
        return result

    async def set_my_commands(self) -> dict | None:
        """Register the command menu shown in Telegram clients."""
        return await self._call("setMyCommands", {"commands": BOT_COMMANDS})
