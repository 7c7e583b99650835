"""Telegram webhook and admin endpoints."""

import secrets
from typing import Optional

from fastapi import APIRouter, Header, HTTPException, Query, Request

from ..db import get_db_pool, run_migrations
from ..logging import get_logger
from ..telegram.models import Update

logger = get_logger("api")

router = APIRouter(tags=["telegram"])


def _require_admin(request: Request, key: Optional[str]) -> None:
    expected = request.app.state.settings.admin_secret
    if not key or not secrets.compare_digest(key, expected):
        raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/webhook")
async def telegram_webhook(
    update: Update,
    request: Request,
    x_telegram_bot_api_secret_token: Optional[str] = Header(default=None),
):
    """Receive one update from Telegram."""
    settings = request.app.state.settings
    if settings.webhook_secret and not secrets.compare_digest(
        x_telegram_bot_api_secret_token or "", settings.webhook_secret
    ):
        raise HTTPException(status_code=403, detail="Forbidden")

    engine = request.app.state.engine

    # Telegram redelivers any update that doesn't get a 2xx, which would
    # replay inserts, so failures are logged and the update is acknowledged.
    try:
        if update.callback_query:
            query = update.callback_query
            await engine.handle_callback(
                callback_id=query.id,
                user_id=query.from_user.id,
                chat_id=query.message.chat.id if query.message else None,
                data=query.data,
            )
        elif update.message and update.message.text and update.message.from_user:
            message = update.message
            await engine.handle_message(message.chat.id, message.from_user.id, message.text)
    except Exception:
        logger.exception("Failed to process update", extra={"update_id": update.update_id})

    return {"ok": True}


@router.get("/setWebhook")
async def set_webhook(request: Request, key: Optional[str] = Query(default=None)):
    """Register <origin>/webhook with Telegram and publish the command menu."""
    _require_admin(request, key)
    settings = request.app.state.settings
    telegram = request.app.state.telegram

    webhook_url = f"{str(request.base_url).rstrip('/')}/webhook"
    result = await telegram.set_webhook(webhook_url, settings.webhook_secret)
    await telegram.set_my_commands()
    return {"webhook_url": webhook_url, "result": result}


@router.get("/init")
async def init_database(request: Request, key: Optional[str] = Query(default=None)):
    """Apply pending migrations."""
    _require_admin(request, key)
    await run_migrations(await get_db_pool())
    return {"status": "ok", "message": "数据库初始化完成"}
