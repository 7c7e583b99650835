"""Entry point for Vaultbot.

Usage:
    python -m vaultbot serve [--host HOST] [--port PORT]
    python -m vaultbot remind              Send the expiry reminder once (for cron)
    python -m vaultbot init-db             Apply database migrations
    python -m vaultbot set-webhook URL     Register URL (e.g. https://host/webhook) with Telegram

Configuration comes from the environment: TELEGRAM_BOT_TOKEN, ALLOWED_USER_ID,
ENCRYPT_KEY, ADMIN_SECRET, DATABASE_URL and the optional WEBHOOK_SECRET,
REMINDER_INTERVAL, VAULTBOT_TIMEZONE, VAULTBOT_LOG_DIR.
"""

import argparse
import asyncio
import sys

import uvicorn

from .bot import ReminderJob
from .config import Settings, load_settings
from .db import SecretRepository, close_db, init_db
from .errors import ConfigError, VaultbotError
from .logging import get_logger, setup_logging
from .telegram import TelegramClient
from .vault.expiry import set_timezone

logger = get_logger("main")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="vaultbot", description="Vaultbot Telegram secret keeper")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the webhook server")
    serve.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve.add_argument("--port", type=int, default=8000, help="Listen port")

    sub.add_parser("remind", help="Send the expiry reminder once")
    sub.add_parser("init-db", help="Apply database migrations")

    webhook = sub.add_parser("set-webhook", help="Register the webhook URL with Telegram")
    webhook.add_argument("url", help="Public webhook URL")

    return parser.parse_args(argv)


async def run_reminder(settings: Settings) -> None:
    pool = await init_db(settings.database_url)
    telegram = TelegramClient(settings.telegram_bot_token, settings.telegram_api_base)
    try:
        job = ReminderJob(SecretRepository(pool), telegram, chat_id=settings.allowed_user_id)
        await job.run()
    finally:
        await telegram.close()
        await close_db()


async def run_init_db(settings: Settings) -> None:
    await init_db(settings.database_url)
    await close_db()


async def run_set_webhook(settings: Settings, url: str) -> None:
    telegram = TelegramClient(settings.telegram_bot_token, settings.telegram_api_base)
    try:
        await telegram.set_webhook(url, settings.webhook_secret)
        await telegram.set_my_commands()
    finally:
        await telegram.close()


def main(argv=None):
    args = parse_args(argv)

    try:
        settings = load_settings()
    except ConfigError as e:
        logger.critical(str(e))
        sys.exit(2)

    setup_logging(settings.log_dir)
    set_timezone(settings.tzinfo)

    if args.command == "serve":
        from .main import create_app
        uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level="info")
        return

    try:
        if args.command == "remind":
            asyncio.run(run_reminder(settings))
        elif args.command == "init-db":
            asyncio.run(run_init_db(settings))
        elif args.command == "set-webhook":
            asyncio.run(run_set_webhook(settings, args.url))
    except VaultbotError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
