"""
FastAPI application for Vaultbot.

Serves the Telegram webhook and runs the expiry reminder loop in the
background.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .api import webhook_router
from .bot import ConversationEngine, ReminderJob, reminder_loop
from .config import Settings, load_settings
from .db import SecretRepository, SessionRepository, close_db, init_db
from .logging import get_logger, setup_logging
from .telegram import TelegramClient
from .vault import SecretCipher
from .vault.expiry import set_timezone


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the app. Settings load (and validate) at startup, not import."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        config = settings or load_settings()
        setup_logging(config.log_dir)
        logger = get_logger("main")
        logger.info("Starting Vaultbot...")

        set_timezone(config.tzinfo)
        cipher = SecretCipher(config.encrypt_key)
        pool = await init_db(config.database_url)
        telegram = TelegramClient(config.telegram_bot_token, config.telegram_api_base)

        secrets_repo = SecretRepository(pool)
        sessions_repo = SessionRepository(pool)

        app.state.settings = config
        app.state.telegram = telegram
        app.state.engine = ConversationEngine(
            transport=telegram,
            secrets=secrets_repo,
            sessions=sessions_repo,
            cipher=cipher,
            allowed_user_id=config.allowed_user_id,
        )

        shutdown_event = asyncio.Event()
        reminder_task = None
        if config.reminder_interval:
            job = ReminderJob(secrets_repo, telegram, chat_id=config.allowed_user_id)
            reminder_task = asyncio.create_task(
                reminder_loop(job, config.reminder_interval, shutdown_event),
                name="expiry-reminder",
            )
            logger.info(f"Expiry reminder every {config.reminder_interval}s")

        yield

        logger.info("Shutting down...")
        shutdown_event.set()
        if reminder_task:
            await reminder_task
        await telegram.close()
        await close_db()

    app = FastAPI(
        title="Vaultbot",
        description="Single-user Telegram secret keeper",
        version=__version__,
        lifespan=lifespan,
    )
    app.include_router(webhook_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now().isoformat()}

    return app


app = create_app()
