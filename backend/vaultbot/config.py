"""Service configuration with explicit value > env var > defaults precedence."""

import os
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import ConfigError


DEFAULT_REMINDER_INTERVAL = 24 * 60 * 60


@dataclass
class Settings:
    """Runtime settings, loaded once at startup and never mutated."""
    telegram_bot_token: str = ""
    allowed_user_id: Optional[int] = None
    encrypt_key: str = ""
    admin_secret: str = ""
    database_url: str = ""
    webhook_secret: str = ""
    telegram_api_base: str = ""
    reminder_interval: Optional[int] = None  # seconds, 0 disables the in-process loop
    timezone: str = ""
    log_dir: str = ""

    def __post_init__(self):
        # Apply env var defaults for anything not passed explicitly
        if not self.telegram_bot_token:
            self.telegram_bot_token = os.getenv("TELEGRAM_BOT_TOKEN", "")
        if self.allowed_user_id is None:
            raw = os.getenv("ALLOWED_USER_ID", "").strip()
            if raw:
                try:
                    self.allowed_user_id = int(raw)
                except ValueError:
                    raise ConfigError(f"ALLOWED_USER_ID must be an integer, got {raw!r}")
        if not self.encrypt_key:
            self.encrypt_key = os.getenv("ENCRYPT_KEY", "")
        if not self.admin_secret:
            self.admin_secret = os.getenv("ADMIN_SECRET", "")
        if not self.database_url:
            self.database_url = os.getenv("DATABASE_URL", "")
        if not self.webhook_secret:
            self.webhook_secret = os.getenv("WEBHOOK_SECRET", "")
        if not self.telegram_api_base:
            self.telegram_api_base = os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org")
        if self.reminder_interval is None:
            env_interval = os.getenv("REMINDER_INTERVAL", "").strip()
            try:
                self.reminder_interval = int(env_interval) if env_interval else DEFAULT_REMINDER_INTERVAL
            except ValueError:
                raise ConfigError(f"REMINDER_INTERVAL must be an integer, got {env_interval!r}")
        if not self.timezone:
            self.timezone = os.getenv("VAULTBOT_TIMEZONE", "UTC")
        if not self.log_dir:
            self.log_dir = os.getenv("VAULTBOT_LOG_DIR", "")

    def validate(self) -> "Settings":
        """Fail fast on missing secrets. Returns self for chaining."""
        missing = []
        if not self.telegram_bot_token:
            missing.append("TELEGRAM_BOT_TOKEN")
        if self.allowed_user_id is None:
            missing.append("ALLOWED_USER_ID")
        if not self.encrypt_key:
            missing.append("ENCRYPT_KEY")
        if not self.admin_secret:
            missing.append("ADMIN_SECRET")
        if not self.database_url:
            missing.append("DATABASE_URL")
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

        if self.reminder_interval < 0:
            raise ConfigError("REMINDER_INTERVAL must not be negative")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigError(f"Unknown timezone: {self.timezone}")
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


def load_settings(**overrides) -> Settings:
    """Build settings from the environment and validate them."""
    return Settings(**overrides).validate()
