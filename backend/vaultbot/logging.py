"""
Logging for Vaultbot.

Every component logs through get_logger(area): colored console lines
tagged [VAULTBOT.<area>], plus an optional per-run log file once
setup_logging() is given a directory.

Never log decrypted values or the encryption secret. User ids and record
ids are fine and can be attached with extra={"user_id": ..., "record_id": ...}.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional


class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_BLUE = "\033[94m"
    BRIGHT_MAGENTA = "\033[95m"
    BRIGHT_CYAN = "\033[96m"


# Console color per area; unknown areas print in white
AREA_COLORS = {
    "main": Colors.BRIGHT_CYAN,
    "database": Colors.BRIGHT_BLUE,
    "migrations": Colors.BLUE,
    "api": Colors.BRIGHT_GREEN,
    "bot": Colors.BRIGHT_MAGENTA,
    "reminder": Colors.BRIGHT_YELLOW,
    "telegram": Colors.CYAN,
}

LEVEL_COLORS = {
    logging.DEBUG: Colors.DIM,
    logging.INFO: Colors.RESET,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.BRIGHT_RED + Colors.BOLD,
}

# LogRecord attributes appended as key=value when present
CONTEXT_FIELDS = ("user_id", "record_id", "update_id")


def _context(record: logging.LogRecord) -> str:
    return "".join(
        f" {name}={getattr(record, name)}"
        for name in CONTEXT_FIELDS
        if hasattr(record, name)
    )


class _AreaFormatter(logging.Formatter):
    def __init__(self, area: str):
        super().__init__()
        self.area = area
        self.prefix = f"VAULTBOT.{area}"

    def _with_traceback(self, message: str, record: logging.LogRecord) -> str:
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


class ConsoleFormatter(_AreaFormatter):
    """[VAULTBOT.area] HH:MM:SS LEVEL    message key=value"""

    def format(self, record: logging.LogRecord) -> str:
        area_color = AREA_COLORS.get(self.area, Colors.WHITE)
        level_color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        message = (
            f"{area_color}[{self.prefix}]{Colors.RESET} "
            f"{Colors.DIM}{clock}{Colors.RESET} "
            f"{level_color}{record.levelname:<8}{Colors.RESET} "
            f"{record.getMessage()}{_context(record)}"
        )
        return self._with_traceback(message, record)


class FileFormatter(_AreaFormatter):
    """Uncolored lines with millisecond timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        message = f"{stamp} [{self.prefix}] {record.levelname}: {record.getMessage()}{_context(record)}"
        return self._with_traceback(message, record)


# Loggers handed out so far, so a later setup_logging() can reach them
_loggers: dict[str, logging.Logger] = {}
_log_path: Optional[Path] = None


def _attach_file_handler(logger: logging.Logger, area: str, level: int) -> None:
    handler = logging.FileHandler(_log_path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(FileFormatter(area))
    logger.addHandler(handler)


def setup_logging(log_dir: Optional[str] = None, file_level: int = logging.DEBUG) -> Optional[Path]:
    """
    Turn on file logging for this run.

    Module-level loggers are created at import time, before settings are
    known, so every logger already handed out gets the file handler too.

    Args:
        log_dir: Directory for log files. Console only when empty.
        file_level: Minimum level written to the file

    Returns:
        Path of the log file, or None when file logging is off
    """
    global _log_path

    if not log_dir or _log_path is not None:
        return _log_path

    directory = Path(log_dir)
    directory.mkdir(parents=True, exist_ok=True)
    filename = datetime.now().strftime("vaultbot_%Y%m%d_%H%M%S.log")
    _log_path = directory / filename

    latest = directory / "latest.log"
    try:
        if latest.is_symlink() or latest.exists():
            latest.unlink()
        latest.symlink_to(filename)
    except OSError:
        pass  # no symlink support

    for area, logger in _loggers.items():
        _attach_file_handler(logger, area, file_level)

    get_logger("main").info(f"Logging to {_log_path}")
    return _log_path


def get_logger(area: str = "main") -> logging.Logger:
    """
    Logger for one application area ("bot", "database", "reminder", ...).

    Example:
        logger = get_logger("reminder")
        logger.info("Sent expiry reminder", extra={"user_id": 42})
        # [VAULTBOT.reminder] 09:00:00 INFO     Sent expiry reminder user_id=42
    """
    if area in _loggers:
        return _loggers[area]

    logger = logging.getLogger(f"vaultbot.{area}")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(ConsoleFormatter(area))
    logger.addHandler(console)

    if _log_path is not None:
        _attach_file_handler(logger, area, logging.DEBUG)

    _loggers[area] = logger
    return logger
