"""Classify an incoming text message before any handler runs.

Matchers are tried in order; the first hit wins:
command, "#存" freeform save, "#到期" expiry edit, short single-token
search, and finally the start of a guided save.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

SAVE_MARKER = "#存"
EXPIRY_MARKER = "#到期"

# Words accepted by "#到期 <id> <word>" to clear the expiry
CLEAR_EXPIRY_WORDS = {"无", "取消", "none", "no"}

MAX_SEARCH_LENGTH = 20

_COMMAND = re.compile(r"^/(\w+)(?:@\w+)?$")
_EXPIRY_SET = re.compile(rf"^{EXPIRY_MARKER}\s+(\d+)\s+(.+)$", re.DOTALL)
_EXPIRY_SUFFIX = re.compile(r"@([\d\-/]+)$")


class CommandName(str, Enum):
    HELP = "help"
    LIST = "list"
    EXPIRING = "expiring"
    CANCEL = "cancel"
    UNKNOWN = "unknown"


_COMMAND_ALIASES = {
    "start": CommandName.HELP,
    "help": CommandName.HELP,
    "list": CommandName.LIST,
    "expiring": CommandName.EXPIRING,
    "cancel": CommandName.CANCEL,
}


@dataclass(frozen=True)
class Command:
    name: CommandName
    text: str


@dataclass(frozen=True)
class StructuredSave:
    """'#存 name [@date]' followed by the body on the next lines.

    body is None when the message has no second line at all.
    """
    name: str
    body: Optional[str]
    expiry_text: Optional[str] = None


@dataclass(frozen=True)
class ExpirySet:
    """'#到期 <id> <date|无>'. record_id is None when the syntax is wrong."""
    record_id: Optional[int]
    value: Optional[str]

    @property
    def clears(self) -> bool:
        return self.value is not None and self.value.lower() in CLEAR_EXPIRY_WORDS


@dataclass(frozen=True)
class Search:
    term: str


@dataclass(frozen=True)
class IntakeStart:
    name: str


Intent = Union[Command, StructuredSave, ExpirySet, Search, IntakeStart]


def _match_command(text: str) -> Optional[Command]:
    match = _COMMAND.match(text)
    if not match:
        return None
    name = _COMMAND_ALIASES.get(match.group(1).lower(), CommandName.UNKNOWN)
    return Command(name, text)


def _match_structured_save(text: str) -> Optional[StructuredSave]:
    if not (text.startswith(SAVE_MARKER + " ") or text.startswith(SAVE_MARKER + "\n")):
        return None

    rest = text[len(SAVE_MARKER):]
    first_line, newline, body = rest.partition("\n")
    name = first_line.strip()

    expiry_text = None
    suffix = _EXPIRY_SUFFIX.search(name)
    if suffix:
        expiry_text = suffix.group(1)
        name = name[:suffix.start()].strip()

    return StructuredSave(name=name, body=body if newline else None, expiry_text=expiry_text)


def _match_expiry_set(text: str) -> Optional[ExpirySet]:
    if text != EXPIRY_MARKER and not re.match(rf"^{EXPIRY_MARKER}\s", text):
        return None
    match = _EXPIRY_SET.match(text)
    if not match:
        return ExpirySet(record_id=None, value=None)
    return ExpirySet(record_id=int(match.group(1)), value=match.group(2).strip())


def _match_search(text: str) -> Optional[Search]:
    if len(text) > MAX_SEARCH_LENGTH or any(ch.isspace() for ch in text):
        return None
    return Search(text)


def classify(text: str) -> Optional[Intent]:
    """Return the intent for a message, or None for blank input."""
    text = text.strip()
    if not text:
        return None
    return (
        _match_command(text)
        or _match_structured_save(text)
        or _match_expiry_set(text)
        or _match_search(text)
        or IntakeStart(text)
    )
