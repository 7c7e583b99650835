"""Inline button payloads.

Wire form is "<tag>" or "<tag>_<arg>", well under Telegram's 64-byte
callback_data limit. decode() returns None for anything it doesn't
recognize so stale or forged buttons are ignored.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class CallbackTag(str, Enum):
    VIEW = "view"                  # arg: record id
    DELETE = "del"                 # arg: record id, asks for confirmation
    DELETE_CONFIRM = "delok"       # arg: record id, performs the delete
    DELETE_MODE = "delmode"        # no arg
    SET_EXPIRY = "setexp"          # arg: record id
    EXPIRY_PICK = "exp"            # arg: "no", "custom" or a day count
    SKIP_EXTRA = "extra"           # arg: "no"


# Tags whose argument is a record id
_ID_TAGS = {
    CallbackTag.VIEW,
    CallbackTag.DELETE,
    CallbackTag.DELETE_CONFIRM,
    CallbackTag.SET_EXPIRY,
}

EXPIRY_NONE = "no"
EXPIRY_CUSTOM = "custom"

# Largest BIGSERIAL id and the longest quick-pick offset accepted from a button
MAX_RECORD_ID = 2**63 - 1
MAX_PICK_DAYS = 3650


@dataclass(frozen=True)
class RecordAction:
    """A button acting on one stored record."""
    tag: CallbackTag
    record_id: int


@dataclass(frozen=True)
class ExpiryPick:
    """Quick-pick answer at the expiry step. days=None means no expiry."""
    days: Optional[int] = None
    custom: bool = False


@dataclass(frozen=True)
class SkipExtra:
    pass


@dataclass(frozen=True)
class DeleteMode:
    pass


Callback = Union[RecordAction, ExpiryPick, SkipExtra, DeleteMode]


def view(record_id: int) -> str:
    return encode(RecordAction(CallbackTag.VIEW, record_id))


def delete(record_id: int) -> str:
    return encode(RecordAction(CallbackTag.DELETE, record_id))


def delete_confirm(record_id: int) -> str:
    return encode(RecordAction(CallbackTag.DELETE_CONFIRM, record_id))


def set_expiry(record_id: int) -> str:
    return encode(RecordAction(CallbackTag.SET_EXPIRY, record_id))


def expiry_pick(days: Optional[int] = None, custom: bool = False) -> str:
    return encode(ExpiryPick(days=days, custom=custom))


def encode(callback: Callback) -> str:
    """Wire form of a callback variant; decode() inverts it."""
    if isinstance(callback, RecordAction):
        return f"{callback.tag.value}_{callback.record_id}"
    if isinstance(callback, ExpiryPick):
        if callback.custom:
            arg = EXPIRY_CUSTOM
        elif callback.days is None:
            arg = EXPIRY_NONE
        else:
            arg = str(callback.days)
        return f"{CallbackTag.EXPIRY_PICK.value}_{arg}"
    if isinstance(callback, SkipExtra):
        return f"{CallbackTag.SKIP_EXTRA.value}_no"
    if isinstance(callback, DeleteMode):
        return CallbackTag.DELETE_MODE.value
    raise TypeError(f"Not a callback: {callback!r}")


SKIP_EXTRA = encode(SkipExtra())
DELETE_MODE = encode(DeleteMode())


def _parse_positive_int(text: str, upper: int) -> Optional[int]:
    if not (text.isascii() and text.isdigit()):
        return None
    value = int(text)
    return value if 0 < value <= upper else None


def decode(data: Optional[str]) -> Optional[Callback]:
    """Parse a callback_data string. Unknown or malformed payloads give None."""
    if not data:
        return None

    tag_text, _, arg = data.partition("_")
    try:
        tag = CallbackTag(tag_text)
    except ValueError:
        return None

    if tag in _ID_TAGS:
        record_id = _parse_positive_int(arg, MAX_RECORD_ID)
        return RecordAction(tag, record_id) if record_id is not None else None

    if tag is CallbackTag.EXPIRY_PICK:
        if arg == EXPIRY_NONE:
            return ExpiryPick()
        if arg == EXPIRY_CUSTOM:
            return ExpiryPick(custom=True)
        days = _parse_positive_int(arg, MAX_PICK_DAYS)
        return ExpiryPick(days=days) if days is not None else None

    if tag is CallbackTag.SKIP_EXTRA:
        return SkipExtra() if arg == "no" else None

    if tag is CallbackTag.DELETE_MODE:
        return DeleteMode() if not arg else None

    return None
