"""
Conversation engine: turns each incoming message or button press into
store operations and replies.

Text messages are classified first (see intents.py). Known commands run
in any state; otherwise a pending guided save consumes the text, and only
an idle user gets the save/expiry/search/intake handling.

Guided save order: name -> site -> account -> password -> expiry -> extra,
then a single insert. Nothing touches the secrets table before that insert.
"""

from datetime import date
from typing import Callable, Optional

from ..db.models import RAW_SITE, Session, SessionStep
from ..db.secrets import SecretRepository
from ..db.sessions import SessionRepository
from ..errors import (
    DecryptionError,
    NotFoundError,
    StoreError,
    UnauthorizedError,
    ValidationError,
    VaultbotError,
)
from ..logging import get_logger
from ..telegram.client import Button, ButtonGrid, ChatTransport
from ..vault.crypto import SecretCipher
from ..vault.expiry import QUICK_PICK_DAYS, current_date, expiry_after, parse_expiry_date
from ..vault.normalize import normalize
from . import callbacks, messages
from .callbacks import CallbackTag, DeleteMode, ExpiryPick, RecordAction, SkipExtra
from .intents import (
    Command,
    CommandName,
    ExpirySet,
    IntakeStart,
    Search,
    StructuredSave,
    classify,
)

logger = get_logger("bot")

SEARCH_LIMIT = 5

_QUICK_PICK_LABELS = {7: "7天后", 30: "30天后", 90: "90天后", 365: "1年后"}
_QUICK_PICKS = [Button(_QUICK_PICK_LABELS[days], callbacks.expiry_pick(days)) for days in QUICK_PICK_DAYS]

QUICK_PICK_GRID: ButtonGrid = [
    [Button("不需要", callbacks.expiry_pick())],
    _QUICK_PICKS[:2],
    _QUICK_PICKS[2:],
    [Button("自定义日期", callbacks.expiry_pick(custom=True))],
]

SKIP_EXTRA_GRID: ButtonGrid = [
    [Button("不需要，直接保存", callbacks.SKIP_EXTRA)],
]

# Step -> (next step, SessionData attribute filled by the text, prompt for the next step)
_TEXT_STEPS = {
    SessionStep.ASK_SITE: (SessionStep.ASK_ACCOUNT, "site", messages.ASK_ACCOUNT),
    SessionStep.ASK_ACCOUNT: (SessionStep.ASK_PASSWORD, "account", messages.ASK_PASSWORD),
    SessionStep.ASK_PASSWORD: (SessionStep.ASK_EXPIRY, "password", messages.ASK_EXPIRY),
}


class ConversationEngine:
    """Handles inbound events for the single authorized user."""

    def __init__(
        self,
        transport: ChatTransport,
        secrets: SecretRepository,
        sessions: SessionRepository,
        cipher: SecretCipher,
        allowed_user_id: int,
        today: Callable[[], date] = current_date,
    ):
        self.transport = transport
        self.secrets = secrets
        self.sessions = sessions
        self.cipher = cipher
        self.allowed_user_id = allowed_user_id
        self._today = today

    def authorize(self, user_id: Optional[int]) -> None:
        """Raise UnauthorizedError unless the sender is the owner."""
        if user_id != self.allowed_user_id:
            raise UnauthorizedError(f"User {user_id} is not the owner")

    # --- Entry points ---

    async def handle_message(self, chat_id: int, user_id: Optional[int], text: str) -> None:
        """Process one text message."""
        try:
            self.authorize(user_id)
            await self._dispatch_text(chat_id, user_id, text)
        except VaultbotError as e:
            await self._report_error(chat_id, e)

    async def handle_callback(
        self,
        callback_id: str,
        user_id: int,
        chat_id: Optional[int],
        data: Optional[str],
    ) -> None:
        """Process one inline button press. Always acknowledged first."""
        await self.transport.answer_callback(callback_id)

        try:
            self.authorize(user_id)
        except UnauthorizedError as e:
            logger.warning(f"Ignored callback: {e}")
            return
        if chat_id is None:
            return

        callback = callbacks.decode(data)
        if callback is None:
            logger.debug(f"Ignored unknown callback payload {data!r}")
            return

        try:
            await self._dispatch_callback(chat_id, user_id, callback)
        except VaultbotError as e:
            await self._report_error(chat_id, e)

    async def _report_error(self, chat_id: int, error: VaultbotError) -> None:
        if isinstance(error, UnauthorizedError):
            logger.warning(f"Rejected message: {error}")
            text = messages.UNAUTHORIZED
        elif isinstance(error, ValidationError):
            text = str(error)
        elif isinstance(error, NotFoundError):
            text = messages.NOT_FOUND
        elif isinstance(error, DecryptionError):
            logger.error(f"Decryption failed: {error}")
            text = messages.DECRYPT_FAILED
        else:
            if isinstance(error, StoreError):
                logger.error(f"Store failure: {error}")
            else:
                logger.error(f"Unhandled {type(error).__name__}: {error}")
            text = messages.STORE_FAILED
        await self.transport.send_text(chat_id, text)

    # --- Text dispatch ---

    async def _dispatch_text(self, chat_id: int, user_id: int, text: str) -> None:
        intent = classify(text)
        if intent is None:
            return

        if isinstance(intent, Command) and intent.name is not CommandName.UNKNOWN:
            await self._run_command(chat_id, user_id, intent.name)
            return

        session = await self.sessions.get(user_id)
        if not session.is_idle:
            await self._advance(chat_id, session, text.strip())
            return

        if isinstance(intent, Command):
            raise ValidationError(messages.UNKNOWN_COMMAND)
        if isinstance(intent, StructuredSave):
            await self._save_raw(chat_id, intent)
            return
        if isinstance(intent, ExpirySet):
            await self._set_expiry(chat_id, intent)
            return
        if isinstance(intent, Search):
            if await self._search(chat_id, intent.term):
                return
            intent = IntakeStart(intent.term)

        await self._start_intake(chat_id, session, intent.name)

    async def _run_command(self, chat_id: int, user_id: int, name: CommandName) -> None:
        if name is CommandName.HELP:
            await self.transport.send_text(chat_id, messages.HELP_TEXT)
        elif name is CommandName.LIST:
            await self.show_list(chat_id)
        elif name is CommandName.EXPIRING:
            await self.show_expiring(chat_id)
        elif name is CommandName.CANCEL:
            await self.sessions.clear(user_id)
            await self.transport.send_text(chat_id, messages.CANCELLED)

    async def _search(self, chat_id: int, term: str) -> bool:
        """Show matches for a short token. Returns False when nothing matched."""
        hits = await self.secrets.search(term, limit=SEARCH_LIMIT)
        if not hits:
            return False
        if len(hits) == 1:
            await self.show_detail(chat_id, hits[0].id)
            return True
        buttons = [[Button(hit.label, callbacks.view(hit.id))] for hit in hits]
        await self.transport.send_text_with_buttons(chat_id, messages.search_results(len(hits)), buttons)
        return True

    # --- Freeform save and expiry edits ---

    async def _save_raw(self, chat_id: int, intent: StructuredSave) -> None:
        if intent.body is None:
            raise ValidationError(messages.SAVE_FORMAT)

        body = normalize(intent.body)
        if not intent.name or not body:
            raise ValidationError(messages.SAVE_EMPTY)

        expires_at = None
        if intent.expiry_text:
            expires_at = parse_expiry_date(intent.expiry_text, self._today())
            if expires_at is None:
                raise ValidationError(messages.BAD_DATE)

        record = await self.secrets.insert(
            name=intent.name,
            site=RAW_SITE,
            account="",
            password=self.cipher.encrypt(body),
            extra=None,
            expires_at=expires_at,
        )
        logger.info("Saved freeform secret", extra={"record_id": record.id})
        await self.transport.send_text(chat_id, messages.saved_raw(intent.name, expires_at))

    async def _set_expiry(self, chat_id: int, intent: ExpirySet) -> None:
        if intent.record_id is None:
            raise ValidationError(messages.EXPIRY_SET_FORMAT)

        if intent.clears:
            if not await self.secrets.update_expiry(intent.record_id, None):
                raise NotFoundError(intent.record_id)
            await self.transport.send_text(chat_id, messages.EXPIRY_CLEARED)
            return

        expires_at = parse_expiry_date(intent.value, self._today())
        if expires_at is None:
            raise ValidationError(messages.BAD_DATE)
        if not await self.secrets.update_expiry(intent.record_id, expires_at):
            raise NotFoundError(intent.record_id)
        logger.info("Updated expiry", extra={"record_id": intent.record_id})
        await self.transport.send_text(chat_id, messages.expiry_set(expires_at))

    # --- Guided save ---

    async def _start_intake(self, chat_id: int, session: Session, name: str) -> None:
        session.step = SessionStep.ASK_SITE
        session.data.name = name
        await self.sessions.set(session)
        await self.transport.send_text(chat_id, messages.start_intake(name))

    async def _advance(self, chat_id: int, session: Session, text: str) -> None:
        """Feed text to the pending step."""
        if session.step in _TEXT_STEPS:
            next_step, attribute, prompt = _TEXT_STEPS[session.step]
            setattr(session.data, attribute, text)
            session.step = next_step
            await self.sessions.set(session)
            if next_step is SessionStep.ASK_EXPIRY:
                await self.transport.send_text_with_buttons(chat_id, prompt, QUICK_PICK_GRID)
            else:
                await self.transport.send_text(chat_id, prompt)
            return

        if session.step is SessionStep.ASK_EXPIRY:
            expires_at = parse_expiry_date(text, self._today())
            if expires_at is None:
                # Stay at ask_expiry; the stored session is left untouched
                raise ValidationError(messages.BAD_DATE_REPROMPT)
            await self._to_extra_step(chat_id, session, expires_at)
            return

        if session.step is SessionStep.ASK_EXTRA:
            session.data.extra = text
            await self._finish_intake(chat_id, session)

    async def _to_extra_step(self, chat_id: int, session: Session, expires_at: Optional[date]) -> None:
        session.data.expires_at = expires_at
        session.step = SessionStep.ASK_EXTRA
        await self.sessions.set(session)
        await self.transport.send_text_with_buttons(chat_id, messages.ask_extra(expires_at), SKIP_EXTRA_GRID)

    async def _finish_intake(self, chat_id: int, session: Session) -> None:
        data = session.data
        record = await self.secrets.insert(
            name=data.name,
            site=data.site,
            account=self.cipher.encrypt(data.account or ""),
            password=self.cipher.encrypt(data.password or ""),
            extra=self.cipher.encrypt_optional(data.extra),
            expires_at=data.expires_at,
        )
        await self.sessions.clear(session.user_id)
        logger.info("Saved secret", extra={"record_id": record.id})
        await self.transport.send_text(
            chat_id,
            messages.saved_structured(data.name, data.site, data.account, data.extra, data.expires_at),
        )

    # --- Callback dispatch ---

    async def _dispatch_callback(self, chat_id: int, user_id: int, callback) -> None:
        if isinstance(callback, ExpiryPick):
            session = await self.sessions.get(user_id)
            if session.step is not SessionStep.ASK_EXPIRY:
                return
            if callback.custom:
                await self.transport.send_text(chat_id, messages.ASK_CUSTOM_EXPIRY)
                return
            expires_at = expiry_after(callback.days, self._today()) if callback.days else None
            await self._to_extra_step(chat_id, session, expires_at)

        elif isinstance(callback, SkipExtra):
            session = await self.sessions.get(user_id)
            if session.step is not SessionStep.ASK_EXTRA:
                return
            session.data.extra = None
            await self._finish_intake(chat_id, session)

        elif isinstance(callback, DeleteMode):
            await self.show_delete_mode(chat_id)

        elif isinstance(callback, RecordAction):
            if callback.tag is CallbackTag.VIEW:
                await self.show_detail(chat_id, callback.record_id)
            elif callback.tag is CallbackTag.DELETE:
                await self.confirm_delete(chat_id, callback.record_id)
            elif callback.tag is CallbackTag.DELETE_CONFIRM:
                await self.delete(chat_id, callback.record_id)
            elif callback.tag is CallbackTag.SET_EXPIRY:
                if await self.secrets.get(callback.record_id) is None:
                    raise NotFoundError(callback.record_id)
                await self.transport.send_text(chat_id, messages.set_expiry_help(callback.record_id))

    # --- Views ---

    async def show_detail(self, chat_id: int, record_id: int) -> None:
        """Decrypt and show one record."""
        record = await self.secrets.get(record_id)
        if record is None:
            raise NotFoundError(record_id)

        # Decrypt everything before building the text so a failure shows nothing
        if record.is_raw:
            text = messages.raw_detail(record.name, self.cipher.decrypt(record.password))
        else:
            text = messages.structured_detail(
                record.name,
                record.site,
                self.cipher.decrypt(record.account),
                self.cipher.decrypt(record.password),
                self.cipher.decrypt_optional(record.extra),
            )
        text += messages.expiry_info(record.expires_at, self._today())

        buttons = [
            [Button("📅 设置到期", callbacks.set_expiry(record.id))],
            [Button("🗑️ 删除", callbacks.delete(record.id))],
        ]
        await self.transport.send_text_with_buttons(chat_id, text, buttons)

    async def show_list(self, chat_id: int) -> None:
        summaries = await self.secrets.list_all()
        if not summaries:
            await self.transport.send_text(chat_id, messages.LIST_EMPTY)
            return
        today = self._today()
        buttons = [
            [Button(messages.list_label(summary, today), callbacks.view(summary.id))]
            for summary in summaries
        ]
        buttons.append([Button("🗑️ 删除模式", callbacks.DELETE_MODE)])
        await self.transport.send_text_with_buttons(chat_id, messages.LIST_HEADER, buttons)

    async def show_expiring(self, chat_id: int) -> None:
        today = self._today()
        summaries = await self.secrets.list_expiring_within(messages.EXPIRING_WINDOW_DAYS, today)
        if not summaries:
            await self.transport.send_text(chat_id, messages.EXPIRING_EMPTY)
            return
        buttons = [
            [Button(messages.expiring_label(summary, today), callbacks.view(summary.id))]
            for summary in summaries
        ]
        await self.transport.send_text_with_buttons(chat_id, messages.EXPIRING_HEADER, buttons)

    async def show_delete_mode(self, chat_id: int) -> None:
        summaries = await self.secrets.list_all()
        if not summaries:
            await self.transport.send_text(chat_id, messages.DELETE_MODE_EMPTY)
            return
        buttons = [
            [Button(f"❌ {summary.label}", callbacks.delete(summary.id))]
            for summary in summaries
        ]
        await self.transport.send_text_with_buttons(chat_id, messages.DELETE_MODE_HEADER, buttons)

    async def confirm_delete(self, chat_id: int, record_id: int) -> None:
        record = await self.secrets.get(record_id)
        if record is None:
            raise NotFoundError(record_id)
        buttons = [
            [Button("✅ 确认删除", callbacks.delete_confirm(record_id))],
            [Button("↩️ 返回", callbacks.view(record_id))],
        ]
        await self.transport.send_text_with_buttons(chat_id, messages.confirm_delete(record.name), buttons)

    async def delete(self, chat_id: int, record_id: int) -> None:
        record = await self.secrets.get(record_id)
        if record is None or not await self.secrets.delete(record_id):
            raise NotFoundError(record_id)
        logger.info("Deleted secret", extra={"record_id": record_id})
        await self.transport.send_text(chat_id, messages.deleted(record.name))
