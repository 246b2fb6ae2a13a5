"""Outbound Telegram calls used by the update handlers.

A thin wrapper over python-telegram-bot's ``Bot`` that exposes only the
operations the dispatcher needs and turns Telegram API failures into
``PlatformApiError`` so callers can tell them apart from transport or
programming errors.
"""
import logging
from contextlib import contextmanager

from telegram import Bot, Message, ReplyParameters
from telegram.constants import ChatAction
from telegram.error import (
    BadRequest,
    ChatMigrated,
    Conflict,
    Forbidden,
    InvalidToken,
    RetryAfter,
)

logger = logging.getLogger(__name__)

# First match wins.
_API_ERROR_CODES = (
    (InvalidToken, 401),
    (Forbidden, 403),
    (Conflict, 409),
    (RetryAfter, 429),
    (ChatMigrated, 400),
    (BadRequest, 400),
)


class PlatformApiError(Exception):
    """A request rejected by the Telegram Bot API."""

    def __init__(self, error_code: int, message: str):
        super().__init__(message)
        self.error_code = error_code
        self.message = message


@contextmanager
def _api_errors():
    try:
        yield
    except Exception as e:
        for error_type, code in _API_ERROR_CODES:
            if isinstance(e, error_type):
                raise PlatformApiError(code, getattr(e, "message", str(e))) from e
        raise


class TelegramMessenger:
    """Send/receive operations on a single shared ``telegram.Bot``."""

    def __init__(self, bot: Bot):
        self.bot = bot

    async def send(
        self,
        chat_id: int,
        text: str,
        *,
        parse_mode: str | None = None,
        reply_markup=None,
        reply_to: int | None = None,
    ) -> Message:
        reply_parameters = ReplyParameters(message_id=reply_to) if reply_to else None
        with _api_errors():
            return await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                parse_mode=parse_mode,
                reply_markup=reply_markup,
                reply_parameters=reply_parameters,
            )

    async def send_chat_action(self, chat_id: int, action: str = ChatAction.TYPING) -> None:
        with _api_errors():
            await self.bot.send_chat_action(chat_id=chat_id, action=action)

    async def download_file(self, file_id: str) -> bytes:
        """Resolve ``file_id`` and download the whole file into memory."""
        with _api_errors():
            file = await self.bot.get_file(file_id)
            data = await file.download_as_bytearray()
        logger.info(
            f"Downloaded file: {file.file_unique_id}, {file.file_path}, {file.file_size}"
        )
        return bytes(data)

    async def answer_callback(self, callback_query_id: str, text: str | None = None) -> None:
        with _api_errors():
            await self.bot.answer_callback_query(
                callback_query_id=callback_query_id, text=text
            )

    async def answer_inline_query(
        self,
        inline_query_id: str,
        results,
        *,
        is_personal: bool = False,
        cache_time: int = 300,
    ) -> None:
        with _api_errors():
            await self.bot.answer_inline_query(
                inline_query_id=inline_query_id,
                results=results,
                is_personal=is_personal,
                cache_time=cache_time,
            )
