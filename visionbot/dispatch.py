"""Update dispatch: classify an inbound update and run exactly one handler.

Dispatch is three explicit levels:

  Update  ──classify()──►  UpdateKind
                              │
        ┌──────────┬──────────┼───────────────┬────────────────────┐
        ▼          ▼          ▼               ▼                    ▼
   (edited_)message  callback_query  inline_query  chosen_inline_result  unknown
        │
        ▼
  classify_message() ──► MessageType
        │
   ┌────┼───────────┐
   ▼    ▼           ▼
 PHOTO  TEXT       OTHER (ignored)
   │    │
   │    ▼
   │  parse_command() ──► CommandToken ──► CommandRouter
   ▼
 handle_photo()

UpdateDispatcher.handle() never raises: any failure escaping a handler is
rendered by describe_error() and logged. Nothing is sent to the user from
that layer; the photo handler owns its own fallback reply.
"""
import enum
import logging
import traceback

from telegram import (
    CallbackQuery,
    ChosenInlineResult,
    InlineQuery,
    InlineQueryResultArticle,
    InputTextMessageContent,
    Message,
    Update,
)

from visionbot.commands import CommandRouter
from visionbot.messaging import PlatformApiError
from visionbot.metrics import HANDLER_ERRORS, UPDATE_TOTAL
from visionbot.photo import handle_photo

logger = logging.getLogger(__name__)


class UpdateKind(str, enum.Enum):
    MESSAGE = "message"
    EDITED_MESSAGE = "edited_message"
    CALLBACK_QUERY = "callback_query"
    INLINE_QUERY = "inline_query"
    CHOSEN_INLINE_RESULT = "chosen_inline_result"
    UNKNOWN = "unknown"


class MessageType(str, enum.Enum):
    TEXT = "text"
    PHOTO = "photo"
    OTHER = "other"


def classify(update: Update) -> UpdateKind:
    """Map an update to its kind. Total: unrecognized payloads are UNKNOWN."""
    if update.message is not None:
        return UpdateKind.MESSAGE
    if update.edited_message is not None:
        return UpdateKind.EDITED_MESSAGE
    if update.callback_query is not None:
        return UpdateKind.CALLBACK_QUERY
    if update.inline_query is not None:
        return UpdateKind.INLINE_QUERY
    if update.chosen_inline_result is not None:
        return UpdateKind.CHOSEN_INLINE_RESULT
    return UpdateKind.UNKNOWN


def classify_message(message: Message) -> MessageType:
    if message.photo:
        return MessageType.PHOTO
    if message.text is not None:
        return MessageType.TEXT
    return MessageType.OTHER


def describe_error(exc: Exception) -> str:
    if isinstance(exc, PlatformApiError):
        return f"Telegram API Error:\n[{exc.error_code}]\n{exc.message}"
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


async def handle_callback_query(messenger, callback_query: CallbackQuery) -> None:
    """Acknowledge an inline button press and echo its data into the chat."""
    text = f"Received {callback_query.data or ''}"
    await messenger.answer_callback(callback_query.id, text)

    # Buttons on inline-mode messages come back without a chat.
    message = callback_query.message
    if message is None or message.chat is None:
        return
    await messenger.send(message.chat.id, text)


async def handle_inline_query(messenger, inline_query: InlineQuery) -> None:
    logger.info(f"Received inline query from: {inline_query.from_user.id}")

    results = [
        InlineQueryResultArticle(
            id="3",
            title="TgBots",
            input_message_content=InputTextMessageContent("hello"),
        )
    ]
    await messenger.answer_inline_query(
        inline_query.id, results, is_personal=True, cache_time=0
    )


async def handle_chosen_inline_result(chosen_inline_result: ChosenInlineResult) -> None:
    logger.info(f"Received inline result: {chosen_inline_result.result_id}")


async def handle_unknown_update(update: Update) -> None:
    update_type = next(
        (name for name in Update.ALL_TYPES if getattr(update, name, None) is not None),
        "unknown",
    )
    logger.info(f"Unknown update type: {update_type}, id: {update.update_id}")


class UpdateDispatcher:
    """Entry point for one deserialized update.

    Collaborators are injected once at startup and only read afterwards, so
    a single dispatcher serves concurrent webhook requests.
    """

    def __init__(self, messenger, vision, typing_delay: float = 0.5):
        self.messenger = messenger
        self.vision = vision
        self.router = CommandRouter(messenger, typing_delay=typing_delay)

    async def handle(self, update: Update) -> None:
        kind = classify(update)
        UPDATE_TOTAL.labels(kind=kind.value).inc()
        try:
            if kind is UpdateKind.MESSAGE:
                await self.handle_message(update.message)
            elif kind is UpdateKind.EDITED_MESSAGE:
                await self.handle_message(update.edited_message)
            elif kind is UpdateKind.CALLBACK_QUERY:
                await handle_callback_query(self.messenger, update.callback_query)
            elif kind is UpdateKind.INLINE_QUERY:
                await handle_inline_query(self.messenger, update.inline_query)
            elif kind is UpdateKind.CHOSEN_INLINE_RESULT:
                await handle_chosen_inline_result(update.chosen_inline_result)
            else:
                await handle_unknown_update(update)
        except Exception as e:
            self._handle_error(e)

    async def handle_message(self, message: Message) -> Message | None:
        message_type = classify_message(message)
        logger.info(f"Receive message type: {message_type.value}")

        if message_type is MessageType.PHOTO:
            sent = await handle_photo(self.messenger, self.vision, message)
            sent_id = sent.message_id if sent is not None else None
            logger.info(f"The message was sent with id: {sent_id}")
            return sent

        # Stickers, documents, locations and the like get no reply.
        if message_type is not MessageType.TEXT:
            return None

        sent = await self.router.route(message)
        logger.info(f"The message was sent with id: {sent.message_id}")
        return sent

    def _handle_error(self, exc: Exception) -> None:
        error_type = "api" if isinstance(exc, PlatformApiError) else "generic"
        HANDLER_ERRORS.labels(type=error_type).inc()
        logger.error(f"HandleError: {describe_error(exc)}")
