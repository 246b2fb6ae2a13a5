"""Photo messages: download the largest variant, analyze it, reply with a summary.

Every failure between download and the summary reply is handled here: the
user gets a fixed fallback reply and the caller gets ``None``.
"""
import json
import logging
import time

from telegram import Message, PhotoSize
from telegram.constants import ParseMode
from telegram.helpers import escape_markdown

from visionbot.metrics import PHOTO_FALLBACKS, VISION_LATENCY
from visionbot.vision_client import ALL_FEATURES, VisionResult

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "Photo can't be processed"


def select_best_photo(photos) -> PhotoSize | None:
    """Return the variant with the largest ``file_size``.

    Unknown sizes rank below any known size; on ties the first variant wins.
    """
    if not photos:
        return None
    return max(
        photos,
        key=lambda photo: photo.file_size if photo.file_size is not None else -1,
    )


def _join(values) -> str:
    return escape_markdown(",".join(values), version=2)


def format_summary(result: VisionResult) -> str:
    """Render a vision result as a MarkdownV2 message body."""
    categories = [name.replace("_", "") for name in result.categories]
    return (
        f"*Tags*: {_join(result.tags)}\\. "
        f"*Categories*: {_join(categories)}\\. "
        f"*Captions*: {_join(result.captions)}\\."
    )


async def handle_photo(messenger, vision, message: Message) -> Message | None:
    """Reply to a photo message with its analysis summary.

    Returns the sent summary, or ``None`` when the message carries no photo
    or the fallback text was sent instead.
    """
    photo = select_best_photo(message.photo)
    if photo is None:
        return None

    try:
        image = await messenger.download_file(photo.file_id)

        started = time.monotonic()
        try:
            result = await vision.analyze(image, ALL_FEATURES)
        finally:
            VISION_LATENCY.observe(time.monotonic() - started)
        logger.info(f"Vision result: {json.dumps(result.raw, default=str)}")

        return await messenger.send(
            message.chat_id,
            format_summary(result),
            parse_mode=ParseMode.MARKDOWN_V2,
            reply_to=message.message_id,
        )
    except Exception:
        logger.exception(f"Photo {photo.file_id} could not be processed")
        PHOTO_FALLBACKS.inc()
        await messenger.send(
            message.chat_id,
            FALLBACK_TEXT,
            reply_to=message.message_id,
        )
        return None
