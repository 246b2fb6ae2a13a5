"""Text command routing.

The first whitespace-delimited token of a text message selects exactly one
canned reply. Matching is exact and case-sensitive; anything that is not a
known command (including ``/Remove`` or ``/remove!``) gets the usage text.
"""
import asyncio
import enum
import logging
import re

from telegram import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    Message,
    ReplyKeyboardMarkup,
    ReplyKeyboardRemove,
)
from telegram.constants import ChatAction

from visionbot.metrics import COMMAND_TOTAL

logger = logging.getLogger(__name__)

USAGE_TEXT = (
    "Usage:\n"
    "/inline   - send inline keyboard\n"
    "/keyboard - send custom keyboard\n"
    "/remove   - remove custom keyboard\n"
    "/request  - request location or contact"
)

_WHITESPACE = re.compile(r"\s+")


class CommandToken(str, enum.Enum):
    INLINE = "/inline"
    KEYBOARD = "/keyboard"
    REMOVE = "/remove"
    REQUEST = "/request"
    USAGE = "usage"


_KNOWN_COMMANDS = {
    token.value: token for token in CommandToken if token is not CommandToken.USAGE
}


def parse_command(text: str | None) -> CommandToken:
    """Map the first token of ``text`` to a command, defaulting to USAGE."""
    if not text:
        return CommandToken.USAGE
    first = _WHITESPACE.split(text, maxsplit=1)[0]
    return _KNOWN_COMMANDS.get(first, CommandToken.USAGE)


class CommandRouter:
    """Routes text messages to one reply each.

    Holds only the shared messenger and the ``/inline`` typing delay, so one
    instance serves concurrent updates.
    """

    def __init__(self, messenger, typing_delay: float = 0.5):
        self.messenger = messenger
        self.typing_delay = typing_delay
        self._handlers = {
            CommandToken.INLINE: self.send_inline_keyboard,
            CommandToken.KEYBOARD: self.send_reply_keyboard,
            CommandToken.REMOVE: self.remove_keyboard,
            CommandToken.REQUEST: self.request_contact_and_location,
            CommandToken.USAGE: self.usage,
        }

    async def route(self, message: Message) -> Message:
        command = parse_command(message.text)
        COMMAND_TOTAL.labels(command=command.name.lower()).inc()
        return await self._handlers[command](message)

    async def send_inline_keyboard(self, message: Message) -> Message:
        """Send a 2x2 inline keyboard; presses arrive as callback queries."""
        await self.messenger.send_chat_action(message.chat_id, ChatAction.TYPING)

        # Simulate a longer running task behind the typing indicator.
        if self.typing_delay > 0:
            await asyncio.sleep(self.typing_delay)

        inline_keyboard = InlineKeyboardMarkup(
            [
                [
                    InlineKeyboardButton("1.1", callback_data="11"),
                    InlineKeyboardButton("1.2", callback_data="12"),
                ],
                [
                    InlineKeyboardButton("2.1", callback_data="21"),
                    InlineKeyboardButton("2.2", callback_data="22"),
                ],
            ]
        )
        return await self.messenger.send(
            message.chat_id, "Choose", reply_markup=inline_keyboard
        )

    async def send_reply_keyboard(self, message: Message) -> Message:
        reply_keyboard = ReplyKeyboardMarkup(
            [["1.1", "1.2"], ["2.1", "2.2"]],
            resize_keyboard=True,
        )
        return await self.messenger.send(
            message.chat_id, "Choose", reply_markup=reply_keyboard
        )

    async def remove_keyboard(self, message: Message) -> Message:
        return await self.messenger.send(
            message.chat_id, "Removing keyboard", reply_markup=ReplyKeyboardRemove()
        )

    async def request_contact_and_location(self, message: Message) -> Message:
        request_keyboard = ReplyKeyboardMarkup(
            [
                [
                    KeyboardButton("Location", request_location=True),
                    KeyboardButton("Contact", request_contact=True),
                ]
            ]
        )
        return await self.messenger.send(
            message.chat_id, "Who or Where are you?", reply_markup=request_keyboard
        )

    async def usage(self, message: Message) -> Message:
        return await self.messenger.send(
            message.chat_id, USAGE_TEXT, reply_markup=ReplyKeyboardRemove()
        )
