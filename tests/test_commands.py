import pytest
from telegram import InlineKeyboardMarkup, ReplyKeyboardMarkup, ReplyKeyboardRemove

from visionbot.commands import USAGE_TEXT, CommandRouter, CommandToken, parse_command
from factories import CHAT_ID, text_message


class TestParseCommand:
    def test_known_commands(self):
        assert parse_command("/inline") is CommandToken.INLINE
        assert parse_command("/keyboard") is CommandToken.KEYBOARD
        assert parse_command("/remove") is CommandToken.REMOVE
        assert parse_command("/request") is CommandToken.REQUEST

    def test_only_first_token_matters(self):
        assert parse_command("/remove now please") is CommandToken.REMOVE
        assert parse_command("/request\tlocation") is CommandToken.REQUEST
        assert parse_command("hello /remove") is CommandToken.USAGE

    def test_case_and_punctuation_fall_back_to_usage(self):
        assert parse_command("/Remove") is CommandToken.USAGE
        assert parse_command("/INLINE") is CommandToken.USAGE
        assert parse_command("/remove!") is CommandToken.USAGE
        assert parse_command("/remove@SomeBot") is CommandToken.USAGE

    def test_empty_and_leading_whitespace(self):
        assert parse_command("") is CommandToken.USAGE
        assert parse_command(None) is CommandToken.USAGE
        assert parse_command(" /remove") is CommandToken.USAGE

    def test_usage_value_is_not_a_command(self):
        assert parse_command("usage") is CommandToken.USAGE


@pytest.mark.asyncio
async def test_remove_sends_one_message_with_keyboard_removal(messenger):
    router = CommandRouter(messenger, typing_delay=0)

    sent = await router.route(text_message("/remove"))

    assert len(messenger.sent) == 1
    call = messenger.sent[0]
    assert call["chat_id"] == CHAT_ID
    assert call["text"] == "Removing keyboard"
    assert isinstance(call["reply_markup"], ReplyKeyboardRemove)
    assert sent.message_id == call["message_id"]


@pytest.mark.asyncio
async def test_inline_sends_typing_then_inline_keyboard(messenger):
    router = CommandRouter(messenger, typing_delay=0)

    await router.route(text_message("/inline"))

    assert messenger.chat_actions == [(CHAT_ID, "typing")]
    assert len(messenger.sent) == 1
    markup = messenger.sent[0]["reply_markup"]
    assert isinstance(markup, InlineKeyboardMarkup)
    data = [[button.callback_data for button in row] for row in markup.inline_keyboard]
    assert data == [["11", "12"], ["21", "22"]]


@pytest.mark.asyncio
async def test_inline_waits_for_configured_delay(messenger, monkeypatch):
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("visionbot.commands.asyncio.sleep", fake_sleep)
    router = CommandRouter(messenger, typing_delay=0.5)

    await router.route(text_message("/inline"))

    assert delays == [0.5]


@pytest.mark.asyncio
async def test_keyboard_is_resizable_two_by_two(messenger):
    router = CommandRouter(messenger, typing_delay=0)

    await router.route(text_message("/keyboard"))

    markup = messenger.sent[0]["reply_markup"]
    assert isinstance(markup, ReplyKeyboardMarkup)
    assert markup.resize_keyboard is True
    labels = [[button.text for button in row] for row in markup.keyboard]
    assert labels == [["1.1", "1.2"], ["2.1", "2.2"]]
    assert messenger.sent[0]["text"] == "Choose"


@pytest.mark.asyncio
async def test_request_asks_for_location_and_contact(messenger):
    router = CommandRouter(messenger, typing_delay=0)

    await router.route(text_message("/request"))

    call = messenger.sent[0]
    assert call["text"] == "Who or Where are you?"
    (row,) = call["reply_markup"].keyboard
    assert row[0].text == "Location" and row[0].request_location is True
    assert row[1].text == "Contact" and row[1].request_contact is True


@pytest.mark.asyncio
async def test_unknown_text_gets_usage(messenger):
    router = CommandRouter(messenger, typing_delay=0)

    await router.route(text_message("what can you do?"))

    assert len(messenger.sent) == 1
    assert messenger.sent[0]["text"] == USAGE_TEXT
    assert isinstance(messenger.sent[0]["reply_markup"], ReplyKeyboardRemove)
    assert messenger.chat_actions == []
