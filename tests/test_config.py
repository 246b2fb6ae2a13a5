import pytest

from visionbot.config import BotConfiguration


def test_defaults_from_empty_environment():
    config = BotConfiguration({})

    assert config.bot_token == ""
    assert config.vision_timeout == 30.0
    assert config.typing_delay == 0.5
    assert config.webhook_rate_limit == "60/minute"
    assert config.is_production is True
    assert config.webhook_url is None
    assert config.missing_required() == [
        "TELEGRAM_BOT_TOKEN",
        "COMPUTER_VISION_API_KEY",
        "COMPUTER_VISION_API_ENDPOINT",
    ]


def test_values_are_read_and_normalized():
    config = BotConfiguration(
        {
            "TELEGRAM_BOT_TOKEN": "123:abc",
            "HOST_ADDRESS": "https://bot.example.org/",
            "COMPUTER_VISION_API_KEY": "key",
            "COMPUTER_VISION_API_ENDPOINT": "https://westeurope.api.cognitive.microsoft.com/",
            "TYPING_DELAY_SECONDS": "0",
            "VISION_TIMEOUT_SECONDS": "12.5",
            "APP_ENV": "Development",
        }
    )

    assert config.missing_required() == []
    assert config.webhook_url == "https://bot.example.org/bot/123:abc"
    assert config.vision_endpoint == "https://westeurope.api.cognitive.microsoft.com"
    assert config.typing_delay == 0.0
    assert config.vision_timeout == 12.5
    assert config.is_production is False


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "999:zzz")
    monkeypatch.setenv("TYPING_DELAY_SECONDS", "1.5")

    config = BotConfiguration()

    assert config.bot_token == "999:zzz"
    assert config.typing_delay == 1.5


def test_invalid_number_is_rejected():
    with pytest.raises(ValueError, match="TYPING_DELAY_SECONDS"):
        BotConfiguration({"TYPING_DELAY_SECONDS": "soon"})
