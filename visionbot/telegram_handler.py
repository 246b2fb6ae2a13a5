"""Telegram webhook handler for the photo-analysis bot.

This module owns the long-lived collaborators and turns raw webhook JSON into
dispatched updates.

Architecture overview:
  Telegram Cloud  ──webhook POST──►  FastAPI (main.py)  /bot/{token}
                                        │
                                        ▼
                              TelegramBotHandler.handle_webhook()
                                        │  Update.de_json()
                                        ▼
                              UpdateDispatcher.handle()   (dispatch.py)
                                        │
                  ┌─────────────────────┼──────────────────────┐
                  ▼                     ▼                      ▼
            photo message          /command text        callback / inline
         (photo.py, vision)       (commands.py)           (dispatch.py)
                  │                     │                      │
                  └─────────────────────┼──────────────────────┘
                                        ▼
                              TelegramMessenger (messaging.py)
                                        │
                                        ▼
                              Reply sent back to Telegram

Key design decisions:
  - The Bot, the vision client and the dispatcher are built once in
    initialize() and shared read-only by every request.
  - The dispatcher never raises, so a handler failure still lets the
    webhook answer 200 and Telegram does not redeliver the update.
  - The webhook URL embeds the bot token (Telegram's recommendation for a
    secret path); an optional secret header adds a second check.
"""
import logging

from telegram import Bot, Update

from visionbot.config import BotConfiguration
from visionbot.dispatch import UpdateDispatcher
from visionbot.messaging import TelegramMessenger
from visionbot.vision_client import VisionClient

logger = logging.getLogger(__name__)


class TelegramBotHandler:
    """Handler for Telegram webhook integration with the vision dispatcher."""

    def __init__(self, config: BotConfiguration, bot: Bot | None = None, vision_client=None):
        """Store configuration; network setup happens in initialize().

        Args:
            config: Environment-derived settings.
            bot: Pre-built Bot (tests); built from the token when omitted.
            vision_client: Pre-built vision client (tests); built from the
                vision endpoint and key when omitted.
        """
        self.config = config
        self.bot = bot
        self.vision_client = vision_client
        self.messenger = None
        self.dispatcher = None

    async def initialize(self):
        """Create the Bot and vision client, then register the webhook.

        Called once at startup from the FastAPI lifespan.
        """
        if self.bot is None:
            self.bot = Bot(self.config.bot_token)
        await self.bot.initialize()

        if self.vision_client is None:
            self.vision_client = VisionClient(
                api_key=self.config.vision_api_key,
                endpoint=self.config.vision_endpoint,
                timeout_seconds=self.config.vision_timeout,
            )

        self.messenger = TelegramMessenger(self.bot)
        self.dispatcher = UpdateDispatcher(
            self.messenger,
            self.vision_client,
            typing_delay=self.config.typing_delay,
        )

        webhook_url = self.config.webhook_url
        if webhook_url:
            await self.set_webhook(webhook_url)
        else:
            logger.warning("HOST_ADDRESS not set - webhook registration skipped")

    async def set_webhook(self, webhook_url: str):
        # Log the host only; the path carries the token.
        logger.info(f"Setting webhook: {self.config.host_address}/bot/<token>")
        await self.bot.set_webhook(
            url=webhook_url,
            allowed_updates=Update.ALL_TYPES,
            secret_token=self.config.webhook_secret_token or None,
        )
        logger.info("Setting webhook success")

    async def shutdown(self):
        """Release HTTP resources. The webhook stays registered."""
        if self.vision_client is not None:
            await self.vision_client.aclose()
        if self.bot is not None:
            await self.bot.shutdown()

    async def handle_webhook(self, update_data: dict):
        """Deserialize a webhook POST body and dispatch it.

        Raises only when the body is not a valid Update; handler failures
        are absorbed by the dispatcher.
        """
        if not update_data:
            raise ValueError("Empty webhook update")
        try:
            update = Update.de_json(update_data, self.bot)
        except Exception as e:
            logger.error(f"Error parsing webhook update: {e}")
            raise
        await self.dispatcher.handle(update)
