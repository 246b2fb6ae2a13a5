"""FastAPI entry point for the webhook service."""
import hmac
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from visionbot.config import BotConfiguration
from visionbot.logging_config import setup_logging
from visionbot.telegram_handler import TelegramBotHandler

logger = logging.getLogger(__name__)

SECRET_TOKEN_HEADER = "X-Telegram-Bot-Api-Secret-Token"


def create_app(
    config: BotConfiguration | None = None,
    telegram_handler: TelegramBotHandler | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        config: Settings; read from the environment when omitted.
        telegram_handler: Pre-built handler (tests). When omitted, one is
            created and initialized in the lifespan if a bot token is set.
    """
    config = config or BotConfiguration()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        missing = config.missing_required()
        if missing:
            logger.error(f"Missing required environment variables: {missing}")
            if config.is_production:
                raise RuntimeError("Missing required environment variables")

        handler = telegram_handler
        if handler is None and config.bot_token:
            handler = TelegramBotHandler(config)
        if handler is None:
            logger.warning("TELEGRAM_BOT_TOKEN not set - Telegram integration disabled")
        else:
            await handler.initialize()
            logger.info("Telegram bot initialized")

        app.state.telegram_handler = handler
        yield
        if handler is not None:
            await handler.shutdown()

    app = FastAPI(lifespan=lifespan)
    app.state.telegram_handler = None

    limiter = Limiter(key_func=get_remote_address)
    app.state.limiter = limiter

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
        logger.warning(f"Rate limit exceeded for {request.client.host}")
        return JSONResponse(
            status_code=429,
            content={
                "error": "Rate limit exceeded",
                "detail": "Too many requests. Please try again later.",
            },
        )

    @app.post("/bot/{token}")
    @limiter.limit(config.webhook_rate_limit)
    async def telegram_webhook(token: str, request: Request):
        """Webhook endpoint for Telegram bot updates.

        Answers 200 once the update is parsed, whatever the handlers did.
        """
        handler = request.app.state.telegram_handler
        if not handler:
            raise HTTPException(status_code=503, detail="Telegram bot not configured")

        if not hmac.compare_digest(token.encode(), config.bot_token.encode()):
            raise HTTPException(status_code=404, detail="Not found")

        if config.webhook_secret_token:
            received = request.headers.get(SECRET_TOKEN_HEADER, "")
            if not hmac.compare_digest(received.encode(), config.webhook_secret_token.encode()):
                raise HTTPException(status_code=401, detail="Invalid secret token")

        try:
            update_data = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Failed to process update")

        try:
            await handler.handle_webhook(update_data)
        except Exception as e:
            logger.error(f"Error processing Telegram webhook: {e}")
            raise HTTPException(status_code=400, detail="Failed to process update")
        return {"ok": True}

    @app.get("/telegram/webhook-status")
    async def telegram_webhook_status(request: Request):
        """Report the webhook Telegram currently has on file for this bot."""
        handler = request.app.state.telegram_handler
        if not handler or not handler.bot:
            return {
                "status": "disabled",
                "message": "Telegram bot not configured",
                "token_present": bool(config.bot_token),
            }

        try:
            info = await handler.bot.get_webhook_info()
            return {
                "status": "active" if info.url else "no_webhook",
                "pending_update_count": info.pending_update_count,
                "last_error_message": info.last_error_message,
            }
        except Exception as e:
            logger.error(f"Error getting webhook info: {e}")
            return {"status": "error", "message": str(e)}

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", 8080)))
