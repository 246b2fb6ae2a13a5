import logging
import os

from pythonjsonlogger import jsonlogger


def setup_logging(log_level: str | None = None) -> None:
    """Configure structured JSON logging on stderr for the webhook service."""
    log_level = (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()

    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(log_level)
    root.handlers = [handler]

    # httpx logs every request URL at INFO, which includes the bot token.
    logging.getLogger("httpx").setLevel(logging.WARNING)
