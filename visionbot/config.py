"""Environment-driven configuration for the webhook service."""
import os


def _env_float(env, name: str, default: float) -> float:
    raw = str(env.get(name, "")).strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got: {raw!r}")


class BotConfiguration:
    """Settings read from the process environment.

    Values are read once at construction; the object is shared read-only
    across concurrent update handling afterwards.
    """

    REQUIRED = (
        "TELEGRAM_BOT_TOKEN",
        "COMPUTER_VISION_API_KEY",
        "COMPUTER_VISION_API_ENDPOINT",
    )

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ
        self.bot_token = env.get("TELEGRAM_BOT_TOKEN", "")
        self.host_address = env.get("HOST_ADDRESS", "").rstrip("/")
        self.webhook_secret_token = env.get("WEBHOOK_SECRET_TOKEN", "")
        self.vision_api_key = env.get("COMPUTER_VISION_API_KEY", "")
        self.vision_endpoint = env.get("COMPUTER_VISION_API_ENDPOINT", "").rstrip("/")
        self.vision_timeout = _env_float(env, "VISION_TIMEOUT_SECONDS", 30.0)
        self.typing_delay = _env_float(env, "TYPING_DELAY_SECONDS", 0.5)
        self.app_env = env.get("APP_ENV", "production").lower()
        self.webhook_rate_limit = env.get("WEBHOOK_RATE_LIMIT", "60/minute")

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    def missing_required(self) -> list[str]:
        """Names of required variables that are unset or empty."""
        values = {
            "TELEGRAM_BOT_TOKEN": self.bot_token,
            "COMPUTER_VISION_API_KEY": self.vision_api_key,
            "COMPUTER_VISION_API_ENDPOINT": self.vision_endpoint,
        }
        return [key for key in self.REQUIRED if not values[key]]

    @property
    def webhook_url(self) -> str | None:
        """Public webhook address, or None when HOST_ADDRESS is unset."""
        if not self.host_address or not self.bot_token:
            return None
        return f"{self.host_address}/bot/{self.bot_token}"
