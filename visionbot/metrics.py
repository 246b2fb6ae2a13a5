from prometheus_client import Counter, Histogram

# Inbound updates by classified kind.
UPDATE_TOTAL = Counter(
    "telegram_updates_total",
    "Total number of Telegram updates dispatched",
    ["kind"],
)

# Routed text commands (usage covers every unrecognized token).
COMMAND_TOTAL = Counter(
    "telegram_commands_total",
    "Total number of Telegram commands processed",
    ["command"],
)

# Time spent waiting on the vision analyze call.
VISION_LATENCY = Histogram(
    "vision_analysis_latency_seconds",
    "Time spent waiting for the image analysis response",
)

# Photos answered with the fallback text instead of a summary.
PHOTO_FALLBACKS = Counter(
    "photo_fallbacks_total",
    "Total number of photos that could not be processed",
)

# Failures absorbed by the dispatcher (api or generic).
HANDLER_ERRORS = Counter(
    "update_handler_errors_total",
    "Total number of update handler errors",
    ["type"],
)
