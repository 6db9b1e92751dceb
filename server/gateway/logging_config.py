# ─────────────────────────────────────────────────────────────────────────────
# Logging Configuration — structlog over stdlib logging
# ─────────────────────────────────────────────────────────────────────────────


import logging
import re
import sys
from typing import Any

import structlog

# Upstream credentials travel as query parameters for Maps (key=) and
# OpenWeatherMap (appid=); mask them wherever a URL lands in a log field.
_SECRET_QUERY_PARAM = re.compile(r"(?P<name>[?&](?:key|appid)=)[^&#\s]*", re.IGNORECASE)


def redact_url(url: str) -> str:
    """Mask credential query parameters in a URL string."""
    return _SECRET_QUERY_PARAM.sub(r"\g<name>[REDACTED]", url)


def redact_secrets(
    logger: Any, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """structlog processor: scrub credential query params from string fields."""
    for field, value in event_dict.items():
        if isinstance(value, str) and ("key=" in value or "appid=" in value):
            event_dict[field] = redact_url(value)
    return event_dict


def configure_logging(log_level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog for structured logging.

    JSON output for deployed instances (one parseable object per line);
    console output for local development. contextvars are merged so the
    request middleware can bind request_id / client_ip once per request.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
    ]

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )

    # shared_processors already ran in structlog.configure(); only strip the
    # meta keys and render here.
    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    # httpx logs every request URL at INFO, credentials included.
    logging.getLogger("httpx").setLevel(logging.WARNING)
