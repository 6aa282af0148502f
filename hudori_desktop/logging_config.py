"""structlog setup for the desktop bridge.

Everything goes to stderr, either as console lines or, with
``HUDORI_LOG_JSON=1``, as one JSON object per line. Credential values are
masked before any renderer sees them.
"""

from __future__ import annotations

import logging
import sys

import structlog
from structlog.typing import EventDict, WrappedLogger

REDACTED = "[redacted]"
CREDENTIAL_KEYS = frozenset({"token", "authorization", "password", "cookie", "set-cookie"})


def redact_credentials(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """Mask values logged under a credential key."""
    for key in event_dict:
        if key.lower() in CREDENTIAL_KEYS:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    ``hudori_desktop`` loggers emit DEBUG when *verbose*, WARNING otherwise.
    Third-party loggers stay at WARNING; urllib3 would otherwise report every
    connection the gateway opens.
    """
    hudori_level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_credentials,
    ]

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("hudori_desktop").setLevel(hudori_level)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
