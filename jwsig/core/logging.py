"""Configure structlog output for the token engine."""

import logging
import sys

import structlog

from jwsig.core.settings import JWSSettings, get_settings

__all__ = ["configure_logging"]


def configure_logging(settings: JWSSettings | None = None) -> None:
    """Set up structlog on top of the standard library logger.

    Applications embedding the library may skip this and configure structlog
    themselves.  Rendering is JSON when ``log_json`` is set, otherwise the
    human-friendly console renderer is used.
    """
    settings = settings or get_settings()
    level = logging.getLevelName(settings.log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger("jwsig")
    root.handlers = [handler]
    root.setLevel(level)
    root.propagate = False

    renderer: structlog.types.Processor
    if settings.log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
