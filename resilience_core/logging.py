"""
Resilience Logging
==================
structlog configuration for services embedding resilience-core.

All modules log through ``structlog.get_logger(__name__)`` with snake_case
event names and key/value context. Call ``setup_logging`` once at startup to
route those events through the standard library root logger.

Usage:
    from resilience_core.logging import setup_logging

    setup_logging(service_name="asset-loader", level="INFO", json_output=True)
"""

import logging
import sys

import structlog


def setup_logging(
    service_name: str,
    level: str = "INFO",
    json_output: bool = True,
) -> structlog.stdlib.BoundLogger:
    """
    Configure structlog and the root logger.

    Args:
        service_name: Name bound to every event as ``service_name``
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON lines (production) or console output

    Returns:
        A bound logger for the caller
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    structlog.contextvars.bind_contextvars(service_name=service_name)

    logger = structlog.get_logger(__name__)
    logger.info("logging_configured", level=level.upper(), json_output=json_output)
    return logger
