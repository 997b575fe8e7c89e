"""
Logging configuration
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import structlog

_configured = False


def setup_logger(
    name: Optional[str] = None,
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    reconfigure: bool = False
) -> structlog.BoundLogger:
    """
    Set up structured logging.

    The first call configures stdlib logging and structlog; later calls only
    hand out bound loggers unless ``reconfigure`` is set.

    Args:
        name: Logger name (usually ``__name__``)
        level: Minimum log level
        log_file: Optional file to mirror log output into
        json_format: Render records as JSON instead of console lines
        reconfigure: Replace an existing configuration

    Returns:
        Bound structlog logger
    """
    global _configured

    if _configured and not reconfigure:
        return structlog.get_logger(name)

    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers = [logging.StreamHandler(sys.stdout)]

    if log_file:
        # Ensure log directory exists
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        format="%(message)s",
        level=log_level,
        handlers=handlers,
        force=True
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False
    )
    _configured = True

    return structlog.get_logger(name)


def configure_from_config(config) -> structlog.BoundLogger:
    """
    Reconfigure logging from a loaded ``Config`` object.

    Entry points call this once after loading configuration so the level,
    renderer and log file follow ``config.logging``.
    """
    logging_config = config.logging
    return setup_logger(
        "secretary",
        level=logging_config.level,
        log_file=logging_config.file or None,
        json_format=logging_config.format == "json",
        reconfigure=True
    )
