import logging
import sys

import structlog
from loguru import logger


def configure_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Route structlog events through stdlib logging and set the loguru sink level.

    The API keeps JSON lines; the CLI asks for the console renderer.
    """
    logging.basicConfig(level=level, stream=sys.stderr)
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )
    logger.remove()
    logger.add(sys.stderr, level=level)
