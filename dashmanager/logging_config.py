import logging
import os
import sys

LOGGER_NAME = "dashmanager"
LEVEL_ENV = "DASHMANAGER_LOG_LEVEL"
# third-party loggers that log every HTTP request at INFO
QUIET_LOGGERS = ("httpx", "httpcore")

_HANDLER_NAME = "dashmanager-console"


def resolve_level(level: int | str | None = None) -> int:
    """Turn ``level`` (or ``$DASHMANAGER_LOG_LEVEL``) into a logging level.

    Unknown names fall back to INFO.
    """
    if level is None:
        level = os.getenv(LEVEL_ENV, "INFO")
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: int | str | None = None) -> logging.Logger:
    """Attach a console handler to the ``dashmanager`` logger once.

    Later calls only adjust the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(resolve_level(level))
    if any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-7s [%(name)s] %(message)s")
    )
    logger.addHandler(handler)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return logger
