"""Process-wide logging setup for the matching agent."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Client libraries that log every request or frame at INFO/DEBUG.
CHATTY_LOGGERS = ("httpx", "httpcore", "hishel", "web3", "websockets", "uvicorn.access")


def configure_logging(*, level: int | str = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger once.

    ``level`` accepts a name such as ``"debug"``. Unless the agent itself runs at
    DEBUG, the transport libraries are held at WARNING so run logs stay readable.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=force)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)
