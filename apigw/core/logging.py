from __future__ import annotations

import logging
import sys
from typing import Final


_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

_NOISY_LOGGERS: Final[tuple[str, ...]] = ("httpx", "httpcore")


def configure_logging(*, level: str = "INFO") -> None:
    """Configure Python logging once.

    Uvicorn may install its own handlers before the app is imported; in that case
    only the level is adjusted.
    """

    resolved = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    if root.handlers:
        root.setLevel(resolved)
    else:
        logging.basicConfig(
            level=resolved,
            format=_DEFAULT_FORMAT,
            datefmt=_DATE_FORMAT,
            handlers=[logging.StreamHandler(sys.stdout)],
        )

    # The RPC transport logs every backend request at INFO.
    for noisy in _NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)
