"""
The fire-and-forget logging sink handed to the session.

``Logging`` wraps a plain callable so tests can collect messages in a list,
while the default instance writes to the ``otpvault`` logger.
"""

import logging
import sys
from typing import Callable, Iterable

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class Logging:

    def __init__(self, log: Callable[[str], None]) -> None:
        self._log = log

    def __call__(self, message: str) -> None:
        self._log(message)

    def errors(self, errors: Iterable[Exception]) -> None:
        self._log("; ".join(f"{type(e).__name__}: {e}" for e in errors))

    @classmethod
    def to_logger(cls, name: str = "otpvault", level: int = logging.WARNING) -> "Logging":
        target = logging.getLogger(name)
        return cls(lambda message: target.log(level, message))


def configure_logging(level="INFO") -> None:
    """Attach one stream handler to the package logger (idempotent)."""
    root = logging.getLogger("otpvault")
    root.setLevel(level.upper() if isinstance(level, str) else level)
    if not any(getattr(h, "_otpvault", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._otpvault = True
        root.addHandler(handler)
