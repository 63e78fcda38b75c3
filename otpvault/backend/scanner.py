"""
Where scanned otpauth URIs come from.

A scanner has one method, ``scan() -> Validated[Optional[str]]``: the URI
text, None when nothing was captured, or the capture error.
"""

import sys
from typing import Optional, TextIO

from ..core.errors import OTPError
from ..core.validated import Validated


class TextScanner:
    """Reads one line: a pasted URI, or the output of an external QR decoder such as ``zbarimg -q --raw``."""

    def __init__(self, stream: TextIO = None) -> None:
        self.stream = stream if stream is not None else sys.stdin

    def scan(self) -> Validated[Optional[str]]:
        try:
            line = self.stream.readline()
        except OSError as e:
            return Validated.invalid(OTPError(f"scan failed: {e}"))
        text = line.strip()
        return Validated.valid(text or None)


class StaticScanner:
    """Returns a fixed URI once (used by the HTTP layer for posted scan results)."""

    def __init__(self, text: Optional[str]) -> None:
        self.text = text

    def scan(self) -> Validated[Optional[str]]:
        text, self.text = self.text, None
        return Validated.valid(text.strip() if text and text.strip() else None)
