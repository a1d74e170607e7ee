"""Error sink adapters for surfaces without a toast widget."""

from __future__ import annotations

import logging
import sys
from typing import TextIO


class ConsoleErrorSink:
    """Prints transient errors to stderr for the console chat."""

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        self._stream = stream
        self.count = 0

    def error(self, message: str) -> None:
        self.count += 1
        logging.getLogger(__name__).debug("User-facing error: %s", message)
        print(f"! {message}", file=self._stream)
