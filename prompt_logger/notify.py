"""User-facing notifications (transient toasts in the host UI)."""

import logging
import sys
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    def info(self, message: str) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Sends notifications to the ``prompt_logger.notify`` logger."""

    def info(self, message: str) -> None:
        logger.info("[NOTICE] %s", message)

    def success(self, message: str) -> None:
        logger.info("[OK] %s", message)

    def error(self, message: str) -> None:
        logger.error("[ERROR] %s", message)


class ConsoleNotifier:
    """Prints notifications for the command line panel and counts errors."""

    def __init__(self) -> None:
        self.error_count = 0

    def info(self, message: str) -> None:
        print(f"[INFO] {message}")

    def success(self, message: str) -> None:
        print(f"[OK] {message}")

    def error(self, message: str) -> None:
        self.error_count += 1
        print(f"[ERROR] {message}", file=sys.stderr)
