# NOTE: User-facing notification sinks (toast equivalents) for service failures
import logging
from typing import List, Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Fire-and-forget sink for messages shown to the user."""

    def error(self, message: str) -> None:
        ...


class LogNotifier:
    """Writes notifications to the application log."""

    def error(self, message: str) -> None:
        logger.warning(f"Notification: {message}")


class CollectingNotifier:
    """Keeps notifications in memory for the caller to read back from ``messages``."""

    def __init__(self):
        self.messages: List[str] = []

    def error(self, message: str) -> None:
        self.messages.append(message)
