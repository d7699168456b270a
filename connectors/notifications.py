"""
Module: connectors.notifications

The user-facing notification sink is owned by the view layer; the core only
depends on this protocol. LoggingNotificationSink is the default for headless use.
"""

import logging
from typing import Protocol, runtime_checkable


@runtime_checkable
class NotificationSink(Protocol):
    def success(self, title: str, description: str = "") -> None: ...

    def error(self, title: str, description: str = "") -> None: ...


class LoggingNotificationSink:
    """Routes notifications to a logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("inventory.notifications")

    def success(self, title: str, description: str = "") -> None:
        self.logger.info(f"{title}: {description}" if description else title)

    def error(self, title: str, description: str = "") -> None:
        self.logger.error(f"{title}: {description}" if description else title)
