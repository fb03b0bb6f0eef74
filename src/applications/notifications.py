"""Transient, non-blocking user notifications.

The engine never shows UI. When a mutation is rolled back it hands a
Notification to whatever Notifier the caller supplied (a toast, a status
bar). The default notifier only logs.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    """A message for the user.

    Attributes:
        level: Severity.
        message: Text to show.
        application_id: The application concerned, if any.
    """

    level: NotificationLevel
    message: str
    application_id: Optional[str] = None


Notifier = Callable[[Notification], None]


def log_notification(notification: Notification) -> None:
    """Default Notifier: write the notification to the log."""
    level = (
        logging.WARNING
        if notification.level == NotificationLevel.ERROR
        else logging.INFO
    )
    logger.log(
        level,
        "%s",
        notification.message,
        extra={"application_id": notification.application_id},
    )
