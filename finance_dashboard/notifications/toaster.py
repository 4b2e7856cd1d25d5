"""
Toast Notifications

DESIGN DECISION: Every message shown to the user is also logged.
This provides:
1. A trace of what the user saw when something went wrong
2. A single place UI frontends subscribe to

The toaster:
- Never raises into the caller if a subscriber fails
- Keeps the notifications it has shown, newest last, so frontends that
  render in batches (Streamlit reruns) can drain them
"""

from typing import Callable, Optional

import structlog

from finance_dashboard.models.notification import Notification, NotificationVariant


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


Subscriber = Callable[[Notification], None]


class Toaster:
    """
    Central notification service.

    Sends each notification to:
    1. The structured local log
    2. Every subscriber (e.g. the Streamlit page's st.toast)
    """

    def __init__(self, subscribers: Optional[list[Subscriber]] = None):
        self._subscribers: list[Subscriber] = list(subscribers or [])
        self._history: list[Notification] = []
        self._logger = structlog.get_logger(__name__)

    def notify(self, notification: Notification) -> Notification:
        """Show a notification. Returns it for chaining."""
        log_dict = notification.to_log_dict()
        if notification.is_error:
            self._logger.warning("notification_shown", **log_dict)
        else:
            self._logger.info("notification_shown", **log_dict)

        self._history.append(notification)

        for subscriber in self._subscribers:
            try:
                subscriber(notification)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "notification_subscriber_failed",
                    error=str(e),
                    title=notification.title,
                )

        return notification

    def success(self, description: str, title: str = "Berhasil") -> Notification:
        """Show a success toast."""
        return self.notify(Notification(title=title, description=description))

    def error(self, title: str, description: str = "") -> Notification:
        """Show an error toast."""
        return self.notify(
            Notification(
                title=title,
                description=description,
                variant=NotificationVariant.DESTRUCTIVE,
            )
        )

    @property
    def history(self) -> list[Notification]:
        """Notifications shown so far (oldest first)."""
        return list(self._history)

    def drain(self) -> list[Notification]:
        """Return and forget the notifications shown so far."""
        shown, self._history = self._history, []
        return shown
