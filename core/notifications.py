"""
Best-effort notification dispatch.

Services hand notifications to ``NotificationDispatcher.send``. The message is
submitted to the Celery ``notifications`` queue and the caller moves on: there
is no result to wait for, failures are logged here and nothing is retried.
"""

from typing import Any, Optional, Protocol
import logging

from core.config import settings
from core.utils.formatting import mask_email

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Anything that can accept a templated notification."""

    def send(
        self,
        to_address: str,
        subject: str,
        template_name: str,
        template_data: dict[str, Any],
    ) -> None:
        ...


class NotificationDispatcher:
    """Submits templated emails as detached Celery tasks."""

    def __init__(self, enabled: Optional[bool] = None):
        self.enabled = settings.notifications_enabled if enabled is None else enabled

    def send(
        self,
        to_address: str,
        subject: str,
        template_name: str,
        template_data: dict[str, Any],
    ) -> None:
        """
        Queue a templated email.

        Never raises; a failed submission is logged and dropped.

        Args:
            to_address: Recipient email address
            subject: Email subject
            template_name: Registered template name
            template_data: Values for the template
        """
        if not self.enabled:
            logger.debug(f"Notifications disabled, skipping \"{subject}\"")
            return

        if not to_address:
            logger.warning(f"Notification \"{subject}\" has no recipient, skipping")
            return

        try:
            # Imported lazily so the API process does not pay for Celery at import
            from workers.tasks.emails import send_templated_email

            send_templated_email.delay(
                to=to_address,
                subject=subject,
                template_name=template_name,
                template_data=template_data,
            )
            logger.info(
                f"Queued {template_name} notification to {mask_email(to_address)}"
            )
        except Exception as e:
            logger.error(
                f"Failed to queue {template_name} notification to "
                f"{mask_email(to_address)}: {type(e).__name__}: {e}"
            )


_dispatcher: Optional[NotificationDispatcher] = None


def get_notification_dispatcher() -> NotificationDispatcher:
    """Get or create the global dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher()
    return _dispatcher
