"""Email sending tasks."""

from typing import Any
import logging

from workers.celery_app import celery_app
from core.integrations.email import get_email_service

logger = logging.getLogger(__name__)


@celery_app.task(name="workers.tasks.emails.send_templated_email", ignore_result=True)
def send_templated_email(
    to: str,
    subject: str,
    template_name: str,
    template_data: dict[str, Any],
) -> dict:
    """Render a named template and send it.

    Delivery is attempted once; failures are logged and not retried.

    Args:
        to: Recipient email address
        subject: Email subject
        template_name: Registered template name (e.g. prApprovalEmail)
        template_data: Values for the template

    Returns:
        Dictionary with send status
    """
    try:
        sent = get_email_service().send_template_email(
            to_email=to,
            template_name=template_name,
            context=template_data,
            subject=subject,
        )
    except KeyError as e:
        logger.error(f"Cannot render email for {to}: {e}")
        return {"status": "failed", "error": str(e)}

    return {"status": "sent" if sent else "failed"}
