"""Email integration utilities for sending emails."""

import html
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Callable, Optional, List
import logging

from core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Email service for sending emails via SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        """
        Initialize email service.

        Args:
            smtp_host: SMTP server host
            smtp_port: SMTP server port
            smtp_user: SMTP username
            smtp_password: SMTP password
            from_email: Default sender email
            from_name: Default sender name
        """
        self.smtp_host = smtp_host or settings.smtp_host
        self.smtp_port = smtp_port or settings.smtp_port
        self.smtp_user = smtp_user or settings.smtp_user
        self.smtp_password = smtp_password or settings.smtp_password
        self.from_email = from_email or settings.from_email
        self.from_name = from_name or settings.from_name

    def send_email(
        self,
        to_email: str | List[str],
        subject: str,
        body: str,
        html_body: bool = False,
        reply_to: Optional[str] = None,
    ) -> bool:
        """
        Send an email.

        Args:
            to_email: Recipient email address(es)
            subject: Email subject
            body: Email body
            html_body: Whether body is HTML
            reply_to: Reply-to email address

        Returns:
            True if email sent successfully
        """
        try:
            msg = MIMEMultipart()
            msg['From'] = f"{self.from_name} <{self.from_email}>"

            if isinstance(to_email, list):
                msg['To'] = ", ".join(to_email)
                recipients = list(to_email)
            else:
                msg['To'] = to_email
                recipients = [to_email]

            msg['Subject'] = subject

            if reply_to:
                msg['Reply-To'] = reply_to

            msg.attach(MIMEText(body, 'html' if html_body else 'plain'))

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg, from_addr=self.from_email, to_addrs=recipients)

            logger.info(f"Email sent to {to_email} with subject \"{subject}\"")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return False

    def send_template_email(
        self,
        to_email: str | List[str],
        template_name: str,
        context: dict,
        subject: str,
        **kwargs
    ) -> bool:
        """
        Send an email using a template.

        Args:
            to_email: Recipient email address(es)
            template_name: Name of the email template
            context: Template context variables
            subject: Email subject
            **kwargs: Additional arguments passed to send_email

        Returns:
            True if email sent successfully
        """
        body = EmailTemplates.render(template_name, context)
        return self.send_email(to_email, subject, body, html_body=True, **kwargs)


def _e(context: dict, key: str) -> str:
    """Fetch a context value HTML-escaped."""
    return html.escape(str(context.get(key, "")))


# Pre-configured email templates
class EmailTemplates:
    """Pre-configured email templates keyed by template name."""

    @staticmethod
    def pr_approval(context: dict) -> str:
        """Recruiter notification for a newly approved requisition."""
        return f"""
            <html>
            <body>
                <h2>Hi {_e(context, 'recruiterName')},</h2>
                <p>A new requirement has been assigned to you.</p>
                <p><strong>Position:</strong> {_e(context, 'positionName')}</p>
                <p><strong>Department:</strong> {_e(context, 'departmentName')}</p>
                <p>Please log in to RHub to start working on it.</p>
                <p>Best regards,<br>RHub</p>
            </body>
            </html>
        """

    @staticmethod
    def pr_reassignment(context: dict) -> str:
        """Recruiter notification for a requisition reassigned to them."""
        return f"""
            <html>
            <body>
                <h2>Hi {_e(context, 'recruiterName')},</h2>
                <p>An existing requirement has been reassigned to you.</p>
                <p><strong>Position:</strong> {_e(context, 'positionName')}</p>
                <p><strong>Department:</strong> {_e(context, 'departmentName')}</p>
                <p>Best regards,<br>RHub</p>
            </body>
            </html>
        """

    @staticmethod
    def pr_completed(context: dict) -> str:
        """HRBP notification for a requisition marked completed."""
        return f"""
            <html>
            <body>
                <h2>Hi {_e(context, 'hrbpName')},</h2>
                <p>{_e(context, 'recruiterName')} has completed the hiring process for
                {_e(context, 'positionName')} ({_e(context, 'jobCode')}).</p>
                <p>You can now review and close the requisition.</p>
                <p>Best regards,<br>RHub</p>
            </body>
            </html>
        """

    @staticmethod
    def jd_uploaded(context: dict) -> str:
        """HRBP notification for a job description upload."""
        return f"""
            <html>
            <body>
                <h2>Hi {_e(context, 'hrbpName')},</h2>
                <p>A job description was uploaded for {_e(context, 'positionName')}
                ({_e(context, 'jobCode')}) by {_e(context, 'uploaderName')}.</p>
                <p>Best regards,<br>RHub</p>
            </body>
            </html>
        """

    @staticmethod
    def welcome(context: dict) -> str:
        """Welcome email with a temporary password."""
        return f"""
            <html>
            <body>
                <h2>Welcome {_e(context, 'name')}!</h2>
                <p>Your RHub account has been created.</p>
                <p><strong>User ID:</strong> {_e(context, 'userCode')}</p>
                <p><strong>Temporary password:</strong> {_e(context, 'temporaryPassword')}</p>
                <p>Please change your password after your first login.</p>
                <p>Best regards,<br>RHub</p>
            </body>
            </html>
        """

    @classmethod
    def render(cls, template_name: str, context: dict[str, Any]) -> str:
        """
        Render a template by name.

        Raises:
            KeyError: If no template has that name
        """
        renderer: Optional[Callable[[dict], str]] = TEMPLATE_REGISTRY.get(template_name)
        if renderer is None:
            raise KeyError(f"Unknown email template: {template_name}")
        return renderer(context)


TEMPLATE_REGISTRY: dict[str, Callable[[dict], str]] = {
    "prApprovalEmail": EmailTemplates.pr_approval,
    "prReassignmentEmail": EmailTemplates.pr_reassignment,
    "prCompletedEmail": EmailTemplates.pr_completed,
    "jdUploadedEmail": EmailTemplates.jd_uploaded,
    "welcomeEmail": EmailTemplates.welcome,
}


# Global email service instance
_email_service: Optional[EmailService] = None


def get_email_service() -> EmailService:
    """Get or create global email service instance."""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
