"""
Email service for account invitations.
"""
import logging
import smtplib
from email.message import EmailMessage
from expenseflow.core.config import settings

logger = logging.getLogger(__name__)


def build_invitation_email(recipient_email: str, temp_password: str) -> EmailMessage:
    """Compose the welcome message sent to a newly added user."""
    msg = EmailMessage()
    msg["Subject"] = "Welcome to the Expense Management System!"
    msg["From"] = settings.EMAIL_FROM
    msg["To"] = recipient_email
    msg.set_content(
        "Hello! Your account has been created. You can log in with your email "
        f"and this temporary password: {temp_password}\n\n"
        "We recommend changing your password after your first login."
    )
    msg.add_alternative(
        "<h2>Welcome!</h2>"
        "<p>Your account has been created for the Expense Management System.</p>"
        "<p>You can log in using your email and the following temporary password:</p>"
        f"<p><b>{temp_password}</b></p>"
        "<p>We recommend changing your password after your first login.</p>",
        subtype="html",
    )
    return msg


def send_invitation_email(recipient_email: str, temp_password: str) -> bool:
    """
    Send an invitation with the temporary password.

    When EMAIL_ENABLED is off the message is only logged. Returns True if
    the message was handed to the SMTP server (or logged), False if sending
    failed.
    """
    msg = build_invitation_email(recipient_email, temp_password)

    if not settings.EMAIL_ENABLED:
        logger.info(f"Email disabled, invitation for {recipient_email} not sent")
        if settings.DEBUG:
            logger.debug(msg.as_string())
        return True

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
            if settings.SMTP_USE_TLS:
                smtp.starttls()
            if settings.SMTP_USER:
                smtp.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            smtp.send_message(msg)
    except smtplib.SMTPAuthenticationError as e:
        logger.error(f"SMTP authentication failed for '{settings.SMTP_USER}': {e}")
        return False
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send invitation to {recipient_email}: {e}")
        return False

    logger.info(f"Invitation email sent to {recipient_email}")
    return True
