import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from fiscal_calendar.config import Settings

logger = logging.getLogger(__name__)


class EmailConfigError(RuntimeError):
    pass


def email_configured(settings: Settings) -> bool:
    return all([
        settings.smtp_host,
        settings.smtp_username,
        settings.smtp_password,
        settings.smtp_from_email,
    ])


def send_email(settings: Settings, to_email: str, subject: str, html_content: str):
    if not email_configured(settings):
        raise EmailConfigError("SMTP email config missing")
    msg = MIMEMultipart()
    msg["From"] = f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
    msg["To"] = to_email
    msg["Subject"] = subject

    msg.attach(MIMEText(html_content, "html"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        raise RuntimeError(f"SMTP send failed: {str(e)}") from e
    logger.info(f"Reminder e-mail sent to {to_email}")
