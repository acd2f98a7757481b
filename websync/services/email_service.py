# services/email_service.py
import logging
import smtplib
import ssl
from email.message import EmailMessage

from websync.config import SmtpSettings

logger = logging.getLogger(__name__)

SMTP_TIMEOUT = 20


class EmailSender:
    """Blocking plain-text mail over SMTP, upgraded with STARTTLS when offered."""

    def __init__(self, smtp: SmtpSettings):
        self.smtp = smtp

    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.smtp.from_address
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)
        return message

    def send(self, to: str, subject: str, body: str) -> None:
        message = self.build_message(to, subject, body)
        logger.info(f"Sending email to {to} via {self.smtp.server}:{self.smtp.port} (subject: {subject})")

        with smtplib.SMTP(self.smtp.server, self.smtp.port, timeout=SMTP_TIMEOUT) as client:
            client.ehlo()
            if client.has_extn("starttls"):
                client.starttls(context=ssl.create_default_context())
                client.ehlo()
            if self.smtp.username:
                client.login(self.smtp.username, self.smtp.password)
            client.send_message(message)

        logger.info(f"Email sent successfully to {to} with subject '{subject}'")
