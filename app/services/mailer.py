"""
Outgoing mail.

Messages go out over SMTP when ``SMTP_HOST`` is set; otherwise they are
written to the log, which is what development and test setups rely on.
"""
import logging
import smtplib
from email.message import EmailMessage

from app.core.config import Settings

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, settings: Settings):
        self.settings = settings

    def send(self, to: str, subject: str, body: str) -> bool:
        """Send a plain-text message. Returns ``False`` if delivery failed."""
        if not self.settings.SMTP_HOST:
            logger.info("Mail to %s [%s]: %s", to, subject, body)
            return True

        message = EmailMessage()
        message["From"] = self.settings.MAIL_FROM
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.settings.SMTP_HOST, self.settings.SMTP_PORT, timeout=30) as smtp:
                if self.settings.SMTP_USER:
                    smtp.starttls()
                    smtp.login(self.settings.SMTP_USER, self.settings.SMTP_PASSWORD or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError):
            logger.exception("Could not deliver mail to %s", to)
            return False
        return True

    def send_verification_code(self, to: str, code: str) -> bool:
        return self.send(to, "Verify your email", f"Your verification code is {code}")

    def send_invitation(self, to: str, inviter: str, password: str, code: str) -> bool:
        body = (
            f"{inviter} invited you to join their company.\n"
            f"Temporary password: {password}\n"
            f"Verification code: {code}"
        )
        return self.send(to, "You have been invited", body)
