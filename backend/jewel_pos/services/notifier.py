"""
Email OTP notifier.

Issues 6-digit codes by email and verifies them later. One active code per
email: issuing a new code deletes any unconsumed earlier one. Codes are
stored hashed, expire after ``OTP_EXPIRY_MINUTES`` and are consumed on a
successful check.
"""
from __future__ import annotations

import hashlib
import secrets
import smtplib
from datetime import datetime, timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from jewel_pos.core.config import settings
from jewel_pos.core.errors import PersistenceError, ValidationError
from jewel_pos.models.otp import EmailOTP

OTP_LENGTH = 6


class EmailSender:
    """Sends transactional email over SMTP (STARTTLS)."""

    def __init__(
        self,
        smtp_host: str = settings.SMTP_HOST,
        smtp_port: int = settings.SMTP_PORT,
        smtp_user: str = settings.SMTP_USER,
        smtp_password: str = settings.SMTP_PASSWORD,
        from_email: str = settings.MAIL_FROM,
    ) -> None:
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.from_email = from_email or smtp_user

    @property
    def configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    def send(self, to_email: str, subject: str, html_body: str) -> bool:
        if not self.configured:
            logger.warning(f"email: SMTP not configured, not sending '{subject}' to {to_email}")
            return False

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_email
        msg["To"] = to_email
        msg.attach(MIMEText(html_body, "html"))

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_email, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(f"email: failed to send to {to_email}: {exc}")
            return False
        logger.info(f"email: sent '{subject}' to {to_email}")
        return True


def _otp_email(code: str) -> str:
    return (
        f"<h2>{settings.SHOP_NAME}</h2>"
        "<p>Please use the following verification code to confirm your email address:</p>"
        f"<p style='font-size:28px;letter-spacing:6px'><b>{code}</b></p>"
        f"<p>This code expires in {settings.OTP_EXPIRY_MINUTES} minutes.</p>"
    )


def _hash(code: str) -> str:
    return hashlib.sha256(code.encode()).hexdigest()


class OTPNotifier:
    def __init__(self, session: Session, sender: EmailSender | None = None) -> None:
        self.session = session
        self.sender = sender or EmailSender()
        self.expiry = timedelta(minutes=settings.OTP_EXPIRY_MINUTES)

    @staticmethod
    def _normalise(email: str) -> str:
        email = (email or "").strip().lower()
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationError("Please enter a valid email address")
        return email

    def issue(self, email: str) -> tuple[str, bool]:
        """Create a code for ``email`` and send it. Returns (code, delivered)."""
        email = self._normalise(email)
        code = "".join(str(secrets.randbelow(10)) for _ in range(OTP_LENGTH))
        try:
            previous = self.session.exec(
                select(EmailOTP).where(EmailOTP.email == email, EmailOTP.is_consumed == False)  # noqa: E712
            ).all()
            for row in previous:
                self.session.delete(row)
            self.session.add(
                EmailOTP(
                    email=email,
                    code_hash=_hash(code),
                    expires_at=datetime.utcnow() + self.expiry,
                )
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error(f"otp: failed to store code for {email}: {exc}")
            raise PersistenceError(f"Failed to create verification code: {exc}") from exc

        delivered = self.sender.send(email, f"{settings.SHOP_NAME} verification code", _otp_email(code))
        logger.info(f"otp: issued code for {email} (delivered={delivered})")
        return code, delivered

    def verify(self, email: str, code: str) -> bool:
        """True when ``code`` matches the active, unexpired code for ``email``."""
        email = self._normalise(email)
        row = self.session.exec(
            select(EmailOTP)
            .where(EmailOTP.email == email, EmailOTP.is_consumed == False)  # noqa: E712
            .order_by(col(EmailOTP.created_at).desc())
        ).first()
        if row is None or row.expires_at < datetime.utcnow():
            return False
        if not secrets.compare_digest(row.code_hash, _hash((code or "").strip())):
            return False
        row.is_consumed = True
        try:
            self.session.add(row)
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise PersistenceError(f"Failed to consume verification code: {exc}") from exc
        logger.info(f"otp: verified {email}")
        return True
