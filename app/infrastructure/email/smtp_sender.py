import os
import smtplib
import ssl
import logging
from email.message import EmailMessage
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ...application.ports.notification_sender import NotificationSender, EmailNotConfiguredError

logger = logging.getLogger(__name__)

template_dir = os.path.join(os.path.dirname(__file__), "templates")
env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(["html"]))


class SmtpEmailSender(NotificationSender):
    def __init__(self, host: str, port: int, user: str = "", password: str = "",
                 from_email: str = "", base_url: str = "http://localhost:8000",
                 app_name: str = "OTP Auth API", otp_expiry_minutes: int = 10,
                 verification_expire_hours: int = 24, timeout: int = 10):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_email = from_email or user
        self.base_url = base_url.rstrip("/")
        self.app_name = app_name
        self.otp_expiry_minutes = otp_expiry_minutes
        self.verification_expire_hours = verification_expire_hours
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_email)

    def _send(self, to_email: str, subject: str, template_name: str, context: dict) -> None:
        if not self.configured:
            raise EmailNotConfiguredError()
        html = env.get_template(template_name).render(app_name=self.app_name, **context)

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{self.app_name} <{self.from_email}>"
        msg["To"] = to_email
        msg.set_content(f"{subject}. Open this message in an HTML capable client.")
        msg.add_alternative(html, subtype="html")

        ctx = ssl.create_default_context()
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as s:
            s.starttls(context=ctx)
            if self.user and self.password:
                s.login(self.user, self.password)
            s.send_message(msg)
        logger.info(f"Sent '{template_name}' email")

    def send_otp_email(self, email: str, code: str) -> None:
        self._send(
            to_email=email,
            subject=f"Your {self.app_name} login code",
            template_name="otp.html",
            context={"otp": code, "expiry_minutes": self.otp_expiry_minutes},
        )

    def send_verification_email(self, email: str, token: str, name: Optional[str]) -> None:
        self._send(
            to_email=email,
            subject=f"Verify your {self.app_name} email",
            template_name="verification.html",
            context={
                "name": name or "there",
                "verification_url": f"{self.base_url}/api/auth/verify-email?token={token}",
                "expire_hours": self.verification_expire_hours,
            },
        )
