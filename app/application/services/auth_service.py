from typing import Optional, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
import logging
import secrets

from ..ports.user_repo import UserRepository, UserDto, UserAlreadyExistsError
from ..ports.notification_sender import NotificationSender, EmailNotConfiguredError
from ..ports.token_issuer import TokenIssuer
from ..ports.audit_logger import AuditLogger, NoopAuditLogger
from .otp_service import OtpService
from ...exceptions import ValidationError, Conflict, Unauthorized, NotFound, DeliveryError
from ...db.types import utcnow

logger = logging.getLogger(__name__)


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


@dataclass
class OtpIssueResult:
    user_exists: bool
    delivered: bool = False
    otp: Optional[str] = None
    email_not_configured: bool = False


@dataclass
class RegistrationResult:
    user: UserDto
    token: str
    verification_token: str


@dataclass
class AuthService:
    user_repo: UserRepository
    otp_service: OtpService
    token_issuer: TokenIssuer
    notifier: NotificationSender
    audit: AuditLogger = field(default_factory=NoopAuditLogger)
    expose_otp_on_delivery_failure: bool = False
    verification_expire_hours: int = 24
    clock: Callable[[], datetime] = field(default=utcnow)

    def register(self, name: Optional[str], email: Optional[str], phone: Optional[str]) -> RegistrationResult:
        email = normalize_email(email)
        if not name or not email or not phone:
            raise ValidationError("Please provide name, email and phone")
        if self.user_repo.get_by_email(email):
            self.audit.log("register", email, success=False, details={"error": "USER_EXISTS"})
            raise Conflict("User already exists")

        verification_token = secrets.token_hex(32)
        verification_expires = self.clock() + timedelta(hours=self.verification_expire_hours)
        try:
            user = self.user_repo.create(
                email=email,
                name=name,
                phone=phone,
                verification_token=verification_token,
                verification_expires=verification_expires,
            )
        except UserAlreadyExistsError:
            raise Conflict("User already exists")

        self.audit.log("register", email, user_id=user.id)
        return RegistrationResult(user=user, token=self.token_issuer.issue(user.id), verification_token=verification_token)

    def send_verification_email(self, email: str, token: str, name: Optional[str]) -> bool:
        """Best-effort delivery; the account stays usable if this fails."""
        try:
            self.notifier.send_verification_email(email, token, name)
            return True
        except Exception as e:
            logger.error(f"Failed to send verification email: {e}")
            return False

    def request_login(self, email: Optional[str]) -> OtpIssueResult:
        email = normalize_email(email)
        if not email:
            raise ValidationError("Please provide email")
        user = self.user_repo.get_by_email(email)
        if not user:
            return OtpIssueResult(user_exists=False)
        return self._issue_otp(email, user.id)

    def request_registration_otp(self, name: Optional[str], phone: Optional[str], email: Optional[str]) -> OtpIssueResult:
        email = normalize_email(email)
        if not email or not phone:
            raise ValidationError("Please provide email and phone")
        if self.user_repo.get_by_email(email):
            raise Conflict("User already exists")
        try:
            user = self.user_repo.create(email=email, name=name, phone=phone)
        except UserAlreadyExistsError:
            raise Conflict("User already exists")
        return self._issue_otp(email, user.id)

    def _issue_otp(self, email: str, user_id: str) -> OtpIssueResult:
        record = self.otp_service.request(email)
        self.audit.log("otp_requested", email, user_id=user_id)
        try:
            self.notifier.send_otp_email(email, record.otp)
        except Exception as e:
            not_configured = isinstance(e, EmailNotConfiguredError)
            self.audit.log("otp_delivery_failed", email, user_id=user_id, success=False,
                           details={"error": str(e), "not_configured": not_configured})
            if self.expose_otp_on_delivery_failure:
                logger.warning(f"Email delivery unavailable. OTP for {email}: {record.otp}")
                return OtpIssueResult(user_exists=True, otp=record.otp, email_not_configured=not_configured)
            logger.error(f"Failed to send OTP email: {e}")
            raise DeliveryError()
        return OtpIssueResult(user_exists=True, delivered=True)

    def verify_otp(self, email: Optional[str], otp: Optional[str]) -> str:
        email = normalize_email(email)
        if not email or not otp:
            raise ValidationError("Please provide email and OTP")
        if not self.otp_service.verify(email, otp.strip()):
            self.audit.log("otp_rejected", email, success=False)
            raise Unauthorized("Invalid or expired OTP")

        user = self.user_repo.get_by_email(email)
        if not user:
            raise NotFound("User not found. Please register first")
        self.audit.log("otp_verified", email, user_id=user.id)
        return self.token_issuer.issue(user.id)

    def verify_email(self, token: Optional[str]) -> UserDto:
        if not token:
            raise ValidationError("Please provide verification token")
        user = self.user_repo.verify_email_token(token, self.clock())
        if not user:
            raise ValidationError("Invalid or expired verification token")
        self.audit.log("email_verified", user.email, user_id=user.id)
        return user
