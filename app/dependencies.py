# app/dependencies.py
from functools import lru_cache
from typing import Optional
import logging

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .config import get_settings
from .database import get_session
from .exceptions import Unauthorized
from .application.ports.audit_logger import AuditLogger
from .application.ports.notification_sender import NotificationSender
from .application.ports.token_issuer import TokenIssuer
from .application.services.auth_service import AuthService
from .application.services.otp_service import OtpService
from .application.services.profile_service import ProfileService
from .infrastructure.audit.std_logger import StdAuditLogger
from .infrastructure.email.smtp_sender import SmtpEmailSender
from .infrastructure.persistence.sqlalchemy.repositories.otp_repository_sql import SqlOtpRepository
from .infrastructure.persistence.sqlalchemy.repositories.user_repository_sql import SqlUserRepository
from .infrastructure.tokens.jwt_issuer import JwtTokenIssuer

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@lru_cache()
def get_token_issuer() -> TokenIssuer:
    settings = get_settings()
    return JwtTokenIssuer(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expires_minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES,
    )


@lru_cache()
def get_notification_sender() -> NotificationSender:
    settings = get_settings()
    return SmtpEmailSender(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        user=settings.SMTP_USER,
        password=settings.SMTP_PASSWORD,
        from_email=settings.EMAIL_FROM,
        base_url=settings.BASE_URL,
        app_name=settings.APP_NAME,
        otp_expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        verification_expire_hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS,
        timeout=settings.SMTP_TIMEOUT,
    )


def get_audit_logger() -> AuditLogger:
    return StdAuditLogger()


def get_otp_service(session: Session = Depends(get_session)) -> OtpService:
    settings = get_settings()
    return OtpService(
        otp_repo=SqlOtpRepository(session),
        expiry_minutes=settings.OTP_EXPIRY_MINUTES,
        length=settings.OTP_LENGTH,
        static_code=settings.OTP_STATIC_CODE,
    )


def get_auth_service(
    session: Session = Depends(get_session),
    otp_service: OtpService = Depends(get_otp_service),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    notifier: NotificationSender = Depends(get_notification_sender),
    audit: AuditLogger = Depends(get_audit_logger),
) -> AuthService:
    settings = get_settings()
    return AuthService(
        user_repo=SqlUserRepository(session),
        otp_service=otp_service,
        token_issuer=token_issuer,
        notifier=notifier,
        audit=audit,
        expose_otp_on_delivery_failure=settings.EXPOSE_OTP_ON_DELIVERY_FAILURE,
        verification_expire_hours=settings.EMAIL_VERIFICATION_EXPIRE_HOURS,
    )


def get_profile_service(
    session: Session = Depends(get_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ProfileService:
    return ProfileService(user_repo=SqlUserRepository(session), audit=audit)


def get_current_user_id(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token_issuer: TokenIssuer = Depends(get_token_issuer),
) -> str:
    """Resolve the caller from a bearer token, falling back to the access_token cookie."""
    if credentials and credentials.credentials:
        token = credentials.credentials
    else:
        token = request.cookies.get("access_token")
    if not token:
        raise Unauthorized("Not authorized, no token")

    user_id = token_issuer.decode(token)
    if not user_id:
        logger.warning("JWT token decode failed - invalid or expired token")
        raise Unauthorized("Invalid or expired token")
    return user_id
