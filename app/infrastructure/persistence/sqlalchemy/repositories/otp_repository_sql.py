from datetime import datetime
from typing import Optional
import logging

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import OTPCode
from .....db.types import as_utc
from .....application.ports.otp_repo import OtpRepository, OtpRecord

logger = logging.getLogger(__name__)

REPLACE_ATTEMPTS = 3


class SqlOtpRepository(OtpRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_record(self, row: OTPCode) -> OtpRecord:
        return OtpRecord(
            id=row.id,
            email=row.email,
            otp=row.otp,
            expires_at=as_utc(row.expires_at),
            is_used=row.is_used,
            created_at=as_utc(row.created_at),
        )

    def replace(self, email: str, otp: str, expires_at: datetime, now: datetime) -> OtpRecord:
        for attempt in range(1, REPLACE_ATTEMPTS + 1):
            self.session.execute(
                delete(OTPCode).where(
                    OTPCode.email == email,
                    or_(OTPCode.is_used == False, OTPCode.expires_at <= now),  # noqa: E712
                )
            )
            row = OTPCode(email=email, otp=otp, expires_at=expires_at, created_at=now)
            self.session.add(row)
            try:
                self.session.commit()
            except IntegrityError:
                # a concurrent request stored its code between our delete and insert
                self.session.rollback()
                if attempt == REPLACE_ATTEMPTS:
                    raise
                logger.info(f"OTP replace lost a race, retrying (attempt {attempt})")
                continue
            self.session.refresh(row)
            return self._to_record(row)

    def delete_expired(self, now: datetime, email: Optional[str] = None) -> int:
        stmt = delete(OTPCode).where(OTPCode.expires_at <= now)
        if email is not None:
            stmt = stmt.where(OTPCode.email == email)
        result = self.session.execute(stmt)
        self.session.commit()
        return result.rowcount

    def consume(self, email: str, otp: str, now: datetime) -> bool:
        candidates = self.session.exec(
            select(OTPCode.id).where(
                OTPCode.email == email,
                OTPCode.otp == otp,
                OTPCode.is_used == False,  # noqa: E712
                OTPCode.expires_at > now,
            )
        ).all()
        for otp_id in candidates:
            # conditional update; only one concurrent caller sees rowcount 1
            result = self.session.execute(
                update(OTPCode)
                .where(
                    OTPCode.id == otp_id,
                    OTPCode.is_used == False,  # noqa: E712
                    OTPCode.expires_at > now,
                )
                .values(is_used=True)
            )
            self.session.commit()
            if result.rowcount == 1:
                return True
        return False
