# app/db/models/auth/otp.py
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime, Index, text
from datetime import datetime
import uuid

from ...types import utcnow

class OTPCode(SQLModel, table=True):
    __tablename__ = "otp_codes"
    # at most one unused code per email
    __table_args__ = (
        Index(
            "uq_otp_codes_unused_email",
            "email",
            unique=True,
            sqlite_where=text("is_used = 0"),
            postgresql_where=text("is_used = false"),
        ),
    )
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    email: str = Field(max_length=255, index=True)
    otp: str = Field(max_length=12)
    is_used: bool = Field(default=False)
    expires_at: datetime = Field(index=True, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
