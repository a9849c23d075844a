# app/db/models/users/user.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import DateTime
from datetime import datetime
import uuid

from ...types import utcnow

class User(SQLModel, table=True):
    __tablename__ = "users"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: Optional[str] = Field(max_length=100, default=None)
    email: str = Field(max_length=255, unique=True, index=True)
    phone: Optional[str] = Field(max_length=30, default=None)
    profile_image: Optional[str] = Field(max_length=500, default=None)
    profile_image_public_id: Optional[str] = Field(max_length=255, default=None)
    email_verification_token: Optional[str] = Field(max_length=64, default=None, index=True)
    email_verification_expires: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    is_email_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
