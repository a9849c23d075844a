# app/schemas/auth/auth.py
from pydantic import BaseModel, Field, validator
from typing import Optional, Dict, Any
import re

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
PHONE_RE = re.compile(r'^\+?[\d\s\-()]{6,20}$')


def _check_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip().lower()
    if v and not EMAIL_RE.match(v):
        raise ValueError('Invalid email address')
    return v


def _check_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if v and not PHONE_RE.match(v):
        raise ValueError('Invalid phone number format')
    return v


class RegisterRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100, description="User's full name")
    email: Optional[str] = Field(None, description="Email address, unique per user")
    phone: Optional[str] = Field(None, description="Contact phone number")

    @validator('name')
    def validate_name(cls, v):
        return v.strip() if v is not None else v

    @validator('email')
    def validate_email(cls, v):
        return _check_email(v)

    @validator('phone')
    def validate_phone(cls, v):
        return _check_phone(v)

class RegisterResponse(BaseModel):
    success: bool
    token: str
    data: Dict[str, Any]

class SendOTPRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100, description="User's full name")
    phone: Optional[str] = Field(None, description="Contact phone number")
    email: Optional[str] = Field(None, description="Email address the code is sent to")

    @validator('email')
    def validate_email(cls, v):
        return _check_email(v)

    @validator('phone')
    def validate_phone(cls, v):
        return _check_phone(v)

class OTPIssueResponse(BaseModel):
    success: bool
    message: str
    isExist: Optional[bool] = None
    otp: Optional[str] = None
    isDevelopment: Optional[bool] = None

class VerifyOTPRequest(BaseModel):
    email: Optional[str] = Field(None, description="Email address the code was sent to")
    otp: Optional[str] = Field(None, description="Numeric one-time code")

    @validator('email')
    def validate_email(cls, v):
        return _check_email(v)

    @validator('otp')
    def validate_otp(cls, v):
        return v.strip() if v is not None else v

class VerifyOTPResponse(BaseModel):
    success: bool
    token: str

class MessageResponse(BaseModel):
    success: bool
    message: str
