# app/schemas/users/user.py
from pydantic import BaseModel, Field, validator
from typing import Optional
from datetime import datetime

from ..auth.auth import _check_phone

class UserResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    profile_image: Optional[str] = Field(None, alias="profileImage")
    profile_image_public_id: Optional[str] = Field(None, alias="profileImagePublicId")
    is_email_verified: bool = Field(False, alias="isEmailVerified")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True

    @classmethod
    def from_dto(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            profile_image=user.profile_image,
            profile_image_public_id=user.profile_image_public_id,
            is_email_verified=user.is_email_verified,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )

class UserEnvelope(BaseModel):
    success: bool
    message: Optional[str] = None
    data: UserResponse

class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(None, max_length=100, description="User's full name")
    phone: Optional[str] = Field(None, description="Contact phone number")
    profile_image: Optional[str] = Field(None, alias="profileImage", max_length=500, description="Profile image URL")
    profile_image_public_id: Optional[str] = Field(None, alias="profileImagePublicId", max_length=255, description="Storage provider id of the profile image")

    class Config:
        populate_by_name = True

    @validator('name')
    def validate_name(cls, v):
        return v.strip() if v is not None else v

    @validator('phone')
    def validate_phone(cls, v):
        return _check_phone(v)
