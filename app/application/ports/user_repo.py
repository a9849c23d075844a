from typing import Protocol, Optional, Dict, Any
from datetime import datetime


class UserAlreadyExistsError(Exception):
    """Raised when the unique email constraint rejects a new user."""


class UserDto:
    def __init__(self, id: str, name: Optional[str], email: str, phone: Optional[str],
                 profile_image: Optional[str], profile_image_public_id: Optional[str],
                 is_email_verified: bool, created_at: datetime, updated_at: datetime):
        self.id = id
        self.name = name
        self.email = email
        self.phone = phone
        self.profile_image = profile_image
        self.profile_image_public_id = profile_image_public_id
        self.is_email_verified = is_email_verified
        self.created_at = created_at
        self.updated_at = updated_at

class UserRepository(Protocol):
    def create(self, email: str, name: Optional[str], phone: Optional[str],
               verification_token: Optional[str] = None,
               verification_expires: Optional[datetime] = None) -> UserDto:
        ...

    def get_by_email(self, email: str) -> Optional[UserDto]:
        ...

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        ...

    def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserDto]:
        ...

    def verify_email_token(self, token: str, now: datetime) -> Optional[UserDto]:
        ...
