from typing import Optional, Dict, Any
from datetime import datetime
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import User
from .....db.types import utcnow, as_utc
from .....application.ports.user_repo import UserRepository, UserDto, UserAlreadyExistsError

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "phone", "profile_image", "profile_image_public_id")


class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            profile_image=user.profile_image,
            profile_image_public_id=user.profile_image_public_id,
            is_email_verified=bool(user.is_email_verified),
            created_at=as_utc(user.created_at),
            updated_at=as_utc(user.updated_at),
        )

    def create(self, email: str, name: Optional[str], phone: Optional[str],
               verification_token: Optional[str] = None,
               verification_expires: Optional[datetime] = None) -> UserDto:
        user = User(
            email=email,
            name=name,
            phone=phone,
            email_verification_token=verification_token,
            email_verification_expires=verification_expires,
        )
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Unique email constraint rejected new user")
            raise UserAlreadyExistsError(email)
        self.session.refresh(user)
        return self._to_dto(user)

    def get_by_email(self, email: str) -> Optional[UserDto]:
        user = self.session.exec(select(User).where(User.email == email)).first()
        return self._to_dto(user) if user else None

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        user = self.session.get(User, user_id)
        return self._to_dto(user) if user else None

    def update_fields(self, user_id: str, fields: Dict[str, Any]) -> Optional[UserDto]:
        user = self.session.get(User, user_id)
        if not user:
            return None
        for key, value in fields.items():
            if key not in UPDATABLE_FIELDS:
                raise ValueError(f"Field {key} cannot be updated")
            setattr(user, key, value)
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return self._to_dto(user)

    def verify_email_token(self, token: str, now: datetime) -> Optional[UserDto]:
        user = self.session.exec(
            select(User).where(
                User.email_verification_token == token,
                User.email_verification_expires > now,
            )
        ).first()
        if not user:
            return None
        user.is_email_verified = True
        user.email_verification_token = None
        user.email_verification_expires = None
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return self._to_dto(user)
