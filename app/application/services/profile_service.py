from dataclasses import dataclass, field
from typing import Any, Dict

from ..ports.user_repo import UserRepository, UserDto
from ..ports.audit_logger import AuditLogger, NoopAuditLogger
from ...exceptions import NotFound

# applied only when truthy
REQUIRED_VALUE_FIELDS = ("name", "phone")
# applied whenever present, None clears them
CLEARABLE_FIELDS = ("profile_image", "profile_image_public_id")


@dataclass
class ProfileService:
    user_repo: UserRepository
    audit: AuditLogger = field(default_factory=NoopAuditLogger)

    def get_current_user(self, user_id: str) -> UserDto:
        user = self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def update_profile(self, user_id: str, provided: Dict[str, Any]) -> UserDto:
        update_data = {}
        for key in REQUIRED_VALUE_FIELDS:
            if provided.get(key):
                update_data[key] = provided[key]
        for key in CLEARABLE_FIELDS:
            if key in provided:
                update_data[key] = provided[key]

        user = self.user_repo.update_fields(user_id, update_data)
        if not user:
            raise NotFound("User not found")
        self.audit.log("profile_update", user.email, user_id=user.id, details={"fields": sorted(update_data)})
        return user
