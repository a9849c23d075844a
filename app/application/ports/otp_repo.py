from typing import Protocol, Optional
from dataclasses import dataclass
from datetime import datetime


@dataclass
class OtpRecord:
    id: str
    email: str
    otp: str
    expires_at: datetime
    is_used: bool
    created_at: datetime


class OtpRepository(Protocol):
    def replace(self, email: str, otp: str, expires_at: datetime, now: datetime) -> OtpRecord:
        """Store a new code for ``email`` in place of its unused and expired ones, atomically."""
        ...

    def delete_expired(self, now: datetime, email: Optional[str] = None) -> int:
        ...

    def consume(self, email: str, otp: str, now: datetime) -> bool:
        """Mark one matching unused, unexpired record as used. True only for the caller that flipped it."""
        ...
