from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional
import logging
import secrets
import string

from ..ports.otp_repo import OtpRepository, OtpRecord
from ...db.types import utcnow

logger = logging.getLogger(__name__)


def generate_otp(length: int = 6) -> str:
    """Generate a cryptographically random numeric code."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


@dataclass
class OtpService:
    """Issues and consumes one-time email codes.

    Only the most recent code for an email is ever valid: ``request`` swaps
    out every unused code for the address in the same transaction that
    stores the new one. ``verify`` relies on the repository's conditional
    update so that a code is consumed at most once, even when two requests
    race.
    """

    otp_repo: OtpRepository
    expiry_minutes: int = 10
    length: int = 6
    static_code: Optional[str] = None
    clock: Callable[[], datetime] = field(default=utcnow)

    def _new_code(self) -> str:
        if self.static_code:
            return self.static_code
        return generate_otp(self.length)

    def request(self, email: str) -> OtpRecord:
        now = self.clock()
        return self.otp_repo.replace(
            email=email,
            otp=self._new_code(),
            expires_at=now + timedelta(minutes=self.expiry_minutes),
            now=now,
        )

    def verify(self, email: str, code: str) -> bool:
        if not email or not code:
            return False
        return self.otp_repo.consume(email, code, self.clock())

    def purge_expired(self) -> int:
        count = self.otp_repo.delete_expired(self.clock())
        if count:
            logger.info(f"Purged {count} expired OTP record(s)")
        return count
