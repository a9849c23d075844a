from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

import jwt

from ...application.ports.token_issuer import TokenIssuer

logger = logging.getLogger(__name__)


class JwtTokenIssuer(TokenIssuer):
    """HS256 bearer tokens carrying the user id in ``sub``."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expires_minutes: int = 7 * 24 * 60):
        if not secret_key:
            raise ValueError("SECRET_KEY not properly configured")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes

    def issue(self, user_id: str) -> str:
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expires_minutes)
        to_encode = {"sub": user_id, "exp": expire, "type": "access"}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Optional[str]:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            logger.warning("Token has expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.warning(f"JWT error: {e}")
            return None
        if payload.get("type") != "access":
            return None
        return payload.get("sub")
