from typing import Protocol, Optional


class TokenIssuer(Protocol):
    def issue(self, user_id: str) -> str:
        ...

    def decode(self, token: str) -> Optional[str]:
        ...
