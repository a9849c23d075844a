from typing import Protocol


class EmailNotConfiguredError(RuntimeError):
    def __init__(self, message: str = "EMAIL_NOT_CONFIGURED"):
        super().__init__(message)


class NotificationSender(Protocol):
    def send_otp_email(self, email: str, code: str) -> None:
        ...

    def send_verification_email(self, email: str, token: str, name: str | None) -> None:
        ...
