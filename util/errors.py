# util/errors.py
from typing import Optional


class AppError(Exception):
    # Flow: raise AppError to short-circuit with a human-readable message.
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class CommandError(AppError):
    """A pipeline command failed; `message` is safe to show to the user."""

    def __init__(self, message: str, command: Optional[str] = None) -> None:
        super().__init__(message)
        self.command = command


class SubscriptionError(AppError):
    pass
