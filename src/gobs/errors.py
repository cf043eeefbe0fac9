"""Domain error taxonomy.

Every error carries a stable machine-readable ``code`` and the HTTP status the
API layer renders it with. Messages are safe to show to end users.
"""

from __future__ import annotations


class GobsError(Exception):
    """Base class for all user-facing domain errors."""

    code: str = "INTERNAL_ERROR"
    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.message, "code": self.code}


class BadRequestError(GobsError):
    code = "BAD_REQUEST"
    status_code = 400


class InsufficientFundsError(GobsError):
    code = "INSUFFICIENT_FUNDS"
    status_code = 400


class InsufficientHoldingsError(GobsError):
    code = "INSUFFICIENT_HOLDINGS"
    status_code = 400


class UnauthorizedError(GobsError):
    code = "UNAUTHORIZED"
    status_code = 401


class NotFoundError(GobsError):
    code = "NOT_FOUND"
    status_code = 404


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class QuestNotFoundError(NotFoundError):
    code = "QUEST_NOT_FOUND"

    def __init__(self, message: str = "Quest not found") -> None:
        super().__init__(message)


class ConflictError(GobsError):
    code = "CONFLICT"
    status_code = 409


class PriceUnavailableError(GobsError):
    """No fresh or stale price could be obtained from the market feed."""

    code = "PRICE_UNAVAILABLE"
    status_code = 503
