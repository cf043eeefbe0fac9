"""Account registration and profile lookup."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

import structlog
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError

from gobs.accounts.password import PasswordStrengthError, hash_password, validate_password_strength
from gobs.database import Database
from gobs.dates import as_utc
from gobs.db.models import User
from gobs.errors import BadRequestError, ConflictError, UserNotFoundError
from gobs.gamification.engine import UserStats, stats_for

logger = structlog.get_logger()

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{3,30}$")


@dataclass(frozen=True)
class Profile:
    id: int
    username: str
    email: str
    balance: float
    total_trades: int
    stats: UserStats
    created_at: datetime

    @classmethod
    def from_model(cls, user: User) -> Profile:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            balance=user.balance,
            total_trades=user.total_trades,
            stats=stats_for(user),
            created_at=as_utc(user.created_at),
        )


class AccountService:
    def __init__(self, database: Database, *, initial_balance: float = 10_000.0) -> None:
        self.database = database
        self.initial_balance = initial_balance

    async def register(self, username: str, email: str, password: str) -> Profile:
        """
        Create an account with the starting balance.

        Raises:
            BadRequestError: Malformed username/email or weak password.
            ConflictError: Username or email already taken.
        """
        username = username.strip()
        if not USERNAME_RE.match(username):
            msg = "Username must be 3-30 characters: letters, digits or underscore"
            raise BadRequestError(msg)
        try:
            email = validate_email(email.strip(), check_deliverability=False).normalized.lower()
        except EmailNotValidError as exc:
            msg = "Invalid email address"
            raise BadRequestError(msg) from exc
        try:
            validate_password_strength(password, username=username)
        except PasswordStrengthError as exc:
            raise BadRequestError(str(exc)) from exc

        try:
            async with self.database.unit_of_work() as uow:
                if await uow.users.exists_by_username(username):
                    msg = "Username already taken"
                    raise ConflictError(msg)
                if await uow.users.exists_by_email(email):
                    msg = "Email already registered"
                    raise ConflictError(msg)
                user = await uow.users.create(
                    username=username,
                    email=email,
                    password_hash=hash_password(password),
                    balance=self.initial_balance,
                )
        except IntegrityError as exc:
            # Lost a race against a concurrent registration.
            msg = "Username or email already registered"
            raise ConflictError(msg) from exc

        logger.info("user_created", user_id=user.id, username=username)
        return Profile.from_model(user)

    async def get_profile(self, user_id: int) -> Profile:
        async with self.database.unit_of_work() as uow:
            user = await uow.users.get(user_id)
            if user is None:
                raise UserNotFoundError
            return Profile.from_model(user)
