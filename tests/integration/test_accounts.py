"""Registration and profile lookup."""

from __future__ import annotations

import pytest

from gobs.accounts.password import verify_password
from gobs.errors import BadRequestError, ConflictError, UserNotFoundError
from gobs.gamification.levels import Rank


@pytest.mark.asyncio
async def test_register_creates_starting_account(services):
    profile = await services.accounts.register("satoshi", "Satoshi@Example.com", "Genesis2009")

    assert profile.username == "satoshi"
    assert profile.email == "satoshi@example.com"
    assert profile.balance == 10_000
    assert profile.total_trades == 0
    assert profile.stats.xp == 0
    assert profile.stats.level == 1
    assert profile.stats.rank is Rank.INICIANTE

    async with services.database.unit_of_work() as uow:
        stored = await uow.users.get_by_email("satoshi@example.com")
    assert stored is not None
    assert verify_password("Genesis2009", stored.password_hash)


@pytest.mark.asyncio
async def test_duplicate_username(services):
    await services.accounts.register("hodler", "one@example.com", "Diamond4Hands")
    with pytest.raises(ConflictError, match="Username already taken"):
        await services.accounts.register("hodler", "two@example.com", "Diamond4Hands")


@pytest.mark.asyncio
async def test_duplicate_email_is_case_insensitive(services):
    await services.accounts.register("first_one", "same@example.com", "Diamond4Hands")
    with pytest.raises(ConflictError, match="Email already registered"):
        await services.accounts.register("second_one", "SAME@example.com", "Diamond4Hands")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("username", "email", "password"),
    [
        ("ab", "ok@example.com", "Diamond4Hands"),
        ("bad name!", "ok@example.com", "Diamond4Hands"),
        ("valid_name", "not-an-email", "Diamond4Hands"),
        ("valid_name", "ok@example.com", "short"),
        ("valid_name", "ok@example.com", "alllowercase1"),
    ],
)
async def test_invalid_input(services, username, email, password):
    with pytest.raises(BadRequestError):
        await services.accounts.register(username, email, password)


@pytest.mark.asyncio
async def test_get_profile(services, make_user):
    user = await make_user(balance=1_234.5)
    profile = await services.accounts.get_profile(user.id)

    assert profile.id == user.id
    assert profile.balance == 1_234.5
    assert profile.stats.xp_for_next_level == 100
    assert profile.created_at.tzinfo is not None


@pytest.mark.asyncio
async def test_get_profile_unknown_user(services):
    with pytest.raises(UserNotFoundError):
        await services.accounts.get_profile(8_888)


@pytest.mark.asyncio
@pytest.mark.parametrize("email", ["two..dots@example.com", "trader@-example.com", "trader@exa mple.com"])
async def test_malformed_email_rejected(services, email):
    with pytest.raises(BadRequestError, match="Invalid email address"):
        await services.accounts.register("valid_name", email, "Diamond4Hands")


@pytest.mark.asyncio
async def test_email_is_normalized(services):
    profile = await services.accounts.register("normal_guy", "  Normal.Guy@Example.COM ", "Diamond4Hands")
    assert profile.email == "normal.guy@example.com"
