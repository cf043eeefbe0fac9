"""Password hashing and strength validation."""

import pytest

from gobs.accounts.password import (
    PasswordStrengthError,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestHashing:
    def test_hash_is_argon2id(self):
        assert hash_password("Secret123").startswith("$argon2id$")

    def test_hashes_are_salted(self):
        assert hash_password("Secret123") != hash_password("Secret123")

    def test_verify_correct(self):
        assert verify_password("Secret123", hash_password("Secret123")) is True

    def test_verify_wrong(self):
        assert verify_password("Secret124", hash_password("Secret123")) is False

    def test_verify_malformed_hash(self):
        assert verify_password("Secret123", "not-a-hash") is False


class TestStrength:
    def test_valid(self):
        validate_password_strength("Tr4derJoe")

    @pytest.mark.parametrize(
        ("password", "message"),
        [
            ("", "empty"),
            ("   ", "empty"),
            ("Ab1", "at least 8"),
            ("A1" + "a" * 127, "must not exceed"),
            ("lowercase1", "uppercase"),
            ("UPPERCASE1", "lowercase"),
            ("NoDigitsHere", "digit"),
        ],
    )
    def test_rejected(self, password, message):
        with pytest.raises(PasswordStrengthError, match=message):
            validate_password_strength(password)


def test_password_may_not_contain_username():
    with pytest.raises(PasswordStrengthError, match="username"):
        validate_password_strength("Satoshi2009x", username="satoshi")
    validate_password_strength("Genesis2009", username="satoshi")
