"""Tests for password hashing and the strength policy."""

import pytest

from staffdir.auth.passwords import (
    DEFAULT_ROUNDS,
    PasswordHasher,
    validate_password_strength,
)
from staffdir.common.exceptions import MalformedHashError


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    def test_default_cost_is_twelve(self):
        assert PasswordHasher().rounds == DEFAULT_ROUNDS == 12

    def test_verify_own_hash(self, hasher):
        digest = hasher.hash("Correct#Horse1")
        assert hasher.verify("Correct#Horse1", digest) is True

    def test_verify_wrong_password(self, hasher):
        digest = hasher.hash("Correct#Horse1")
        assert hasher.verify("Correct#Horse2", digest) is False

    def test_hashes_are_salted(self, hasher):
        assert hasher.hash("Same#Input1") != hasher.hash("Same#Input1")

    def test_digest_is_bcrypt_with_configured_cost(self, hasher):
        digest = hasher.hash("Correct#Horse1")
        assert digest.startswith("$2b$04$")

    def test_digest_does_not_contain_password(self, hasher):
        assert "Correct#Horse1" not in hasher.hash("Correct#Horse1")

    def test_malformed_digest_raises(self, hasher):
        with pytest.raises(MalformedHashError):
            hasher.verify("anything", "not-a-bcrypt-hash")

    def test_long_password_is_accepted(self, hasher):
        password = "Aa1!" + "x" * 100
        digest = hasher.hash(password)
        assert hasher.verify(password, digest) is True

    def test_burn_does_not_raise(self, hasher):
        hasher.burn("whatever")
        hasher.burn("whatever-again")


class TestPasswordStrength:
    def test_strong_password_passes(self):
        assert validate_password_strength("Str0ng!Pass") == []

    def test_reports_every_violation(self):
        errors = validate_password_strength("abc")
        assert errors == [
            "Password must be at least 8 characters long",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one number",
            "Password must contain at least one special character",
        ]

    def test_empty_password_violates_all_rules(self):
        assert len(validate_password_strength("")) == 5

    @pytest.mark.parametrize("password,missing", [
        ("UPPERCASE1!", "lowercase"),
        ("lowercase1!", "uppercase"),
        ("NoDigits!!", "number"),
        ("NoSymbols12", "special character"),
    ])
    def test_single_missing_class(self, password, missing):
        errors = validate_password_strength(password)
        assert len(errors) == 1
        assert missing in errors[0]

    def test_symbol_outside_fixed_set_does_not_count(self):
        errors = validate_password_strength("Abcdefg1~")
        assert errors == ["Password must contain at least one special character"]
