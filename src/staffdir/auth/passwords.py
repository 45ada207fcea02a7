"""Password hashing (bcrypt) and password-strength policy."""

import re

import bcrypt

from staffdir.common.exceptions import MalformedHashError

DEFAULT_ROUNDS = 12
MIN_LENGTH = 8
SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'

_SPECIAL_PATTERN = re.compile(f"[{re.escape(SPECIAL_CHARS)}]")

# bcrypt only consumes the first 72 bytes of its input.
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted, adaptive one-way hashing of passwords.

    ``bcrypt.checkpw`` compares digests in constant time, so ``verify`` does
    not leak where a mismatch occurs. Both calls are CPU bound; async callers
    should run them via ``asyncio.to_thread``.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(
            _encode(password),
            bcrypt.gensalt(rounds=self.rounds),
        ).decode("utf-8")

    def verify(self, password: str, digest: str) -> bool:
        """Return whether ``password`` matches ``digest``.

        A mismatch is a normal ``False``; only a digest that is not a bcrypt
        hash raises ``MalformedHashError``.
        """
        try:
            return bcrypt.checkpw(_encode(password), digest.encode("utf-8"))
        except (ValueError, TypeError) as exc:
            raise MalformedHashError() from exc

    def burn(self, password: str) -> None:
        """Spend one verification's worth of work against a throwaway digest.

        Used when the identifier was unknown, so that response time does not
        reveal whether an account exists.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("not-a-real-password")
        self.verify(password, self._dummy_hash)


def validate_password_strength(password: str) -> list[str]:
    """Return every violated rule; an empty list means the password is accepted."""
    errors: list[str] = []

    if len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters long")

    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")

    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")

    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")

    if not _SPECIAL_PATTERN.search(password):
        errors.append("Password must contain at least one special character")

    return errors
