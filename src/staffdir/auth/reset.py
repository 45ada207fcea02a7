"""Password-reset link tokens (itsdangerous).

The token binds the staff record id and a fingerprint of the password hash
current at issue time, so a link stops working as soon as it has been used.
"""

import hashlib
from typing import Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

SALT = "password-reset"


def hash_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode()).hexdigest()[:16]


class ResetTokenSigner:
    def __init__(self, secret: str, max_age: int = 3600):
        self._serializer = URLSafeTimedSerializer(secret, salt=SALT)
        self.max_age = max_age

    def create(self, staff_id: str, password_hash: str) -> str:
        return self._serializer.dumps(
            {"sid": staff_id, "fp": hash_fingerprint(password_hash)}
        )

    def load(self, token: str) -> Optional[dict]:
        """Return ``{"sid", "fp"}`` or None when the token is bad or expired."""
        try:
            data = self._serializer.loads(token, max_age=self.max_age)
        except (BadSignature, SignatureExpired):
            return None
        if not isinstance(data, dict) or "sid" not in data or "fp" not in data:
            return None
        return data
