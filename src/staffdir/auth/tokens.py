"""Signed, expiring session tokens (HS256 JWT via python-jose).

Tokens are bearer credentials: there is no revocation list, so expiry and
secret rotation are the only ways to invalidate one.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from staffdir.common.clock import Clock, SystemClock
from staffdir.common.config import StaffDirSettings
from staffdir.common.exceptions import TokenExpired, TokenMalformed
from staffdir.principals.types import AdminRole, Principal, PrincipalKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenPayload:
    """The typed principal assertion carried by a token."""

    id: str
    email: str
    kind: PrincipalKind
    role: Optional[AdminRole] = None

    def __post_init__(self):
        if self.kind is PrincipalKind.ADMIN and self.role is None:
            raise ValueError("Admin token payloads require a role")
        if self.kind is PrincipalKind.USER and self.role is not None:
            raise ValueError("Staff token payloads must not carry a role")

    @classmethod
    def for_principal(cls, principal: Principal) -> "TokenPayload":
        if principal.kind is PrincipalKind.ADMIN:
            return cls(principal.id, principal.email, PrincipalKind.ADMIN, principal.role)
        return cls(principal.id, principal.email, PrincipalKind.USER)


class TokenService:
    """Issue and verify session tokens with the process-wide secret."""

    def __init__(self, settings: StaffDirSettings, clock: Clock | None = None):
        if not settings.jwt_secret:
            raise RuntimeError("Token signing secret is not configured")
        self._secret = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.issuer = settings.jwt_issuer
        self.audience = settings.jwt_audience
        self.lifetime = settings.token_lifetime
        self.clock = clock or SystemClock()

    @property
    def lifetime_seconds(self) -> int:
        return int(self.lifetime.total_seconds())

    def issue(self, payload: TokenPayload) -> str:
        now = self.clock.now()
        claims: dict[str, Any] = {
            "sub": payload.id,
            "email": payload.email,
            "type": payload.kind.value,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": int(now.timestamp()),
            "exp": int((now + self.lifetime).timestamp()),
            "jti": str(uuid.uuid4()),
        }
        if payload.role is not None:
            claims["role"] = payload.role.value
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenPayload:
        """Return the payload of a valid token.

        Signature, issuer and audience are checked first, so a tampered token
        is ``TokenMalformed`` even when it is also past expiry. Expiry is
        checked against the injected clock.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_exp": False},
            )
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise TokenMalformed() from exc

        exp = claims.get("exp")
        if not isinstance(exp, int):
            raise TokenMalformed("Token has no valid expiry")
        if self.clock.now() >= datetime.fromtimestamp(exp, tz=timezone.utc):
            raise TokenExpired()

        try:
            kind = PrincipalKind(claims["type"])
            role = AdminRole(claims["role"]) if "role" in claims else None
            return TokenPayload(
                id=str(claims["sub"]),
                email=str(claims["email"]),
                kind=kind,
                role=role,
            )
        except (KeyError, ValueError) as exc:
            logger.debug("Token payload rejected: %s", exc)
            raise TokenMalformed("Token payload is malformed") from exc

    def expires_at(self, issued_at: datetime | None = None) -> datetime:
        return (issued_at or self.clock.now()) + self.lifetime
