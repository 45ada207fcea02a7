"""Authorization gate: the single check every protected operation goes through.

Per request: extract a bearer token, verify it, load the referenced principal
(without its password hash), and compare kind/role against the caller's
requirement. Every failure surfaces as ``Unauthorized``; the specific cause
is only logged. Nothing is cached between requests.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from staffdir.auth.tokens import TokenPayload, TokenService
from staffdir.common.exceptions import TokenError, TokenExpired, Unauthorized
from staffdir.principals.repository import PrincipalRepository
from staffdir.principals.types import (
    AdminPrincipal,
    AdminRole,
    Principal,
    PrincipalKind,
    StaffPrincipal,
)

logger = logging.getLogger(__name__)

UNKNOWN_IP = "127.0.0.1"
UNKNOWN_USER_AGENT = "unknown"

USER_REQUIRED = "User authentication required"
ADMIN_REQUIRED = "Admin authentication required"
SUPER_ADMIN_REQUIRED = "Super admin privileges required"


class _Anonymous:
    """Marker returned by ``optional_auth`` when no principal is resolved."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ANONYMOUS"


ANONYMOUS = _Anonymous()


@dataclass(frozen=True)
class AuthContext:
    """A verified token together with the live principal it refers to."""

    principal: Principal
    token: TokenPayload

    @property
    def kind(self) -> PrincipalKind:
        return self.principal.kind


@dataclass(frozen=True)
class RequestOrigin:
    ip_address: str = UNKNOWN_IP
    user_agent: str = UNKNOWN_USER_AGENT


OptionalAuth = Union[AuthContext, _Anonymous]


class AuthorizationGate:
    def __init__(
        self,
        tokens: TokenService,
        repository: PrincipalRepository,
        cookie_name: str = "auth_token",
    ):
        self.tokens = tokens
        self.repository = repository
        self.cookie_name = cookie_name

    # ── Extract / verify ──

    def extract_token(self, request: Request) -> Optional[str]:
        """Bearer header first, then the session cookie."""
        header = request.headers.get("authorization")
        if header and header.startswith("Bearer "):
            token = header[len("Bearer "):].strip()
            if token:
                return token
        return request.cookies.get(self.cookie_name) or None

    def verify_request(self, request: Request) -> Optional[TokenPayload]:
        token = self.extract_token(request)
        if token is None:
            return None
        try:
            return self.tokens.verify(token)
        except TokenExpired:
            logger.debug("Expired token presented")
            return None
        except TokenError:
            logger.info("Malformed or forged token presented")
            return None

    # ── Resolve ──

    async def _resolve(
        self, session: AsyncSession, payload: TokenPayload,
    ) -> Optional[Principal]:
        principal = await self.repository.find_by_id(session, payload.kind, payload.id)
        if principal is None:
            logger.info("Token subject no longer exists: %s %s", payload.kind.value, payload.id)
            return None
        if not principal.is_active:
            logger.warning(
                "Inactive %s presented a valid token: %s",
                payload.kind.value, payload.id,
            )
            return None
        return principal

    async def authenticate(
        self, session: AsyncSession, request: Request,
    ) -> Optional[AuthContext]:
        payload = self.verify_request(request)
        if payload is None:
            return None
        principal = await self._resolve(session, payload)
        if principal is None:
            return None
        return AuthContext(principal=principal, token=payload)

    # ── Authorize ──

    async def require_user(self, session: AsyncSession, request: Request) -> AuthContext:
        payload = self.verify_request(request)
        if payload is None or payload.kind is not PrincipalKind.USER:
            raise Unauthorized(USER_REQUIRED)
        principal = await self._resolve(session, payload)
        if not isinstance(principal, StaffPrincipal):
            raise Unauthorized(USER_REQUIRED)
        return AuthContext(principal=principal, token=payload)

    async def require_admin(
        self,
        session: AsyncSession,
        request: Request,
        require_super_admin: bool = False,
    ) -> AuthContext:
        payload = self.verify_request(request)
        if payload is None or payload.kind is not PrincipalKind.ADMIN:
            raise Unauthorized(ADMIN_REQUIRED)
        principal = await self._resolve(session, payload)
        if not isinstance(principal, AdminPrincipal):
            raise Unauthorized(ADMIN_REQUIRED)
        # The stored role decides, so a demoted admin's old token cannot widen privilege.
        if require_super_admin and principal.role is not AdminRole.SUPER_ADMIN:
            raise Unauthorized(SUPER_ADMIN_REQUIRED)
        return AuthContext(principal=principal, token=payload)

    async def optional_auth(self, session: AsyncSession, request: Request) -> OptionalAuth:
        context = await self.authenticate(session, request)
        return context if context is not None else ANONYMOUS

    # ── Request origin ──

    @staticmethod
    def client_ip(request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            first = forwarded.split(",")[0].strip()
            if first:
                return first
        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()
        if request.client and request.client.host:
            return request.client.host
        return UNKNOWN_IP

    @staticmethod
    def user_agent(request: Request) -> str:
        return request.headers.get("user-agent") or UNKNOWN_USER_AGENT

    @classmethod
    def request_origin(cls, request: Request) -> RequestOrigin:
        return RequestOrigin(
            ip_address=cls.client_ip(request),
            user_agent=cls.user_agent(request),
        )
