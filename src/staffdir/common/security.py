"""FastAPI authentication dependencies wrapping the authorization gate."""

from fastapi import HTTPException, Request

from staffdir.auth.gate import AuthContext, AuthorizationGate, OptionalAuth, RequestOrigin
from staffdir.common.exceptions import (
    AccountInactive,
    AccountPendingApproval,
    Conflict,
    DependencyFailure,
    InvalidState,
    NotFound,
    StaffDirError,
    Unauthorized,
    ValidationError,
)


def _get_context():
    from staffdir.deps import get_context
    return get_context()


def unauthorized(exc: Unauthorized) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=exc.reason,
        headers={"WWW-Authenticate": "Bearer"},
    )


def to_http_exception(exc: StaffDirError) -> HTTPException:
    """Map a domain error to its HTTP response."""
    if isinstance(exc, (AccountPendingApproval, AccountInactive)):
        # Only raised after the password verified, so the state may be disclosed.
        return HTTPException(status_code=403, detail=exc.message)
    if isinstance(exc, Unauthorized):
        return unauthorized(exc)
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=400, detail={"message": exc.message, "errors": exc.details},
        )
    if isinstance(exc, NotFound):
        return HTTPException(status_code=404, detail=exc.message)
    if isinstance(exc, (Conflict, InvalidState)):
        return HTTPException(status_code=409, detail=exc.message)
    if isinstance(exc, DependencyFailure):
        return HTTPException(status_code=503, detail=exc.message)
    return HTTPException(status_code=500, detail="Internal error")


async def require_user(request: Request) -> AuthContext:
    """FastAPI dependency: an active staff member."""
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            return await ctx.gate.require_user(session, request)
        except Unauthorized as exc:
            raise unauthorized(exc)


async def require_admin(request: Request) -> AuthContext:
    """FastAPI dependency: an active admin of either role."""
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            return await ctx.gate.require_admin(session, request)
        except Unauthorized as exc:
            raise unauthorized(exc)


async def require_super_admin(request: Request) -> AuthContext:
    """FastAPI dependency: an active admin whose stored role is super-admin."""
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            return await ctx.gate.require_admin(session, request, require_super_admin=True)
        except Unauthorized as exc:
            raise unauthorized(exc)


async def optional_auth(request: Request) -> OptionalAuth:
    """FastAPI dependency: the caller's context, or ``ANONYMOUS``. Never fails."""
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        return await ctx.gate.optional_auth(session, request)


def request_origin(request: Request) -> RequestOrigin:
    return AuthorizationGate.request_origin(request)
