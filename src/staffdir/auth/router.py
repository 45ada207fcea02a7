"""Staff and admin authentication API router."""

from fastapi import APIRouter, Depends, Response

from staffdir.auth.cookies import clear_session_cookies, set_session_cookies
from staffdir.auth.gate import AuthContext, OptionalAuth, RequestOrigin
from staffdir.auth.schemas import (
    AdminCreate,
    AdminLoginRequest,
    AdminLoginResponse,
    MeResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    RegistrationResponse,
    StaffLoginRequest,
    StaffLoginResponse,
    StaffRegistration,
)
from staffdir.common.exceptions import StaffDirError
from staffdir.common.schemas import MessageResponse
from staffdir.common.security import (
    optional_auth,
    request_origin,
    require_super_admin,
    to_http_exception,
)
from staffdir.principals.schemas import AdminResponse, StaffResponse
from staffdir.principals.types import AdminPrincipal, PrincipalKind

router = APIRouter()

RESET_REQUESTED = "If an account exists for that email, a password reset link has been sent."


def _get_context():
    from staffdir.deps import get_context
    return get_context()


# ── Staff ──

@router.post("/auth/register", response_model=RegistrationResponse, status_code=201)
async def register(body: StaffRegistration):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            staff = await ctx.auth.register_staff(session, body)
        except StaffDirError as e:
            raise to_http_exception(e)
        return RegistrationResponse(user=StaffResponse.from_principal(staff))


@router.post("/auth/login", response_model=StaffLoginResponse)
async def login(body: StaffLoginRequest, response: Response):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            staff, token = await ctx.auth.authenticate_staff(session, body.email, body.password)
        except StaffDirError as e:
            raise to_http_exception(e)
    set_session_cookies(response, ctx.settings, token, PrincipalKind.USER.value)
    return StaffLoginResponse(
        token=token,
        expires_in=ctx.tokens.lifetime_seconds,
        user=StaffResponse.from_principal(staff),
    )


@router.post("/auth/logout", response_model=MessageResponse)
async def logout(response: Response):
    clear_session_cookies(response, _get_context().settings)
    return MessageResponse(message="Logged out")


@router.get("/auth/me", response_model=MeResponse)
async def me(auth: OptionalAuth = Depends(optional_auth)):
    if not auth:
        return MeResponse(authenticated=False)
    if auth.kind is PrincipalKind.ADMIN:
        return MeResponse(
            authenticated=True,
            kind=auth.kind.value,
            admin=AdminResponse.from_principal(auth.principal),
        )
    return MeResponse(
        authenticated=True,
        kind=auth.kind.value,
        user=StaffResponse.from_principal(auth.principal),
    )


@router.post("/auth/password-reset/request", response_model=MessageResponse)
async def request_password_reset(body: PasswordResetRequest):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        await ctx.auth.request_password_reset(session, str(body.email))
    return MessageResponse(message=RESET_REQUESTED)


@router.post("/auth/password-reset/confirm", response_model=MessageResponse)
async def confirm_password_reset(body: PasswordResetConfirm):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            await ctx.auth.reset_password(session, body.token, body.new_password)
        except StaffDirError as e:
            raise to_http_exception(e)
    return MessageResponse(message="Password has been reset. You can now log in.")


# ── Admins ──

@router.post("/admin/auth/login", response_model=AdminLoginResponse)
async def admin_login(
    body: AdminLoginRequest,
    response: Response,
    origin: RequestOrigin = Depends(request_origin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            admin, token = await ctx.auth.authenticate_admin(
                session, body.username, body.password, origin,
            )
        except StaffDirError as e:
            raise to_http_exception(e)
    set_session_cookies(response, ctx.settings, token, admin.role.value)
    return AdminLoginResponse(
        token=token,
        expires_in=ctx.tokens.lifetime_seconds,
        admin=AdminResponse.from_principal(admin),
    )


@router.post("/admin/auth/logout", response_model=MessageResponse)
async def admin_logout(
    response: Response,
    auth: OptionalAuth = Depends(optional_auth),
    origin: RequestOrigin = Depends(request_origin),
):
    """Always clears the session; the logout is audited when a live admin token was sent."""
    ctx = _get_context()
    if auth and isinstance(auth.principal, AdminPrincipal):
        async with ctx.db.get_session() as session:
            await ctx.auth.logout_admin(session, auth.principal, origin)
    clear_session_cookies(response, ctx.settings)
    return MessageResponse(message="Logged out")


@router.post("/admin/admins", response_model=AdminResponse, status_code=201)
async def create_admin(
    body: AdminCreate,
    auth: AuthContext = Depends(require_super_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            admin = await ctx.auth.provision_admin(
                session,
                body.username,
                str(body.email),
                body.password,
                role=body.role,
                full_name=body.full_name,
                acting_admin=auth.principal,
                origin=origin,
            )
        except StaffDirError as e:
            raise to_http_exception(e)
        return AdminResponse.from_principal(admin)
