"""Shared test fixtures for the staff directory."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from staffdir.common.config import StaffDirSettings
from staffdir.common.context import build_context
from staffdir.principals.types import AdminPrincipal, AdminRole, StaffPrincipal

JWT_SECRET = "test-jwt-secret-that-is-long-enough-for-hs256"
FROZEN_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)
STAFF_PASSWORD = "Lecture#2026"
ADMIN_PASSWORD = "Registrar!2026"
ADMIN_EMAIL = "registrar@example.com"


class FrozenClock:
    """A clock that only moves when told to."""

    def __init__(self, now: datetime = FROZEN_NOW):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@dataclass
class SentMessage:
    to: str
    subject: str
    html: str
    text: str


class RecordingSender:
    """Notification sender double that keeps every message."""

    def __init__(self):
        self.sent: list[SentMessage] = []
        self.fail = False

    async def send(self, to: str, subject: str, html: str, text: str) -> bool:
        self.sent.append(SentMessage(to, subject, html, text))
        return not self.fail

    def to(self, address: str) -> list[SentMessage]:
        return [m for m in self.sent if m.to == address]


def make_settings(**overrides) -> StaffDirSettings:
    defaults = {
        "jwt_secret": JWT_SECRET,
        "db_url": "sqlite+aiosqlite://",
        "bcrypt_rounds": 4,
        "admin_email": ADMIN_EMAIL,
        "public_app_url": "https://staff.example.com",
    }
    defaults.update(overrides)
    return StaffDirSettings(**defaults)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
async def ctx(settings, clock, sender):
    """A fully wired context over a fresh in-memory database."""
    context = build_context(settings, clock=clock, sender=sender)
    await context.db.init()
    await context.db.create_all()
    yield context
    await context.db.close()


@pytest.fixture
def db(ctx):
    return ctx.db


@pytest.fixture
def make_staff(ctx):
    async def _make(
        email: str = "ada@example.com",
        staff_id: str = "STF001",
        full_name: str = "Ada Lovelace",
        password: str = STAFF_PASSWORD,
        approved: bool = False,
        active: bool = True,
    ) -> StaffPrincipal:
        async with ctx.db.get_session() as session:
            return await ctx.repository.save(
                session,
                StaffPrincipal(
                    id="",
                    staff_id=staff_id,
                    email=email,
                    full_name=full_name,
                    faculty="Faculty of Science",
                    department="Mathematics",
                    designation="Lecturer",
                    slug="",
                    is_verified=approved,
                    is_approved=approved,
                    is_active=active,
                    password_hash=ctx.hasher.hash(password),
                ),
            )
    return _make


@pytest.fixture
def make_admin(ctx):
    async def _make(
        username: str = "registrar",
        email: str = "admin@example.com",
        role: AdminRole = AdminRole.ADMIN,
        password: str = ADMIN_PASSWORD,
        active: bool = True,
    ) -> AdminPrincipal:
        async with ctx.db.get_session() as session:
            return await ctx.repository.save(
                session,
                AdminPrincipal(
                    id="",
                    username=username,
                    email=email,
                    role=role,
                    is_active=active,
                    password_hash=ctx.hasher.hash(password),
                ),
            )
    return _make


@pytest.fixture
def app(ctx):
    """The FastAPI app bound to the test context."""
    from staffdir.deps import reset_context, set_context

    set_context(ctx)
    from staffdir.app import create_app
    yield create_app()
    reset_context()


@pytest.fixture
async def client(app):
    # ASGITransport doesn't run lifespan; the ctx fixture already created the schema
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def bearer(ctx):
    """Authorization headers carrying a fresh token for a principal."""
    from staffdir.auth.tokens import TokenPayload

    def _headers(principal) -> dict[str, str]:
        token = ctx.tokens.issue(TokenPayload.for_principal(principal))
        return {"Authorization": f"Bearer {token}"}
    return _headers
