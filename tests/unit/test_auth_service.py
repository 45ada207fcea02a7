"""Tests for registration, login, admin provisioning and password reset."""

from urllib.parse import unquote

import pytest
from pydantic import ValidationError as PydanticValidationError

from staffdir.audit.models import ActionType, TargetModel
from staffdir.auth.gate import RequestOrigin
from staffdir.auth.schemas import StaffRegistration
from staffdir.common.exceptions import (
    AccountInactive,
    AccountPendingApproval,
    Conflict,
    InvalidCredentials,
    ValidationError,
)
from staffdir.principals.types import AdminRole, ApprovalState, PrincipalKind

STAFF_PASSWORD = "Lecture#2026"
ADMIN_PASSWORD = "Registrar!2026"


def registration(**overrides) -> StaffRegistration:
    data = {
        "full_name": "Ada Lovelace",
        "staff_id": "stf001",
        "email": "ada@example.com",
        "password": STAFF_PASSWORD,
        "faculty": "Faculty of Science",
        "department": "Mathematics",
        "designation": "Lecturer",
    }
    data.update(overrides)
    return StaffRegistration(**data)


async def _register(ctx, **overrides):
    async with ctx.db.get_session() as session:
        return await ctx.auth.register_staff(session, registration(**overrides))


async def _login(ctx, email="ada@example.com", password=STAFF_PASSWORD):
    async with ctx.db.get_session() as session:
        return await ctx.auth.authenticate_staff(session, email, password)


class TestRegister:
    async def test_register_is_pending(self, ctx, sender):
        staff = await _register(ctx)
        assert staff.staff_id == "STF001"
        assert staff.slug == "ada-lovelace-stf001"
        assert staff.approval_state is ApprovalState.PENDING
        assert staff.is_verified is False
        assert staff.password_hash is None

        notices = sender.to("registrar@example.com")
        assert len(notices) == 1
        assert notices[0].subject == "New Staff Registration Pending Approval"
        assert "STF001" in notices[0].text

    async def test_weak_password_lists_every_rule(self, ctx):
        with pytest.raises(ValidationError) as exc:
            await _register(ctx, password="weak")
        assert len(exc.value.details["password"]) == 4

    async def test_duplicate_email(self, ctx):
        await _register(ctx)
        with pytest.raises(Conflict):
            await _register(ctx, staff_id="STF002")

    async def test_duplicate_staff_id(self, ctx):
        await _register(ctx)
        with pytest.raises(Conflict):
            await _register(ctx, email="other@example.com")

    def test_staff_id_cannot_look_like_an_email(self):
        with pytest.raises(PydanticValidationError):
            registration(staff_id="victim@example.com")

    async def test_service_refuses_email_shaped_staff_id(self, ctx):
        data = registration().model_copy(update={"staff_id": "victim@example.com"})
        with pytest.raises(ValidationError) as exc:
            async with ctx.db.get_session() as session:
                await ctx.auth.register_staff(session, data)
        assert "staff_id" in exc.value.details

    async def test_email_shaped_staff_id_does_not_block_owner(self, ctx, make_staff):
        await make_staff(email="squat@example.com", staff_id="victim@example.com")
        staff = await _register(ctx, email="victim@example.com", staff_id="V-100")
        assert staff.email == "victim@example.com"

    async def test_password_is_stored_hashed(self, ctx):
        staff = await _register(ctx)
        async with ctx.db.get_session() as session:
            stored = await ctx.repository.find_by_id(
                session, PrincipalKind.USER, staff.id, include_hash=True,
            )
        assert stored.password_hash != STAFF_PASSWORD
        assert ctx.hasher.verify(STAFF_PASSWORD, stored.password_hash)


class TestStaffLogin:
    async def test_pending_then_approved_scenario(self, ctx, make_admin):
        staff = await _register(ctx)
        with pytest.raises(AccountPendingApproval):
            await _login(ctx)

        admin = await make_admin()
        async with ctx.db.get_session() as session:
            await ctx.approvals.approve(session, staff.id, admin)

        principal, token = await _login(ctx)
        assert principal.id == staff.id
        assert principal.password_hash is None
        assert ctx.tokens.verify(token).id == staff.id

        async with ctx.db.get_session() as session:
            entries = await ctx.audit.entries_for_target(session, TargetModel.USER, staff.id)
        assert len(entries) == 1
        assert entries[0].action_type is ActionType.APPROVE
        assert entries[0].admin_id == admin.id

    async def test_unknown_email(self, ctx):
        with pytest.raises(InvalidCredentials) as exc:
            await _login(ctx, email="nobody@example.com")
        assert exc.value.reason == "Invalid credentials"

    async def test_wrong_password_reads_the_same(self, ctx, make_staff):
        await make_staff(approved=True)
        with pytest.raises(InvalidCredentials) as exc:
            await _login(ctx, password="Wrong#Pass1")
        assert exc.value.reason == "Invalid credentials"

    async def test_wrong_password_on_pending_account_hides_state(self, ctx, make_staff):
        await make_staff(approved=False)
        with pytest.raises(InvalidCredentials):
            await _login(ctx, password="Wrong#Pass1")

    async def test_inactive(self, ctx, make_staff):
        await make_staff(approved=True, active=False)
        with pytest.raises(AccountInactive):
            await _login(ctx)

    async def test_login_by_staff_id(self, ctx, make_staff):
        staff = await make_staff(approved=True)
        principal, _ = await _login(ctx, email="stf001")
        assert principal.id == staff.id


class TestAdminAuth:
    async def test_login_updates_last_login_and_audits(self, ctx, clock, make_admin):
        admin = await make_admin()
        origin = RequestOrigin("198.51.100.2", "Firefox")
        async with ctx.db.get_session() as session:
            principal, token = await ctx.auth.authenticate_admin(
                session, "registrar", ADMIN_PASSWORD, origin,
            )
        assert principal.last_login == clock.now()
        payload = ctx.tokens.verify(token)
        assert payload.role is AdminRole.ADMIN

        async with ctx.db.get_session() as session:
            entries = await ctx.audit.recent_entries(session, by_admin=admin.id)
        assert [e.action_type for e in entries] == [ActionType.LOGIN]
        assert entries[0].ip_address == "198.51.100.2"
        assert entries[0].user_agent == "Firefox"

    async def test_wrong_password(self, ctx, make_admin):
        await make_admin()
        async with ctx.db.get_session() as session:
            with pytest.raises(InvalidCredentials):
                await ctx.auth.authenticate_admin(session, "registrar", "Nope#1234")

    async def test_inactive_admin_is_invalid_credentials(self, ctx, make_admin):
        await make_admin(active=False)
        async with ctx.db.get_session() as session:
            with pytest.raises(InvalidCredentials):
                await ctx.auth.authenticate_admin(session, "registrar", ADMIN_PASSWORD)

    async def test_logout_is_audited(self, ctx, make_admin):
        admin = await make_admin()
        async with ctx.db.get_session() as session:
            await ctx.auth.logout_admin(session, admin)
        async with ctx.db.get_session() as session:
            entries = await ctx.audit.recent_entries(session, by_admin=admin.id)
        assert entries[0].action_type is ActionType.LOGOUT
        assert entries[0].ip_address == "127.0.0.1"
        assert entries[0].user_agent == "unknown"

    async def test_provision_by_super_admin_is_audited(self, ctx, make_admin):
        root = await make_admin(username="root", email="root@example.com", role=AdminRole.SUPER_ADMIN)
        async with ctx.db.get_session() as session:
            created = await ctx.auth.provision_admin(
                session, "deputy", "deputy@example.com", "Deputy#2026",
                role="admin", acting_admin=root,
            )
        assert created.role is AdminRole.ADMIN
        assert created.password_hash is None
        async with ctx.db.get_session() as session:
            entries = await ctx.audit.entries_for_target(session, TargetModel.ADMIN, created.id)
        assert entries[0].action_type is ActionType.CREATE
        assert entries[0].admin_id == root.id

    async def test_provision_rejects_weak_password(self, ctx):
        async with ctx.db.get_session() as session:
            with pytest.raises(ValidationError):
                await ctx.auth.provision_admin(session, "deputy", "deputy@example.com", "short")

    async def test_provision_duplicate(self, ctx, make_admin):
        await make_admin(username="registrar")
        async with ctx.db.get_session() as session:
            with pytest.raises(Conflict):
                await ctx.auth.provision_admin(
                    session, "registrar", "new@example.com", "Deputy#2026",
                )

    async def test_provision_rejects_email_shaped_username(self, ctx):
        async with ctx.db.get_session() as session:
            with pytest.raises(ValidationError) as exc:
                await ctx.auth.provision_admin(
                    session, "deputy@example.com", "deputy@example.com", "Deputy#2026",
                )
        assert "username" in exc.value.details

    async def test_provision_rejects_unknown_role(self, ctx):
        async with ctx.db.get_session() as session:
            with pytest.raises(ValueError):
                await ctx.auth.provision_admin(
                    session, "deputy", "deputy@example.com", "Deputy#2026", role="owner",
                )


class TestPasswordReset:
    def _token_from(self, sender, address) -> str:
        text = sender.to(address)[-1].text
        url = next(line for line in text.splitlines() if "reset-password?token=" in line)
        assert url.startswith("https://staff.example.com/reset-password?token=")
        return unquote(url.split("token=", 1)[1])

    async def test_reset_flow(self, ctx, sender, make_staff):
        await make_staff(approved=True)
        async with ctx.db.get_session() as session:
            assert await ctx.auth.request_password_reset(session, "ada@example.com") is True
        token = self._token_from(sender, "ada@example.com")

        async with ctx.db.get_session() as session:
            await ctx.auth.reset_password(session, token, "Brand#New2026")

        principal, _ = await _login(ctx, password="Brand#New2026")
        assert principal.email == "ada@example.com"
        with pytest.raises(InvalidCredentials):
            await _login(ctx)

    async def test_link_is_single_use(self, ctx, sender, make_staff):
        await make_staff(approved=True)
        async with ctx.db.get_session() as session:
            await ctx.auth.request_password_reset(session, "ada@example.com")
        token = self._token_from(sender, "ada@example.com")
        async with ctx.db.get_session() as session:
            await ctx.auth.reset_password(session, token, "Brand#New2026")
        async with ctx.db.get_session() as session:
            with pytest.raises(ValidationError):
                await ctx.auth.reset_password(session, token, "Another#2026")

    async def test_unknown_email_sends_nothing(self, ctx, sender):
        async with ctx.db.get_session() as session:
            assert await ctx.auth.request_password_reset(session, "nobody@example.com") is False
        assert sender.sent == []

    async def test_bad_token(self, ctx):
        async with ctx.db.get_session() as session:
            with pytest.raises(ValidationError):
                await ctx.auth.reset_password(session, "garbage", "Brand#New2026")

    async def test_weak_new_password(self, ctx, sender, make_staff):
        await make_staff(approved=True)
        async with ctx.db.get_session() as session:
            await ctx.auth.request_password_reset(session, "ada@example.com")
        token = self._token_from(sender, "ada@example.com")
        async with ctx.db.get_session() as session:
            with pytest.raises(ValidationError) as exc:
                await ctx.auth.reset_password(session, token, "weak")
        assert exc.value.details["password"]
