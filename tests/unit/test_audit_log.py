"""Tests for the admin action log: write, query and retention."""

import logging
from datetime import timedelta

from staffdir.audit.models import ActionType, TargetModel
from staffdir.principals.types import PrincipalKind


async def _record(ctx, admin_id="admin-1", action="Did a thing", **kwargs):
    kwargs.setdefault("action_type", ActionType.UPDATE)
    kwargs.setdefault("target_model", TargetModel.SYSTEM)
    async with ctx.db.get_session() as session:
        return await ctx.audit.record(session, admin_id, action, **kwargs)


class TestRecord:
    async def test_record_entry(self, ctx, clock):
        entry = await _record(
            ctx,
            action="Approved staff registration",
            action_type=ActionType.APPROVE,
            target_model=TargetModel.USER,
            target_id="staff-1",
            details={"old": {"is_approved": False}, "new": {"is_approved": True}},
            ip_address="203.0.113.7",
            user_agent="pytest",
        )
        assert entry is not None
        assert entry.id
        assert entry.action_type is ActionType.APPROVE
        assert entry.target_model is TargetModel.USER
        assert entry.details["new"]["is_approved"] is True
        assert entry.timestamp == clock.now()

    async def test_accepts_plain_strings(self, ctx):
        entry = await _record(ctx, action_type="login", target_model="Admin")
        assert entry.action_type is ActionType.LOGIN
        assert entry.target_model is TargetModel.ADMIN

    async def test_invalid_action_type_returns_none(self, ctx, caplog):
        with caplog.at_level(logging.ERROR, logger="staffdir.audit.service"):
            assert await _record(ctx, action_type="promote") is None
        assert "Audit entry rejected" in caplog.text

    async def test_invalid_target_model_returns_none(self, ctx):
        assert await _record(ctx, target_model="Course") is None

    async def test_overlong_action_returns_none(self, ctx):
        assert await _record(ctx, action="x" * 501) is None
        assert await _record(ctx, action="x" * 500) is not None

    async def test_empty_action_returns_none(self, ctx):
        assert await _record(ctx, action="") is None

    async def test_long_user_agent_is_truncated(self, ctx):
        entry = await _record(ctx, user_agent="u" * 800)
        assert len(entry.user_agent) == 500

    async def test_write_failure_does_not_undo_primary_operation(self, ctx, make_staff, caplog):
        staff = await make_staff()
        async with ctx.db.get_session() as session:
            await ctx.repository.set_active(session, PrincipalKind.USER, staff.id, False)
            with caplog.at_level(logging.ERROR, logger="staffdir.audit.service"):
                entry = await ctx.audit.record(
                    session, "admin-1", "Unserialisable details",
                    ActionType.UPDATE, TargetModel.USER, staff.id,
                    details={"bad": object()},
                )
        assert entry is None
        assert "Failed to write audit entry" in caplog.text
        async with ctx.db.get_session() as session:
            stored = await ctx.repository.find_by_id(session, PrincipalKind.USER, staff.id)
            assert stored.is_active is False
            assert await ctx.audit.entries_for_target(session, TargetModel.USER, staff.id) == []


class TestQuery:
    async def test_recent_entries_newest_first(self, ctx, clock):
        for n in range(3):
            await _record(ctx, action=f"Action {n}")
            clock.advance(minutes=1)
        async with ctx.db.get_session() as session:
            entries = await ctx.audit.recent_entries(session, limit=10)
        assert [e.action for e in entries] == ["Action 2", "Action 1", "Action 0"]

    async def test_recent_entries_limit(self, ctx, clock):
        for n in range(5):
            await _record(ctx, action=f"Action {n}")
            clock.advance(seconds=1)
        async with ctx.db.get_session() as session:
            entries = await ctx.audit.recent_entries(session, limit=2)
        assert [e.action for e in entries] == ["Action 4", "Action 3"]

    async def test_recent_entries_by_admin(self, ctx, clock):
        await _record(ctx, admin_id="admin-1", action="One")
        clock.advance(seconds=1)
        await _record(ctx, admin_id="admin-2", action="Two")
        async with ctx.db.get_session() as session:
            entries = await ctx.audit.recent_entries(session, by_admin="admin-2")
        assert [e.action for e in entries] == ["Two"]

    async def test_entries_carry_admin_identity(self, ctx, make_admin):
        admin = await make_admin(username="registrar", email="admin@example.com")
        await _record(ctx, admin_id=admin.id)
        await _record(ctx, admin_id="gone-admin")
        async with ctx.db.get_session() as session:
            entries = await ctx.audit.recent_entries(session)
        by_admin = {e.admin_id: e for e in entries}
        assert by_admin[admin.id].admin_username == "registrar"
        assert by_admin[admin.id].admin_email == "admin@example.com"
        assert by_admin["gone-admin"].admin_username is None

    async def test_entries_for_target(self, ctx, clock):
        await _record(ctx, action="First", target_model=TargetModel.USER, target_id="s1")
        clock.advance(seconds=1)
        await _record(ctx, action="Other", target_model=TargetModel.USER, target_id="s2")
        await _record(ctx, action="Admin", target_model=TargetModel.ADMIN, target_id="s1")
        clock.advance(seconds=1)
        await _record(ctx, action="Second", target_model=TargetModel.USER, target_id="s1")
        async with ctx.db.get_session() as session:
            entries = await ctx.audit.entries_for_target(session, "User", "s1")
        assert [e.action for e in entries] == ["Second", "First"]


class TestRetention:
    async def test_sweep_deletes_only_entries_past_window(self, ctx, clock):
        now = clock.now()
        for age in (10, 89, 90, 91, 200):
            clock.current = now - timedelta(days=age)
            await _record(ctx, action=f"{age} days old")
        clock.current = now

        async with ctx.db.get_session() as session:
            removed = await ctx.audit.sweep_expired(session, 90)
        assert removed == 2

        async with ctx.db.get_session() as session:
            remaining = await ctx.audit.recent_entries(session, limit=10)
        assert [e.action for e in remaining] == ["10 days old", "89 days old", "90 days old"]

    async def test_sweep_is_idempotent(self, ctx, clock):
        now = clock.now()
        clock.current = now - timedelta(days=120)
        await _record(ctx)
        clock.current = now
        async with ctx.db.get_session() as session:
            assert await ctx.audit.sweep_expired(session) == 1
        async with ctx.db.get_session() as session:
            assert await ctx.audit.sweep_expired(session) == 0

    async def test_default_window_is_configured_retention(self, ctx, clock):
        assert ctx.audit.retention_days == 90
        assert ctx.audit.cutoff() == clock.now() - timedelta(days=90)

    async def test_sweep_with_nothing_to_delete(self, ctx):
        await _record(ctx)
        async with ctx.db.get_session() as session:
            assert await ctx.audit.sweep_expired(session, 90) == 0
