"""Staff registration approval state machine.

pending -> approved (flags set) or rejected (record deleted). Both are
terminal; a second transition on the same record is refused with
``InvalidState`` or ``NotFound`` and sends nothing. Deactivation and
reactivation are a separate soft-delete toggle on the ``is_active`` flag.
Admins may also edit a profile or hard-delete any record; both are audited.
"""

import dataclasses
import logging
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.audit.models import ActionType, TargetModel
from staffdir.audit.service import AuditService
from staffdir.auth.gate import RequestOrigin
from staffdir.common.exceptions import Conflict, InvalidState, NotFound, ValidationError
from staffdir.notifications.service import NotificationService
from staffdir.principals.repository import PrincipalRepository
from staffdir.principals.types import (
    AdminPrincipal,
    ApprovalState,
    PrincipalKind,
    StaffPrincipal,
    approval_state,
)

logger = logging.getLogger(__name__)


PROFILE_FIELDS = (
    "full_name",
    "email",
    "staff_id",
    "faculty",
    "department",
    "designation",
    "office_address",
    "contact_number",
    "office_hours",
    "research_interests",
    "biography",
    "education",
    "publications",
    "photo_url",
)
_REQUIRED_FIELDS = {"full_name", "email", "staff_id", "faculty", "department", "designation"}


def _describe(staff: StaffPrincipal) -> str:
    return f"{staff.full_name} ({staff.staff_id})"


def _snapshot(staff: StaffPrincipal) -> dict[str, Any]:
    data = {name: getattr(staff, name) for name in PROFILE_FIELDS}
    data.update(
        id=staff.id,
        is_verified=staff.is_verified,
        is_approved=staff.is_approved,
        is_active=staff.is_active,
    )
    return data


def _normalise(changes: dict[str, Any]) -> dict[str, Any]:
    unknown = sorted(set(changes) - set(PROFILE_FIELDS))
    if unknown:
        raise ValidationError(
            "Only profile fields can be edited",
            {name: ["Field cannot be edited"] for name in unknown},
        )
    errors: dict[str, list[str]] = {}
    result = {}
    for name, value in changes.items():
        if isinstance(value, str):
            value = value.strip()
        if name in _REQUIRED_FIELDS and not value:
            errors[name] = ["Field is required"]
            continue
        if name == "email":
            value = value.lower()
        elif name == "staff_id":
            if "@" in value:
                errors[name] = ["Must not contain '@'"]
                continue
            value = value.upper()
        result[name] = value
    if errors:
        raise ValidationError("Invalid profile update", errors)
    return result


class ApprovalService:
    def __init__(
        self,
        repository: PrincipalRepository,
        audit: AuditService,
        notifier: NotificationService,
    ):
        self.repository = repository
        self.audit = audit
        self.notifier = notifier

    @staticmethod
    def state_of(staff: Optional[StaffPrincipal]) -> ApprovalState:
        return approval_state(staff)

    async def _get_staff(self, session: AsyncSession, staff_id: str) -> StaffPrincipal:
        staff = await self.repository.find_by_id(session, PrincipalKind.USER, staff_id)
        if staff is None:
            raise NotFound("Staff member not found")
        return staff

    # ── Transitions ──

    async def approve(
        self,
        session: AsyncSession,
        staff_id: str,
        actor: AdminPrincipal,
        origin: RequestOrigin = RequestOrigin(),
    ) -> StaffPrincipal:
        staff = await self._get_staff(session, staff_id)
        if staff.is_approved:
            raise InvalidState("Staff member is already approved")

        # Conditional write; losing a concurrent race means someone else approved first.
        if not await self.repository.mark_approved(session, staff_id):
            raise InvalidState("Staff member is already approved")
        approved = await self._get_staff(session, staff_id)

        await self.notifier.registration_approved(approved)
        await self.audit.record(
            session,
            admin_id=actor.id,
            action=f"Approved staff registration: {_describe(approved)}",
            action_type=ActionType.APPROVE,
            target_model=TargetModel.USER,
            target_id=approved.id,
            details={"email": approved.email, "staff_id": approved.staff_id},
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )
        logger.info(
            "Staff %s approved by %s", approved.id, actor.username,
            extra={"admin_id": actor.id, "target_id": approved.id},
        )
        return approved

    async def reject(
        self,
        session: AsyncSession,
        staff_id: str,
        actor: AdminPrincipal,
        origin: RequestOrigin = RequestOrigin(),
    ) -> StaffPrincipal:
        """Notify, then delete the registration. Returns the deleted record."""
        staff = await self._get_staff(session, staff_id)
        if staff.is_approved:
            raise InvalidState("Approved staff cannot be rejected; deactivate or delete instead")

        # The address is gone once the record is deleted.
        await self.notifier.registration_rejected(staff)

        deleted = await self.repository.delete(session, PrincipalKind.USER, staff_id)
        if deleted is None:
            raise NotFound("Staff member not found")

        await self.audit.record(
            session,
            admin_id=actor.id,
            action=f"Rejected staff registration: {_describe(deleted)}",
            action_type=ActionType.REJECT,
            target_model=TargetModel.USER,
            target_id=deleted.id,
            details={
                "email": deleted.email,
                "staff_id": deleted.staff_id,
                "full_name": deleted.full_name,
            },
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )
        logger.info(
            "Staff %s rejected by %s", deleted.id, actor.username,
            extra={"admin_id": actor.id, "target_id": deleted.id},
        )
        return deleted

    async def _set_active(
        self,
        session: AsyncSession,
        staff_id: str,
        active: bool,
        actor: AdminPrincipal,
        origin: RequestOrigin,
    ) -> StaffPrincipal:
        staff = await self._get_staff(session, staff_id)
        if staff.is_active == active:
            raise InvalidState(
                "Staff member is already active" if active else "Staff member is already deactivated"
            )
        updated = await self.repository.set_active(session, PrincipalKind.USER, staff_id, active)
        if updated is None:
            raise NotFound("Staff member not found")

        verb = "Reactivated" if active else "Deactivated"
        await self.audit.record(
            session,
            admin_id=actor.id,
            action=f"{verb} staff account: {_describe(updated)}",
            action_type=ActionType.UPDATE,
            target_model=TargetModel.USER,
            target_id=updated.id,
            details={"old": {"is_active": staff.is_active}, "new": {"is_active": active}},
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )
        return updated

    async def deactivate(
        self,
        session: AsyncSession,
        staff_id: str,
        actor: AdminPrincipal,
        origin: RequestOrigin = RequestOrigin(),
    ) -> StaffPrincipal:
        return await self._set_active(session, staff_id, False, actor, origin)

    async def reactivate(
        self,
        session: AsyncSession,
        staff_id: str,
        actor: AdminPrincipal,
        origin: RequestOrigin = RequestOrigin(),
    ) -> StaffPrincipal:
        return await self._set_active(session, staff_id, True, actor, origin)

    # ── Profile administration ──

    async def update_staff(
        self,
        session: AsyncSession,
        staff_id: str,
        changes: dict[str, Any],
        actor: AdminPrincipal,
        origin: RequestOrigin = RequestOrigin(),
    ) -> StaffPrincipal:
        """Apply an admin edit to a staff profile.

        Only profile fields may change; approval and activation have their
        own transitions. Unchanged values are dropped, and an edit that
        changes nothing is not audited.
        """
        changes = _normalise(changes)
        staff = await self._get_staff(session, staff_id)
        changed = {name: value for name, value in changes.items() if getattr(staff, name) != value}
        if not changed:
            return staff

        for name in ("email", "staff_id"):
            if name not in changed:
                continue
            other = await self.repository.find_by_unique_key(session, PrincipalKind.USER, changed[name])
            if other is not None and other.id != staff.id:
                raise Conflict("A staff member with this email or staff ID already exists")

        updated = await self.repository.save(session, dataclasses.replace(staff, **changed))
        await self.audit.record(
            session,
            admin_id=actor.id,
            action=f"Updated staff profile: {_describe(updated)}",
            action_type=ActionType.UPDATE,
            target_model=TargetModel.USER,
            target_id=updated.id,
            details={
                "old": {name: getattr(staff, name) for name in changed},
                "new": changed,
            },
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )
        logger.info(
            "Staff %s profile updated by %s: %s", updated.id, actor.username, ", ".join(sorted(changed)),
            extra={"admin_id": actor.id, "target_id": updated.id},
        )
        return updated

    async def delete_staff(
        self,
        session: AsyncSession,
        staff_id: str,
        actor: AdminPrincipal,
        origin: RequestOrigin = RequestOrigin(),
    ) -> StaffPrincipal:
        """Hard-delete a staff record in any state. Sends no notification."""
        deleted = await self.repository.delete(session, PrincipalKind.USER, staff_id)
        if deleted is None:
            raise NotFound("Staff member not found")

        await self.audit.record(
            session,
            admin_id=actor.id,
            action=f"Deleted staff profile: {_describe(deleted)}",
            action_type=ActionType.DELETE,
            target_model=TargetModel.USER,
            target_id=deleted.id,
            details={"deleted": _snapshot(deleted)},
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )
        logger.info(
            "Staff %s deleted by %s", deleted.id, actor.username,
            extra={"admin_id": actor.id, "target_id": deleted.id},
        )
        return deleted

    # ── Read ──

    async def list_staff(
        self,
        session: AsyncSession,
        state: Optional[ApprovalState] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[StaffPrincipal]:
        if state is ApprovalState.REJECTED:
            raise InvalidState("Rejected registrations are deleted and cannot be listed")
        return await self.repository.list_staff(session, state, limit=limit, offset=offset)
