"""Authentication service: registration, login, admin provisioning and password reset."""

import asyncio
import dataclasses
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.audit.models import ActionType, TargetModel
from staffdir.audit.service import AuditService
from staffdir.auth.gate import RequestOrigin
from staffdir.auth.passwords import PasswordHasher, validate_password_strength
from staffdir.auth.reset import ResetTokenSigner, hash_fingerprint
from staffdir.auth.schemas import StaffRegistration
from staffdir.auth.tokens import TokenPayload, TokenService
from staffdir.common.clock import Clock, SystemClock
from staffdir.common.exceptions import (
    AccountInactive,
    AccountPendingApproval,
    Conflict,
    InvalidCredentials,
    MalformedHashError,
    ValidationError,
)
from staffdir.notifications.service import NotificationService
from staffdir.principals.repository import PrincipalRepository
from staffdir.principals.types import (
    AdminPrincipal,
    AdminRole,
    PrincipalKind,
    StaffPrincipal,
)

logger = logging.getLogger(__name__)

INVALID_RESET_LINK = "Invalid or expired password reset link"


def _check_strength(password: str) -> None:
    errors = validate_password_strength(password)
    if errors:
        raise ValidationError("Password does not meet requirements", {"password": errors})


def _check_handle(field: str, value: str) -> None:
    if "@" in value:
        raise ValidationError(f"Invalid {field}", {field: ["Must not contain '@'"]})


class AuthService:
    """Credential checks for both principal kinds.

    bcrypt work runs in a worker thread so it never stalls the event loop.
    """

    def __init__(
        self,
        repository: PrincipalRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
        audit: AuditService,
        notifier: NotificationService,
        reset_signer: ResetTokenSigner,
        clock: Clock | None = None,
    ):
        self.repository = repository
        self.hasher = hasher
        self.tokens = tokens
        self.audit = audit
        self.notifier = notifier
        self.reset_signer = reset_signer
        self.clock = clock or SystemClock()

    # ── Hashing helpers ──

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(self.hasher.hash, password)

    async def _verify(self, password: str, digest: Optional[str]) -> bool:
        if not digest:
            await asyncio.to_thread(self.hasher.burn, password)
            return False
        try:
            return await asyncio.to_thread(self.hasher.verify, password, digest)
        except MalformedHashError:
            logger.error("Stored password hash is malformed; treating as mismatch")
            return False

    # ── Staff ──

    async def register_staff(
        self, session: AsyncSession, data: StaffRegistration,
    ) -> StaffPrincipal:
        """Create a pending registration and tell the admin address about it."""
        _check_strength(data.password)
        _check_handle("staff_id", data.staff_id)

        for key in (data.email, data.staff_id):
            if await self.repository.find_by_unique_key(session, PrincipalKind.USER, key):
                raise Conflict("A staff member with this email or staff ID already exists")

        staff = await self.repository.save(
            session,
            StaffPrincipal(
                id="",
                staff_id=data.staff_id,
                email=str(data.email),
                full_name=data.full_name.strip(),
                faculty=data.faculty,
                department=data.department,
                designation=data.designation,
                slug="",
                is_verified=False,
                is_approved=False,
                is_active=True,
                office_address=data.office_address,
                contact_number=data.contact_number,
                office_hours=data.office_hours,
                password_hash=await self._hash(data.password),
            ),
        )
        logger.info("Staff registration pending approval: %s", staff.id, extra={"target_id": staff.id})
        await self.notifier.new_registration(staff)
        return staff

    async def authenticate_staff(
        self, session: AsyncSession, email: str, password: str,
    ) -> tuple[StaffPrincipal, str]:
        """Return the staff member and a fresh token.

        Account state is only revealed once the password has verified.
        """
        staff = await self.repository.find_by_unique_key(
            session, PrincipalKind.USER, email, include_hash=True,
        )
        digest = staff.password_hash if staff is not None else None
        if not await self._verify(password, digest) or staff is None:
            raise InvalidCredentials()
        if not staff.is_active:
            raise AccountInactive()
        if not staff.is_approved:
            raise AccountPendingApproval()

        staff = dataclasses.replace(staff, password_hash=None)
        return staff, self.tokens.issue(TokenPayload.for_principal(staff))

    # ── Admins ──

    async def authenticate_admin(
        self,
        session: AsyncSession,
        username: str,
        password: str,
        origin: RequestOrigin = RequestOrigin(),
    ) -> tuple[AdminPrincipal, str]:
        admin = await self.repository.find_by_unique_key(
            session, PrincipalKind.ADMIN, username, include_hash=True,
        )
        if admin is not None and not admin.is_active:
            admin = None
        digest = admin.password_hash if admin is not None else None
        if not await self._verify(password, digest) or admin is None:
            raise InvalidCredentials()

        admin = await self.repository.touch_last_login(session, admin.id, self.clock.now())
        await self.audit.record(
            session,
            admin_id=admin.id,
            action=f"Admin login: {admin.username}",
            action_type=ActionType.LOGIN,
            target_model=TargetModel.ADMIN,
            target_id=admin.id,
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )
        return admin, self.tokens.issue(TokenPayload.for_principal(admin))

    async def logout_admin(
        self,
        session: AsyncSession,
        admin: AdminPrincipal,
        origin: RequestOrigin = RequestOrigin(),
    ) -> None:
        await self.audit.record(
            session,
            admin_id=admin.id,
            action=f"Admin logout: {admin.username}",
            action_type=ActionType.LOGOUT,
            target_model=TargetModel.ADMIN,
            target_id=admin.id,
            ip_address=origin.ip_address,
            user_agent=origin.user_agent,
        )

    async def provision_admin(
        self,
        session: AsyncSession,
        username: str,
        email: str,
        password: str,
        role: AdminRole | str = AdminRole.ADMIN,
        full_name: str | None = None,
        acting_admin: AdminPrincipal | None = None,
        origin: RequestOrigin = RequestOrigin(),
    ) -> AdminPrincipal:
        """Create an administrator. Callers decide who may do this."""
        _check_strength(password)
        _check_handle("username", username)
        role = AdminRole(role)

        for key in (username, email):
            if await self.repository.find_by_unique_key(session, PrincipalKind.ADMIN, key):
                raise Conflict("An admin with this username or email already exists")

        admin = await self.repository.save(
            session,
            AdminPrincipal(
                id="",
                username=username,
                email=email,
                role=role,
                full_name=full_name,
                is_active=True,
                password_hash=await self._hash(password),
            ),
        )
        if acting_admin is not None:
            await self.audit.record(
                session,
                admin_id=acting_admin.id,
                action=f"Created admin account: {admin.username}",
                action_type=ActionType.CREATE,
                target_model=TargetModel.ADMIN,
                target_id=admin.id,
                details={"new": {"username": admin.username, "email": admin.email, "role": admin.role.value}},
                ip_address=origin.ip_address,
                user_agent=origin.user_agent,
            )
        logger.info("Admin provisioned: %s (%s)", admin.username, admin.role.value)
        return admin

    # ── Password reset ──

    async def request_password_reset(self, session: AsyncSession, email: str) -> bool:
        """Email a reset link if the address belongs to an active staff member.

        The return value is for logging and tests only; callers must not
        reveal it.
        """
        staff = await self.repository.find_by_unique_key(
            session, PrincipalKind.USER, email, include_hash=True,
        )
        if staff is None or not staff.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return False
        token = self.reset_signer.create(staff.id, staff.password_hash)
        return await self.notifier.password_reset(
            dataclasses.replace(staff, password_hash=None), token,
        )

    async def reset_password(
        self, session: AsyncSession, token: str, new_password: str,
    ) -> StaffPrincipal:
        data = self.reset_signer.load(token)
        if data is None:
            raise ValidationError(INVALID_RESET_LINK)
        staff = await self.repository.find_by_id(
            session, PrincipalKind.USER, data["sid"], include_hash=True,
        )
        # A used link no longer matches the stored hash.
        if staff is None or hash_fingerprint(staff.password_hash) != data["fp"]:
            raise ValidationError(INVALID_RESET_LINK)
        _check_strength(new_password)

        updated = await self.repository.save(
            session,
            dataclasses.replace(staff, password_hash=await self._hash(new_password)),
        )
        logger.info("Password reset completed for staff %s", updated.id, extra={"target_id": updated.id})
        return updated
