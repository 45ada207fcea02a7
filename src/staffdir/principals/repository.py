"""Principal repository: the only code that touches staff/admin rows.

Every lookup returns hash-free principal values unless ``include_hash=True``
is passed, which only authentication paths do.
"""

import dataclasses
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.common.clock import as_utc
from staffdir.common.exceptions import Conflict, ValidationError
from staffdir.common.models import utcnow
from staffdir.principals.models import AdminUserModel, StaffUserModel, make_slug
from staffdir.principals.types import (
    AdminPrincipal,
    AdminRole,
    ApprovalState,
    Principal,
    PrincipalKind,
    StaffPrincipal,
)

_STAFF_COLUMNS = tuple(
    f.name for f in dataclasses.fields(StaffPrincipal)
    if f.name not in ("created_at", "updated_at")
)
_ADMIN_COLUMNS = tuple(
    f.name for f in dataclasses.fields(AdminPrincipal)
    if f.name not in ("created_at", "updated_at")
)


def _model_for(kind: PrincipalKind):
    if kind is PrincipalKind.USER:
        return StaffUserModel
    if kind is PrincipalKind.ADMIN:
        return AdminUserModel
    raise ValueError(f"Unknown principal kind: {kind!r}")


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value is not None else None


def _to_principal(row, include_hash: bool = False) -> Principal:
    password_hash = row.password_hash if include_hash else None
    if isinstance(row, StaffUserModel):
        return StaffPrincipal(
            id=row.id,
            staff_id=row.staff_id,
            email=row.email,
            full_name=row.full_name,
            faculty=row.faculty,
            department=row.department,
            designation=row.designation,
            slug=row.slug,
            is_verified=row.is_verified,
            is_approved=row.is_approved,
            is_active=row.is_active,
            office_address=row.office_address,
            contact_number=row.contact_number,
            office_hours=row.office_hours,
            research_interests=row.research_interests,
            biography=row.biography,
            education=row.education,
            publications=row.publications,
            photo_url=row.photo_url,
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
            password_hash=password_hash,
        )
    if isinstance(row, AdminUserModel):
        return AdminPrincipal(
            id=row.id,
            username=row.username,
            email=row.email,
            role=AdminRole(row.role),
            full_name=row.full_name,
            is_active=row.is_active,
            last_login=_aware(row.last_login),
            created_at=_aware(row.created_at),
            updated_at=_aware(row.updated_at),
            password_hash=password_hash,
        )
    raise TypeError(f"Not a principal row: {type(row).__name__}")


def _row_values(principal: Principal) -> dict:
    if isinstance(principal, StaffPrincipal):
        values = {name: getattr(principal, name) for name in _STAFF_COLUMNS}
        values["email"] = principal.email.strip().lower()
        values["staff_id"] = principal.staff_id.strip().upper()
        values["slug"] = make_slug(principal.full_name, values["staff_id"])
        return values
    if isinstance(principal, AdminPrincipal):
        values = {name: getattr(principal, name) for name in _ADMIN_COLUMNS}
        values["email"] = principal.email.strip().lower()
        values["username"] = principal.username.strip().lower()
        values["role"] = AdminRole(principal.role).value
        return values
    raise TypeError(f"Not a principal: {type(principal).__name__}")


class PrincipalRepository:
    """Lookup and persistence for both principal kinds."""

    async def find_by_id(
        self,
        session: AsyncSession,
        kind: PrincipalKind,
        principal_id: str,
        include_hash: bool = False,
    ) -> Optional[Principal]:
        row = await session.get(
            _model_for(kind), principal_id, populate_existing=True,
        )
        if row is None:
            return None
        return _to_principal(row, include_hash)

    async def find_by_unique_key(
        self,
        session: AsyncSession,
        kind: PrincipalKind,
        key: str,
        include_hash: bool = False,
    ) -> Optional[Principal]:
        """Look a principal up by email, or by staff id / username.

        A key containing ``@`` only ever matches the email column.
        """
        key = key.strip()
        by_email = "@" in key
        if kind is PrincipalKind.USER:
            query = select(StaffUserModel).where(
                StaffUserModel.email == key.lower()
                if by_email
                else StaffUserModel.staff_id == key.upper()
            )
        elif kind is PrincipalKind.ADMIN:
            query = select(AdminUserModel).where(
                AdminUserModel.email == key.lower()
                if by_email
                else AdminUserModel.username == key.lower()
            )
        else:
            raise ValueError(f"Unknown principal kind: {kind!r}")

        result = await session.execute(
            query.limit(1).execution_options(populate_existing=True)
        )
        row = result.scalar_one_or_none()
        if row is None:
            return None
        return _to_principal(row, include_hash)

    async def save(self, session: AsyncSession, principal: Principal) -> Principal:
        """Insert or update from a principal value.

        A new row must arrive with its password hash already set; on update a
        ``None`` hash leaves the stored one untouched.
        """
        model = _model_for(principal.kind)
        values = _row_values(principal)
        row = await session.get(model, principal.id) if principal.id else None

        if row is None:
            if not values.get("password_hash"):
                raise ValidationError(
                    "Password hash is required before a principal is stored",
                    {"password": ["Password is required"]},
                )
            if not values.get("id"):
                values.pop("id")
            row = model(**values)
            session.add(row)
        else:
            for name, value in values.items():
                if name in ("id", "password_hash") and value is None:
                    continue
                setattr(row, name, value)
            row.updated_at = utcnow()

        try:
            await session.flush()
        except IntegrityError as exc:
            raise Conflict(f"{principal.kind.value.title()} already exists") from exc
        return _to_principal(row)

    async def delete(
        self, session: AsyncSession, kind: PrincipalKind, principal_id: str,
    ) -> Optional[Principal]:
        row = await session.get(_model_for(kind), principal_id)
        if row is None:
            return None
        principal = _to_principal(row)
        await session.delete(row)
        await session.flush()
        return principal

    async def mark_approved(self, session: AsyncSession, staff_id: str) -> bool:
        """Conditional write: approve only if not already approved.

        Returns False when another request won the race (or the row is gone).
        """
        result = await session.execute(
            update(StaffUserModel)
            .where(
                StaffUserModel.id == staff_id,
                StaffUserModel.is_approved.is_(False),
            )
            .values(is_approved=True, is_verified=True, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def set_active(
        self,
        session: AsyncSession,
        kind: PrincipalKind,
        principal_id: str,
        active: bool,
    ) -> Optional[Principal]:
        row = await session.get(_model_for(kind), principal_id)
        if row is None:
            return None
        row.is_active = active
        row.updated_at = utcnow()
        await session.flush()
        return _to_principal(row)

    async def touch_last_login(
        self, session: AsyncSession, admin_id: str, when: datetime,
    ) -> Optional[AdminPrincipal]:
        row = await session.get(AdminUserModel, admin_id)
        if row is None:
            return None
        row.last_login = when
        row.updated_at = when
        await session.flush()
        return _to_principal(row)

    async def list_staff(
        self,
        session: AsyncSession,
        state: Optional[ApprovalState] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[StaffPrincipal]:
        query = select(StaffUserModel)
        if state is ApprovalState.PENDING:
            query = query.where(
                StaffUserModel.is_approved.is_(False),
                StaffUserModel.is_active.is_(True),
            )
        elif state is ApprovalState.APPROVED:
            query = query.where(
                StaffUserModel.is_approved.is_(True),
                StaffUserModel.is_active.is_(True),
            )
        elif state is ApprovalState.DEACTIVATED:
            query = query.where(StaffUserModel.is_active.is_(False))
        query = (
            query.order_by(StaffUserModel.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await session.execute(query)
        return [_to_principal(row) for row in result.scalars().all()]

    async def count_admins(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(AdminUserModel))
        return result.scalar_one()
