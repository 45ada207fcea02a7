"""Explicit application context.

Every long-lived component is built once here and handed its collaborators
through its constructor. Only the FastAPI layer (``staffdir.deps``) keeps a
process-wide reference to the context.
"""

from dataclasses import dataclass

from staffdir.approvals.service import ApprovalService
from staffdir.audit.service import AuditService
from staffdir.auth.gate import AuthorizationGate
from staffdir.auth.passwords import PasswordHasher
from staffdir.auth.reset import ResetTokenSigner
from staffdir.auth.service import AuthService
from staffdir.auth.tokens import TokenService
from staffdir.common.clock import Clock, SystemClock
from staffdir.common.config import StaffDirSettings
from staffdir.common.database import DatabaseManager
from staffdir.notifications.sender import EmailSender, NotificationSender
from staffdir.notifications.service import NotificationService
from staffdir.principals.repository import PrincipalRepository


@dataclass
class AppContext:
    settings: StaffDirSettings
    clock: Clock
    db: DatabaseManager
    hasher: PasswordHasher
    tokens: TokenService
    repository: PrincipalRepository
    gate: AuthorizationGate
    notifier: NotificationService
    audit: AuditService
    approvals: ApprovalService
    auth: AuthService


def build_context(
    settings: StaffDirSettings,
    clock: Clock | None = None,
    sender: NotificationSender | None = None,
) -> AppContext:
    """Wire every component. Raises ``RuntimeError`` if no signing secret is configured."""
    settings.validate_for_startup()
    clock = clock or SystemClock()

    if sender is None:
        sender = EmailSender(
            provider=settings.email_provider,
            api_key=settings.email_api_key,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
            timeout=settings.notification_timeout,
        )
    notifier = NotificationService(
        sender,
        admin_email=settings.admin_email,
        public_app_url=settings.public_app_url,
        reset_max_age=settings.password_reset_max_age,
    )

    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    tokens = TokenService(settings, clock=clock)
    repository = PrincipalRepository()
    gate = AuthorizationGate(tokens, repository, cookie_name=settings.auth_cookie_name)
    audit = AuditService(clock=clock, retention_days=settings.audit_retention_days)
    approvals = ApprovalService(repository, audit, notifier)
    auth = AuthService(
        repository,
        hasher,
        tokens,
        audit,
        notifier,
        ResetTokenSigner(settings.jwt_secret, max_age=settings.password_reset_max_age),
        clock=clock,
    )

    return AppContext(
        settings=settings,
        clock=clock,
        db=DatabaseManager(settings),
        hasher=hasher,
        tokens=tokens,
        repository=repository,
        gate=gate,
        notifier=notifier,
        audit=audit,
        approvals=approvals,
        auth=auth,
    )
