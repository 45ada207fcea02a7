"""Account notifications. Delivery is best effort: every method returns a bool."""

import logging
from typing import Optional
from urllib.parse import quote

from staffdir.notifications import templates
from staffdir.notifications.sender import NotificationSender
from staffdir.principals.types import StaffPrincipal

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(
        self,
        sender: NotificationSender,
        admin_email: Optional[str] = None,
        public_app_url: str = "http://localhost:5173",
        reset_max_age: int = 3600,
    ):
        self.sender = sender
        self.admin_email = admin_email
        self.public_app_url = public_app_url.rstrip("/")
        self.reset_max_age = reset_max_age

    async def _deliver(self, to: str, message: templates.Message) -> bool:
        try:
            sent = await self.sender.send(to, message.subject, message.html, message.text)
        except Exception:
            logger.exception("Notification '%s' to %s failed", message.subject, to)
            return False
        if not sent:
            logger.warning("Notification '%s' to %s was not delivered", message.subject, to)
        return bool(sent)

    async def registration_approved(self, staff: StaffPrincipal) -> bool:
        return await self._deliver(staff.email, templates.registration_approved(staff.full_name))

    async def registration_rejected(self, staff: StaffPrincipal) -> bool:
        return await self._deliver(staff.email, templates.registration_rejected(staff.full_name))

    async def new_registration(self, staff: StaffPrincipal) -> bool:
        """Tell the configured admin address that a registration awaits review."""
        if not self.admin_email:
            logger.info("No admin email configured; skipping new-registration notice")
            return False
        return await self._deliver(
            self.admin_email,
            templates.new_registration(staff.email, staff.full_name, staff.staff_id),
        )

    def reset_url(self, token: str) -> str:
        return f"{self.public_app_url}/reset-password?token={quote(token)}"

    async def password_reset(self, staff: StaffPrincipal, token: str) -> bool:
        return await self._deliver(
            staff.email,
            templates.password_reset(
                staff.full_name, self.reset_url(token), self.reset_max_age // 60,
            ),
        )
