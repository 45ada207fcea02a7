"""Message bodies for registration and account notifications."""

from dataclasses import dataclass
from html import escape

_FOOTER_HTML = (
    '<p style="color: #666; font-size: 12px;">'
    "This is an automated message. Please do not reply to this email.</p>"
)


@dataclass(frozen=True)
class Message:
    subject: str
    html: str
    text: str


def _wrap(title: str, body_html: str) -> str:
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color: #333;">{escape(title)}</h2>{body_html}<br>{_FOOTER_HTML}</div>'
    )


def registration_approved(full_name: str) -> Message:
    name = escape(full_name)
    return Message(
        subject="Staff Directory Registration Approved",
        html=_wrap(
            "Registration Approved",
            f"<p>Dear {name},</p>"
            "<p>Your registration for the University Staff Directory has been "
            "approved by the administrator.</p>"
            "<p>You can now log in to your account and manage your profile.</p>"
            "<p>Thank you for joining our directory.</p>",
        ),
        text=(
            f"Dear {full_name},\n\n"
            "Your registration for the University Staff Directory has been approved "
            "by the administrator.\n\n"
            "You can now log in to your account and manage your profile.\n\n"
            "Thank you for joining our directory."
        ),
    )


def registration_rejected(full_name: str) -> Message:
    name = escape(full_name)
    return Message(
        subject="Staff Directory Registration - Update",
        html=_wrap(
            "Registration Update",
            f"<p>Dear {name},</p>"
            "<p>Thank you for your interest in joining the University Staff Directory.</p>"
            "<p>After reviewing your application, we regret to inform you that your "
            "registration could not be approved at this time.</p>"
            "<p>If you believe this is an error or have questions, please contact the "
            "administrator for more information.</p>",
        ),
        text=(
            f"Dear {full_name},\n\n"
            "Thank you for your interest in joining the University Staff Directory.\n\n"
            "After reviewing your application, we regret to inform you that your "
            "registration could not be approved at this time.\n\n"
            "If you believe this is an error or have questions, please contact the "
            "administrator for more information."
        ),
    )


def new_registration(staff_email: str, full_name: str, staff_id: str) -> Message:
    return Message(
        subject="New Staff Registration Pending Approval",
        html=_wrap(
            "New Staff Registration",
            "<p>A new staff member has registered and is awaiting approval:</p><ul>"
            f"<li><strong>Name:</strong> {escape(full_name)}</li>"
            f"<li><strong>Staff ID:</strong> {escape(staff_id)}</li>"
            f"<li><strong>Email:</strong> {escape(staff_email)}</li></ul>"
            "<p>Please log in to the admin panel to review and approve this registration.</p>",
        ),
        text=(
            "New Staff Registration\n\n"
            "A new staff member has registered and is awaiting approval:\n\n"
            f"Name: {full_name}\nStaff ID: {staff_id}\nEmail: {staff_email}\n\n"
            "Please log in to the admin panel to review and approve this registration."
        ),
    )


def password_reset(full_name: str, reset_url: str, max_age_minutes: int) -> Message:
    url = escape(reset_url, quote=True)
    return Message(
        subject="Password Reset Request",
        html=_wrap(
            "Password Reset Request",
            f"<p>Dear {escape(full_name)},</p>"
            "<p>You have requested to reset your password. Click the link below to proceed:</p>"
            f'<p style="margin: 20px 0;"><a href="{url}">Reset Password</a></p>'
            "<p>If you did not request this, please ignore this email.</p>"
            f'<p style="color: #666; font-size: 12px;">This link will expire in '
            f"{max_age_minutes} minutes.</p>",
        ),
        text=(
            f"Dear {full_name},\n\n"
            "You have requested to reset your password. Visit the link below to proceed:\n\n"
            f"{reset_url}\n\n"
            "If you did not request this, please ignore this email.\n\n"
            f"This link will expire in {max_age_minutes} minutes."
        ),
    )
