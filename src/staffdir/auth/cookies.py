"""Session cookie transport.

The auth cookie carries the bearer token. The role cookie is a coarse,
non-sensitive label for client-side redirects only; nothing server-side
reads it.
"""

from starlette.responses import Response

from staffdir.common.config import StaffDirSettings


def set_session_cookies(
    response: Response,
    settings: StaffDirSettings,
    token: str,
    role_label: str,
) -> None:
    max_age = int(settings.token_lifetime.total_seconds())
    response.set_cookie(
        settings.auth_cookie_name,
        token,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )
    response.set_cookie(
        settings.role_cookie_name,
        role_label,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.secure_cookies,
    )


def clear_session_cookies(response: Response, settings: StaffDirSettings) -> None:
    response.delete_cookie(settings.auth_cookie_name, path="/")
    response.delete_cookie(settings.role_cookie_name, path="/")
