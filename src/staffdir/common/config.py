"""Staff directory configuration via pydantic-settings."""

import warnings
from datetime import timedelta
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

TOKEN_ISSUER = "university-staff-directory"
TOKEN_AUDIENCE = "university-staff-directory"
MIN_SECRET_LENGTH = 32


class StaffDirSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STAFFDIR_")

    environment: str = "development"
    log_level: str = "INFO"

    # Tokens. There is no default secret; a missing one stops the process.
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = TOKEN_ISSUER
    jwt_audience: str = TOKEN_AUDIENCE
    jwt_expires_days: int = 7

    # Credentials
    bcrypt_rounds: int = 12

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/staffdir.db"

    # Audit
    audit_retention_days: int = 90

    # Session cookies
    auth_cookie_name: str = "auth_token"
    role_cookie_name: str = "user_role"
    cookie_secure: bool = False

    # Outbound email
    email_provider: str = ""  # "brevo", "sendgrid", "resend" or empty
    email_api_key: str = ""
    email_from: str = "no-reply@staff-directory.local"
    email_from_name: str = "University Staff Directory"
    admin_email: Optional[str] = None
    notification_timeout: float = 10.0

    # Password reset
    public_app_url: str = "http://localhost:5173"
    password_reset_max_age: int = 3600  # seconds

    # API
    api_title: str = "Staff Directory"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = ["http://localhost:5173"]

    @property
    def token_lifetime(self) -> timedelta:
        return timedelta(days=self.jwt_expires_days)

    @property
    def secure_cookies(self) -> bool:
        """Cookies are always marked Secure outside development."""
        return self.cookie_secure or self.environment != "development"

    def validate_for_startup(self) -> None:
        """Raise if the process would run without a usable signing secret."""
        if not self.jwt_secret:
            raise RuntimeError(
                "STAFFDIR_JWT_SECRET is not set. Refusing to start without a token "
                "signing secret. Generate one with: "
                "python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if len(self.jwt_secret) < MIN_SECRET_LENGTH:
            if self.environment != "development":
                raise RuntimeError(
                    f"STAFFDIR_JWT_SECRET must be at least {MIN_SECRET_LENGTH} characters "
                    f"in '{self.environment}' environment"
                )
            warnings.warn(
                f"STAFFDIR_JWT_SECRET is shorter than {MIN_SECRET_LENGTH} characters; "
                "use a longer secret in production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> StaffDirSettings:
    settings = StaffDirSettings()
    settings.validate_for_startup()
    return settings
