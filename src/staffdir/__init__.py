"""Staff directory: identity, authorization and audit core."""

from staffdir.auth.passwords import PasswordHasher, validate_password_strength
from staffdir.auth.tokens import TokenPayload, TokenService
from staffdir.common.context import AppContext, build_context

__all__ = [
    "AppContext",
    "PasswordHasher",
    "TokenPayload",
    "TokenService",
    "build_context",
    "validate_password_strength",
]
__version__ = "0.1.0"
