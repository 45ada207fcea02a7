"""Staff directory exception hierarchy."""

from typing import Any


class StaffDirError(Exception):
    """Base exception for all staff directory errors."""

    def __init__(self, message: str = "", code: str = "STAFFDIR_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(StaffDirError):
    """Malformed input; ``details`` carries field-level or rule-level messages."""

    def __init__(self, message: str = "Validation failed", details: Any = None):
        super().__init__(message, code="VALIDATION_ERROR")
        self.details = details if details is not None else {}


class Unauthorized(StaffDirError):
    """No, invalid or expired credential, or insufficient privilege."""

    def __init__(self, reason: str = "Authentication required"):
        super().__init__(reason, code="UNAUTHORIZED")

    @property
    def reason(self) -> str:
        return self.message


class InvalidCredentials(Unauthorized):
    """Wrong identifier or password; the two are indistinguishable."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")
        self.code = "INVALID_CREDENTIALS"


class AccountPendingApproval(Unauthorized):
    def __init__(self) -> None:
        super().__init__(
            "Account pending approval. Your registration is awaiting administrator review."
        )
        self.code = "PENDING_APPROVAL"


class AccountInactive(Unauthorized):
    def __init__(self) -> None:
        super().__init__("Account is inactive. Please contact an administrator.")
        self.code = "ACCOUNT_INACTIVE"


class NotFound(StaffDirError):
    def __init__(self, message: str = "Not found"):
        super().__init__(message, code="NOT_FOUND")


class Conflict(StaffDirError):
    def __init__(self, message: str = "Already exists"):
        super().__init__(message, code="CONFLICT")


class InvalidState(StaffDirError):
    """An approval transition was attempted on an ineligible principal."""

    def __init__(self, message: str = "Invalid state for this operation"):
        super().__init__(message, code="INVALID_STATE")


class DependencyFailure(StaffDirError):
    def __init__(self, message: str = "A backing service is unavailable"):
        super().__init__(message, code="DEPENDENCY_FAILURE")


class TokenError(StaffDirError):
    """Base for token verification failures."""


class TokenExpired(TokenError):
    def __init__(self, message: str = "Token has expired"):
        super().__init__(message, code="TOKEN_EXPIRED")


class TokenMalformed(TokenError):
    def __init__(self, message: str = "Invalid token"):
        super().__init__(message, code="TOKEN_MALFORMED")


class MalformedHashError(StaffDirError):
    """A stored password digest is not a valid bcrypt hash."""

    def __init__(self, message: str = "Stored password hash is malformed"):
        super().__init__(message, code="MALFORMED_HASH")
