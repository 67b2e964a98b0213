from __future__ import annotations

# purpose: error taxonomy shared by the auth guard, data layer and command bridge
# status: active


class PTCLabError(Exception):
    """Base class for every error surfaced to the front end."""

    kind = "error"
    default_message = "Operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class SessionInvalid(PTCLabError):
    kind = "session_invalid"
    default_message = "Invalid or expired session"


class InvalidCredentials(PTCLabError):
    kind = "invalid_credentials"
    default_message = "Invalid username or password"


class PermissionDenied(PTCLabError):
    kind = "permission_denied"
    default_message = "Insufficient permissions"


class NotFound(PTCLabError):
    kind = "not_found"
    default_message = "Record not found"


class ConstraintViolation(PTCLabError):
    kind = "constraint_violation"
    default_message = "Constraint violation"


class NoFieldsToUpdate(PTCLabError):
    kind = "no_fields_to_update"
    default_message = "No fields to update"


class InvalidRequest(PTCLabError):
    kind = "invalid_request"
    default_message = "Invalid request"


class StorageFailure(PTCLabError):
    kind = "storage_failure"
    default_message = "Storage failure"


class MigrationFailure(PTCLabError):
    kind = "migration_failure"

    def __init__(self, version: int, name: str = "", cause: BaseException | None = None):
        self.version = version
        self.name = name
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Migration {version} ({name}) failed{detail}")
