"""
Domain Exceptions Module

Every failure the API reports to a client is one of these exceptions. Each
carries the HTTP status and a stable machine-readable code; the handlers
registered in main.py turn them into ``{"detail": ..., "code": ...}`` bodies.
"""
from fastapi import status


class AppError(Exception):
    """Base class for errors that map to a distinct client-facing outcome."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(self, message: str = "", status_code: int = None, code: str = None):
        super().__init__(message)
        self.message = message or self.__class__.__name__
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


# --- Validation (client-correctable, raised before any transaction opens) ---

class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_request"


class InvalidRole(ValidationFailed):
    code = "invalid_role"


# --- Authentication / authorization ---

class NotAuthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authenticated"


class PermissionDenied(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


# --- Missing resources ---

class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ItemNotFound(NotFound):
    code = "item_not_found"


class TodoNotFound(NotFound):
    code = "todo_not_found"


class NoteNotFound(NotFound):
    code = "note_not_found"


class UserNotFound(NotFound):
    code = "user_not_found"


class AssignmentNotFound(NotFound):
    code = "assignment_not_found"


# --- Concurrency and integrity ---

class VersionConflict(AppError):
    """The item was modified since the client read it; re-read and retry."""
    status_code = status.HTTP_409_CONFLICT
    code = "version_conflict"

    def __init__(self, message: str = "", current_version: int = None):
        super().__init__(message or "Item has been modified")
        self.current_version = current_version


class LastOwnerViolation(AppError):
    """Removing or demoting this assignment would leave the item without an owner."""
    status_code = status.HTTP_409_CONFLICT
    code = "last_owner"


# --- Infrastructure ---

class StoreUnavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "store_unavailable"


class ProviderError(AppError):
    """The external identity provider rejected or failed a request."""
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "provider_error"
