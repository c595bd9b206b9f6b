"""Domain error taxonomy.

Services and CRUD helpers raise these; ``dispatch.main`` maps each class to
an HTTP status and a JSON body.
"""

from __future__ import annotations


class DispatchError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__


class NetworkOrServiceError(DispatchError):
    """A backend or third-party call failed."""

    status_code = 502


class NotFoundError(DispatchError):
    """No row matched. Also used when an access policy hides the row."""

    status_code = 404


class PermissionDeniedError(DispatchError):
    status_code = 403


class ForeignKeyConstraintError(DispatchError):
    """Delete blocked because other rows still reference the target."""

    status_code = 409


class InvalidTransitionError(DispatchError):
    status_code = 409

    def __init__(self, current: str, attempted: str):
        super().__init__(f"Transition from {current} to {attempted} is not permitted.")
        self.current = current
        self.attempted = attempted


class ValidationFailedError(DispatchError):
    status_code = 400
