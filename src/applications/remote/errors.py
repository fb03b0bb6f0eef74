"""Errors raised by remote store implementations."""

from typing import Optional


class NotAuthenticatedError(Exception):
    """Raised when no user identity could be resolved.

    Callers are expected to redirect to sign-in rather than retry.
    """

    def __init__(self, message: str = "Not authenticated"):
        self.message = message
        super().__init__(message)


class ApplicationNotFoundError(Exception):
    """Raised when an application id is unknown locally or remotely.

    Attributes:
        application_id: The id that was not found.
    """

    def __init__(self, application_id: str):
        self.application_id = application_id
        super().__init__(f"Application not found: {application_id}")


class RemoteStoreError(Exception):
    """Raised when a remote read or write fails.

    Wraps driver errors so callers handle one exception type.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.original_error = original_error
        super().__init__(message)
