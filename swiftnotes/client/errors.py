from typing import Dict, Optional


class PreferenceSyncError(Exception):
    """Base error for client-side preference synchronization.

    ``retryable`` tells the UI whether offering "try again" makes sense.
    """

    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PreferenceValidationError(PreferenceSyncError):
    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None, status_code: Optional[int] = 400):
        super().__init__(message, status_code)
        self.fields = dict(fields or {})


class ProfileMissingError(PreferenceSyncError):
    pass


class AuthenticationError(PreferenceSyncError):
    pass


class RetryableSyncError(PreferenceSyncError):
    """Server or network unavailable; local edits must be kept for a retry."""

    retryable = True
