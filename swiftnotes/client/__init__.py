from swiftnotes.client.api import SwiftNotesClient
from swiftnotes.client.cache import PreferenceCache
from swiftnotes.client.errors import (
    AuthenticationError,
    PreferenceSyncError,
    PreferenceValidationError,
    ProfileMissingError,
    RetryableSyncError,
)
from swiftnotes.client.sync import SyncController, SyncState

__all__ = [
    "SwiftNotesClient",
    "PreferenceCache",
    "AuthenticationError",
    "PreferenceSyncError",
    "PreferenceValidationError",
    "ProfileMissingError",
    "RetryableSyncError",
    "SyncController",
    "SyncState",
]
