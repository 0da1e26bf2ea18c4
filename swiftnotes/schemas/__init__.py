from swiftnotes.schemas.user_profile import (
    DeleteAccountResponse,
    UserProfileOut,
    UserProfileResponse,
    UserProfileUpdate,
)
from swiftnotes.schemas.preferences import ERROR_RESPONSES, ErrorResponse, PreferencesResponse

__all__ = [
    "DeleteAccountResponse",
    "UserProfileOut",
    "UserProfileResponse",
    "UserProfileUpdate",
    "ERROR_RESPONSES",
    "ErrorResponse",
    "PreferencesResponse",
]
