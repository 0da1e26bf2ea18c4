from swiftnotes.db import Base
from swiftnotes.models.user_profile import UserProfile

__all__ = [
    "Base",
    "UserProfile",
]
