from typing import Any, Dict, Mapping, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from swiftnotes.exceptions import ConflictError, NotFoundError, TransientStorageError
from swiftnotes.models.user_profile import UserProfile, utcnow
from swiftnotes.services.preference_rules import apply_defaults, normalize_stored
from swiftnotes.services.preference_service import TRANSIENT_STORAGE_ERRORS
from swiftnotes.logging_config import get_logger

logger = get_logger(__name__)

# Wire name -> column name for fields a user may edit on their own profile
EDITABLE_PROFILE_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "writingStyle": "writing_style",
}


async def _load_profile(db: AsyncSession, user_id: str) -> Optional[UserProfile]:
    try:
        result = await db.execute(
            select(UserProfile).where(UserProfile.user_id == user_id)
        )
    except TRANSIENT_STORAGE_ERRORS as e:
        logger.error(f"Storage unavailable loading profile for user {user_id}: {e}")
        raise TransientStorageError()
    return result.scalar_one_or_none()


async def create_profile(
    db: AsyncSession,
    user_id: str,
    email: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
) -> UserProfile:
    """Create a profile with an empty preference document."""
    if await _load_profile(db, user_id):
        raise ConflictError("User profile already exists")

    profile = UserProfile(
        user_id=user_id,
        email=email,
        first_name=first_name,
        last_name=last_name,
        preferences={},
    )
    db.add(profile)
    await db.commit()
    await db.refresh(profile)

    logger.info(f"Created profile for user {user_id}")
    return profile


async def get_profile(db: AsyncSession, user_id: str) -> UserProfile:
    profile = await _load_profile(db, user_id)
    if not profile:
        raise NotFoundError("User profile not found")
    return profile


async def update_profile(
    db: AsyncSession,
    user_id: str,
    changes: Mapping[str, Any]
) -> UserProfile:
    """Apply name / writing style changes. Keys use the wire (camelCase) names."""
    profile = await get_profile(db, user_id)

    for wire_name, column in EDITABLE_PROFILE_FIELDS.items():
        if wire_name in changes:
            setattr(profile, column, changes[wire_name])
    profile.updated_at = utcnow()

    try:
        await db.commit()
    except TRANSIENT_STORAGE_ERRORS as e:
        await db.rollback()
        logger.error(f"Storage unavailable updating profile for user {user_id}: {e}")
        raise TransientStorageError()
    await db.refresh(profile)

    logger.info(f"Updated profile for user {user_id}")
    return profile


async def delete_profile(db: AsyncSession, user_id: str) -> None:
    """Delete the account's profile row; its preferences go with it."""
    profile = await get_profile(db, user_id)
    await db.delete(profile)
    await db.commit()
    logger.info(f"Deleted profile for user {user_id}")


def serialize_profile(profile: UserProfile) -> Dict[str, Any]:
    """Wire form of a profile. ``preferences`` is always a parsed object."""
    return {
        "id": profile.user_id,
        "email": profile.email,
        "firstName": profile.first_name,
        "lastName": profile.last_name,
        "tier": profile.tier,
        "credits": profile.credits,
        "hasCompletedSetup": profile.has_completed_setup,
        "writingStyle": profile.writing_style,
        "preferences": apply_defaults(normalize_stored(profile.preferences)),
        "createdAt": profile.created_at,
        "updatedAt": profile.updated_at,
    }
