from typing import Any, Dict, Mapping
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import Select, select
from sqlalchemy.exc import InterfaceError, OperationalError, TimeoutError as PoolTimeoutError

from swiftnotes.exceptions import NotFoundError, TransientStorageError
from swiftnotes.models.user_profile import UserProfile, utcnow
from swiftnotes.services.preference_rules import (
    apply_defaults,
    is_canonical,
    merge_preferences,
    normalize_stored,
    validate_patch,
)
from swiftnotes.logging_config import get_logger

logger = get_logger(__name__)

# Errors that mean "the store could not be reached", not "the request was bad"
TRANSIENT_STORAGE_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError)


def select_profile_for_update(user_id: str) -> Select:
    """Row-locking read used by the read-merge-write in ``update_preferences``."""
    return select(UserProfile).where(UserProfile.user_id == user_id).with_for_update()


async def get_preferences(db: AsyncSession, user_id: str) -> Dict[str, Any]:
    """
    Get a user's preference document with defaults applied.

    Empty, NULL or malformed stored values read as the default document;
    storage is never modified here.
    """
    try:
        result = await db.execute(
            select(UserProfile.preferences).where(UserProfile.user_id == user_id)
        )
        row = result.first()
    except TRANSIENT_STORAGE_ERRORS as e:
        logger.error(f"Storage unavailable reading preferences for user {user_id}: {e}")
        raise TransientStorageError()

    if row is None:
        raise NotFoundError("User profile not found")

    raw = row[0]
    if not is_canonical(raw):
        logger.warning(f"Stored preferences for user {user_id} are not an object; normalizing on read")
    preferences = apply_defaults(normalize_stored(raw))
    logger.info(f"Retrieved preferences for user {user_id}")
    return preferences


async def update_preferences(
    db: AsyncSession,
    user_id: str,
    patch: Mapping[str, Any]
) -> Dict[str, Any]:
    """
    Merge a partial preference update into the stored document.

    The whole patch is validated before anything is written. The row is
    locked for the read-merge-write so concurrent updates for the same user
    serialize instead of losing keys. Returns the full stored document.
    """
    validate_patch(patch)

    try:
        result = await db.execute(select_profile_for_update(user_id))
        profile = result.scalar_one_or_none()

        if not profile:
            await db.rollback()
            raise NotFoundError("User profile not found")

        merged = merge_preferences(normalize_stored(profile.preferences), patch)
        profile.preferences = merged
        profile.updated_at = utcnow()

        await db.commit()
    except TRANSIENT_STORAGE_ERRORS as e:
        await db.rollback()
        logger.error(f"Storage unavailable updating preferences for user {user_id}: {e}")
        raise TransientStorageError()

    logger.info(f"Saved preferences for user {user_id}: keys={sorted(patch)}")
    return dict(merged)


async def repair_stored_preferences(db: AsyncSession) -> int:
    """
    Rewrite every stored preference value that is not a plain object.

    Covers rows left behind by older writers that stored a JSON-encoded
    string (sometimes encoded twice) or NULL. Returns the number of rows
    repaired.
    """
    result = await db.execute(select(UserProfile))
    repaired = 0
    for profile in result.scalars():
        if is_canonical(profile.preferences):
            continue
        profile.preferences = normalize_stored(profile.preferences)
        profile.updated_at = utcnow()
        repaired += 1

    if repaired:
        await db.commit()
    logger.info(f"Repaired stored preferences on {repaired} profile(s)")
    return repaired
