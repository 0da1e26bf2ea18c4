from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from swiftnotes.dependencies import CurrentUser, get_db, get_current_user
from swiftnotes.schemas.preferences import ERROR_RESPONSES, PreferencesResponse
from swiftnotes.services.preference_service import get_preferences, update_preferences
from swiftnotes.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/user/preferences", tags=["user-preferences"], responses=ERROR_RESPONSES)


@router.get("", response_model=PreferencesResponse)
async def read_preferences(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get current user's preferences.
    Missing keys are filled with their defaults.
    """
    try:
        preferences = await get_preferences(db, current_user.id)
        return {"success": True, "preferences": preferences}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching user preferences: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user preferences"
        )


@router.put("", response_model=PreferencesResponse)
async def write_preferences(
    patch: Dict[str, Any] = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Update current user's preferences.
    Only the supplied keys change; an invalid key rejects the whole update.
    """
    try:
        preferences = await update_preferences(db, current_user.id, patch)
        return {
            "success": True,
            "message": "Preferences updated successfully",
            "preferences": preferences,
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating user preferences: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user preferences"
        )
