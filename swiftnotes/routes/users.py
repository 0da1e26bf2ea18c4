from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from swiftnotes.dependencies import CurrentUser, get_db, get_current_user
from swiftnotes.schemas.user_profile import DeleteAccountResponse, UserProfileResponse, UserProfileUpdate
from swiftnotes.schemas.preferences import ERROR_RESPONSES
from swiftnotes.services.profile_service import delete_profile, get_profile, serialize_profile, update_profile
from swiftnotes.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/user", tags=["user"], responses=ERROR_RESPONSES)


@router.get("/profile", response_model=UserProfileResponse)
async def get_current_user_profile(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get current authenticated user's profile, preferences included"""
    try:
        profile = await get_profile(db, current_user.id)
        return {"success": True, "user": serialize_profile(profile)}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching user profile: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch user profile"
        )


@router.put("/profile", response_model=UserProfileResponse)
async def update_current_user_profile(
    user_data: UserProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update name and writing style of the current user"""
    try:
        changes = user_data.model_dump(exclude_unset=True, by_alias=True)
        profile = await update_profile(db, current_user.id, changes)
        return {
            "success": True,
            "message": "Profile updated successfully",
            "user": serialize_profile(profile),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating user profile: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update user profile"
        )


@router.delete("/account", response_model=DeleteAccountResponse)
async def delete_current_user_account(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete the current user's profile and everything stored on it"""
    try:
        await delete_profile(db, current_user.id)
        return {"success": True, "message": "Account deleted successfully"}
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting account: {e}")
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete account"
        )
