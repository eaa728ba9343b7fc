"""
Profile API Routes

Profile reads and edits plus the follow toggle. Path ids are positive
integers; anything else is rejected with 400 before the service runs.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, status
from loguru import logger

from profile_service.api.dependencies import get_profile_service
from profile_service.api.schemas import (
    ApiResponse,
    BannerResponse,
    ErrorResponse,
    FollowResponse,
    OwnProfileResponse,
    ProfileInfoResponse,
    ProfilePictureResponse,
    PublicProfileResponse,
    UpdateBannerRequest,
    UpdateProfileInfoRequest,
    UpdateProfilePictureRequest,
)
from profile_service.profiles.service import ProfileService
from profile_service.storage.profile_repository import FollowAction


router = APIRouter(prefix="/profile", tags=["Profile"])

# Largest value a signed 64-bit id column can hold
MAX_ID = 2**63 - 1

UserId = Annotated[int, Path(gt=0, le=MAX_ID, description="User ID", examples=[1])]
TargetUserId = Annotated[
    int, Path(gt=0, le=MAX_ID, description="ID of the user to follow or unfollow", examples=[2])
]

BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid user ID or request body"}}
NOT_FOUND = {404: {"model": ErrorResponse, "description": "User not found"}}


# =============================================================================
# Reads
# =============================================================================

@router.get(
    "/me/{user_id}",
    response_model=ApiResponse[OwnProfileResponse],
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def get_own_profile(
    user_id: UserId,
    service: ProfileService = Depends(get_profile_service),
):
    """
    Get the full profile of the requesting user.

    Includes private data: email, unpublished books, liked books and
    complete statistics.
    """
    profile = await service.get_own_profile(user_id)
    return ApiResponse(
        message="Profile retrieved successfully",
        data=OwnProfileResponse.model_validate(profile),
    )


@router.get(
    "/user/{user_id}",
    response_model=ApiResponse[PublicProfileResponse],
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def get_user_profile(
    user_id: UserId,
    service: ProfileService = Depends(get_profile_service),
):
    """Get another user's public profile (no email, published books only)."""
    profile = await service.get_public_profile(user_id)
    return ApiResponse(
        message="Profile retrieved successfully",
        data=PublicProfileResponse.model_validate(profile),
    )


# =============================================================================
# Updates
# =============================================================================

@router.patch(
    "/profile-picture/{user_id}",
    response_model=ApiResponse[ProfilePictureResponse],
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def update_profile_picture(
    user_id: UserId,
    body: UpdateProfilePictureRequest,
    service: ProfileService = Depends(get_profile_service),
):
    """Replace the user's profile picture."""
    updated = await service.update_profile_picture(user_id, body.profile_picture)
    return ApiResponse(
        message="Profile picture updated successfully",
        data=ProfilePictureResponse.model_validate(updated),
    )


@router.patch(
    "/banner/{user_id}",
    response_model=ApiResponse[BannerResponse],
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def update_banner(
    user_id: UserId,
    body: UpdateBannerRequest,
    service: ProfileService = Depends(get_profile_service),
):
    """Replace the user's banner image."""
    updated = await service.update_banner(user_id, body.banner)
    return ApiResponse(
        message="Banner updated successfully",
        data=BannerResponse.model_validate(updated),
    )


@router.patch(
    "/info/{user_id}",
    response_model=ApiResponse[ProfileInfoResponse],
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def update_profile_info(
    user_id: UserId,
    body: UpdateProfileInfoRequest,
    service: ProfileService = Depends(get_profile_service),
):
    """
    Update username, biography and/or favorite genres.

    Omitted fields are left untouched. `biography: ""` clears the
    biography; `favoriteGenres: []` clears all favorites; a non-empty list
    replaces the current favorites entirely.
    """
    logger.info(f"Updating profile info for user {user_id}: fields={sorted(body.model_fields_set)}")
    updated = await service.update_profile_info(user_id, body.to_update())
    return ApiResponse(
        message="Profile updated successfully",
        data=ProfileInfoResponse.model_validate(updated),
    )


# =============================================================================
# Follow
# =============================================================================

@router.post(
    "/follow/{user_id}/{target_user_id}",
    response_model=ApiResponse[FollowResponse],
    status_code=status.HTTP_200_OK,
    responses={**BAD_REQUEST, **NOT_FOUND},
)
async def toggle_follow(
    user_id: UserId,
    target_user_id: TargetUserId,
    service: ProfileService = Depends(get_profile_service),
):
    """
    Follow the target user, or unfollow if already following.

    Following yourself is rejected.
    """
    result = await service.toggle_follow(user_id, target_user_id)
    if result.action is FollowAction.FOLLOWED:
        message = "User followed successfully"
    else:
        message = "User unfollowed successfully"
    return ApiResponse(message=message, data=FollowResponse(action=result.action))
