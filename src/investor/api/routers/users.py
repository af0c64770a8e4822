"""User profile endpoints."""

from fastapi import APIRouter, Depends

from investor.api.deps import get_current_user_id, get_profile_service
from investor.api.schemas import UserResponse, UserUpdateRequest
from investor.services import ProfileService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def get_me(
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
) -> UserResponse:
    return UserResponse.model_validate(profiles.get_profile(user_id))


@router.patch("/me", response_model=UserResponse)
def update_me(
    data: UserUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    profiles: ProfileService = Depends(get_profile_service),
) -> UserResponse:
    user = profiles.update_names(user_id, first_name=data.first_name, last_name=data.last_name)
    return UserResponse.model_validate(user)
