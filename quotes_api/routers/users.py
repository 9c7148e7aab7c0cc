from fastapi import APIRouter, Depends, HTTPException

from quotes_api.dependencies import get_current_user, get_user_store
from quotes_api.errors import AuthError
from quotes_api.models.user import UserEntry
from quotes_api.schemas.users import ProfileResponse, ProfileUpdate, ProfileUpdateResponse
from quotes_api.services.users import UserStore

router = APIRouter(tags=["users"])


@router.get("/profile", response_model=ProfileResponse)
def get_profile(
    user: UserEntry = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
) -> ProfileResponse:
    try:
        profile = users.get_profile(user.id)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return ProfileResponse(user=profile)


@router.put("/profile", response_model=ProfileUpdateResponse)
def update_profile(
    payload: ProfileUpdate,
    user: UserEntry = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
) -> ProfileUpdateResponse:
    try:
        profile = users.update_profile(user.id, payload)
    except AuthError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return ProfileUpdateResponse(msg="Profile updated successfully", user=profile)
