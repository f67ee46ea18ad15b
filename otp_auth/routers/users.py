from fastapi import APIRouter, Depends, HTTPException, status

from otp_auth.errors import StorageError
from otp_auth.routers.deps import get_current_user_id, get_user_store
from otp_auth.schemas.users import UserResponse
from otp_auth.services.users import UserStore

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def get_me(
    user_id: int = Depends(get_current_user_id),
    user_store: UserStore = Depends(get_user_store),
) -> UserResponse:
    try:
        user = user_store.get_user(user_id)
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)
