from fastapi import APIRouter, Depends

from tournament_hub.core.security import get_current_user
from tournament_hub.schemas.auth import UserOut
from tournament_hub.schemas.common import ApiResponse, ok

router = APIRouter(prefix="/api/v1", tags=["me"])


@router.get("/me", response_model=ApiResponse[UserOut])
def me(user=Depends(get_current_user)):
    return ok(UserOut.model_validate(user))
