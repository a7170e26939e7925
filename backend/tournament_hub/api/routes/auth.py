from fastapi import APIRouter, Depends

from tournament_hub.api.deps import get_auth_service
from tournament_hub.core.security import require_admin
from tournament_hub.schemas.auth import LoginRequest, RegisterRequest, TokenOut, UserOut
from tournament_hub.schemas.common import ApiResponse, ok
from tournament_hub.services.auth_service import AuthService

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/login", response_model=ApiResponse[TokenOut])
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return ok(service.login(data), "Login successful")


@router.post("/register", response_model=ApiResponse[UserOut], status_code=201)
def register(data: RegisterRequest, admin=Depends(require_admin), service: AuthService = Depends(get_auth_service)):
    user = service.register(data)
    return ok(UserOut.model_validate(user), "User created")
