from fastapi import APIRouter, Depends, Request
import logging
from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.limiter import limiter
from app.dependencies import Principal, get_current_user, get_user_service
from app.schemas.auth import LoginRequest, Token, UserResponse, PasswordChange
from app.services import auth as auth_service
from app.services.users import UserService, public_user

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

@router.post("/login", response_model=Token)
@limiter.limit(settings.login_rate_limit)
def login(
    request: Request,
    login_data: LoginRequest,
    users: UserService = Depends(get_user_service),
):
    try:
        user = users.authenticate(login_data.id, login_data.password)
    except AuthenticationError:
        logger.info(f"Failed login for {login_data.id}")
        raise

    access_token = auth_service.create_access_token(data={
        "sub": user["id"],
        "role": user["role"],
        "type": "access",
    })
    logger.info(f"User {user['id']} logged in")
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": public_user(user),
    }

@router.get("/me", response_model=UserResponse)
def get_me(
    current_user: Principal = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return public_user(users.get(current_user.id))

@router.post("/change-password")
def change_password(
    data: PasswordChange,
    current_user: Principal = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Update the caller's own password."""
    users.change_password(current_user.id, data.current_password, data.new_password)
    return {"success": True, "message": "Password updated successfully"}
