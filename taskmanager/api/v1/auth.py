from fastapi import APIRouter, HTTPException, status
from ...services.auth import AuthService, issue_tokens
from ...services.user_service import UserService
from ...services.notification_service import notifier_dependency
from ...db.base import db_dependency
from ...schemas.user import (
    CreateUserRequest,
    LoginRequest,
    RefreshTokenRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    UserResponse,
    Token,
    MessageResponse,
)

router = APIRouter(prefix='/auth', tags=['auth'])


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
async def register(
    user_data: CreateUserRequest,
    db: db_dependency,
    notifier: notifier_dependency
):
    user_service = UserService(db, notifier)
    return user_service.create_user(user_data)


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest, db: db_dependency):
    auth_service = AuthService(db)
    user = auth_service.authenticate(credentials.email, credentials.password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid email or password")

    return issue_tokens(user)


@router.post("/refresh", response_model=Token)
async def refresh_token(request: RefreshTokenRequest, db: db_dependency):
    auth_service = AuthService(db)
    user = auth_service.refresh(request.refresh_token)
    return issue_tokens(user)


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    request: ForgotPasswordRequest,
    db: db_dependency,
    notifier: notifier_dependency
):
    auth_service = AuthService(db, notifier)
    return {"message": auth_service.forgot_password(request.email)}


@router.post("/reset-password", response_model=MessageResponse)
async def reset_password(request: ResetPasswordRequest, db: db_dependency):
    auth_service = AuthService(db)
    return {"message": auth_service.reset_password(request.token, request.password)}
