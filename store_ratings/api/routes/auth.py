# store_ratings/api/routes/auth.py
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from store_ratings.core.config import settings
from store_ratings.core.exceptions import Forbidden, Unauthenticated
from store_ratings.core.logger import setup_logger
from store_ratings.core.security import create_access_token, get_current_user, hash_password, verify_password
from store_ratings.db.base import get_db
from store_ratings.db.models.common import utcnow
from store_ratings.db.models.user import User
from store_ratings.schemas.user import AuthResponse, LoginRequest, PasswordUpdate, UserCreate, UserResponse
from store_ratings.services import user_service

logger = setup_logger("store_ratings.auth")

router = APIRouter(tags=["auth"])

MAX_LOGIN_ATTEMPTS = 10


def _set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        settings.AUTH_COOKIE_NAME,
        token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: UserCreate, response: Response, db: Session = Depends(get_db)):
    # self-service signup always creates a normal user
    user = user_service.create_user(db, payload)
    token = create_access_token(user)
    _set_auth_cookie(response, token)
    return AuthResponse(message="User created successfully", token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = user_service.get_by_email(db, payload.email)
    if not user:
        raise Unauthenticated("Invalid credentials")

    if not user.is_active:
        raise Forbidden("Account is inactive")

    if not verify_password(payload.password, user.password_hash):
        user.login_attempts = min((user.login_attempts or 0) + 1, MAX_LOGIN_ATTEMPTS)
        db.commit()
        logger.warning("failed login for user id=%s (attempts=%s)", user.id, user.login_attempts)
        raise Unauthenticated("Invalid credentials")

    if payload.role is not None and user.role != payload.role.value:
        raise Forbidden("Invalid role for this user")

    user.login_attempts = 0
    user.last_login = utcnow()
    db.commit()
    db.refresh(user)

    token = create_access_token(user)
    _set_auth_cookie(response, token)
    return AuthResponse(message="Login successful", token=token, user=UserResponse.model_validate(user))


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(
        settings.AUTH_COOKIE_NAME,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
    return {"message": "Logged out successfully"}


@router.get("/profile")
def profile(current_user: User = Depends(get_current_user)):
    return {"user": UserResponse.model_validate(current_user)}


@router.put("/password")
def update_password(
    payload: PasswordUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(payload.current_password, current_user.password_hash):
        raise Unauthenticated("Current password is incorrect")

    current_user.password_hash = hash_password(payload.new_password)
    db.commit()
    logger.info("password updated for user id=%s", current_user.id)
    return {"message": "Password updated successfully"}
