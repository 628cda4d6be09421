# store_ratings/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from store_ratings.core import policy
from store_ratings.core.config import settings
from store_ratings.core.exceptions import Unauthenticated
from store_ratings.core.logger import setup_logger
from store_ratings.core.policy import Action, Resource
from store_ratings.db.base import get_db
from store_ratings.db.models.user import User

logger = setup_logger("store_ratings.auth")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.BCRYPT_ROUNDS)
# cookie is checked first, so the bearer header is optional
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    try:
        return pwd_context.verify(password, hashed)
    except ValueError:
        # malformed hash in the database
        return False


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user.id),
        "email": user.email,
        "role": user.role,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def _user_id(token: Optional[str]) -> Optional[int]:
    payload = decode_access_token(token) if token else None
    if not payload or payload.get("sub") is None:
        return None
    try:
        return int(payload["sub"])
    except (TypeError, ValueError):
        return None


def get_current_user(
    request: Request,
    response: Response,
    bearer: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    cookie = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not cookie and not bearer:
        raise Unauthenticated("Authentication required")

    user_id = _user_id(cookie)
    if user_id is None:
        if cookie:
            # stale cookie: drop it and fall back to the header
            response.delete_cookie(settings.AUTH_COOKIE_NAME, httponly=True,
                                   secure=settings.COOKIE_SECURE, samesite="strict")
        user_id = _user_id(bearer)
    if user_id is None:
        raise Unauthenticated("Invalid or expired token")

    # role comes from the database so role changes apply to existing tokens
    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        logger.warning("rejected token for missing or inactive user id=%s", user_id)
        raise Unauthenticated("Invalid or expired token")
    return user


def require_permission(resource: Resource, action: Action, message: str = None):
    """Dependency factory: current user, checked against the policy table."""
    def permission_dep(current_user: User = Depends(get_current_user)) -> User:
        policy.require(current_user, resource, action, message)
        return current_user
    return permission_dep
