import hashlib
import secrets
from datetime import timedelta
from typing import Annotated, Optional
import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext
from sqlalchemy.orm import Session
from ..core.config import (
    SECRET_KEY,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_EXPIRE_DAYS,
    PASSWORD_RESET_EXPIRE_MINUTES,
    FRONTEND_URL,
)
from ..core.exceptions import UnauthorizedError
from ..db.base import db_dependency
from ..db.models.user import User
from ..utils.logger import get_logger
from ..utils.time import utcnow

logger = get_logger(__name__)

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

FORGOT_PASSWORD_MESSAGE = "If a user with that email exists, a password reset link has been sent."


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(password, hashed_password)
    except ValueError:
        return False


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def create_token(user: User, token_type: str, expires_delta: timedelta) -> str:
    now = utcnow()
    payload = {
        "sub": str(user.id),
        "email": user.email,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> dict:
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        raise UnauthorizedError("Could not validate credentials") from e

    if payload.get("type") != expected_type or not payload.get("sub"):
        raise UnauthorizedError("Could not validate credentials")
    return payload


def issue_tokens(user: User) -> dict:
    return {
        "access_token": create_token(user, ACCESS_TOKEN, timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)),
        "refresh_token": create_token(user, REFRESH_TOKEN, timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)),
        "token_type": "bearer",
        "user": user,
    }


class AuthService:
    def __init__(self, db: Session, notifier=None):
        self.db = db
        self.notifier = notifier

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.db.query(User).filter(User.email == email).first()
        if not user or not verify_password(password, user.hashed_password):
            logger.warning(f"Failed login attempt for {email}")
            return None
        return user

    def refresh(self, refresh_token: str) -> User:
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN)
        user = self.db.get(User, int(payload["sub"]))
        if not user:
            raise UnauthorizedError("Could not validate credentials")
        return user

    def forgot_password(self, email: str) -> str:
        user = self.db.query(User).filter(User.email == email).first()
        if not user:
            # Same answer either way so the endpoint can't be used to probe accounts
            return FORGOT_PASSWORD_MESSAGE

        reset_token = secrets.token_hex(32)
        try:
            user.password_reset_token = hash_reset_token(reset_token)
            user.password_reset_expires = utcnow() + timedelta(minutes=PASSWORD_RESET_EXPIRE_MINUTES)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error storing password reset token for user {user.id}: {e}")
            raise

        reset_url = f"{FRONTEND_URL}/auth/reset-password?token={reset_token}"
        if self.notifier is not None:
            self.notifier.send_email(
                user.email,
                "Reset your Task Manager password",
                "password-reset",
                {"name": user.name, "reset_url": reset_url, "expires_minutes": PASSWORD_RESET_EXPIRE_MINUTES},
            )
        logger.info(f"Password reset requested for user {user.id}")
        return FORGOT_PASSWORD_MESSAGE

    def reset_password(self, token: str, password: str) -> str:
        user = self.db.query(User).filter(
            User.password_reset_token == hash_reset_token(token),
            User.password_reset_expires > utcnow()
        ).first()

        if not user:
            raise UnauthorizedError("Invalid or expired token.")

        try:
            user.hashed_password = hash_password(password)
            user.password_reset_token = None
            user.password_reset_expires = None
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error resetting password for user {user.id}: {e}")
            raise

        logger.info(f"Password reset for user {user.id}")
        return "Password has been reset."


def get_current_user(
    db: db_dependency,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_token(credentials.credentials, expected_type=ACCESS_TOKEN)
    user = db.get(User, int(payload["sub"]))
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication failed.")
    return user


user_dependency = Annotated[User, Depends(get_current_user)]
