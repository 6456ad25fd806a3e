from sqlalchemy.orm import Session
from typing import List, Optional
from ..core.exceptions import DuplicateEntryError
from ..db.models.user import User
from ..schemas.user import CreateUserRequest, UserUpdate
from ..utils.logger import get_logger
from .auth import hash_password
from .permissions import ADMIN_ROLE

logger = get_logger(__name__)


class UserService:
    def __init__(self, db: Session, notifier=None):
        self.db = db
        self.notifier = notifier

    def create_user(self, user_data: CreateUserRequest) -> User:
        if self.find_by_email(user_data.email):
            raise DuplicateEntryError(f"User with email {user_data.email} already exists")

        try:
            user = User(
                name=user_data.name,
                email=user_data.email,
                hashed_password=hash_password(user_data.password),
                roles=["user"],
            )
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating user {user_data.email}: {e}")
            raise

        logger.info(f"User created: {user.id} - {user.email}")

        if self.notifier is not None:
            self.notifier.send_email(user.email, "Welcome to Task Manager", "welcome", {"name": user.name})

        return user

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def list_users(self) -> List[User]:
        return self.db.query(User).order_by(User.id.asc()).all()

    def update_user(self, user_id: int, user_data: UserUpdate) -> Optional[User]:
        user = self.get_user(user_id)
        if not user:
            return None

        update_data = user_data.model_dump(exclude_unset=True, exclude_none=True)

        new_email = update_data.get("email")
        if new_email and new_email != user.email and self.find_by_email(new_email):
            raise DuplicateEntryError(f"User with email {new_email} already exists")

        try:
            password = update_data.pop("password", None)
            if password:
                user.hashed_password = hash_password(password)

            for field, value in update_data.items():
                setattr(user, field, value)

            self.db.commit()
            self.db.refresh(user)

            logger.info(f"User updated: {user.id}")
            return user

        except Exception as e:
            self.db.rollback()
            logger.error(f"Error updating user {user_id}: {e}")
            raise

    def delete_user(self, user_id: int) -> bool:
        user = self.get_user(user_id)
        if not user:
            return False

        try:
            # Owned tasks go with the user through the relationship cascade
            self.db.delete(user)
            self.db.commit()
            logger.info(f"User deleted: {user_id}")
            return True

        except Exception as e:
            self.db.rollback()
            logger.error(f"Error deleting user {user_id}: {e}")
            raise

    def grant_admin(self, user: User) -> bool:
        """Add the admin role. Returns False when the user already had it."""
        if ADMIN_ROLE in (user.roles or []):
            return False

        try:
            user.roles = list(user.roles or []) + [ADMIN_ROLE]
            self.db.commit()
            logger.info(f"Granted admin role to user {user.id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error granting admin role to user {user.id}: {e}")
            raise
