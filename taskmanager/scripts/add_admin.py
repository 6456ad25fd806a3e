"""
Grant the admin role to an existing user.

    python -m taskmanager.scripts.add_admin someone@example.com
"""
import argparse
import sys
from typing import Callable, Optional, Sequence
from sqlalchemy.orm import Session
from ..db.base import Base
from ..db.session import SessionLocal, engine
from ..services.user_service import UserService
from ..utils.logger import setup_logging, get_logger

logger = get_logger(__name__)


def add_admin(email: str, session_factory: Callable[[], Session] = SessionLocal) -> int:
    db = session_factory()
    try:
        user_service = UserService(db)
        user = user_service.find_by_email(email)
        if not user:
            logger.error(f"User with email {email} not found.")
            return 1

        if not user_service.grant_admin(user):
            logger.info(f"User {email} is already an admin.")
            return 0

        logger.info(f"User {email} has been granted admin privileges.")
        return 0
    finally:
        db.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Grant admin privileges to a user")
    parser.add_argument("email", help="email address of an existing user")
    args = parser.parse_args(argv)

    setup_logging()
    Base.metadata.create_all(bind=engine)
    return add_admin(args.email)


if __name__ == "__main__":
    sys.exit(main())
