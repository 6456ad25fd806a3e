from typing import Annotated, Generator
from fastapi import Depends
from sqlalchemy.orm import DeclarativeBase, Session
from .session import engine, SessionLocal


class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


db_dependency = Annotated[Session, Depends(get_db)]

__all__ = ["Base", "engine", "SessionLocal", "get_db", "db_dependency"]
