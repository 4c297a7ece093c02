"""FastAPI dependencies."""

from typing import Iterator

from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """Request-scoped session; audit stamps fall back to the System actor."""
    with SessionLocal() as db:
        yield db
