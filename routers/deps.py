from typing import Generator

from core.config import settings
from core.database import SessionLocal
from services.review_store import ReviewStateStore, configured_store


def get_store() -> Generator[ReviewStateStore, None, None]:
    # The memory backend never opens a database session.
    if settings.STORE_BACKEND == "memory":
        yield configured_store()
        return
    db = SessionLocal()
    try:
        yield configured_store(db)
    finally:
        db.close()
