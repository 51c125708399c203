"""
Persistence boundary for decks and cards.

Every backend implements the two repositories below. Ownership is always
passed explicitly; a repository never returns a deck or card that belongs
to a different user.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import StorageFailure
from services.scheduler import SchedulingState

logger = logging.getLogger(__name__)


class DeckRepository(ABC):
    @abstractmethod
    def save_deck(self, *, user_id: str, title: str, description: str | None, created_at: datetime):
        ...

    @abstractmethod
    def list_decks(self, user_id: str) -> list:
        ...

    @abstractmethod
    def get_deck(self, deck_id: int, user_id: str):
        ...

    @abstractmethod
    def update_deck(
        self,
        *,
        deck_id: int,
        user_id: str,
        title: str,
        description: str | None,
        updated_at: datetime,
    ):
        ...

    @abstractmethod
    def delete_deck(self, *, deck_id: int, user_id: str) -> bool:
        ...


class CardRepository(ABC):
    @abstractmethod
    def save_card(
        self,
        *,
        deck_id: int,
        front: str,
        back: str,
        state: SchedulingState,
        next_review_date: datetime,
        created_at: datetime,
    ):
        ...

    @abstractmethod
    def get_card(self, card_id: int, user_id: str):
        ...

    @abstractmethod
    def list_cards(self, deck_id: int) -> list:
        ...

    @abstractmethod
    def list_due(self, user_id: str, as_of: datetime, limit: int | None = None) -> list:
        """Cards with ``next_review_date <= as_of`` ordered by (next_review_date, id)."""

    @abstractmethod
    def update_schedule(
        self,
        *,
        card_id: int,
        state: SchedulingState,
        next_review_date: datetime,
        reviewed_at: datetime,
    ):
        """Write interval, repetitions, ease factor, next review date and review time together."""

    @abstractmethod
    def update_text(self, *, deck_id: int, card_id: int, front: str, back: str, updated_at: datetime):
        ...

    @abstractmethod
    def delete_card(self, *, deck_id: int, card_id: int) -> bool:
        ...

    @abstractmethod
    def count_cards(self, user_id: str) -> int:
        ...

    @abstractmethod
    def count_due(self, user_id: str, as_of: datetime) -> int:
        ...

    @abstractmethod
    def count_by_deck(self, user_id: str) -> dict[int, int]:
        ...


class SqlRepository:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def guard(self, action: str):
        """Roll back and re-raise database errors as StorageFailure."""
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Storage failure while trying to %s", action, exc_info=exc)
            raise StorageFailure(f"Could not {action}") from exc
