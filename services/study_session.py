import logging
from datetime import datetime
from typing import Callable

from core.clock import utcnow
from core.exceptions import InvalidStateError
from services.review_store import ReviewStateStore

logger = logging.getLogger(__name__)


class StudySession:
    """
    Walks through a fixed list of cards one at a time.

    Each grade is committed through the store before the session advances,
    so a failed write leaves the same card current and the caller can retry
    or simply drop the session.
    """

    def __init__(
        self,
        store: ReviewStateStore,
        owner_id: str,
        cards: list,
        *,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.owner_id = owner_id
        self.cards = list(cards)
        self.clock = clock
        self.position = 0
        self.reviewed_count = 0

    @classmethod
    def start(
        cls,
        store: ReviewStateStore,
        owner_id: str,
        *,
        as_of: datetime | None = None,
        limit: int | None = None,
        **kwargs,
    ) -> "StudySession":
        cards = store.get_due_cards(owner_id, as_of, limit)
        logger.info("Starting study session for owner %s with %d due cards", owner_id, len(cards))
        return cls(store, owner_id, cards, **kwargs)

    @property
    def is_complete(self) -> bool:
        return self.position >= len(self.cards)

    @property
    def current_card(self):
        if self.is_complete:
            return None
        return self.cards[self.position]

    @property
    def remaining(self) -> int:
        return len(self.cards) - self.position

    def grade(self, card_id: int, grade: int, as_of: datetime | None = None):
        if self.is_complete:
            raise InvalidStateError("Study session is already complete")
        expected = self.cards[self.position].id
        if card_id != expected:
            raise InvalidStateError(f"Expected a grade for card {expected}, got card {card_id}")

        updated = self.store.apply_grade(
            self.owner_id,
            card_id,
            grade,
            as_of if as_of is not None else self.clock(),
        )
        self.cards[self.position] = updated
        self.reviewed_count += 1
        self.position += 1

        if self.is_complete:
            logger.info("Study session complete: %d cards reviewed", self.reviewed_count)
        return updated
