import logging
from datetime import datetime
from typing import Callable, Iterable

from sqlalchemy.orm import Session

from core.clock import as_naive_utc, utcnow
from core.config import settings
from core.exceptions import NotFoundError, ValidationError
from repositories.base import CardRepository, DeckRepository
from repositories.card_repo import SqlCardRepository
from repositories.deck_repo import SqlDeckRepository
from repositories.memory_repo import InMemoryCardRepository, InMemoryDeckRepository, InMemoryStorage
from services import scheduler

logger = logging.getLogger(__name__)


def _require_text(value: str | None, field: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} must not be empty")
    return cleaned


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class ReviewStateStore:
    """
    Decks, cards and their review state for one backend.

    All scheduling math is delegated to :mod:`services.scheduler`; this class
    only validates input, checks ownership and persists the resulting snapshot.
    """

    def __init__(
        self,
        deck_repo: DeckRepository,
        card_repo: CardRepository,
        *,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.deck_repo = deck_repo
        self.card_repo = card_repo
        self.clock = clock

    @classmethod
    def from_session(cls, db: Session, **kwargs) -> "ReviewStateStore":
        return cls(SqlDeckRepository(db), SqlCardRepository(db), **kwargs)

    @classmethod
    def in_memory(cls, storage: InMemoryStorage | None = None, **kwargs) -> "ReviewStateStore":
        storage = storage or InMemoryStorage()
        return cls(InMemoryDeckRepository(storage), InMemoryCardRepository(storage), **kwargs)

    def _now(self, as_of: datetime | None = None) -> datetime:
        return as_naive_utc(as_of if as_of is not None else self.clock())

    # decks

    def create_deck(self, owner_id: str, title: str, description: str | None = None):
        deck = self.deck_repo.save_deck(
            user_id=owner_id,
            title=_require_text(title, "Title"),
            description=_optional_text(description),
            created_at=self._now(),
        )
        logger.info("Created deck %s for owner %s", deck.id, owner_id)
        return deck

    def get_deck(self, owner_id: str, deck_id: int):
        deck = self.deck_repo.get_deck(deck_id, owner_id)
        if deck is None:
            raise NotFoundError("Deck", deck_id)
        return deck

    def list_decks(self, owner_id: str) -> list:
        return self.deck_repo.list_decks(owner_id)

    def update_deck(self, owner_id: str, deck_id: int, *, title: str, description: str | None = None):
        deck = self.deck_repo.update_deck(
            deck_id=deck_id,
            user_id=owner_id,
            title=_require_text(title, "Title"),
            description=_optional_text(description),
            updated_at=self._now(),
        )
        if deck is None:
            raise NotFoundError("Deck", deck_id)
        return deck

    def delete_deck(self, owner_id: str, deck_id: int) -> None:
        if not self.deck_repo.delete_deck(deck_id=deck_id, user_id=owner_id):
            raise NotFoundError("Deck", deck_id)
        logger.info("Deleted deck %s for owner %s", deck_id, owner_id)

    def import_deck(
        self,
        owner_id: str,
        *,
        title: str,
        description: str | None,
        rows: Iterable[tuple[str, str]],
    ):
        """Create a deck pre-filled with ``(front, back)`` pairs."""
        cards = [(_require_text(front, "Front"), _require_text(back, "Back")) for front, back in rows]
        if not cards:
            raise ValidationError("An imported deck needs at least one card")
        deck = self.create_deck(owner_id, title, description)
        for front, back in cards:
            self.create_card(owner_id, deck.id, front, back)
        return deck

    # cards

    def create_card(self, owner_id: str, deck_id: int, front: str, back: str):
        self.get_deck(owner_id, deck_id)
        now = self._now()
        return self.card_repo.save_card(
            deck_id=deck_id,
            front=_require_text(front, "Front"),
            back=_require_text(back, "Back"),
            state=scheduler.initial_state(),
            next_review_date=now,
            created_at=now,
        )

    def get_card(self, owner_id: str, card_id: int):
        card = self.card_repo.get_card(card_id, owner_id)
        if card is None:
            raise NotFoundError("Card", card_id)
        return card

    def list_cards(self, owner_id: str, deck_id: int) -> list:
        self.get_deck(owner_id, deck_id)
        return self.card_repo.list_cards(deck_id)

    def update_card(self, owner_id: str, deck_id: int, card_id: int, *, front: str, back: str):
        self.get_deck(owner_id, deck_id)
        card = self.card_repo.update_text(
            deck_id=deck_id,
            card_id=card_id,
            front=_require_text(front, "Front"),
            back=_require_text(back, "Back"),
            updated_at=self._now(),
        )
        if card is None:
            raise NotFoundError("Card", card_id)
        return card

    def delete_card(self, owner_id: str, deck_id: int, card_id: int) -> None:
        self.get_deck(owner_id, deck_id)
        if not self.card_repo.delete_card(deck_id=deck_id, card_id=card_id):
            raise NotFoundError("Card", card_id)

    # reviews

    def get_due_cards(self, owner_id: str, as_of: datetime | None = None, limit: int | None = None) -> list:
        return self.card_repo.list_due(owner_id, self._now(as_of), limit)

    def apply_grade(self, owner_id: str, card_id: int, grade: int, as_of: datetime | None = None):
        scheduler.validate_grade(grade)
        card = self.get_card(owner_id, card_id)
        as_of = self._now(as_of)

        previous = scheduler.SchedulingState(
            interval=card.interval,
            repetitions=card.repetitions,
            ease_factor=card.ease_factor,
        )
        state = scheduler.next_state(grade, previous)
        updated = self.card_repo.update_schedule(
            card_id=card_id,
            state=state,
            next_review_date=scheduler.next_review_date(as_of, state.interval),
            reviewed_at=as_of,
        )
        logger.info(
            "Card %s graded %s: interval %s -> %s, repetitions %s, ease %.2f",
            card_id, grade, previous.interval, state.interval, state.repetitions, state.ease_factor,
        )
        return updated

    # stats

    def count_cards(self, owner_id: str) -> int:
        return self.card_repo.count_cards(owner_id)

    def count_due_cards(self, owner_id: str, as_of: datetime | None = None) -> int:
        return self.card_repo.count_due(owner_id, self._now(as_of))

    def count_cards_by_deck(self, owner_id: str) -> dict[int, int]:
        return self.card_repo.count_by_deck(owner_id)


_memory_storage = InMemoryStorage()


def configured_store(db: Session | None = None) -> ReviewStateStore:
    """Store for the backend named by ``STORE_BACKEND``. The SQL backend needs ``db``."""
    if settings.STORE_BACKEND == "memory":
        return ReviewStateStore.in_memory(_memory_storage)
    if db is None:
        raise ValueError("The sql store backend needs a database session")
    return ReviewStateStore.from_session(db)
