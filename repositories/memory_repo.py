"""
Process-local backend used when no database is configured.

Records are frozen snapshots; an update replaces the whole record under the
storage lock, so readers never see a half-written card.
"""

import itertools
import threading
from dataclasses import dataclass, replace
from datetime import datetime

from repositories.base import CardRepository, DeckRepository
from services.scheduler import SchedulingState


@dataclass(frozen=True)
class DeckRecord:
    id: int
    user_id: str
    title: str
    description: str | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CardRecord:
    id: int
    deck_id: int
    front: str
    back: str
    interval: int
    repetitions: int
    ease_factor: float
    next_review_date: datetime
    created_at: datetime
    updated_at: datetime
    last_reviewed_at: datetime | None = None


class InMemoryStorage:
    def __init__(self):
        self.lock = threading.RLock()
        self.decks: dict[int, DeckRecord] = {}
        self.cards: dict[int, CardRecord] = {}
        self._deck_ids = itertools.count(1)
        self._card_ids = itertools.count(1)

    def next_deck_id(self) -> int:
        return next(self._deck_ids)

    def next_card_id(self) -> int:
        return next(self._card_ids)

    def owner_of(self, deck_id: int) -> str | None:
        deck = self.decks.get(deck_id)
        return deck.user_id if deck else None


class InMemoryDeckRepository(DeckRepository):
    def __init__(self, storage: InMemoryStorage):
        self.storage = storage

    def save_deck(self, *, user_id: str, title: str, description: str | None, created_at: datetime) -> DeckRecord:
        with self.storage.lock:
            deck = DeckRecord(
                id=self.storage.next_deck_id(),
                user_id=user_id,
                title=title,
                description=description,
                created_at=created_at,
                updated_at=created_at,
            )
            self.storage.decks[deck.id] = deck
        return deck

    def list_decks(self, user_id: str) -> list[DeckRecord]:
        with self.storage.lock:
            decks = [deck for deck in self.storage.decks.values() if deck.user_id == user_id]
        return sorted(decks, key=lambda deck: (deck.created_at, deck.id), reverse=True)

    def get_deck(self, deck_id: int, user_id: str) -> DeckRecord | None:
        deck = self.storage.decks.get(deck_id)
        if deck is None or deck.user_id != user_id:
            return None
        return deck

    def update_deck(
        self,
        *,
        deck_id: int,
        user_id: str,
        title: str,
        description: str | None,
        updated_at: datetime,
    ) -> DeckRecord | None:
        with self.storage.lock:
            deck = self.get_deck(deck_id, user_id)
            if deck is None:
                return None
            deck = replace(deck, title=title, description=description, updated_at=updated_at)
            self.storage.decks[deck_id] = deck
        return deck

    def delete_deck(self, *, deck_id: int, user_id: str) -> bool:
        with self.storage.lock:
            if self.get_deck(deck_id, user_id) is None:
                return False
            del self.storage.decks[deck_id]
            for card_id in [c.id for c in self.storage.cards.values() if c.deck_id == deck_id]:
                del self.storage.cards[card_id]
        return True


class InMemoryCardRepository(CardRepository):
    def __init__(self, storage: InMemoryStorage):
        self.storage = storage

    def _owned_cards(self, user_id: str) -> list[CardRecord]:
        return [
            card for card in self.storage.cards.values()
            if self.storage.owner_of(card.deck_id) == user_id
        ]

    def save_card(
        self,
        *,
        deck_id: int,
        front: str,
        back: str,
        state: SchedulingState,
        next_review_date: datetime,
        created_at: datetime,
    ) -> CardRecord:
        with self.storage.lock:
            card = CardRecord(
                id=self.storage.next_card_id(),
                deck_id=deck_id,
                front=front,
                back=back,
                interval=state.interval,
                repetitions=state.repetitions,
                ease_factor=state.ease_factor,
                next_review_date=next_review_date,
                created_at=created_at,
                updated_at=created_at,
            )
            self.storage.cards[card.id] = card
        return card

    def get_card(self, card_id: int, user_id: str) -> CardRecord | None:
        with self.storage.lock:
            card = self.storage.cards.get(card_id)
            if card is None or self.storage.owner_of(card.deck_id) != user_id:
                return None
        return card

    def list_cards(self, deck_id: int) -> list[CardRecord]:
        with self.storage.lock:
            cards = [card for card in self.storage.cards.values() if card.deck_id == deck_id]
        return sorted(cards, key=lambda card: card.id)

    def list_due(self, user_id: str, as_of: datetime, limit: int | None = None) -> list[CardRecord]:
        with self.storage.lock:
            due = [card for card in self._owned_cards(user_id) if card.next_review_date <= as_of]
        due.sort(key=lambda card: (card.next_review_date, card.id))
        return due if limit is None else due[:limit]

    def update_schedule(
        self,
        *,
        card_id: int,
        state: SchedulingState,
        next_review_date: datetime,
        reviewed_at: datetime,
    ) -> CardRecord:
        with self.storage.lock:
            card = replace(
                self.storage.cards[card_id],
                interval=state.interval,
                repetitions=state.repetitions,
                ease_factor=state.ease_factor,
                next_review_date=next_review_date,
                last_reviewed_at=reviewed_at,
                updated_at=reviewed_at,
            )
            self.storage.cards[card_id] = card
        return card

    def update_text(self, *, deck_id: int, card_id: int, front: str, back: str, updated_at: datetime) -> CardRecord | None:
        with self.storage.lock:
            card = self.storage.cards.get(card_id)
            if card is None or card.deck_id != deck_id:
                return None
            card = replace(card, front=front, back=back, updated_at=updated_at)
            self.storage.cards[card_id] = card
        return card

    def delete_card(self, *, deck_id: int, card_id: int) -> bool:
        with self.storage.lock:
            card = self.storage.cards.get(card_id)
            if card is None or card.deck_id != deck_id:
                return False
            del self.storage.cards[card_id]
        return True

    def count_cards(self, user_id: str) -> int:
        with self.storage.lock:
            return len(self._owned_cards(user_id))

    def count_due(self, user_id: str, as_of: datetime) -> int:
        with self.storage.lock:
            return sum(1 for card in self._owned_cards(user_id) if card.next_review_date <= as_of)

    def count_by_deck(self, user_id: str) -> dict[int, int]:
        counts: dict[int, int] = {}
        with self.storage.lock:
            for card in self._owned_cards(user_id):
                counts[card.deck_id] = counts.get(card.deck_id, 0) + 1
        return counts
