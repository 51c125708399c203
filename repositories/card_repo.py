from datetime import datetime

from sqlalchemy import select, func

from models.card import Card
from models.deck import Deck
from repositories.base import CardRepository, SqlRepository
from services.scheduler import SchedulingState


class SqlCardRepository(SqlRepository, CardRepository):
    def save_card(
        self,
        *,
        deck_id: int,
        front: str,
        back: str,
        state: SchedulingState,
        next_review_date: datetime,
        created_at: datetime,
    ) -> Card:
        entity = Card(
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
        with self.guard("create card"):
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def get_card(self, card_id: int, user_id: str) -> Card | None:
        stmt = (
            select(Card)
            .join(Deck, Deck.id == Card.deck_id)
            .where(Card.id == card_id, Deck.user_id == user_id)
        )
        with self.guard("load card"):
            return self.db.execute(stmt).scalar_one_or_none()

    def list_cards(self, deck_id: int) -> list[Card]:
        stmt = select(Card).where(Card.deck_id == deck_id).order_by(Card.id)
        with self.guard("list cards"):
            return list(self.db.execute(stmt).scalars())

    def list_due(self, user_id: str, as_of: datetime, limit: int | None = None) -> list[Card]:
        stmt = (
            select(Card)
            .join(Deck, Deck.id == Card.deck_id)
            .where(Deck.user_id == user_id)
            .where(Card.next_review_date <= as_of)
            .order_by(Card.next_review_date, Card.id)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.guard("list due cards"):
            return list(self.db.execute(stmt).scalars())

    def update_schedule(
        self,
        *,
        card_id: int,
        state: SchedulingState,
        next_review_date: datetime,
        reviewed_at: datetime,
    ) -> Card:
        with self.guard("save review"):
            entity = self.db.get(Card, card_id)
            entity.interval = state.interval
            entity.repetitions = state.repetitions
            entity.ease_factor = state.ease_factor
            entity.next_review_date = next_review_date
            entity.last_reviewed_at = reviewed_at
            entity.updated_at = reviewed_at
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def update_text(self, *, deck_id: int, card_id: int, front: str, back: str, updated_at: datetime) -> Card | None:
        stmt = select(Card).where(
            Card.id == card_id,
            Card.deck_id == deck_id,
        )
        with self.guard("update card"):
            entity = self.db.execute(stmt).scalar_one_or_none()
            if entity is None:
                return None
            entity.front = front
            entity.back = back
            entity.updated_at = updated_at
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def delete_card(self, *, deck_id: int, card_id: int) -> bool:
        stmt = select(Card).where(
            Card.id == card_id,
            Card.deck_id == deck_id,
        )
        with self.guard("delete card"):
            entity = self.db.execute(stmt).scalar_one_or_none()
            if entity is None:
                return False
            self.db.delete(entity)
            self.db.commit()
        return True

    def count_cards(self, user_id: str) -> int:
        stmt = (
            select(func.count(Card.id))
            .join(Deck, Deck.id == Card.deck_id)
            .where(Deck.user_id == user_id)
        )
        with self.guard("count cards"):
            return self.db.execute(stmt).scalar_one()

    def count_due(self, user_id: str, as_of: datetime) -> int:
        stmt = (
            select(func.count(Card.id))
            .join(Deck, Deck.id == Card.deck_id)
            .where(Deck.user_id == user_id)
            .where(Card.next_review_date <= as_of)
        )
        with self.guard("count due cards"):
            return self.db.execute(stmt).scalar_one()

    def count_by_deck(self, user_id: str) -> dict[int, int]:
        stmt = (
            select(Card.deck_id, func.count(Card.id))
            .join(Deck, Deck.id == Card.deck_id)
            .where(Deck.user_id == user_id)
            .group_by(Card.deck_id)
        )
        with self.guard("count cards per deck"):
            return {deck_id: count for deck_id, count in self.db.execute(stmt).all()}
