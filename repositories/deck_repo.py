from datetime import datetime

from sqlalchemy import select

from models.card import Card  # noqa: F401  (registers the Deck.cards relationship target)
from models.deck import Deck
from repositories.base import DeckRepository, SqlRepository


class SqlDeckRepository(SqlRepository, DeckRepository):
    def save_deck(self, *, user_id: str, title: str, description: str | None, created_at: datetime) -> Deck:
        entity = Deck(
            user_id=user_id,
            title=title,
            description=description,
            created_at=created_at,
            updated_at=created_at,
        )
        with self.guard("create deck"):
            self.db.add(entity)
            self.db.commit()
            self.db.refresh(entity)
        return entity

    def list_decks(self, user_id: str) -> list[Deck]:
        stmt = (
            select(Deck)
            .where(Deck.user_id == user_id)
            .order_by(Deck.created_at.desc(), Deck.id.desc())
        )
        with self.guard("list decks"):
            return list(self.db.execute(stmt).scalars())

    def get_deck(self, deck_id: int, user_id: str) -> Deck | None:
        stmt = select(Deck).where(
            Deck.id == deck_id,
            Deck.user_id == user_id,
        )
        with self.guard("load deck"):
            return self.db.execute(stmt).scalar_one_or_none()

    def update_deck(
        self,
        *,
        deck_id: int,
        user_id: str,
        title: str,
        description: str | None,
        updated_at: datetime,
    ) -> Deck | None:
        deck = self.get_deck(deck_id, user_id)
        if deck is None:
            return None
        with self.guard("update deck"):
            deck.title = title
            deck.description = description
            deck.updated_at = updated_at
            self.db.commit()
            self.db.refresh(deck)
        return deck

    def delete_deck(self, *, deck_id: int, user_id: str) -> bool:
        deck = self.get_deck(deck_id, user_id)
        if deck is None:
            return False
        with self.guard("delete deck"):
            self.db.delete(deck)
            self.db.commit()
        return True
