from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator


class DeckCreateIn(BaseModel):
    title: constr(strip_whitespace=True, min_length=1, max_length=100)
    description: constr(strip_whitespace=True, max_length=500) | None = None

    @field_validator("description", mode="before")
    @classmethod
    def _empty_description_to_none(cls, value: str | None):
        if value is None:
            return None
        if isinstance(value, str):
            trimmed = value.strip()
            return trimmed or None
        return value


class DeckUpdateIn(DeckCreateIn):
    pass


class DeckOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime
    card_count: int = 0


class CardCreateIn(BaseModel):
    front: constr(strip_whitespace=True, min_length=1, max_length=2000)
    back: constr(strip_whitespace=True, min_length=1, max_length=2000)


class CardUpdateIn(CardCreateIn):
    pass


class CardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    deck_id: int
    front: str
    back: str
    interval: int
    repetitions: int
    ease_factor: float
    next_review_date: datetime
    last_reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ReviewIn(BaseModel):
    grade: int = Field(..., ge=0, le=5, description="0=complete blackout, 5=perfect")


class DueCardsOut(BaseModel):
    as_of: datetime
    cards: list[CardOut]


class StatsOut(BaseModel):
    due_cards: int
    total_cards: int
