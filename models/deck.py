from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import relationship

from core.clock import utcnow
from core.database import Base


class Deck(Base):
    __tablename__ = "decks"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    cards = relationship("Card", back_populates="deck", cascade="all, delete-orphan")
