"""Error taxonomy shared by the scheduler, the stores and the study session."""


class FlashcardError(Exception):
    """Base class for every error raised by the flashcard core."""


class ValidationError(FlashcardError, ValueError):
    """Malformed input: blank title or text, grade outside 0-5."""


class NotFoundError(FlashcardError):
    """Deck or card does not exist, or belongs to another owner."""

    def __init__(self, kind: str, ident):
        self.kind = kind
        self.ident = ident
        super().__init__(f"{kind} not found")


class InvalidStateError(FlashcardError):
    """A study session received a grade it cannot accept."""


class StorageFailure(FlashcardError):
    """The persistence backend could not complete an operation."""
