from datetime import timedelta

import pytest

from core.exceptions import InvalidStateError, StorageFailure, ValidationError
from services.study_session import StudySession

from conftest import NOW


@pytest.fixture
def due_session(store):
    deck = store.create_deck("alice", "Spanish")
    for front, back in [("perro", "dog"), ("gato", "cat"), ("pájaro", "bird")]:
        store.create_card("alice", deck.id, front, back)
    return StudySession.start(store, "alice", as_of=NOW, clock=lambda: NOW)


def test_session_reviews_all_due_cards(store, due_session):
    assert due_session.reviewed_count == 0
    assert due_session.remaining == 3
    assert due_session.current_card.front == "perro"

    for grade in (5, 3, 1):
        due_session.grade(due_session.current_card.id, grade)

    assert due_session.is_complete
    assert due_session.current_card is None
    assert due_session.reviewed_count == 3

    with pytest.raises(InvalidStateError):
        due_session.grade(due_session.cards[0].id, 5)

    assert store.get_due_cards("alice", as_of=NOW) == []
    assert len(store.get_due_cards("alice", as_of=NOW + timedelta(days=1))) == 3


def test_grading_out_of_order_is_rejected(due_session):
    wrong = due_session.cards[1].id
    with pytest.raises(InvalidStateError):
        due_session.grade(wrong, 5)
    assert due_session.position == 0
    assert due_session.reviewed_count == 0


def test_grade_updates_session_copy(due_session):
    card_id = due_session.current_card.id
    updated = due_session.grade(card_id, 5)
    assert updated.interval == 1
    assert due_session.cards[0].repetitions == 1
    assert due_session.current_card.front == "gato"


def test_invalid_grade_does_not_advance(due_session):
    with pytest.raises(ValidationError):
        due_session.grade(due_session.current_card.id, 9)
    assert due_session.position == 0
    assert due_session.reviewed_count == 0


def test_store_failure_does_not_advance(store, due_session, monkeypatch):
    card_id = due_session.current_card.id

    def failing_apply_grade(*args, **kwargs):
        raise StorageFailure("Could not save review")

    monkeypatch.setattr(store, "apply_grade", failing_apply_grade)
    with pytest.raises(StorageFailure):
        due_session.grade(card_id, 4)
    assert due_session.position == 0
    assert due_session.current_card.id == card_id

    monkeypatch.undo()
    due_session.grade(card_id, 4)
    assert due_session.position == 1


def test_empty_session_starts_complete(store):
    session = StudySession.start(store, "nobody", as_of=NOW)
    assert session.is_complete
    assert session.reviewed_count == 0
    with pytest.raises(InvalidStateError):
        session.grade(1, 5)


def test_limit_caps_session_size(store):
    deck = store.create_deck("alice", "Numbers")
    for i in range(5):
        store.create_card("alice", deck.id, str(i), str(i))
    session = StudySession.start(store, "alice", as_of=NOW, limit=2)
    assert len(session.cards) == 2
