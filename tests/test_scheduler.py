import itertools
from datetime import datetime, timedelta

import pytest

from core.exceptions import ValidationError
from services.scheduler import (
    MIN_EASE_FACTOR,
    ReviewRating,
    SchedulingState,
    initial_state,
    next_review_date,
    next_state,
    round_half_up,
)

EASE_FACTORS = [1.3, 1.5, 1.7, 2.0, 2.36, 2.5, 2.8, 3.4]
INTERVALS = [0, 1, 3, 6, 15, 40, 200]
REPETITIONS = [0, 1, 2, 3, 7]


def all_states():
    for interval, repetitions, ease in itertools.product(INTERVALS, REPETITIONS, EASE_FACTORS):
        yield SchedulingState(interval=interval, repetitions=repetitions, ease_factor=ease)


def test_initial_state():
    assert initial_state() == SchedulingState(interval=0, repetitions=0, ease_factor=2.5)


@pytest.mark.parametrize("grade", [0, 1, 2])
def test_failing_grade_resets_repetitions_and_interval(grade):
    for previous in all_states():
        result = next_state(grade, previous)
        assert result.repetitions == 0
        assert result.interval == 1


@pytest.mark.parametrize("grade", [3, 4, 5])
def test_first_successful_review_is_one_day(grade):
    for previous in all_states():
        if previous.repetitions != 0:
            continue
        result = next_state(grade, previous)
        assert result.interval == 1
        assert result.repetitions == 1


@pytest.mark.parametrize("grade", [3, 4, 5])
def test_second_successful_review_is_six_days(grade):
    for previous in all_states():
        if previous.repetitions != 1:
            continue
        result = next_state(grade, previous)
        assert result.interval == 6
        assert result.repetitions == 2


@pytest.mark.parametrize("grade", [3, 4, 5])
def test_later_reviews_multiply_previous_interval_by_previous_ease(grade):
    for previous in all_states():
        if previous.repetitions < 2:
            continue
        result = next_state(grade, previous)
        assert result.interval == round_half_up(previous.interval * previous.ease_factor)
        assert result.repetitions == previous.repetitions + 1


def test_ease_factor_never_drops_below_floor():
    for grade in range(6):
        for previous in all_states():
            assert next_state(grade, previous).ease_factor >= MIN_EASE_FACTOR


def test_ease_factor_has_no_upper_bound():
    result = next_state(5, SchedulingState(interval=10, repetitions=4, ease_factor=9.0))
    assert result.ease_factor == pytest.approx(9.1)


@pytest.mark.parametrize(
    "grade, expected",
    [(5, 2.6), (4, 2.5), (3, 2.36), (2, 2.18), (1, 1.96), (0, 1.7)],
)
def test_ease_factor_update_from_default(grade, expected):
    assert next_state(grade, initial_state()).ease_factor == pytest.approx(expected)


def test_blackout_on_fresh_card():
    result = next_state(0, initial_state())
    assert result.interval == 1
    assert result.repetitions == 0
    assert result.ease_factor == pytest.approx(1.7)


def test_perfect_streak_interval_sequence():
    state = initial_state()
    intervals, repetitions = [], []
    for _ in range(3):
        state = next_state(5, state)
        intervals.append(state.interval)
        repetitions.append(state.repetitions)
    assert intervals == [1, 6, 16]
    assert repetitions == [1, 2, 3]


def test_lapse_after_streak_resets():
    state = initial_state()
    state = next_state(5, state)
    state = next_state(5, state)
    assert state.interval == 6

    state = next_state(1, state)
    assert state.repetitions == 0
    assert state.interval == 1


def test_deterministic():
    previous = SchedulingState(interval=11, repetitions=3, ease_factor=2.2)
    assert next_state(4, previous) == next_state(4, previous)


def test_halves_round_away_from_zero():
    # 5 * 2.5 == 12.5 exactly; banker's rounding would give 12.
    result = next_state(4, SchedulingState(interval=5, repetitions=2, ease_factor=2.5))
    assert result.interval == 13


@pytest.mark.parametrize("value, expected", [(0.4, 0), (0.5, 1), (2.5, 3), (15.6, 16), (16.2, 16)])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize("grade", [-1, 6, 10, 2.5, "5", None, True])
def test_invalid_grade_is_rejected(grade):
    with pytest.raises(ValidationError):
        next_state(grade, initial_state())


def test_review_ratings_map_to_grades():
    assert [int(r) for r in ReviewRating] == [1, 3, 4, 5]
    assert next_state(ReviewRating.AGAIN, initial_state()).repetitions == 0
    assert next_state(ReviewRating.HARD, initial_state()).repetitions == 1


def test_next_review_date_adds_calendar_days():
    as_of = datetime(2026, 2, 27, 23, 15)
    assert next_review_date(as_of, 1) == datetime(2026, 2, 28, 23, 15)
    assert next_review_date(as_of, 6) == as_of + timedelta(days=6)
    assert next_review_date(as_of, 0) == as_of
