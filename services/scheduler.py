"""
SM-2 spaced repetition scheduling.

Grades:
0 - Complete blackout
1 - Incorrect, the correct answer was remembered on seeing it
2 - Incorrect, but the correct answer seemed easy to recall
3 - Correct with serious difficulty
4 - Correct after hesitation
5 - Perfect response

Grades below 3 count as a failed review.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import IntEnum

from core.exceptions import ValidationError

MIN_GRADE = 0
MAX_GRADE = 5
PASSING_GRADE = 3

INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


class ReviewRating(IntEnum):
    """Grades bound to the four study-mode buttons."""
    AGAIN = 1
    HARD = 3
    GOOD = 4
    EASY = 5


@dataclass(frozen=True)
class SchedulingState:
    interval: int
    repetitions: int
    ease_factor: float


def initial_state() -> SchedulingState:
    return SchedulingState(interval=0, repetitions=0, ease_factor=INITIAL_EASE_FACTOR)


def validate_grade(grade: int) -> int:
    """Reject anything that is not an integer in [0, 5]. Grades are never clamped."""
    if isinstance(grade, bool) or not isinstance(grade, int):
        raise ValidationError(f"Grade must be an integer, got {grade!r}")
    if not MIN_GRADE <= grade <= MAX_GRADE:
        raise ValidationError(f"Grade must be between {MIN_GRADE} and {MAX_GRADE}, got {grade}")
    return grade


def round_half_up(value: float) -> int:
    # Intervals are never negative, so floor(x + 0.5) rounds halves away from zero.
    return math.floor(value + 0.5)


def next_state(grade: int, previous: SchedulingState) -> SchedulingState:
    """
    Apply one SM-2 review to ``previous``.

    The interval for a third or later successful review uses the previous
    interval and previous ease factor. The ease factor update depends only on
    the grade and the previous ease factor and is floored at 1.3.
    """
    validate_grade(grade)

    if grade >= PASSING_GRADE:
        if previous.repetitions == 0:
            interval = 1
        elif previous.repetitions == 1:
            interval = 6
        else:
            interval = round_half_up(previous.interval * previous.ease_factor)
        repetitions = previous.repetitions + 1
    else:
        interval = 1
        repetitions = 0

    # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    miss = MAX_GRADE - grade
    ease_factor = previous.ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    if ease_factor < MIN_EASE_FACTOR:
        ease_factor = MIN_EASE_FACTOR

    return SchedulingState(interval=interval, repetitions=repetitions, ease_factor=ease_factor)


def next_review_date(as_of: datetime, interval: int) -> datetime:
    return as_of + timedelta(days=interval)
