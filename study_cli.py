"""
Terminal study mode.

    python study_cli.py <owner-id> [--limit N]

Shows each due card's front, waits for Enter, then shows the back and asks
for a rating: 1 Again, 2 Hard, 3 Good, 4 Easy, q to stop.
"""

import argparse
import logging

from core.config import settings
from core.database import SessionLocal
from core.exceptions import StorageFailure
from core.log_config import configure_logging
from services.review_store import configured_store
from services.scheduler import ReviewRating
from services.study_session import StudySession

logger = logging.getLogger(__name__)

KEY_RATINGS = {
    "1": ReviewRating.AGAIN,
    "2": ReviewRating.HARD,
    "3": ReviewRating.GOOD,
    "4": ReviewRating.EASY,
}


def run(session: StudySession, prompt=input, out=print) -> int:
    while not session.is_complete:
        card = session.current_card
        out(f"\n[{session.position + 1}/{len(session.cards)}] {card.front}")
        if prompt("Enter to flip, q to quit: ").strip().lower() == "q":
            break
        out(f"    {card.back}")

        answer = prompt("1 again / 2 hard / 3 good / 4 easy / q: ").strip().lower()
        while answer not in KEY_RATINGS and answer != "q":
            answer = prompt("Please press 1, 2, 3, 4 or q: ").strip().lower()
        if answer == "q":
            break

        rating = KEY_RATINGS[answer]
        try:
            updated = session.grade(card.id, int(rating))
        except StorageFailure:
            out("Could not save this review, the card stays in the queue.")
            continue
        out(f">>> {rating.name.lower()}: next review in {updated.interval} day(s)")

    out(f"\nReviewed {session.reviewed_count} card(s).")
    return session.reviewed_count


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Review due flashcards in the terminal.")
    parser.add_argument("owner_id")
    parser.add_argument("--limit", type=int, default=None)
    args = parser.parse_args(argv)

    configure_logging("WARNING")
    db = SessionLocal() if settings.STORE_BACKEND != "memory" else None
    try:
        store = configured_store(db)
        session = StudySession.start(store, args.owner_id, limit=args.limit)
        if session.is_complete:
            print("Nothing due. Come back later.")
            return
        run(session)
    finally:
        if db is not None:
            db.close()


if __name__ == "__main__":
    main()
