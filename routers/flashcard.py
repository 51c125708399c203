import csv
import io
import re
from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from core.auth import get_owner_id
from core.clock import as_naive_utc, utcnow
from core.config import settings
from schemas.flashcard import (
    CardCreateIn,
    CardOut,
    CardUpdateIn,
    DeckCreateIn,
    DeckOut,
    DeckUpdateIn,
    DueCardsOut,
    ReviewIn,
    StatsOut,
)
from services.review_store import ReviewStateStore
from .deps import get_store

router = APIRouter(prefix="/flashcard", tags=["Flashcard"])


def _deck_out(deck, card_count: int = 0) -> DeckOut:
    out = DeckOut.model_validate(deck, from_attributes=True)
    out.card_count = card_count
    return out


@router.post(
    "/decks",
    response_model=DeckOut,
    status_code=201,
)
async def create_deck(
    data: DeckCreateIn,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    deck = store.create_deck(owner_id, data.title, data.description)
    return _deck_out(deck)


@router.get(
    "/decks",
    response_model=list[DeckOut],
)
async def list_decks(
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    decks = store.list_decks(owner_id)
    counts = store.count_cards_by_deck(owner_id)
    return [_deck_out(deck, counts.get(deck.id, 0)) for deck in decks]


@router.get(
    "/decks/{deck_id}",
    response_model=DeckOut,
)
async def get_deck(
    deck_id: int,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    deck = store.get_deck(owner_id, deck_id)
    counts = store.count_cards_by_deck(owner_id)
    return _deck_out(deck, counts.get(deck.id, 0))


@router.put(
    "/decks/{deck_id}",
    response_model=DeckOut,
)
async def update_deck(
    deck_id: int,
    data: DeckUpdateIn,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    deck = store.update_deck(owner_id, deck_id, title=data.title, description=data.description)
    counts = store.count_cards_by_deck(owner_id)
    return _deck_out(deck, counts.get(deck.id, 0))


@router.delete(
    "/decks/{deck_id}",
    status_code=204,
)
async def delete_deck(
    deck_id: int,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    store.delete_deck(owner_id, deck_id)
    return Response(status_code=204)


@router.post(
    "/decks/{deck_id}/cards",
    response_model=CardOut,
    status_code=201,
)
async def add_card_to_deck(
    deck_id: int,
    data: CardCreateIn,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    card = store.create_card(owner_id, deck_id, data.front, data.back)
    return CardOut.model_validate(card, from_attributes=True)


@router.get(
    "/decks/{deck_id}/cards",
    response_model=list[CardOut],
)
async def list_cards_for_deck(
    deck_id: int,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    cards = store.list_cards(owner_id, deck_id)
    return [CardOut.model_validate(card, from_attributes=True) for card in cards]


@router.put(
    "/decks/{deck_id}/cards/{card_id}",
    response_model=CardOut,
)
async def update_card_in_deck(
    deck_id: int,
    card_id: int,
    data: CardUpdateIn,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    card = store.update_card(owner_id, deck_id, card_id, front=data.front, back=data.back)
    return CardOut.model_validate(card, from_attributes=True)


@router.delete(
    "/decks/{deck_id}/cards/{card_id}",
    status_code=204,
)
async def delete_card_from_deck(
    deck_id: int,
    card_id: int,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    store.delete_card(owner_id, deck_id, card_id)
    return Response(status_code=204)


@router.get(
    "/due",
    response_model=DueCardsOut,
)
async def get_due_cards(
    limit: int = Query(settings.DUE_CARDS_LIMIT, ge=1, le=500),
    as_of: datetime | None = Query(None, description="Defaults to the current time"),
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    as_of = as_naive_utc(as_of) if as_of is not None else utcnow()
    cards = store.get_due_cards(owner_id, as_of, limit)
    return {
        "as_of": as_of,
        "cards": [CardOut.model_validate(card, from_attributes=True) for card in cards],
    }


@router.post(
    "/cards/{card_id}/review",
    response_model=CardOut,
)
async def review_card(
    card_id: int,
    data: ReviewIn,
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    card = store.apply_grade(owner_id, card_id, data.grade)
    return CardOut.model_validate(card, from_attributes=True)


@router.get("/stats", response_model=StatsOut)
async def get_flashcard_stats(
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    return {
        "due_cards": store.count_due_cards(owner_id),
        "total_cards": store.count_cards(owner_id),
    }


def _normalize_filename(title: str | None, deck_id: int) -> str:
    """Create a filesystem-friendly filename for deck exports."""
    if title:
        slug = re.sub(r"[^A-Za-z0-9]+", "-", title.lower()).strip("-")
    else:
        slug = ""
    if not slug:
        slug = f"deck-{deck_id}"
    return f"{slug}.csv"


@router.get("/export/flashcard_csv", response_class=StreamingResponse)
async def export_flashcards_to_csv(
    deck_id: int = Query(..., gt=0, description="Deck ID to export"),
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    deck = store.get_deck(owner_id, deck_id)
    cards = store.list_cards(owner_id, deck_id)

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=["front", "back"])
    writer.writeheader()
    for card in cards:
        writer.writerow({"front": card.front, "back": card.back})

    csv_data = buffer.getvalue().encode("utf-8")
    filename = _normalize_filename(deck.title, deck.id)
    response = StreamingResponse(iter([csv_data]), media_type="text/csv; charset=utf-8")
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


def _parse_import_csv(content: str) -> list[tuple[str, str]]:
    stream = io.StringIO(content)
    reader = csv.DictReader(stream)
    if reader.fieldnames is None:
        raise HTTPException(status_code=400, detail="CSV file must include a header row.")

    reader.fieldnames = [(header or "").strip().lower() for header in reader.fieldnames]

    required_columns = {"front", "back"}
    if not required_columns.issubset(reader.fieldnames):
        # Other two-column headers (Term,Definition, Question,Answer) map by position.
        if len(reader.fieldnames) == 2:
            reader.fieldnames = ["front", "back"]
        else:
            raise HTTPException(status_code=400, detail="CSV must include Front and Back columns.")

    entries: list[tuple[str, str]] = []
    for row_number, row in enumerate(reader, start=2):
        front = (row.get("front") or "").strip()
        back = (row.get("back") or "").strip()

        if not front and not back:
            continue

        try:
            validated = CardCreateIn(front=front, back=back)
        except ValidationError as exc:
            messages = "; ".join(err.get("msg", "Invalid data") for err in exc.errors())
            raise HTTPException(status_code=400, detail=f"Row {row_number}: {messages}") from exc

        entries.append((validated.front, validated.back))

    if not entries:
        raise HTTPException(status_code=400, detail="CSV must contain at least one valid row.")

    return entries


@router.post("/import", response_model=DeckOut, status_code=201)
async def import_flashcard_deck(
    title: str = Form(...),
    description: str | None = Form(None),
    file: UploadFile = File(...),
    owner_id: str = Depends(get_owner_id),
    store: ReviewStateStore = Depends(get_store),
):
    try:
        deck_data = DeckCreateIn(title=title, description=description)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors()) from exc

    filename = (file.filename or "").lower()
    if not filename.endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files can be imported.")

    raw_bytes = await file.read()
    if not raw_bytes:
        raise HTTPException(status_code=400, detail="Uploaded file is empty.")

    try:
        text = raw_bytes.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise HTTPException(status_code=400, detail="CSV must be UTF-8 encoded.") from exc

    rows = _parse_import_csv(text)
    deck = store.import_deck(owner_id, title=deck_data.title, description=deck_data.description, rows=rows)
    return _deck_out(deck, len(rows))
