"""Compile validated cards into the JSON records Anki imports.

Every record carries the same keys:

    front     card front (highlight text, with {{c1::...}} for cloze cards)
    back      card back (the definition, or the cloze extra text)
    type      "basic" or "cloze"
    title     title line as exported by the Kindle
    book      title without the author suffix
    author    author, or null
    kind      "Highlight" or "Note"
    location  page/location text, or null
    date      ISO 8601 timestamp the clipping was added
"""
from __future__ import annotations

import json
import logging
from typing import Dict, List, Optional, Sequence

from .config import ImportConfig
from .io_utils import atomic_write_text
from .loader import Card

logger = logging.getLogger(__name__)

RECORD_FIELDS = ("front", "back", "type", "title", "book", "author", "kind", "location", "date")


def card_to_record(card: Card) -> Dict[str, Optional[str]]:
    clipping = card.clipping
    return {
        "front": card.front
        ,"back": card.back
        ,"type": card.card_type.value
        ,"title": clipping.title
        ,"book": clipping.book
        ,"author": clipping.author
        ,"kind": clipping.kind.value
        ,"location": clipping.location
        ,"date": clipping.date.isoformat()
    }


def build_records(cards: Sequence[Card]) -> List[Dict[str, Optional[str]]]:
    return [card_to_record(card) for card in cards]


def serialize_records(records: List[Dict[str, Optional[str]]]) -> str:
    return json.dumps(records, indent=2, ensure_ascii=False) + "\n"


def export_cards(
    cards: Sequence[Card]
    ,config: ImportConfig
    ,*
    ,debug_logger: Optional[logging.Logger] = None
) -> List[Dict[str, Optional[str]]]:
    """Serialize cards in memory, then write them to config.records_path in one step."""

    records = build_records(cards)
    payload = serialize_records(records)
    if debug_logger:
        debug_logger.info("Records for %s:\n%s", config.records_path, payload)
    atomic_write_text(config.records_path, payload)
    logger.info("Exported %d records to %s", len(records), config.records_path)
    return records
