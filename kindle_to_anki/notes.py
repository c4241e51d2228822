"""Pair Kindle notes with the highlight they were typed on.

On the device a note is saved as its own entry straight after the highlight it
belongs to. Each line of such a note is a term to learn from that highlight:

    ubiquitous                  basic card, the term (lower-cased) is the definition
    ubiquitous .. everywhere    basic card, extra text after the ` .. `
    ubiquitous...everywhere     cloze card on the highlight, extra text on the back

Every term becomes its own card on the highlight, with the Definition section
already filled in.
"""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from .parser import Clipping, ClippingKind
from .renderer import CLOZE_OPERATOR, EXTRA_OPERATOR

logger = logging.getLogger(__name__)


def note_line_to_definition(line: str) -> str:
    """Turn one typed note line into the definition text the loader understands."""

    stripped = line.strip()
    if CLOZE_OPERATOR in stripped:
        term, _, extra = stripped.partition(CLOZE_OPERATOR)
        return f"{term.strip()} {CLOZE_OPERATOR} {extra.strip()}".rstrip()
    if EXTRA_OPERATOR in stripped:
        return stripped
    return stripped.lower()


def attach_notes(clippings: Sequence[Clipping]) -> Tuple[List[Clipping], List[str]]:
    """Fold notes into the highlight right before them.

    Returns the clippings to render and a parallel list of pre-filled
    definitions. A highlight followed by a note from the same title is
    repeated once per non-blank note line; any other clipping is kept as is
    with an empty definition.
    """

    cards: List[Clipping] = []
    definitions: List[str] = []
    idx = 0
    while idx < len(clippings):
        clipping = clippings[idx]
        following = clippings[idx + 1] if idx + 1 < len(clippings) else None
        if (
            clipping.kind is ClippingKind.HIGHLIGHT
            and following is not None
            and following.kind is ClippingKind.NOTE
            and following.title == clipping.title
        ):
            terms = [note_line_to_definition(line) for line in following.content.split("\n") if line.strip()]
            logger.debug("Attached %d terms from note to highlight in %s", len(terms), clipping.title)
            for term in terms:
                cards.append(clipping)
                definitions.append(term)
            idx += 2
            continue
        cards.append(clipping)
        definitions.append("")
        idx += 1
    return cards, definitions
