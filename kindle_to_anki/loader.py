from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from .parser import Clipping, ClippingKind
from .renderer import (
    ADDED_FORMAT,
    ADDED_LABEL,
    CARD_HEADING_PREFIX,
    CARD_TERMINATOR,
    CLOZE_OPERATOR,
    DEFINITION_MARKER,
    DOCUMENT_HEADER,
    EXTRA_OPERATOR,
    KIND_LABEL,
    LOCATION_LABEL,
)

logger = logging.getLogger(__name__)


class ValidationError(RuntimeError):
    """Raised when the edited document is malformed or a card is incomplete."""

    def __init__(self, reason: str, position: Optional[int] = None, title: Optional[str] = None) -> None:
        self.reason = reason
        self.position = position
        self.title = title
        if position is not None:
            message = f"card {position} ({title!r}): {reason}" if title else f"card {position}: {reason}"
        else:
            message = reason
        super().__init__(message)


class CardType(enum.Enum):
    BASIC = "basic"
    CLOZE = "cloze"


# "term ... extra", "term ...", or "... extra" (no term); "word..." is plain text
CLOZE_LINE_RE = re.compile(r"^(?P<term>.*?)(?:^|\s)\.\.\.(?:\s+(?P<extra>.*))?$")


def split_cloze(line: str) -> Optional[Tuple[str, str]]:
    """Return (term, extra) if line uses the cloze operator, else None."""

    match = CLOZE_LINE_RE.match(line.strip())
    if match is None:
        return None
    return match.group("term").strip(), (match.group("extra") or "").strip()


@dataclass(frozen=True)
class Card:
    clipping: Clipping
    definition: str
    position: int

    @property
    def _first_line(self) -> str:
        return self.definition.split("\n", 1)[0]

    @property
    def card_type(self) -> CardType:
        return CardType.CLOZE if split_cloze(self._first_line) is not None else CardType.BASIC

    @property
    def cloze_term(self) -> Optional[str]:
        parts = split_cloze(self._first_line)
        return parts[0] if parts is not None else None

    @property
    def front(self) -> str:
        term = self.cloze_term
        if not term:
            return self.clipping.content
        return re.sub(
            re.escape(term)
            ,lambda match: "{{c1::" + match.group(0) + "}}"
            ,self.clipping.content
            ,flags=re.IGNORECASE
        )

    @property
    def back(self) -> str:
        first_line, _, rest = self.definition.partition("\n")
        parts = split_cloze(first_line)
        if parts is not None:
            head = parts[1]
        else:
            # "term .. extra" puts the extra text on its own line
            head = "\n".join(part.strip() for part in first_line.split(EXTRA_OPERATOR, 1))
        return "\n".join(part for part in (head, rest) if part.strip()).strip()


def _strip_quote(line: str) -> str:
    if line.startswith("> "):
        return line[2:]
    return line[1:]


def _skip_blank(lines: Sequence[str], idx: int) -> int:
    while idx < len(lines) and not lines[idx].strip():
        idx += 1
    return idx


def _parse_metadata(
    lines: Sequence[str]
    ,idx: int
    ,position: int
    ,title: str
) -> Tuple[ClippingKind, Optional[str], datetime, int]:
    kind: Optional[ClippingKind] = None
    location: Optional[str] = None
    added: Optional[datetime] = None

    while idx < len(lines) and lines[idx].startswith("- "):
        line = lines[idx].rstrip()
        if line.startswith(KIND_LABEL.rstrip()):
            label = line[len(KIND_LABEL.rstrip()):].strip()
            kind = ClippingKind.from_label(label)
            if kind is None or kind is ClippingKind.BOOKMARK:
                raise ValidationError(f"unknown kind {label!r}", position, title)
        elif line.startswith(LOCATION_LABEL.rstrip()):
            location = line[len(LOCATION_LABEL.rstrip()):].strip() or None
        elif line.startswith(ADDED_LABEL.rstrip()):
            raw_added = line[len(ADDED_LABEL.rstrip()):].strip()
            try:
                added = datetime.strptime(raw_added, ADDED_FORMAT)
            except ValueError as err:
                raise ValidationError(
                    f"date {raw_added!r} does not match YYYY-MM-DD HH:MM:SS", position, title
                ) from err
        else:
            raise ValidationError(f"unexpected metadata line {line!r}", position, title)
        idx += 1

    if kind is None:
        raise ValidationError(f"missing '{KIND_LABEL.strip()}' line", position, title)
    if added is None:
        raise ValidationError(f"missing '{ADDED_LABEL.strip()}' line", position, title)
    return kind, location, added, idx


def _parse_card(lines: Sequence[str], position: int) -> Card:
    title = lines[0][len(CARD_HEADING_PREFIX):].strip()
    if not title:
        raise ValidationError("heading has no title", position)

    kind, location, added, idx = _parse_metadata(lines, _skip_blank(lines, 1), position, title)

    idx = _skip_blank(lines, idx)
    quoted: List[str] = []
    while idx < len(lines) and lines[idx].startswith(">"):
        quoted.append(_strip_quote(lines[idx]))
        idx += 1
    if not quoted:
        raise ValidationError("missing quoted highlight text", position, title)

    idx = _skip_blank(lines, idx)
    if idx >= len(lines) or lines[idx].strip() != DEFINITION_MARKER:
        found = lines[idx].strip() if idx < len(lines) else "end of card"
        raise ValidationError(f"expected '{DEFINITION_MARKER}', found {found!r}", position, title)
    idx += 1

    definition: List[str] = []
    while idx < len(lines) and lines[idx].strip() != CARD_TERMINATOR:
        definition.append(lines[idx].rstrip())
        idx += 1
    if idx >= len(lines):
        raise ValidationError(f"missing closing '{CARD_TERMINATOR}'", position, title)

    trailing = [line for line in lines[idx + 1:] if line.strip()]
    if trailing:
        raise ValidationError(f"unexpected text after '{CARD_TERMINATOR}': {trailing[0]!r}", position, title)

    clipping = Clipping(
        title=title
        ,content="\n".join(quoted)
        ,location=location
        ,date=added
        ,kind=kind
    )
    return Card(clipping=clipping, definition="\n".join(definition).strip(), position=position)


def load_document(text: str) -> List[Card]:
    """Read cards back out of the intermediate document, checking its structure.

    Empty definitions pass here; validate_cards() is the completeness check.
    """

    lines = text.splitlines()
    idx = _skip_blank(lines, 0)
    if idx >= len(lines) or lines[idx].strip() != DOCUMENT_HEADER:
        raise ValidationError(f"document does not start with '{DOCUMENT_HEADER}'")
    idx += 1

    while idx < len(lines) and not lines[idx].startswith(CARD_HEADING_PREFIX):
        line = lines[idx].strip()
        if line and not line.startswith(">"):
            raise ValidationError(f"unexpected text before the first card: {line!r}")
        idx += 1

    blocks: List[List[str]] = []
    for line in lines[idx:]:
        if line.startswith(CARD_HEADING_PREFIX):
            blocks.append([line])
        else:
            blocks[-1].append(line)

    cards = [_parse_card(block, position) for position, block in enumerate(blocks, start=1)]
    logger.info("Loaded %d cards from document", len(cards))
    return cards


def validate_cards(cards: Sequence[Card]) -> List[Card]:
    """Fail on the first card with an empty front or definition, or a bad cloze term."""

    for card in cards:
        title = card.clipping.title
        if not card.clipping.content.strip():
            raise ValidationError("highlight text is empty", card.position, title)
        if not card.definition:
            raise ValidationError("definition is empty", card.position, title)
        if card.card_type is CardType.CLOZE:
            term = card.cloze_term
            if not term:
                raise ValidationError(f"cloze definition has no term before '{CLOZE_OPERATOR}'", card.position, title)
            if term.lower() not in card.clipping.content.lower():
                raise ValidationError(f"cloze term {term!r} does not appear in the highlight", card.position, title)
            if not card.back:
                raise ValidationError("cloze card has no back text", card.position, title)
    return list(cards)


def load_cards(text: str) -> List[Card]:
    return validate_cards(load_document(text))
