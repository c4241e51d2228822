from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Pattern, Sequence, Tuple

from dateutil import parser as dateutil_parser

from .config import DEFAULT_DATE_FORMATS

logger = logging.getLogger(__name__)

SEPARATOR = "=========="
CLIPPING_LIMIT_MARKER = "You have reached the clipping limit for this item"

TITLE_AUTHOR_RE = re.compile(r"^(?P<book>.+?)\s*\((?P<author>[^()]+)\)\s*$")

# tried in order, first match wins
METADATA_RULES: Tuple[Tuple[str, Pattern[str]], ...] = (
    (
        "with-location"
        ,re.compile(
            r"^-\s*Your (?P<kind>\w+) (?:on|at) (?P<location>.+?)\s*\|\s*Added on (?P<date>.+?)\s*$"
            ,re.IGNORECASE
        )
    ),
    (
        "without-location"
        ,re.compile(r"^-\s*Your (?P<kind>\w+)\s*\|\s*Added on (?P<date>.+?)\s*$", re.IGNORECASE)
    ),
)


class ParseError(RuntimeError):
    """Raised (or recorded) when an export entry cannot be turned into a Clipping."""

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        self.index = index
        self.reason = message
        if index is not None:
            message = f"entry {index}: {message}"
        super().__init__(message)


class ClippingKind(enum.Enum):
    HIGHLIGHT = "Highlight"
    NOTE = "Note"
    BOOKMARK = "Bookmark"

    @classmethod
    def from_label(cls, label: str) -> Optional[ClippingKind]:
        for kind in cls:
            if kind.value.lower() == label.strip().lower():
                return kind
        return None


@dataclass(frozen=True)
class Clipping:
    title: str
    content: str
    location: Optional[str]
    date: datetime
    kind: ClippingKind

    @property
    def book(self) -> str:
        match = TITLE_AUTHOR_RE.match(self.title)
        return match.group("book") if match else self.title

    @property
    def author(self) -> Optional[str]:
        match = TITLE_AUTHOR_RE.match(self.title)
        return match.group("author").strip() if match else None


@dataclass
class EntryResult:
    """Outcome of parsing one entry block: a clipping, an error, or a skip reason."""

    index: int
    clipping: Optional[Clipping] = None
    error: Optional[ParseError] = None
    skipped: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.clipping is not None


@dataclass
class ParseResult:
    clippings: List[Clipping] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    entry_count: int = 0


def parse_export_date(raw_value: str, date_formats: Sequence[str] = DEFAULT_DATE_FORMATS) -> Optional[datetime]:
    """Return the datetime for a metadata date string, or None if nothing matches.

    The configured strptime formats are tried first; dateutil is the last resort
    for locale variants nobody configured.
    """

    cleaned = raw_value.strip()
    for fmt in date_formats:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
    try:
        parsed = dateutil_parser.parse(cleaned)
    except (ValueError, OverflowError):
        return None
    logger.debug("Date %r matched no configured format, salvaged as %s", cleaned, parsed)
    return parsed.replace(tzinfo=None)


def split_entries(text: str) -> List[List[str]]:
    """Split export text into non-blank entry blocks, leading blank lines removed."""

    blocks: List[List[str]] = []
    current: List[str] = []
    for line in text.lstrip("\ufeff").splitlines():
        if line.strip() == SEPARATOR:
            blocks.append(current)
            current = []
            continue
        current.append(line)
    blocks.append(current)

    entries: List[List[str]] = []
    for block in blocks:
        while block and not block[0].strip():
            block = block[1:]
        if block:
            entries.append(block)
    return entries


def _match_metadata(line: str) -> Optional[Tuple[str, Optional[str], str]]:
    for rule_name, pattern in METADATA_RULES:
        match = pattern.match(line.strip())
        if match:
            location = match.groupdict().get("location")
            logger.debug("Metadata line matched rule %s", rule_name)
            return match.group("kind"), (location.strip() or None) if location else None, match.group("date")
    return None


def _collect_content(lines: Sequence[str]) -> str:
    content = [line.rstrip() for line in lines]
    while content and not content[0]:
        content.pop(0)
    while content and not content[-1]:
        content.pop()
    return "\n".join(content)


def parse_entry(
    lines: Sequence[str]
    ,index: int
    ,date_formats: Sequence[str] = DEFAULT_DATE_FORMATS
) -> EntryResult:
    """Parse one entry block. Never raises; failures come back as EntryResult.error."""

    if len(lines) < 2:
        return EntryResult(index, error=ParseError("missing metadata line", index))

    title = lines[0].strip().lstrip("\ufeff")
    if not title:
        return EntryResult(index, error=ParseError("empty title line", index))

    metadata = _match_metadata(lines[1])
    if metadata is None:
        return EntryResult(index, error=ParseError(f"unrecognised metadata line {lines[1].strip()!r}", index))
    label, location, raw_date = metadata

    kind = ClippingKind.from_label(label)
    if kind is None:
        return EntryResult(index, error=ParseError(f"unknown clipping kind {label!r}", index))

    date = parse_export_date(raw_date, date_formats)
    if date is None:
        return EntryResult(index, error=ParseError(f"unparseable date {raw_date!r}", index))

    if kind is ClippingKind.BOOKMARK:
        return EntryResult(index, skipped=f"entry {index}: bookmark in {title}")

    content = _collect_content(lines[2:])
    if CLIPPING_LIMIT_MARKER in content:
        return EntryResult(index, skipped=f"entry {index}: clipping limit reached for {title}")
    if not content:
        return EntryResult(index, error=ParseError(f"{kind.value.lower()} has no content", index))

    return EntryResult(
        index
        ,clipping=Clipping(title=title, content=content, location=location, date=date, kind=kind)
    )


def parse_clippings(
    text: str
    ,date_formats: Sequence[str] = DEFAULT_DATE_FORMATS
    ,*
    ,strict: bool = False
) -> ParseResult:
    """Parse the whole export, keeping source order.

    Malformed entries are skipped and reported in ParseResult.warnings unless
    strict is set, in which case the first one raises. A non-empty export in
    which no entry could be used at all raises ParseError.
    """

    result = ParseResult()
    for index, lines in enumerate(split_entries(text), start=1):
        result.entry_count += 1
        entry = parse_entry(lines, index, date_formats)
        if entry.ok:
            result.clippings.append(entry.clipping)
        elif entry.skipped is not None:
            logger.debug("Skipped %s", entry.skipped)
            result.skipped.append(entry.skipped)
        elif entry.error is not None:
            if strict:
                raise entry.error
            logger.warning("Skipping malformed %s", entry.error)
            result.warnings.append(str(entry.error))

    if result.entry_count and not result.clippings and not result.skipped:
        raise ParseError(f"no valid entries found in {result.entry_count} entries ({result.warnings[0]})")

    logger.info(
        "Parsed %d clippings from %d entries (%d skipped, %d malformed)"
        ,len(result.clippings)
        ,result.entry_count
        ,len(result.skipped)
        ,len(result.warnings)
    )
    return result
