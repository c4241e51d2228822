"""Render clippings into the Markdown document the user edits before --validate.

The layout is read back by loader.py, so the two modules share the markers
defined here.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .config import ImportConfig
from .io_utils import atomic_write_text, backup_file
from .parser import Clipping

logger = logging.getLogger(__name__)

DOCUMENT_HEADER = "# Kindle Clippings"
CARD_HEADING_PREFIX = "## "
DEFINITION_MARKER = "### Definition"
CARD_TERMINATOR = "---"
KIND_LABEL = "- Kind: "
LOCATION_LABEL = "- Location: "
ADDED_LABEL = "- Added: "
ADDED_FORMAT = "%Y-%m-%d %H:%M:%S"
CLOZE_OPERATOR = "..."
EXTRA_OPERATOR = " .. "

INSTRUCTIONS = (
    "> Fill in the Definition section of every card, then run with --validate.",
    f"> Start a definition with `term {CLOZE_OPERATOR} extra` to make a cloze card instead.",
    f"> `term{EXTRA_OPERATOR}extra` puts the extra text on its own line of the back.",
    "> This file is overwritten on every run without --validate.",
)


def quote_content(content: str) -> List[str]:
    return [f"> {line}" if line else ">" for line in content.split("\n")]


def render_card(clipping: Clipping, definition: str = "") -> List[str]:
    lines = [f"{CARD_HEADING_PREFIX}{clipping.title}", ""]
    lines.append(f"{KIND_LABEL}{clipping.kind.value}")
    if clipping.location:
        lines.append(f"{LOCATION_LABEL}{clipping.location}")
    lines.append(f"{ADDED_LABEL}{clipping.date.strftime(ADDED_FORMAT)}")
    lines.append("")
    lines.extend(quote_content(clipping.content))
    lines.append("")
    lines.append(DEFINITION_MARKER)
    lines.append("")
    lines.extend(definition.split("\n") if definition else [""])
    lines.append(CARD_TERMINATOR)
    return lines


def render_document(clippings: Sequence[Clipping], definitions: Optional[Sequence[str]] = None) -> str:
    """Return the whole intermediate document. Same clippings, same bytes.

    definitions, when given, runs parallel to clippings and pre-fills each
    card's Definition section.
    """

    if definitions is not None and len(definitions) != len(clippings):
        raise ValueError("definitions must match clippings one to one")

    lines = [DOCUMENT_HEADER, ""]
    lines.extend(INSTRUCTIONS)
    for position, clipping in enumerate(clippings):
        lines.append("")
        lines.extend(render_card(clipping, definitions[position] if definitions is not None else ""))
    return "\n".join(lines) + "\n"


def write_document(text: str, config: ImportConfig) -> bool:
    """Overwrite config.document_path with text.

    Edits in the existing document are not merged; it is copied to
    config.backup_path first. Returns whether a backup was made.
    """

    backed_up = backup_file(config.document_path, config.backup_path)
    atomic_write_text(config.document_path, text)
    logger.info("Wrote intermediate document %s", config.document_path)
    return backed_up
