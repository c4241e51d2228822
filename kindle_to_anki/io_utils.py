from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def read_text(path: Path) -> str:
    """Read a UTF-8 file, dropping a leading byte-order mark.

    Undecodable bytes are reported as an OSError naming the file.
    """

    try:
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as err:
        raise OSError(f"{path} is not valid UTF-8 text ({err.reason} at byte {err.start})") from err


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to path through a sibling temp file and os.replace.

    Either the whole new content lands at path or the old file is left alone.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path: Optional[str] = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w"
            ,encoding="utf-8"
            ,newline="\n"
            ,dir=path.parent
            ,prefix=f".{path.name}."
            ,suffix=".tmp"
            ,delete=False
        ) as tmp:
            temp_path = tmp.name
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(temp_path, path)
        temp_path = None
        logger.debug("Wrote %d characters to %s", len(text), path)
    finally:
        if temp_path is not None and os.path.exists(temp_path):
            os.remove(temp_path)


def backup_file(path: Path, backup_path: Path) -> bool:
    """Copy path to backup_path if it exists. Returns whether a copy was made."""

    if not path.exists():
        return False
    backup_path.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(path, backup_path)
    logger.info("Backed up %s to %s", path, backup_path)
    return True
