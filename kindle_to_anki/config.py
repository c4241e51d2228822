from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or malformed."""


# e.g. "Sunday, February 16, 2025 10:08:13 PM" (US) and "Sunday, 16 February 2025 22:08:13" (UK)
DEFAULT_DATE_FORMATS: Tuple[str, ...] = (
    "%A, %B %d, %Y %I:%M:%S %p",
    "%A, %d %B %Y %H:%M:%S",
    "%A, %B %d, %Y %H:%M:%S",
)

START_DATE_FORMAT = "%m-%d-%Y"

# where Calibre drops the clippings it pulls off the device
DEFAULT_CLIPPINGS_PATH = Path.home() / "Calibre Library" / "Kindle" / "My Clippings - Kindle.txt"


@dataclass
class ImportConfig:
    '''Where clippings are read from and where the document and records go'''

    clippings_path: Path = DEFAULT_CLIPPINGS_PATH
    output_dir: Path = Path("out")
    document_name: str = "output.md"
    backup_name: str = "output-copy.md"
    records_name: str = "output.json"
    date_formats: Tuple[str, ...] = field(default=DEFAULT_DATE_FORMATS)

    @property
    def document_path(self) -> Path:
        return self.output_dir / self.document_name

    @property
    def backup_path(self) -> Path:
        return self.output_dir / self.backup_name

    @property
    def records_path(self) -> Path:
        return self.output_dir / self.records_name

    def with_overrides(
        self
        ,*
        ,clippings_path: Optional[Path] = None
        ,output_dir: Optional[Path] = None
    ) -> ImportConfig:
        """Return a copy with command-line values applied on top."""

        changes: Dict[str, Path] = {}
        if clippings_path is not None:
            changes["clippings_path"] = clippings_path.expanduser()
        if output_dir is not None:
            changes["output_dir"] = output_dir.expanduser()
        return replace(self, **changes)


def parse_date_formats(raw_value: str) -> Tuple[str, ...]:
    """Split a `;`-separated list of strptime formats."""

    formats = tuple(part.strip() for part in raw_value.split(";") if part.strip())
    if not formats:
        raise ConfigurationError("EXPORT_DATE_FORMATS is set but contains no formats")
    for fmt in formats:
        if "%" not in fmt:
            raise ConfigurationError(f"Not a strptime format: {fmt!r}")
    return formats


def load_env_file(path: Path) -> ImportConfig:
    """Parse the optional .env file and return an ImportConfig.

    A missing file is not an error; every key has a default.
    """

    raw: Dict[str, str] = {}
    if path.exists():
        for line in path.read_text(encoding="utf-8").splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith("#") or "=" not in stripped:
                continue
            key, value = stripped.split("=", 1)
            raw[key.strip()] = value.strip().strip('"').strip("'")

    config = ImportConfig()
    clippings_path = raw.get("CLIPPINGS_PATH")
    output_dir = raw.get("OUTPUT_DIR")
    document_name = raw.get("DOCUMENT_NAME")
    records_name = raw.get("RECORDS_NAME")
    date_formats = raw.get("EXPORT_DATE_FORMATS")

    if document_name is not None and (not document_name or "/" in document_name):
        raise ConfigurationError(f"DOCUMENT_NAME must be a plain file name, got {document_name!r}")
    if records_name is not None and (not records_name or "/" in records_name):
        raise ConfigurationError(f"RECORDS_NAME must be a plain file name, got {records_name!r}")

    return ImportConfig(
        clippings_path=Path(clippings_path).expanduser() if clippings_path else config.clippings_path
        ,output_dir=Path(output_dir).expanduser() if output_dir else config.output_dir
        ,document_name=document_name or config.document_name
        ,backup_name=f"{Path(document_name).stem}-copy{Path(document_name).suffix}" if document_name else config.backup_name
        ,records_name=records_name or config.records_name
        ,date_formats=parse_date_formats(date_formats) if date_formats is not None else config.date_formats
    )


def parse_start_date(date_string: str) -> datetime:
    """Parse a MM-DD-YYYY cutoff into a datetime at local midnight."""

    try:
        return datetime.strptime(date_string.strip(), START_DATE_FORMAT)
    except ValueError as err:
        raise ConfigurationError(
            f"Invalid start date {date_string!r}; expected MM-DD-YYYY"
        ) from err
