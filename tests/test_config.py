from datetime import datetime
from pathlib import Path

import pytest

from kindle_to_anki.config import (
    DEFAULT_DATE_FORMATS,
    ConfigurationError,
    ImportConfig,
    load_env_file,
    parse_start_date,
)


def test_missing_env_file_gives_defaults(tmp_path):
    config = load_env_file(tmp_path / "absent.env")

    assert config == ImportConfig()
    assert config.document_path == Path("out") / "output.md"
    assert config.backup_path == Path("out") / "output-copy.md"
    assert config.records_path == Path("out") / "output.json"
    assert config.date_formats == DEFAULT_DATE_FORMATS


def test_env_file_values(tmp_path):
    env = tmp_path / ".env"
    env.write_text(
        "\n".join(
            [
                "# comment",
                f"CLIPPINGS_PATH='{tmp_path / 'My Clippings.txt'}'",
                f"OUTPUT_DIR={tmp_path / 'cards'}",
                "DOCUMENT_NAME=review.md",
                'RECORDS_NAME="anki.json"',
                "EXPORT_DATE_FORMATS=%d/%m/%Y %H:%M ; %Y-%m-%d",
            ]
        ),
        encoding="utf-8",
    )

    config = load_env_file(env)

    assert config.clippings_path == tmp_path / "My Clippings.txt"
    assert config.document_path == tmp_path / "cards" / "review.md"
    assert config.backup_path == tmp_path / "cards" / "review-copy.md"
    assert config.records_path == tmp_path / "cards" / "anki.json"
    assert config.date_formats == ("%d/%m/%Y %H:%M", "%Y-%m-%d")


def test_bad_env_values_raise(tmp_path):
    env = tmp_path / ".env"
    env.write_text("DOCUMENT_NAME=sub/dir.md\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_env_file(env)

    env.write_text("EXPORT_DATE_FORMATS=;;\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_env_file(env)


def test_overrides_win(tmp_path):
    config = ImportConfig().with_overrides(clippings_path=tmp_path / "c.txt", output_dir=tmp_path)

    assert config.clippings_path == tmp_path / "c.txt"
    assert config.records_path == tmp_path / "output.json"
    assert ImportConfig().with_overrides() == ImportConfig()


def test_parse_start_date():
    assert parse_start_date("03-14-2022") == datetime(2022, 3, 14)

    with pytest.raises(ConfigurationError, match="MM-DD-YYYY"):
        parse_start_date("2022-03-14")
