import logging

import pytest

from kindle_to_anki import cli


SAMPLE_EXPORT = """\
The Pragmatic Programmer (Andrew Hunt)
- Your Highlight on page 12 | Location 170-172 | Added on Thursday, March 10, 2022 9:15:02 AM

Care about your craft.
==========
The Pragmatic Programmer (Andrew Hunt)
- Your Note on Location 172 | Added on Sunday, March 20, 2022 8:01:45 PM

craft
==========
Dune (Frank Herbert)
- Your Bookmark on Location 2473 | Added on Monday, March 21, 2022 12:08:11 AM


==========
"""


def make_entry(title, metadata, content):
    return f"{title}\n{metadata}\n\n{content}\n==========\n"


@pytest.fixture
def sample_export():
    return SAMPLE_EXPORT


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path, monkeypatch):
    """Keep import.log / import.debug.log out of the repository during tests."""

    monkeypatch.setattr(cli, "LOG_PATH", tmp_path / "import.log")
    monkeypatch.setattr(cli, "DEBUG_LOG_PATH", tmp_path / "import.debug.log")
    yield
    for name in (cli.LOGGER_NAME, f"{cli.LOGGER_NAME}.debug"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
