#!/usr/bin/env python
"""
Entry point that delegates to kindle_to_anki.cli.
"""
from __future__ import annotations

from kindle_to_anki.cli import main


if __name__ == "__main__":
    main()
