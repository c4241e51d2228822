"""
Utility package for turning Kindle clippings into Anki flashcards.

A run without --validate reads the clippings export and writes an editable
Markdown document with one card per highlight, or one per term typed in the
note right after it. After the definitions are filled in, a --validate run
checks that document and compiles it into JSON records ready for import.
"""
__all__ = [
    "config",
    "io_utils",
    "parser",
    "filters",
    "notes",
    "renderer",
    "loader",
    "exporter",
]
