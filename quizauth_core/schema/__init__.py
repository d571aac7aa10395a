"""Schema module for QuizAuth Core.

The SQL file next to this module is the source of truth for the data model.
"""

from pathlib import Path

SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def read_schema() -> str:
    """Return the schema SQL script."""
    return SCHEMA_PATH.read_text()


__all__ = ["SCHEMA_PATH", "read_schema"]
