"""
Static data access - the shipped profession and skill tables.
"""

from __future__ import annotations

from pathlib import Path

from engine.resources import Database
from apothecary.config import DEFAULT_DATA_PATH

# category folder -> schema file
DATA_CATEGORIES = {
    "professions": "profession.schema.json",
    "skills": "skill.schema.json",
}

_default_database: Database | None = None


def load_database(data_path: Path | str | None = None) -> Database:
    """Load and validate every data category under `data_path`."""
    db = Database(data_path or DEFAULT_DATA_PATH, categories=DATA_CATEGORIES)
    db.load_all()
    return db


def default_database() -> Database:
    """The shipped data, loaded once per process."""
    global _default_database
    if _default_database is None:
        _default_database = load_database()
    return _default_database
