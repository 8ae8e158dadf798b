"""
Game Database.

Loads static game data (professions, skills, ...) from JSON files and
validates every record against its JSON schema.

Layout on disk:
    <data_path>/schemas/<name>.schema.json
    <data_path>/database/<category>/*.json
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Mapping

import jsonschema


class Database:
    """
    Central storage for static game data.

    Args:
        data_path: Root folder holding `schemas/` and `database/`
        categories: Mapping of category folder -> schema file name
    """

    def __init__(self, data_path: Path | str, categories: Mapping[str, str]):
        self._data_path = Path(data_path)
        self._categories = dict(categories)
        self._schemas: dict[str, Any] = {}

        # category -> record id -> record
        self.tables: dict[str, dict[str, Any]] = {name: {} for name in self._categories}

        self.logger = logging.getLogger(__name__)

    @property
    def data_path(self) -> Path:
        return self._data_path

    def load_all(self) -> None:
        """Load all categories from disk."""
        self._load_schemas()

        for folder, schema_name in self._categories.items():
            self.tables[folder] = self._load_category(folder, schema_name)

        self.logger.info(
            "Loaded "
            + ", ".join(f"{len(table)} {name}" for name, table in self.tables.items())
            + f" from {self._data_path}"
        )

    def _load_schemas(self) -> None:
        schema_dir = self._data_path / "schemas"
        if not schema_dir.exists():
            self.logger.warning(f"Schema directory not found: {schema_dir}")
            return

        for schema_file in sorted(schema_dir.glob("*.schema.json")):
            try:
                with open(schema_file, 'r', encoding='utf-8') as f:
                    self._schemas[schema_file.name] = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load schema {schema_file}: {e}")

    def _load_category(self, folder: str, schema_name: str) -> dict[str, Any]:
        """Load all JSON files in a category folder."""
        category_dir = self._data_path / "database" / folder
        data_store: dict[str, Any] = {}

        if not category_dir.exists():
            self.logger.warning(f"Data directory not found: {category_dir}")
            return data_store

        schema = self._schemas.get(schema_name)
        if schema is None:
            self.logger.warning(f"No schema found for {folder} ({schema_name})")
            return data_store

        for file_path in sorted(category_dir.glob("*.json")):
            try:
                with open(file_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                self.logger.error(f"Failed to load {file_path}: {e}")
                continue

            # A file holds either one record or a list of them
            records = data if isinstance(data, list) else [data]
            for record in records:
                try:
                    jsonschema.validate(instance=record, schema=schema)
                except jsonschema.ValidationError as e:
                    self.logger.error(f"Validation error in {file_path}: {e.message}")
                    continue

                if not isinstance(record, dict) or 'id' not in record:
                    self.logger.error(f"Record without id in {file_path}")
                    continue

                record_id = record['id']
                if record_id in data_store:
                    self.logger.warning(f"Duplicate {folder} id '{record_id}' in {file_path}, keeping the first")
                    continue
                data_store[record_id] = record

        return data_store

    def get(self, category: str, record_id: str) -> dict[str, Any] | None:
        return self.tables.get(category, {}).get(record_id)

    def all(self, category: str) -> list[dict[str, Any]]:
        return list(self.tables.get(category, {}).values())
