"""Saving databases to and loading them from a directory tree of JSON files."""

from __future__ import annotations

import json
import os
import shutil
import threading
from pathlib import Path

from vectordb.config import DatabaseConfig
from vectordb.manager import Database
from vectordb.models import Vector

_CONFIG_FILE = "config.json"
_VECTORS_FILE = "vectors.json"


class PersistenceManager:
    """Stores each database in its own directory under ``base_path``."""

    def __init__(self, base_path: str | os.PathLike[str]) -> None:
        self.base_path = Path(base_path)
        self._lock = threading.Lock()

    def save_database(self, database: Database) -> None:
        """Write a database's configuration and vectors to disk."""
        with self._lock:
            db_path = self.base_path / database.name
            db_path.mkdir(parents=True, exist_ok=True)

            with open(db_path / _CONFIG_FILE, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(database.config.to_dict()) + "\n")

            with database.lock:
                payload = {
                    ident: vector.to_dict()
                    for ident, vector in sorted(database.vectors.items())
                }
            with open(db_path / _VECTORS_FILE, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(payload) + "\n")

    def load_database(self, name: str) -> Database:
        """Read a database saved under ``name``; the result has no graph."""
        with self._lock:
            db_path = self.base_path / name

            with open(db_path / _CONFIG_FILE, encoding="utf-8") as handle:
                raw_config = json.load(handle)
            config = DatabaseConfig() if raw_config is None else DatabaseConfig.from_dict(raw_config)

            with open(db_path / _VECTORS_FILE, encoding="utf-8") as handle:
                raw_vectors = json.load(handle)
            if raw_vectors is None:
                raw_vectors = {}
            if not isinstance(raw_vectors, dict):
                raise ValueError("vectors file must hold a JSON object")
            vectors = {
                ident: Vector() if entry is None else Vector.from_dict(entry)
                for ident, entry in raw_vectors.items()
            }

            return Database(name=name, config=config, vectors=vectors)

    def delete_database(self, name: str) -> None:
        """Remove a saved database; a missing one is not an error."""
        with self._lock:
            shutil.rmtree(self.base_path / name, ignore_errors=False) if (
                self.base_path / name
            ).exists() else None

    def list_databases(self) -> list[str]:
        """Return the names of saved databases in sorted order."""
        with self._lock:
            with os.scandir(self.base_path) as entries:
                return sorted(entry.name for entry in entries if entry.is_dir())