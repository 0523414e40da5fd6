"""Registry of named vector databases, each backed by an HNSW graph."""

from __future__ import annotations

import contextlib
import threading
from dataclasses import dataclass, field
from typing import Sequence

from vectordb.config import Config, DatabaseConfig
from vectordb.hnsw import HNSWGraph
from vectordb.models import (
    DatabaseExistsError,
    DatabaseNotFoundError,
    InvalidDimensionsError,
    Vector,
    VectorNotFoundError,
)


@dataclass(eq=False)
class Database:
    """A single named vector database."""

    name: str
    config: DatabaseConfig
    vectors: dict[str, Vector] = field(default_factory=dict)
    graph: HNSWGraph | None = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)


class Manager:
    """Creates, looks up and removes databases, and routes vector operations to them."""

    def __init__(self, config: Config | None) -> None:
        self.config = config
        self._databases: dict[str, Database] = {}
        self._lock = threading.RLock()

    def create_database(self, name: str, db_config: DatabaseConfig) -> Database:
        """Create and register a database; raise DatabaseExistsError if the name is taken."""
        with self._lock:
            if name in self._databases:
                raise DatabaseExistsError()
            hnsw = db_config.hnsw
            database = Database(
                name=name,
                config=db_config,
                graph=HNSWGraph(hnsw.m, hnsw.ef_construction, hnsw.distance_type),
            )
            self._databases[name] = database
            return database

    def get_database(self, name: str) -> Database:
        """Return the database called ``name``."""
        with self._lock:
            try:
                return self._databases[name]
            except KeyError:
                raise DatabaseNotFoundError() from None

    def delete_database(self, name: str) -> None:
        """Remove the database called ``name``."""
        with self._lock:
            if name not in self._databases:
                raise DatabaseNotFoundError()
            del self._databases[name]

    def list_databases(self) -> list[str]:
        """Return the names of all databases."""
        with self._lock:
            return list(self._databases)

    def add_vector(self, db_name: str, vector: Vector) -> None:
        """Store a vector in a database and index it in the database's graph."""
        database = self.get_database(db_name)
        with database.lock:
            if len(vector.data) != database.config.hnsw.dimensions:
                raise InvalidDimensionsError()
            database.vectors[vector.id] = vector
            if database.graph is not None:
                # The stored copy is authoritative; an indexing failure (such as a
                # repeated id) leaves the graph as it was.
                with contextlib.suppress(ValueError):
                    database.graph.insert(vector)

    def get_vector(self, db_name: str, vector_id: str) -> Vector:
        """Return a stored vector by id."""
        database = self.get_database(db_name)
        with database.lock:
            try:
                return database.vectors[vector_id]
            except KeyError:
                raise VectorNotFoundError() from None

    def delete_vector(self, db_name: str, vector_id: str) -> None:
        """Remove a stored vector; the graph index is left untouched."""
        database = self.get_database(db_name)
        with database.lock:
            if vector_id not in database.vectors:
                raise VectorNotFoundError()
            del database.vectors[vector_id]

    def search(self, db_name: str, query: Sequence[float], k: int) -> list[Vector]:
        """Return up to ``k`` vectors of a database nearest to ``query``."""
        database = self.get_database(db_name)
        if len(query) != database.config.hnsw.dimensions:
            raise InvalidDimensionsError()
        with database.lock:
            if database.graph is None:
                return []
            return database.graph.search(query, k)