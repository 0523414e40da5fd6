"""Application configuration: server, storage and per-database HNSW settings."""

from __future__ import annotations

import json
import os
import re
from dataclasses import asdict, dataclass, field
from enum import IntEnum
from typing import Any, Mapping


class DistanceType(IntEnum):
    """Distance function used by a database's graph."""

    EUCLIDEAN = 0
    COSINE = 1
    MANHATTAN = 2
    HAMMING = 3

    @classmethod
    def _missing_(cls, value: object) -> "DistanceType | None":
        # Out-of-range codes are kept (they behave as Euclidean) and print as "unknown".
        if isinstance(value, int) and not isinstance(value, bool):
            member = int.__new__(cls, value)
            member._name_ = "UNKNOWN"
            member._value_ = value
            return member
        return None

    def __str__(self) -> str:
        return _DISTANCE_NAMES.get(int(self), "unknown")


_DISTANCE_NAMES = {
    0: "euclidean",
    1: "cosine",
    2: "manhattan",
    3: "hamming",
}


def parse_distance_type(s: str) -> DistanceType:
    """Convert a name to a DistanceType; unknown names give Euclidean."""
    for code, name in _DISTANCE_NAMES.items():
        if name == s:
            return DistanceType(code)
    return DistanceType.EUCLIDEAN


def _field(data: Mapping[str, Any], key: str) -> Any:
    """Return the value for ``key``, matching case-insensitively; None if absent."""
    if key in data:
        return data[key]
    folded = key.casefold()
    for name, value in data.items():
        if isinstance(name, str) and name.casefold() == folded:
            return value
    return None


def _as_object(value: Any, key: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{key}: expected an object, got {value!r}")
    return value


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise ValueError(f"{key}: expected an integer, got {value!r}")
    return int(value)


def _as_str(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{key}: expected a string, got {value!r}")
    return value


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{key}: expected a boolean, got {value!r}")
    return value


@dataclass
class ServerConfig:
    """Address the API server listens on."""

    host: str = ""
    port: str = ""

    def _apply(self, data: Mapping[str, Any]) -> None:
        for key in ("host", "port"):
            value = _field(data, key)
            if value is not None:
                setattr(self, key, _as_str(value, key))


@dataclass
class HNSWConfig:
    """Parameters of the HNSW graph of one database."""

    dimensions: int = 0
    m: int = 0
    ef_construction: int = 0
    ef_search: int = 0
    distance_type: DistanceType = DistanceType.EUCLIDEAN

    def _apply(self, data: Mapping[str, Any]) -> None:
        for key in ("dimensions", "m", "ef_construction", "ef_search"):
            value = _field(data, key)
            if value is not None:
                setattr(self, key, _as_int(value, key))
        value = _field(data, "distance_type")
        if value is not None:
            self.distance_type = DistanceType(_as_int(value, "distance_type"))


@dataclass
class StorageConfig:
    """Where and how often databases are persisted."""

    data_path: str = ""
    persistence_engine: bool = False
    persistence_interval: int = 0

    def _apply(self, data: Mapping[str, Any]) -> None:
        value = _field(data, "data_path")
        if value is not None:
            self.data_path = _as_str(value, "data_path")
        value = _field(data, "persistence_engine")
        if value is not None:
            self.persistence_engine = _as_bool(value, "persistence_engine")
        value = _field(data, "persistence_interval")
        if value is not None:
            self.persistence_interval = _as_int(value, "persistence_interval")


@dataclass
class DatabaseConfig:
    """Configuration of a single vector database."""

    hnsw: HNSWConfig = field(default_factory=HNSWConfig)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation."""
        hnsw = asdict(self.hnsw)
        hnsw["distance_type"] = int(self.hnsw.distance_type)
        return {"hnsw": hnsw}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DatabaseConfig":
        """Build a configuration from a decoded JSON object."""
        config = cls()
        config._apply(_as_object(data, "database config"))
        return config

    def _apply(self, data: Mapping[str, Any]) -> None:
        value = _field(data, "hnsw")
        if value is not None:
            self.hnsw._apply(_as_object(value, "hnsw"))


@dataclass
class Config:
    """Configuration of the whole application."""

    server: ServerConfig = field(default_factory=ServerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    databases: dict[str, DatabaseConfig] = field(default_factory=dict)
    log_level: str = ""
    default_database: DatabaseConfig = field(default_factory=DatabaseConfig)

    def validate(self) -> None:
        """Raise ValueError if the default database settings are unusable."""
        hnsw = self.default_database.hnsw
        if hnsw.m <= 0:
            raise ValueError(f"invalid M value: {hnsw.m}")
        if hnsw.dimensions <= 0:
            raise ValueError(f"invalid dimensions: {hnsw.dimensions}")

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready representation."""
        return {
            "server": asdict(self.server),
            "storage": asdict(self.storage),
            "databases": {name: db.to_dict() for name, db in self.databases.items()},
            "log_level": self.log_level,
            "DefaultDatabase": self.default_database.to_dict(),
        }

    def _apply(self, data: Mapping[str, Any]) -> None:
        value = _field(data, "server")
        if value is not None:
            self.server._apply(_as_object(value, "server"))
        value = _field(data, "storage")
        if value is not None:
            self.storage._apply(_as_object(value, "storage"))
        if "databases" in data or _field(data, "databases") is not None:
            value = _field(data, "databases")
            if value is None:
                self.databases = {}
            else:
                for name, entry in _as_object(value, "databases").items():
                    self.databases[name] = (
                        DatabaseConfig() if entry is None else DatabaseConfig.from_dict(entry)
                    )
        value = _field(data, "log_level")
        if value is not None:
            self.log_level = _as_str(value, "log_level")
        value = _field(data, "DefaultDatabase")
        if value is not None:
            self.default_database._apply(_as_object(value, "DefaultDatabase"))


def default_config() -> Config:
    """Return the built-in default configuration."""
    return Config(
        server=ServerConfig(host="localhost", port="8080"),
        storage=StorageConfig(
            data_path="./data",
            persistence_engine=True,
            persistence_interval=5,
        ),
        databases={
            "default": DatabaseConfig(
                hnsw=HNSWConfig(
                    dimensions=128,
                    m=16,
                    ef_construction=200,
                    ef_search=100,
                    distance_type=DistanceType.EUCLIDEAN,
                )
            )
        },
        log_level="warn",
    )


def load_from_file(path: str | os.PathLike[str]) -> Config:
    """Load a JSON configuration file on top of the defaults."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    config = default_config()
    if data is not None:
        config._apply(_as_object(data, "config"))
    return config


_INT_PATTERN = re.compile(r"[+-]?[0-9]+")
_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _parse_int(text: str) -> int | None:
    return int(text) if _INT_PATTERN.fullmatch(text) else None


def _parse_bool(text: str) -> bool | None:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    return None


def load_from_env(environ: Mapping[str, str] | None = None) -> Config:
    """Build a configuration from GORAC_* environment variables over the defaults.

    Values that cannot be parsed are ignored.
    """
    env = os.environ if environ is None else environ
    config = default_config()

    if host := env.get("GORAC_HOST", ""):
        config.server.host = host
    if port := env.get("GORAC_PORT", ""):
        config.server.port = port

    hnsw = config.databases["default"].hnsw
    for var, attr in (
        ("GORAC_DIMS", "dimensions"),
        ("GORAC_M", "m"),
        ("GORAC_EF_CONSTRUCTION", "ef_construction"),
        ("GORAC_EF_SEARCH", "ef_search"),
    ):
        text = env.get(var, "")
        if text and (number := _parse_int(text)) is not None:
            setattr(hnsw, attr, number)

    text = env.get("GORAC_DISTANCE_TYPE", "")
    if text and (number := _parse_int(text)) is not None:
        hnsw.distance_type = DistanceType(number)

    if data_path := env.get("GORAC_DATA_PATH", ""):
        config.storage.data_path = data_path

    text = env.get("GORAC_PERSISTENCE_ENABLED", "")
    if text and (flag := _parse_bool(text)) is not None:
        config.storage.persistence_engine = flag

    text = env.get("GORAC_AUTOSAVE_INTERVAL", "")
    if text and (number := _parse_int(text)) is not None:
        config.storage.persistence_interval = number

    return config