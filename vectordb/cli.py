"""Command-line entry point: configuration, persistence and the API server."""

from __future__ import annotations

import argparse
import logging
import threading
from typing import Sequence

from dotenv import load_dotenv

from vectordb.config import Config, DatabaseConfig, DistanceType, default_config, load_from_file
from vectordb.manager import Manager
from vectordb.models import DatabaseError
from vectordb.persistence import PersistenceManager
from vectordb.server import Server

logger = logging.getLogger("vectordb")

CONFIG_PATH = "./config.json"

_WELCOME = (
    " .d8888b.   .d88888b.  8888888b.         d8888  .d8888b.  ",
    "d88P  'Y88b d88P  'Y88b 888   Y88b      d88888 d88P  Y88b ",
    "888    888 888     888 888    888      d88P888 888    888 ",
    "888        888     888 888   d88P     d88P 888 888        ",
    "888  88888 888     888 8888888P'     d88P  888 888        ",
    "888    888 888     888 888 T88b     d88P   888 888    888 ",
    "Y88b  d88P Y88b. .d88P 888  T88b   d8888888888 Y88b  d88P ",
    " 'Y8888P88  'Y88888P'  888   T88b d88P     888  'Y8888P'  ",
)

_LOG_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def _flag_bool(text: str) -> bool:
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value {text!r}")


def _flag_int(text: str) -> int:
    try:
        return int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value {text!r}") from None


def _add_flag(parser: argparse.ArgumentParser, name: str, dest: str, **kwargs) -> None:
    parser.add_argument(f"-{name}", f"--{name}", dest=dest, **kwargs)


def parse_args(argv: Sequence[str] | None = None) -> Config:
    """Load ./config.json (or the defaults) and apply command-line overrides."""
    try:
        cfg = load_from_file(CONFIG_PATH)
    except (OSError, ValueError):
        cfg = default_config()

    default_db = cfg.databases.get("default") or DatabaseConfig()
    hnsw = default_db.hnsw

    parser = argparse.ArgumentParser(prog="vectordb", allow_abbrev=False)
    _add_flag(parser, "host", "host", default=cfg.server.host, help="Host address")
    _add_flag(parser, "port", "port", default=cfg.server.port, help="Port number")
    _add_flag(
        parser, "data-path", "data_path",
        default=cfg.storage.data_path, help="Path to store data files",
    )
    _add_flag(
        parser, "persistence", "persistence",
        nargs="?", const=True, type=_flag_bool,
        default=cfg.storage.persistence_engine, help="Enable persistence engine",
    )
    _add_flag(
        parser, "persistence-interval", "persistence_interval",
        type=_flag_int, default=cfg.storage.persistence_interval,
        help="Persistence interval in seconds",
    )
    _add_flag(parser, "dims", "dims", type=_flag_int, default=hnsw.dimensions,
              help="Number of dimensions")
    _add_flag(parser, "neighbors", "neighbors", type=_flag_int, default=hnsw.m,
              help="Number of neighbors for HNSW")
    _add_flag(parser, "ef-construction", "ef_construction", type=_flag_int,
              default=hnsw.ef_construction, help="Parameter efConstruction for HNSW")
    _add_flag(parser, "ef-search", "ef_search", type=_flag_int,
              default=hnsw.ef_search, help="Parameter efSearch for HNSW")
    _add_flag(
        parser, "distance-type", "distance_type",
        type=_flag_int, default=int(hnsw.distance_type),
        help="Distance function type (0=euclidean, 1=cosine, 2=manhattan, 3=hamming)",
    )
    _add_flag(parser, "log-level", "log_level", default="warn",
              help="Log level (debug, info, warn, error, fatal)")

    args = parser.parse_args(argv)

    cfg.server.host = args.host
    cfg.server.port = args.port
    cfg.storage.data_path = args.data_path
    cfg.storage.persistence_engine = args.persistence
    cfg.storage.persistence_interval = args.persistence_interval
    hnsw.dimensions = args.dims
    hnsw.m = args.neighbors
    hnsw.ef_construction = args.ef_construction
    hnsw.ef_search = args.ef_search
    hnsw.distance_type = DistanceType(args.distance_type)
    cfg.log_level = args.log_level
    cfg.databases["default"] = default_db
    return cfg


def load_databases(manager: Manager, persistence: PersistenceManager) -> list[str]:
    """Register every saved database with the manager; return the names registered.

    Listing failures propagate; a database that cannot be read or registered is skipped.
    """
    loaded = []
    for name in persistence.list_databases():
        try:
            stored = persistence.load_database(name)
        except (OSError, ValueError) as exc:
            logger.error("Failed to load database %s: %s", name, exc)
            continue
        try:
            manager.create_database(name, stored.config)
        except DatabaseError as exc:
            logger.error("Failed to create database %s: %s", name, exc)
            continue
        loaded.append(name)
    return loaded


def save_all_databases(manager: Manager, persistence: PersistenceManager) -> list[str]:
    """Save every database of the manager; return the names saved."""
    saved = []
    for name in manager.list_databases():
        try:
            database = manager.get_database(name)
        except DatabaseError as exc:
            logger.error("Failed to get database %s: %s", name, exc)
            continue
        try:
            persistence.save_database(database)
        except (OSError, ValueError, TypeError) as exc:
            logger.error("Failed to save database %s: %s", name, exc)
            continue
        saved.append(name)
    return saved


def persistence_worker(
    manager: Manager,
    persistence: PersistenceManager,
    interval: float,
    stop_event: threading.Event,
) -> None:
    """Save all databases every ``interval`` seconds until ``stop_event`` is set."""
    if interval <= 0:
        raise ValueError("persistence interval must be positive")
    while not stop_event.wait(interval):
        save_all_databases(manager, persistence)


def print_welcome() -> None:
    """Print the start-up banner."""
    for line in _WELCOME:
        print(line)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the server until interrupted, then save all databases."""
    load_dotenv(".env")
    cfg = parse_args(argv)

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(_LOG_LEVELS.get(cfg.log_level.lower(), logging.WARNING))

    print_welcome()

    manager = Manager(cfg)
    persistence = PersistenceManager(cfg.storage.data_path)

    try:
        load_databases(manager, persistence)
    except OSError as exc:
        logger.critical("Failed to load databases: %s", exc)
        return 1

    interval = cfg.storage.persistence_interval
    if interval <= 0:
        logger.critical("Invalid persistence interval: %s", interval)
        return 1

    stop = threading.Event()
    worker = threading.Thread(
        target=persistence_worker,
        args=(manager, persistence, interval, stop),
        name="persistence",
        daemon=True,
    )
    worker.start()

    logger.info("Starting API server on %s:%s", cfg.server.host, cfg.server.port)
    try:
        Server(manager).start(cfg.server.host, cfg.server.port)
    except (OSError, ValueError) as exc:
        logger.critical("Failed to start API server: %s", exc)
        return 1
    finally:
        stop.set()

    logger.info("Shutting down...")
    save_all_databases(manager, persistence)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())