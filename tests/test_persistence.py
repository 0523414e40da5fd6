import json

import pytest

from vectordb.config import DatabaseConfig, DistanceType, HNSWConfig
from vectordb.manager import Database
from vectordb.models import Vector
from vectordb.persistence import PersistenceManager


def make_database(name="db"):
    config = DatabaseConfig(
        hnsw=HNSWConfig(
            dimensions=3, m=4, ef_construction=10, ef_search=7,
            distance_type=DistanceType.COSINE,
        )
    )
    vectors = {
        "a": Vector(id="a", data=[1.0, 2.0, 3.0], metadata={"tag": "x"}),
        "b": Vector(id="b", data=[0.5, 0.0, -1.5]),
    }
    return Database(name=name, config=config, vectors=vectors)


def test_round_trip(tmp_path):
    store = PersistenceManager(tmp_path)
    original = make_database()
    store.save_database(original)

    loaded = store.load_database("db")
    assert loaded.name == "db"
    assert loaded.config == original.config
    assert loaded.vectors == original.vectors
    assert loaded.graph is None


def test_saved_files_layout(tmp_path):
    store = PersistenceManager(tmp_path)
    store.save_database(make_database())

    config_text = (tmp_path / "db" / "config.json").read_text(encoding="utf-8")
    assert config_text.endswith("\n")
    assert json.loads(config_text) == {
        "hnsw": {
            "dimensions": 3,
            "m": 4,
            "ef_construction": 10,
            "ef_search": 7,
            "distance_type": 1,
        }
    }

    vectors = json.loads((tmp_path / "db" / "vectors.json").read_text(encoding="utf-8"))
    assert set(vectors) == {"a", "b"}
    assert vectors["b"] == {"id": "b", "data": [0.5, 0.0, -1.5], "metadata": None}


def test_list_databases_only_directories_sorted(tmp_path):
    store = PersistenceManager(tmp_path)
    store.save_database(make_database("zeta"))
    store.save_database(make_database("alpha"))
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")
    assert store.list_databases() == ["alpha", "zeta"]


def test_list_databases_missing_base_path(tmp_path):
    store = PersistenceManager(tmp_path / "absent")
    with pytest.raises(FileNotFoundError):
        store.list_databases()


def test_delete_database(tmp_path):
    store = PersistenceManager(tmp_path)
    store.save_database(make_database("one"))
    store.save_database(make_database("two"))
    store.delete_database("one")
    assert store.list_databases() == ["two"]
    store.delete_database("one")
    assert not (tmp_path / "one").exists()


def test_load_missing_database(tmp_path):
    store = PersistenceManager(tmp_path)
    with pytest.raises(FileNotFoundError):
        store.load_database("ghost")


def test_load_invalid_json(tmp_path):
    store = PersistenceManager(tmp_path)
    store.save_database(make_database())
    (tmp_path / "db" / "vectors.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        store.load_database("db")


def test_save_overwrites_previous(tmp_path):
    store = PersistenceManager(tmp_path)
    database = make_database()
    store.save_database(database)
    del database.vectors["a"]
    store.save_database(database)
    assert set(store.load_database("db").vectors) == {"b"}


def test_null_vectors_load_as_empty(tmp_path):
    store = PersistenceManager(tmp_path)
    store.save_database(make_database())
    (tmp_path / "db" / "vectors.json").write_text("null\n", encoding="utf-8")
    assert store.load_database("db").vectors == {}