# vectordb

An in-memory vector database. Each named database holds vectors of a fixed
number of dimensions, with optional metadata, and indexes them in a
Hierarchical Navigable Small World (HNSW) graph for approximate
nearest-neighbour search. Databases are written to disk as JSON at a fixed
interval and on shutdown, and are served over HTTP and WebSocket.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
vectordb
```

On start the command loads a `.env` file from the current directory into
the environment, reads `./config.json` if it exists and parses (otherwise
the built-in defaults are used), applies the command-line options, prints a
banner, registers the databases found under the data path and listens on
`localhost:8080`. Every database is saved every `--persistence-interval`
seconds; when the server stops, all databases are saved once more.

Each option may be written with one or two dashes (`-port 9000` or
`--port 9000`). Defaults shown are those of the built-in configuration;
values in `./config.json` take their place.

| Option | Meaning | Default |
| --- | --- | --- |
| `--host` | Host address | `localhost` |
| `--port` | Port number | `8080` |
| `--data-path` | Directory for saved databases | `./data` |
| `--persistence [BOOL]` | Recorded in the configuration | `true` |
| `--persistence-interval` | Seconds between saves; must be positive | `5` |
| `--dims` | Dimensions of the `default` database config | `128` |
| `--neighbors` | HNSW `M` of the `default` database config | `16` |
| `--ef-construction` | HNSW `efConstruction` | `200` |
| `--ef-search` | HNSW `efSearch` | `100` |
| `--distance-type` | 0=euclidean, 1=cosine, 2=manhattan, 3=hamming | `0` |
| `--log-level` | debug, info, warn, error, fatal | `warn` |

Integer options accept decimal, `0x`, `0o` and `0b` forms. `--log-level`
is always `warn` unless given on the command line.

### Configuration file

`./config.json` is laid over the defaults; keys are matched without regard
to case:

```json
{
  "server": {"host": "0.0.0.0", "port": "8080"},
  "storage": {"data_path": "./data", "persistence_engine": true, "persistence_interval": 5},
  "databases": {
    "default": {"hnsw": {"dimensions": 128, "m": 16, "ef_construction": 200, "ef_search": 100, "distance_type": 0}}
  },
  "log_level": "warn"
}
```

## HTTP API

- `GET /api/databases` – list database names as a JSON array.
- `POST /api/databases` – create a database and return its description. Body:
  `{"name": "docs", "config": {"hnsw": {"dimensions": 3, "m": 16, "ef_construction": 200, "ef_search": 100, "distance_type": 0}}}`
- `GET /api/databases/{name}` – describe a database: name, config, stored
  vectors and the graph (layers, entry point, parameters). 404 if missing.
- `DELETE /api/databases/{name}` – remove a database from the server (204).
- `POST /api/databases/{name}` – add a vector (201). Body:
  `{"id": "a", "data": [0.1, 0.2, 0.3], "metadata": {"tag": "x"}}`

A malformed body gives 400 `Invalid request body`; other failures (name
taken, unknown database, wrong number of dimensions) give 500 with the
error text; other methods give 405.

## WebSocket API

Connect to `/api/ws` and send JSON messages:

```json
{"type": "add_vector", "database": "docs", "id": "a", "data": [0.1, 0.2, 0.3], "metadata": {}}
{"type": "search", "database": "docs", "query": [0.1, 0.2, 0.3], "k": 5}
```

An add replies `{"status": "success"}`; a search replies with the list of
matching vectors, nearest first. Errors come back as `{"error": "..."}`,
including `Invalid JSON` and `Unknown message type`. A connection with no
message for 60 seconds is closed.

## Using it as a library

```python
from vectordb.config import DatabaseConfig, HNSWConfig, DistanceType, default_config
from vectordb.manager import Manager
from vectordb.models import Vector

manager = Manager(default_config())
manager.create_database(
    "docs",
    DatabaseConfig(hnsw=HNSWConfig(dimensions=3, m=16, ef_construction=200,
                                   distance_type=DistanceType.COSINE)),
)
manager.add_vector("docs", Vector(id="a", data=[1.0, 0.0, 0.0]))
manager.add_vector("docs", Vector(id="b", data=[0.0, 1.0, 0.0]))
print([v.id for v in manager.search("docs", [0.9, 0.1, 0.0], 1)])
```

Modules:

- `vectordb.models` – `Vector` and the errors `DatabaseError`,
  `DatabaseExistsError`, `DatabaseNotFoundError`, `VectorNotFoundError`,
  `InvalidDimensionsError`.
- `vectordb.config` – `Config`, `ServerConfig`, `StorageConfig`,
  `DatabaseConfig`, `HNSWConfig`, `DistanceType`, `default_config`,
  `load_from_file`, `load_from_env`, `parse_distance_type`.
- `vectordb.hnsw` – `HNSWGraph` with `insert`, `search` and `distance`;
  raises `EmptyVectorError`, `InvalidParameterError`,
  `DuplicateVectorError` and `DifferentDimensionsError`.
- `vectordb.manager` – `Manager` and `Database`.
- `vectordb.persistence` – `PersistenceManager`, which keeps each database
  in `<base_path>/<name>/config.json` and `vectors.json`.
- `vectordb.server` – `Server`; `create_app()` returns the aiohttp
  application, `start(host, port)` serves it.
- `vectordb.vector_ops` – `vector_add`, `vector_subtract`,
  `normalize_vector`, `dot_product`, `vector_magnitude`,
  `cosine_similarity`, `scalar_multiply`.
- `vectordb.cli` – `main`, `parse_args`, `load_databases`,
  `save_all_databases`, `persistence_worker`, `print_welcome`.

### Configuration from the environment

`vectordb.config.load_from_env` reads `GORAC_HOST`, `GORAC_PORT`,
`GORAC_DIMS`, `GORAC_M`, `GORAC_EF_CONSTRUCTION`, `GORAC_EF_SEARCH`,
`GORAC_DISTANCE_TYPE`, `GORAC_DATA_PATH`, `GORAC_PERSISTENCE_ENABLED` and
`GORAC_AUTOSAVE_INTERVAL` over the defaults; values that do not parse are
ignored. The `vectordb` command does not call it.

## What it does not do

- On start, saved databases are registered with their configuration only;
  their saved vectors are not put back into the index, so a restarted
  server begins with empty databases (and the next save overwrites the
  saved vectors).
- Deleting a database through the API does not remove its directory on
  disk, so it is registered again at the next start.
- `Manager.delete_vector` removes a vector from the store but not from the
  graph, so searches may still return it. Adding a vector whose id is
  already present replaces the stored copy but leaves the graph unchanged.
- The `--persistence` option and `persistence_engine` setting do not turn
  saving off.
- There is no authentication; any client may connect.