"""HTTP and WebSocket API over a database manager."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Mapping

from aiohttp import WSMsgType, web

from vectordb.config import DatabaseConfig
from vectordb.manager import Database, Manager
from vectordb.models import DatabaseError, Vector

logger = logging.getLogger(__name__)

_READ_TIMEOUT = 60.0
_INVALID_JSON = '{"error": "Invalid JSON"}'
_UNKNOWN_TYPE = '{"error": "Unknown message type"}'
_SUCCESS = '{"status": "success"}'


class _MalformedMessage(ValueError):
    """A WebSocket request whose fields have the wrong shape."""


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON value {name}")


def _decode_body(raw: bytes) -> Any:
    """Decode the first JSON value of a request body; trailing data is ignored."""
    text = raw.decode("utf-8")
    decoder = json.JSONDecoder(parse_constant=_reject_constant)
    value, _ = decoder.raw_decode(text.lstrip(" \t\r\n"))
    return value


def _get_field(data: Mapping[str, Any], key: str) -> Any:
    if key in data:
        return data[key]
    folded = key.casefold()
    for name, value in data.items():
        if isinstance(name, str) and name.casefold() == folded:
            return value
    return None


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _json_response(value: Any, status: int = 200) -> web.Response:
    return web.Response(
        text=_compact(value) + "\n", status=status, content_type="application/json"
    )


def _error_response(message: str, status: int) -> web.Response:
    return web.Response(
        text=message + "\n", status=status, content_type="text/plain", charset="utf-8"
    )


def _error_message(message: str) -> str:
    return json.dumps({"error": message})


def _database_payload(database: Database) -> dict[str, Any]:
    """Describe a database, its stored vectors and its graph as JSON-ready data."""
    with database.lock:
        vectors = {ident: vector.to_dict() for ident, vector in database.vectors.items()}
        graph = database.graph
        graph_payload = None
        if graph is not None:
            graph_payload = {
                "M": graph.m,
                "EfConstruction": graph.ef_construction,
                "EfSearch": graph.ef_search,
                "MaxLayer": graph.max_layer,
                "EntryPoint": graph.entry_point,
                "Layers": [
                    {ident: list(links) for ident, links in layer.items()}
                    for layer in graph.layers
                ],
                "Vectors": {
                    ident: vector.to_dict() for ident, vector in graph.vectors.items()
                },
                "DistanceType": int(graph.distance_type),
            }
    return {
        "Name": database.name,
        "Config": database.config.to_dict(),
        "Vectors": vectors,
        "Graph": graph_payload,
    }


def _parse_create_request(body: Any) -> tuple[str, DatabaseConfig]:
    if body is None:
        return "", DatabaseConfig()
    if not isinstance(body, Mapping):
        raise ValueError("request must be a JSON object")
    name = _get_field(body, "name")
    if name is None:
        name = ""
    elif not isinstance(name, str):
        raise ValueError("name must be a string")
    raw_config = _get_field(body, "config")
    config = DatabaseConfig() if raw_config is None else DatabaseConfig.from_dict(raw_config)
    return name, config


def _require_str(request: Mapping[str, Any], key: str) -> str:
    value = request.get(key)
    if not isinstance(value, str):
        raise _MalformedMessage(f"field '{key}' must be a string")
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_number(request: Mapping[str, Any], key: str) -> float:
    value = request.get(key)
    if not _is_number(value):
        raise _MalformedMessage(f"field '{key}' must be a number")
    return value


def _require_numbers(request: Mapping[str, Any], key: str) -> list[float]:
    value = request.get(key)
    if not isinstance(value, list) or not all(_is_number(x) for x in value):
        raise _MalformedMessage(f"field '{key}' must be an array of numbers")
    return [float(x) for x in value]


class Server:
    """Serves the database manager over HTTP and WebSocket."""

    def __init__(self, manager: Manager) -> None:
        self.manager = manager

    def create_app(self) -> web.Application:
        """Build the web application with all API routes."""
        app = web.Application()
        app.router.add_route("*", "/api/databases", self.handle_databases)
        app.router.add_route("*", "/api/databases/{name:.*}", self.handle_database)
        app.router.add_route("*", "/api/ws", self.handle_websocket)
        return app

    def start(self, host: str, port: str | int) -> None:
        """Serve on ``host:port`` until interrupted."""
        port_number = int(port)
        web.run_app(self.create_app(), host=host or None, port=port_number, print=None)

    async def handle_databases(self, request: web.Request) -> web.StreamResponse:
        """List databases (GET) or create one (POST)."""
        if request.method == "GET":
            return _json_response(self.manager.list_databases())
        if request.method == "POST":
            return await self._create_database(request)
        return _error_response("Method not allowed", 405)

    async def handle_database(self, request: web.Request) -> web.StreamResponse:
        """Show (GET), delete (DELETE) or add a vector to (POST) one database."""
        name = request.match_info.get("name", "")
        if request.method == "GET":
            try:
                database = self.manager.get_database(name)
            except DatabaseError as exc:
                return _error_response(str(exc), 404)
            return _json_response(_database_payload(database))
        if request.method == "DELETE":
            try:
                self.manager.delete_database(name)
            except DatabaseError as exc:
                return _error_response(str(exc), 500)
            return web.Response(status=204)
        if request.method == "POST":
            return await self._add_vector(request, name)
        return _error_response("Method not allowed", 405)

    async def handle_websocket(self, request: web.Request) -> web.StreamResponse:
        """Answer search and add_vector messages on a WebSocket connection."""
        ws = web.WebSocketResponse(receive_timeout=_READ_TIMEOUT)
        if not ws.can_prepare(request).ok:
            return _error_response("Failed to upgrade connection", 400)
        await ws.prepare(request)
        try:
            while True:
                try:
                    message = await ws.receive()
                except (asyncio.TimeoutError, TimeoutError):
                    break
                if message.type == WSMsgType.TEXT:
                    await ws.send_str(self._dispatch(message.data))
                elif message.type == WSMsgType.BINARY:
                    await ws.send_bytes(self._dispatch(message.data).encode("utf-8"))
                else:
                    break
        finally:
            await ws.close()
        return ws

    async def _create_database(self, request: web.Request) -> web.StreamResponse:
        try:
            name, db_config = _parse_create_request(_decode_body(await request.read()))
        except ValueError:
            return _error_response("Invalid request body", 400)
        try:
            database = self.manager.create_database(name, db_config)
        except DatabaseError as exc:
            return _error_response(str(exc), 500)
        return _json_response(_database_payload(database))

    async def _add_vector(self, request: web.Request, name: str) -> web.StreamResponse:
        try:
            body = _decode_body(await request.read())
            vector = Vector() if body is None else Vector.from_dict(body)
        except ValueError:
            return _error_response("Invalid request body", 400)
        try:
            self.manager.add_vector(name, vector)
        except DatabaseError as exc:
            return _error_response(str(exc), 500)
        return web.Response(status=201)

    def _dispatch(self, payload: str | bytes) -> str:
        try:
            request = json.loads(payload, parse_constant=_reject_constant)
        except ValueError:
            return _INVALID_JSON
        if request is None:
            request = {}
        if not isinstance(request, dict):
            return _INVALID_JSON
        kind = request.get("type")
        if kind == "search":
            return self._ws_search(request)
        if kind == "add_vector":
            return self._ws_add_vector(request)
        return _UNKNOWN_TYPE

    def _ws_search(self, request: Mapping[str, Any]) -> str:
        try:
            db_name = _require_str(request, "database")
            query = _require_numbers(request, "query")
            k = int(_require_number(request, "k"))
        except _MalformedMessage as exc:
            return _error_message(str(exc))
        try:
            results = self.manager.search(db_name, query, k)
        except (DatabaseError, ValueError) as exc:
            return _error_message(str(exc))
        return _compact([vector.to_dict() for vector in results])

    def _ws_add_vector(self, request: Mapping[str, Any]) -> str:
        try:
            db_name = _require_str(request, "database")
            data = _require_numbers(request, "data")
            ident = _require_str(request, "id")
            metadata = request.get("metadata")
            if metadata is not None and not isinstance(metadata, dict):
                raise _MalformedMessage("field 'metadata' must be an object")
        except _MalformedMessage as exc:
            return _error_message(str(exc))
        vector = Vector(id=ident, data=data, metadata=metadata)
        try:
            self.manager.add_vector(db_name, vector)
        except (DatabaseError, ValueError) as exc:
            return _error_message(str(exc))
        return _SUCCESS