"""Hierarchical Navigable Small World graph for approximate nearest-neighbour search."""

from __future__ import annotations

import heapq
import math
import random
import sys
import threading
from typing import Callable, Sequence

from vectordb.config import DistanceType
from vectordb.models import Vector

# Candidates up to 10% worse than the worst result are still explored.
_QUALITY_THRESHOLD = 1.1


class EmptyVectorError(ValueError):
    """Raised when a vector or query has no components."""

    def __init__(self, message: str = "vector is empty") -> None:
        super().__init__(message)


class DifferentDimensionsError(ValueError):
    """Raised when two vectors have different lengths."""

    def __init__(self, message: str = "vectors have different dimensions") -> None:
        super().__init__(message)


class InvalidParameterError(ValueError):
    """Raised for an invalid argument such as an empty id or a non-positive k."""

    def __init__(self, message: str = "invalid parameter") -> None:
        super().__init__(message)


class DuplicateVectorError(ValueError):
    """Raised when inserting a vector whose id is already in the graph."""

    def __init__(self, vector_id: str) -> None:
        super().__init__(f"vector with ID {vector_id} already exists")
        self.vector_id = vector_id


def _euclidean(a: Sequence[float], b: Sequence[float]) -> float:
    return math.sqrt(sum((x - y) * (x - y) for x, y in zip(a, b)))


def _cosine(a: Sequence[float], b: Sequence[float]) -> float:
    dot = norm_a = norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 1.0
    sqrt_a = math.sqrt(norm_a)
    sqrt_b = math.sqrt(norm_b)
    if sqrt_a == 0 or sqrt_b == 0:
        return 1.0
    similarity = max(-1.0, min(1.0, dot / (sqrt_a * sqrt_b)))
    return 1.0 - similarity


def _manhattan(a: Sequence[float], b: Sequence[float]) -> float:
    return float(sum(abs(x - y) for x, y in zip(a, b)))


def _hamming(a: Sequence[float], b: Sequence[float]) -> float:
    return float(sum(1 for x, y in zip(a, b) if x != y))


_METRICS: dict[int, Callable[[Sequence[float], Sequence[float]], float]] = {
    DistanceType.EUCLIDEAN: _euclidean,
    DistanceType.COSINE: _cosine,
    DistanceType.MANHATTAN: _manhattan,
    DistanceType.HAMMING: _hamming,
}


class HNSWGraph:
    """Multi-layer proximity graph supporting insertion and k-NN search.

    ``m`` bounds the connections per node and layer, ``ef_construction`` and
    ``ef_search`` size the candidate lists used while building and searching.
    """

    def __init__(self, m: int, ef_construction: int, distance_type: DistanceType | int) -> None:
        if m <= 0:
            m = 16
        if ef_construction <= 0:
            ef_construction = 200
        self.m = m
        self.ef_construction = ef_construction
        self.ef_search = ef_construction
        self.max_layer = 0
        self.entry_point = ""
        self.layers: list[dict[str, list[str]]] = [{}]
        self.vectors: dict[str, Vector] = {}
        self.distance_type = DistanceType(distance_type)
        self._ml = 1.0 / math.log(m) if m > 1 else 1.0
        self._lock = threading.Lock()

    def distance(self, a: Sequence[float], b: Sequence[float]) -> float:
        """Return the distance between two vectors under the graph's metric."""
        if len(a) != len(b):
            raise DifferentDimensionsError()
        metric = _METRICS.get(int(self.distance_type), _euclidean)
        return metric(a, b)

    def insert(self, vector: Vector) -> None:
        """Add a vector to the graph, linking it to its nearest neighbours."""
        if not vector.data:
            raise EmptyVectorError()
        if not vector.id:
            raise InvalidParameterError()

        with self._lock:
            if vector.id in self.vectors:
                raise DuplicateVectorError(vector.id)
            if self.entry_point:
                reference = self.vectors[self.entry_point].data
                if len(reference) != len(vector.data):
                    raise DifferentDimensionsError()

            layer = self._random_level()
            if layer > self.max_layer:
                self.max_layer = layer
                while len(self.layers) <= layer:
                    self.layers.append({})

            self.vectors[vector.id] = vector

            if not self.entry_point:
                self.entry_point = vector.id
                return

            entry = self.entry_point
            for level in range(self.max_layer, layer, -1):
                path = self._search_layer(vector.data, entry, 1, level)
                if path:
                    entry = path[0]

            for level in range(min(layer, self.max_layer), -1, -1):
                links = self.layers[level]
                nearest = self._search_layer(vector.data, entry, self.ef_construction, level)
                neighbours = self._select_neighbors(vector.data, nearest, self.m)
                links[vector.id] = list(neighbours)
                for neighbour in neighbours:
                    connections = links.setdefault(neighbour, [])
                    connections.append(vector.id)
                    if len(connections) > self.m:
                        links[neighbour] = self._select_neighbors(
                            self.vectors[neighbour].data, connections, self.m
                        )
                if nearest:
                    entry = nearest[0]

    def search(self, query: Sequence[float], k: int) -> list[Vector]:
        """Return up to ``k`` stored vectors nearest to ``query``, closest first."""
        if not query:
            raise EmptyVectorError()
        if k <= 0:
            raise InvalidParameterError()

        with self._lock:
            if not self.entry_point:
                return []
            if len(self.vectors[self.entry_point].data) != len(query):
                raise DifferentDimensionsError()

            entry = self.entry_point
            for level in range(self.max_layer, 0, -1):
                path = self._search_layer(query, entry, 1, level)
                if not path:
                    break
                entry = path[0]

            found = self._search_layer(query, entry, self.ef_search, 0)
            return [self.vectors[ident] for ident in found[:k]]

    def _random_level(self) -> int:
        if self._ml <= 0:
            return 0
        sample = random.random()
        if sample == 0:
            sample = sys.float_info.min * sys.float_info.epsilon
        return int(math.floor(-math.log(sample) * self._ml))

    def _search_layer(
        self, query: Sequence[float], entry_point: str, k: int, layer: int
    ) -> list[str]:
        """Return the ids of up to ``k`` nodes of ``layer`` nearest to ``query``."""
        if k <= 0:
            return []

        if layer == 0 and self.ef_search > k:
            ef = self.ef_search
        elif layer > 0 and self.ef_construction > k:
            ef = self.ef_construction
        else:
            ef = k

        entry_distance = self.distance(query, self.vectors[entry_point].data)
        visited = {entry_point}
        # Results form a max-heap on distance (negated), candidates a min-heap.
        results: list[tuple[float, str]] = [(-entry_distance, entry_point)]
        candidates: list[tuple[float, str]] = [(entry_distance, entry_point)]
        links = self.layers[layer]

        while candidates:
            current_distance, current = heapq.heappop(candidates)
            if len(results) >= ef and current_distance > -results[0][0] * _QUALITY_THRESHOLD:
                break
            for neighbour in links.get(current, ()):
                if neighbour in visited:
                    continue
                visited.add(neighbour)
                d = self.distance(query, self.vectors[neighbour].data)
                if len(results) < ef or d < -results[0][0]:
                    heapq.heappush(results, (-d, neighbour))
                    if len(results) > ef:
                        heapq.heappop(results)
                    heapq.heappush(candidates, (d, neighbour))

        ordered = sorted(((-neg, ident) for neg, ident in results), key=lambda item: item[0])
        return [ident for _, ident in ordered[:k]]

    def _select_neighbors(
        self, query: Sequence[float], candidates: Sequence[str], m: int
    ) -> list[str]:
        """Pick ``m`` diverse neighbours: the closest first, then the most spread out."""
        if len(candidates) <= m:
            return list(candidates)

        items = sorted(
            ((self.distance(query, self.vectors[ident].data), ident) for ident in candidates),
            key=lambda item: item[0],
        )
        remaining = [ident for _, ident in items]
        chosen = [remaining.pop(0)]

        while len(chosen) < m and remaining:
            best_index = 0
            best_spread = -1.0
            for index, ident in enumerate(remaining):
                data = self.vectors[ident].data
                spread = min(self.distance(data, self.vectors[other].data) for other in chosen)
                if spread > best_spread:
                    best_spread = spread
                    best_index = index
            chosen.append(remaining.pop(best_index))

        return chosen