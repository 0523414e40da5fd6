import random
import threading

import pytest

from vectordb.config import DistanceType
from vectordb.hnsw import (
    DifferentDimensionsError,
    DuplicateVectorError,
    EmptyVectorError,
    HNSWGraph,
    InvalidParameterError,
)
from vectordb.models import Vector


def _random_vectors(rng, count, dimensions, scale=1.0):
    return [
        Vector(id=str(i), data=[rng.random() * scale for _ in range(dimensions)])
        for i in range(count)
    ]


def _build(vectors, m=8, ef=100, metric=DistanceType.EUCLIDEAN):
    graph = HNSWGraph(m, ef, metric)
    for vector in vectors:
        graph.insert(vector)
    return graph


def test_insert_and_search_returns_k_sorted():
    rng = random.Random(1)
    dims = 64
    graph = _build(_random_vectors(rng, 100, dims))
    query = [rng.random() for _ in range(dims)]
    results = graph.search(query, 5)
    assert len(results) == 5
    distances = [graph.distance(query, r.data) for r in results]
    assert distances == sorted(distances)


def test_concurrent_operations():
    rng = random.Random(2)
    dims = 64
    vectors = _random_vectors(rng, 100, dims)
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    errors = []

    def insert_range(start, end):
        try:
            for vector in vectors[start:end]:
                graph.insert(vector)
        except Exception as exc:  # pragma: no cover - reported below
            errors.append(exc)

    threads = [threading.Thread(target=insert_range, args=(i * 50, (i + 1) * 50)) for i in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert errors == []
    assert len(graph.vectors) == 100

    query = [rng.random() for _ in range(dims)]
    counts = []

    def run_search():
        counts.append(len(graph.search(query, 5)))

    threads = [threading.Thread(target=run_search) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert counts == [5, 5]


@pytest.mark.parametrize("metric", list(DistanceType))
def test_different_distance_metrics(metric):
    rng = random.Random(3)
    dims = 64
    graph = _build(_random_vectors(rng, 50, dims), metric=metric)
    query = [rng.random() for _ in range(dims)]
    assert len(graph.search(query, 5)) == 5


def test_accuracy_scored_against_brute_force():
    rng = random.Random(42)
    dims = 8
    k = 10
    vectors = _random_vectors(rng, 500, dims, scale=100.0)
    graph = HNSWGraph(16, 50, DistanceType.EUCLIDEAN)
    graph.ef_search = 100
    for vector in vectors:
        graph.insert(vector)

    query = [rng.random() * 100 for _ in range(dims)]
    results = graph.search(query, k)
    assert len(results) == k

    truth = sorted(vectors, key=lambda v: graph.distance(query, v.data))
    rank = {v.id: i + 1 for i, v in enumerate(truth)}

    hits = [rank[r.id] for r in results if rank[r.id] <= k]
    recall = len(hits) / k
    score = sum(0.6 + 0.4 * max(0.0, (k - r) / (k - 1)) for r in hits) / k
    assert score >= 0.45
    assert score >= recall * 0.7


def test_euclidean_distance():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    assert graph.distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)


def test_manhattan_distance():
    graph = HNSWGraph(8, 100, DistanceType.MANHATTAN)
    assert graph.distance([0.0, 0.0], [3.0, -4.0]) == pytest.approx(7.0)


def test_hamming_distance():
    graph = HNSWGraph(8, 100, DistanceType.HAMMING)
    assert graph.distance([1.0, 2.0, 3.0], [1.0, 5.0, 6.0]) == 2.0


def test_cosine_distance():
    graph = HNSWGraph(8, 100, DistanceType.COSINE)
    assert graph.distance([1.0, 0.0], [0.0, 1.0]) == pytest.approx(1.0)
    assert graph.distance([1.0, 1.0], [2.0, 2.0]) == pytest.approx(0.0, abs=1e-9)
    assert graph.distance([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(2.0)
    assert graph.distance([0.0, 0.0], [1.0, 1.0]) == 1.0


def test_unknown_distance_type_behaves_as_euclidean():
    graph = HNSWGraph(8, 100, 999)
    assert graph.distance([0.0, 0.0], [3.0, 4.0]) == pytest.approx(5.0)


def test_distance_dimension_mismatch():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    with pytest.raises(DifferentDimensionsError):
        graph.distance([1.0], [1.0, 2.0])


def test_constructor_defaults_for_invalid_parameters():
    graph = HNSWGraph(0, -5, DistanceType.COSINE)
    assert graph.m == 16
    assert graph.ef_construction == 200
    assert graph.ef_search == 200
    assert graph.distance_type is DistanceType.COSINE


def test_insert_rejects_empty_vector():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    with pytest.raises(EmptyVectorError):
        graph.insert(Vector(id="a", data=[]))


def test_insert_rejects_empty_id():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    with pytest.raises(InvalidParameterError):
        graph.insert(Vector(id="", data=[1.0]))


def test_insert_rejects_duplicate():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    graph.insert(Vector(id="a", data=[1.0, 2.0]))
    with pytest.raises(DuplicateVectorError, match="vector with ID a already exists"):
        graph.insert(Vector(id="a", data=[3.0, 4.0]))


def test_insert_rejects_other_dimensions():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    graph.insert(Vector(id="a", data=[1.0, 2.0]))
    with pytest.raises(DifferentDimensionsError):
        graph.insert(Vector(id="b", data=[1.0, 2.0, 3.0]))
    assert set(graph.vectors) == {"a"}


def test_search_validation():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    with pytest.raises(EmptyVectorError):
        graph.search([], 3)
    with pytest.raises(InvalidParameterError):
        graph.search([1.0], 0)


def test_search_on_empty_graph_returns_nothing():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    assert graph.search([1.0, 2.0], 3) == []


def test_first_vector_becomes_entry_point():
    graph = HNSWGraph(8, 100, DistanceType.EUCLIDEAN)
    graph.insert(Vector(id="first", data=[1.0]))
    graph.insert(Vector(id="second", data=[2.0]))
    assert graph.entry_point == "first"
    assert [v.id for v in graph.search([1.9], 1)] == ["second"]


def test_small_graph_search_is_exact():
    vectors = [Vector(id=str(i), data=[float(i), float(i)]) for i in range(20)]
    graph = _build(vectors)
    results = graph.search([7.2, 7.2], 3)
    assert [v.id for v in results] == ["7", "8", "6"]


def test_search_returns_all_when_k_exceeds_size():
    vectors = [Vector(id=str(i), data=[float(i)]) for i in range(4)]
    graph = _build(vectors)
    assert sorted(v.id for v in graph.search([0.0], 10)) == ["0", "1", "2", "3"]


def test_graph_structure_invariants():
    rng = random.Random(7)
    graph = _build(_random_vectors(rng, 200, 4), m=6, ef=40)
    assert len(graph.layers) == graph.max_layer + 1
    for links in graph.layers:
        for node, neighbours in links.items():
            assert node in graph.vectors
            assert len(neighbours) <= graph.m
            assert node not in neighbours
            assert all(n in graph.vectors for n in neighbours)


def test_query_equal_to_stored_vector_finds_it_first():
    rng = random.Random(11)
    vectors = _random_vectors(rng, 60, 8)
    graph = _build(vectors)
    target = vectors[17]
    assert graph.search(target.data, 1)[0].id == target.id