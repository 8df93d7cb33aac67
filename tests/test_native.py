"""Integration tests against the real libusearch_c.

Skipped unless the library can be located, see USEARCH_LIB_PATH.
"""

import numpy as np
import pytest

from usearch_ctypes import Index, distance, exact_search, metadata, version
from usearch_ctypes.exceptions import ClosedIndexError, DimensionMismatchError

pytestmark = [pytest.mark.native, pytest.mark.usefixtures("native_lib")]

TEST_DIMS = 4


def test_version():
    assert version()


def test_create_empty():
    with Index(dimensions=TEST_DIMS, metric="l2sq", quantization="f32") as index:
        assert index.size == 0
        assert index.dimensions == TEST_DIMS
        assert index.hardware_acceleration


def test_add_and_search():
    with Index(dimensions=TEST_DIMS, metric="cos") as index:
        index.add(1, [1.0, 0.0, 0.0, 0.0])
        index.add(2, [0.0, 1.0, 0.0, 0.0])
        index.add(3, [0.0, 0.0, 1.0, 0.0])
        assert index.size == 3

        results = index.search([0.9, 0.1, 0.0, 0.0], k=2)
        assert len(results) == 2
        assert results[0].key == 1


def test_dimension_mismatch():
    with Index(dimensions=TEST_DIMS) as index:
        with pytest.raises(DimensionMismatchError, match="dimension mismatch"):
            index.add(1, [1.0, 2.0])
        assert index.size == 0


def test_filtered_search():
    with Index(dimensions=TEST_DIMS, metric="cos") as index:
        for i in range(10):
            index.add(i, [float(i), 0.0, 0.0, 0.0])
        results = index.filtered_search(
            [5.0, 0.0, 0.0, 0.0], 5, lambda key: key % 2 == 0
        )
        assert all(r.key % 2 == 0 for r in results)
        assert index.filtered_search([5.0, 0.0, 0.0, 0.0], 5, lambda key: False) == []


def test_remove_rename_clear():
    with Index(dimensions=TEST_DIMS) as index:
        index.add(1, [1.0, 2.0, 3.0, 4.0])
        index.remove(1)
        assert not index.contains(1)

        index.add(2, [1.0, 2.0, 3.0, 4.0])
        index.rename(2, 100)
        assert not index.contains(2)
        assert index.contains(100)

        index.clear()
        assert index.size == 0


def test_save_and_load(tmp_path):
    path = tmp_path / "native.usearch"
    with Index(dimensions=TEST_DIMS, metric="cos") as index:
        index.add(1, [1.0, 0.0, 0.0, 0.0])
        index.add(2, [0.0, 1.0, 0.0, 0.0])
        index.save(path)

    assert metadata(path).dimensions == TEST_DIMS
    with Index.load(path) as loaded:
        assert loaded.size == 2
        assert loaded.contains(1)
        assert loaded.contains(2)
        assert loaded.search([0.9, 0.1, 0.0, 0.0], k=1)[0].key == 1


def test_bytes_round_trip():
    with Index(dimensions=TEST_DIMS, metric="cos") as index:
        index.add(1, [1.0, 0.0, 0.0, 0.0])
        index.add(2, [0.0, 1.0, 0.0, 0.0])
        blob = index.to_bytes()

    with Index.from_bytes(blob) as restored:
        assert restored.size == 2
        assert restored.search([0.1, 0.9, 0.0, 0.0], k=1)[0].key == 2


def test_reserve():
    with Index(dimensions=TEST_DIMS) as index:
        index.reserve(1000)
        assert index.capacity >= 1000


def test_close():
    index = Index(dimensions=TEST_DIMS)
    index.close()
    index.close()
    assert index.closed
    with pytest.raises(ClosedIndexError, match="closed"):
        index.size


def test_distance():
    a = [1.0, 0.0, 0.0, 0.0]
    b = [0.0, 1.0, 0.0, 0.0]
    assert distance(a, b, "cos") == pytest.approx(1.0, abs=0.01)
    assert distance(a, a, "cos") == pytest.approx(0.0, abs=0.01)


def test_exact_search():
    dataset = np.eye(4, dtype=np.float32)
    results = exact_search(dataset, [[0.9, 0.1, 0.0, 0.0]], k=1, metric="cos")
    assert results[0][0].key == 0
    assert results[0][0].distance == pytest.approx(0.005, abs=0.002)


def test_many_vectors():
    dims, count = 128, 2000
    with Index(dimensions=dims, metric="cos", quantization="f16") as index:
        for i in range(count):
            vec = [((i + j) % 100) / 100.0 for j in range(dims)]
            index.add(i, vec)
        assert index.size == count

        query = [(j % 100) / 100.0 for j in range(dims)]
        results = index.search(query, k=10)
        assert len(results) == 10
        assert results[0].distance >= 0
