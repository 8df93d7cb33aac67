"""Index-free helpers: exact (brute-force) search and pairwise distance.

Exact search is mostly useful as ground truth when tuning an approximate
index, or for datasets small enough that a graph is not worth building.
"""

import logging
from typing import List, Union

from usearch_ctypes import _buffers, _ffi
from usearch_ctypes._buffers import BatchLike, VectorLike
from usearch_ctypes._ffi import MetricKind, ScalarKind
from usearch_ctypes.exceptions import DimensionMismatchError, InvalidArgumentError
from usearch_ctypes.types import SearchResult

logger = logging.getLogger(__name__)


def exact_search(
    dataset: BatchLike,
    queries: BatchLike,
    k: int,
    metric: Union[MetricKind, str] = MetricKind.COS,
    threads: int = 1,
) -> List[List[SearchResult]]:
    """Find the exact k nearest dataset rows for every query.

    Args:
        dataset: Vectors to search, one per row (list of sequences or a
            2-D numpy array)
        queries: Query vectors with the same dimensionality as the dataset
        k: Number of neighbors per query
        metric: Distance metric (default: cosine)
        threads: Number of engine threads. Passed through unchanged.

    Returns:
        One list of min(k, len(dataset)) SearchResult per query, in query
        order. The key of each result is the row index of the matching
        dataset vector.

    Raises:
        InvalidArgumentError: If dataset or queries are empty, or k or
            threads are not integers >= 1
        DimensionMismatchError: If any row differs from the dimensionality
            of the first dataset row
        SizeOverflowError: If a flattened buffer would not fit in size_t
        NativeError: For engine errors

    Example:
        >>> dataset = [[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]]
        >>> exact_search(dataset, [[0.9, 0.1, 0, 0]], k=1)
        [[SearchResult(key=0, distance=0.006116)]]
    """
    if len(dataset) == 0:
        raise InvalidArgumentError("dataset must not be empty")
    if len(queries) == 0:
        raise InvalidArgumentError("queries must not be empty")
    k = _buffers.check_count("k", k)
    threads = _buffers.check_count("threads", threads)
    metric = MetricKind.parse(metric)

    dimensions = _buffers.row_dimensions(dataset, "Dataset")
    _buffers.check_rows(dataset, dimensions, "Dataset vector")
    _buffers.check_rows(queries, dimensions, "Query vector")

    dataset_count = len(dataset)
    query_count = len(queries)
    _buffers.checked_product(dataset_count, dimensions, "Dataset buffer size")
    _buffers.checked_product(query_count, dimensions, "Query buffer size")
    result_count = _buffers.checked_product(query_count, k, "Result buffer size")

    flat_dataset = _buffers.flatten(dataset)
    flat_queries = _buffers.flatten(queries)
    keys, distances = _buffers.alloc_results(result_count)
    vector_stride = dimensions * _buffers.F32_SIZE

    logger.debug(
        "Exact search: %d queries against %d vectors, k=%d",
        query_count,
        dataset_count,
        k,
    )
    _ffi.call(
        "usearch_exact_search",
        _buffers.void_ptr(flat_dataset),
        dataset_count,
        vector_stride,
        _buffers.void_ptr(flat_queries),
        query_count,
        vector_stride,
        ScalarKind.F32,
        dimensions,
        metric,
        k,
        threads,
        _buffers.keys_ptr(keys),
        k * _buffers.KEY_SIZE,
        _buffers.distances_ptr(distances),
        k * _buffers.F32_SIZE,
    )
    # The engine fills at most one slot per dataset vector
    found = min(k, dataset_count)
    return _buffers.unflatten(keys, distances, query_count, k, found)


def distance(
    a: VectorLike,
    b: VectorLike,
    metric: Union[MetricKind, str] = MetricKind.COS,
) -> float:
    """Compute the distance between two vectors without an index.

    Raises:
        DimensionMismatchError: If a and b differ in length
    """
    metric = MetricKind.parse(metric)
    if len(a) != len(b):
        raise DimensionMismatchError(len(a), len(b))
    dimensions = len(a)
    a = _buffers.as_vector(a, dimensions)
    b = _buffers.as_vector(b, dimensions)

    result = _ffi.call(
        "usearch_distance",
        _buffers.void_ptr(a),
        _buffers.void_ptr(b),
        ScalarKind.F32,
        dimensions,
        metric,
    )
    return float(result)
