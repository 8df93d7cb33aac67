"""Marshalling between Python/NumPy data and native buffers.

Input vectors are coerced to C-contiguous float32 and checked against the
index dimensionality before any native call. Output buffers are
fixed-capacity NumPy arrays and only the slots the engine reports as
filled are ever read back.
"""

import ctypes
from typing import List, Sequence, Tuple, Union

import numpy as np
import numpy.typing as npt

from usearch_ctypes import _ffi
from usearch_ctypes.exceptions import (
    DimensionMismatchError,
    InvalidArgumentError,
    SizeOverflowError,
)
from usearch_ctypes.types import SearchResult

VectorLike = Union[Sequence[float], npt.NDArray[np.floating]]
BatchLike = Union[Sequence[VectorLike], npt.NDArray[np.floating]]

F32_SIZE = np.dtype(np.float32).itemsize
KEY_SIZE = np.dtype(np.uint64).itemsize


def as_vector(
    vector: VectorLike, dimensions: int, what: str = "Vector"
) -> npt.NDArray[np.float32]:
    """Coerce to a contiguous float32 vector of exactly ``dimensions``.

    Raises:
        DimensionMismatchError: If the length differs from ``dimensions``
    """
    if not isinstance(vector, np.ndarray):
        vector = np.array(vector, dtype=np.float32)
    elif vector.dtype != np.float32:
        vector = vector.astype(np.float32)

    if vector.ndim != 1:
        raise InvalidArgumentError(
            f"{what} must be one-dimensional, got shape {vector.shape}"
        )
    if len(vector) != dimensions:
        raise DimensionMismatchError(dimensions, len(vector), what)

    if not vector.flags.c_contiguous:
        vector = np.ascontiguousarray(vector)
    return vector


def void_ptr(array: np.ndarray) -> ctypes.c_void_p:
    return array.ctypes.data_as(ctypes.c_void_p)


def keys_ptr(array: npt.NDArray[np.uint64]):
    return array.ctypes.data_as(ctypes.POINTER(ctypes.c_uint64))


def distances_ptr(array: npt.NDArray[np.float32]):
    return array.ctypes.data_as(ctypes.POINTER(ctypes.c_float))


def check_count(name: str, value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidArgumentError(
            f"{name} must be an integer, got {type(value).__name__}"
        )
    if value < 1:
        raise InvalidArgumentError(f"{name} must be >= 1, got {value}")
    return int(value)


def alloc_results(
    k: int,
) -> Tuple[npt.NDArray[np.uint64], npt.NDArray[np.float32]]:
    """Allocate the key and distance output buffers for ``k`` results."""
    return np.zeros(k, dtype=np.uint64), np.zeros(k, dtype=np.float32)


def to_results(
    keys: npt.NDArray[np.uint64],
    distances: npt.NDArray[np.float32],
    found: int,
) -> List[SearchResult]:
    """Build results from the first ``found`` slots, in engine order."""
    found = min(int(found), len(keys))
    return [
        SearchResult(key=int(keys[i]), distance=float(distances[i]))
        for i in range(found)
    ]


def checked_product(a: int, b: int, what: str) -> int:
    """Multiply two counts, failing if the result exceeds size_t."""
    product = int(a) * int(b)
    if product > _ffi.SIZE_MAX:
        raise SizeOverflowError(
            f"{what} would overflow: {a} * {b} exceeds {_ffi.SIZE_MAX}"
        )
    return product


def row_dimensions(rows: BatchLike, what: str) -> int:
    """Dimensionality of the first row of a non-empty batch."""
    if isinstance(rows, np.ndarray) and rows.ndim != 2:
        raise InvalidArgumentError(
            f"{what} batch must be two-dimensional, got shape {rows.shape}"
        )
    return len(rows[0])


def check_rows(rows: BatchLike, dimensions: int, what: str) -> None:
    """Check that every row of a batch has ``dimensions`` elements."""
    if isinstance(rows, np.ndarray):
        if rows.ndim != 2:
            raise InvalidArgumentError(
                f"{what} batch must be two-dimensional, got shape {rows.shape}"
            )
        if rows.shape[1] != dimensions:
            raise DimensionMismatchError(dimensions, rows.shape[1], what)
        return

    for row in rows:
        if len(row) != dimensions:
            raise DimensionMismatchError(dimensions, len(row), what)


def flatten(rows: BatchLike) -> npt.NDArray[np.float32]:
    """Copy a batch row-major into one contiguous float32 buffer."""
    return np.ascontiguousarray(np.asarray(rows, dtype=np.float32))


def unflatten(
    keys: npt.NDArray[np.uint64],
    distances: npt.NDArray[np.float32],
    queries: int,
    k: int,
    found: int,
) -> List[List[SearchResult]]:
    """Split row-major output blocks into one result list per query.

    Each block is ``k`` slots wide but only its first ``found`` slots are
    filled by the engine.
    """
    keys = keys.reshape(queries, k)
    distances = distances.reshape(queries, k)
    return [to_results(keys[q], distances[q], found) for q in range(queries)]
