"""High-level Pythonic interface to a USearch HNSW index."""

import ctypes
import logging
import os
from dataclasses import asdict
from typing import List, Optional, Union

import numpy as np
import numpy.typing as npt

from usearch_ctypes import _buffers, _ffi, _filters, exact
from usearch_ctypes._buffers import VectorLike
from usearch_ctypes._ffi import MetricKind, ScalarKind
from usearch_ctypes._filters import Predicate
from usearch_ctypes.exceptions import (
    ClosedIndexError,
    InvalidArgumentError,
    NativeError,
)
from usearch_ctypes.types import (
    DEFAULT_CONNECTIVITY,
    DEFAULT_EXPANSION_ADD,
    DEFAULT_EXPANSION_SEARCH,
    IndexConfig,
    IndexMetadata,
    SearchResult,
)

logger = logging.getLogger(__name__)

# Slots reserved before the first insertion
DEFAULT_RESERVE_CAPACITY = 1024

MAX_KEY = 2**64 - 1

PathLike = Union[str, "os.PathLike[str]"]
BufferLike = Union[bytes, bytearray, memoryview, npt.NDArray[np.uint8]]


def _as_byte_array(buffer: BufferLike) -> npt.NDArray[np.uint8]:
    """Zero-copy uint8 view over any contiguous bytes-like object."""
    return np.frombuffer(buffer, dtype=np.uint8)


def _is_path(source) -> bool:
    return isinstance(source, (str, os.PathLike))


def metadata(source: Union[PathLike, BufferLike]) -> IndexMetadata:
    """Read the configuration of a persisted index without loading it.

    Args:
        source: Path to a saved index, or a buffer produced by
            :meth:`Index.to_bytes`

    Returns:
        IndexMetadata describing metric, dimensions, quantization and the
        HNSW parameters. The vector count is not available from the header.

    Raises:
        NativeError: If the header cannot be read
    """
    options = _ffi.InitOptions()
    if _is_path(source):
        _ffi.call("usearch_metadata", os.fsencode(source), ctypes.byref(options))
    else:
        data = _as_byte_array(source)
        _ffi.call(
            "usearch_metadata_buffer",
            _buffers.void_ptr(data),
            data.nbytes,
            ctypes.byref(options),
        )
    return IndexMetadata.from_options(options)


def version() -> str:
    """Return the version of the loaded USearch C library."""
    return _ffi.get_version()


class Index:
    """High-level interface to a USearch HNSW index.

    This class wraps the opaque native handle, handling its lifetime,
    error translation, input validation and buffer marshalling. Each
    vector is stored under a caller-chosen 64-bit key.

    Thread Safety:
        The wrapper adds no locking. Structural mutations (add, remove,
        rename, clear, reserve, change_*) must not run concurrently with
        each other or with searches on the same index. The native engine
        may use its own worker threads inside a single call, see
        change_threads_add() and change_threads_search().

    Example:
        >>> with Index(dimensions=128, metric="cos") as index:
        ...     vectors = np.random.rand(1000, 128).astype(np.float32)
        ...     for key, vec in enumerate(vectors):
        ...         index.add(key, vec)
        ...     results = index.search(vectors[0], k=10)
        ...     for result in results:
        ...         print(f"Key: {result.key}, Distance: {result.distance}")
    """

    def __init__(
        self,
        dimensions: int,
        metric: Union[MetricKind, str] = MetricKind.COS,
        quantization: Union[ScalarKind, str] = ScalarKind.F16,
        connectivity: int = DEFAULT_CONNECTIVITY,
        expansion_add: int = DEFAULT_EXPANSION_ADD,
        expansion_search: int = DEFAULT_EXPANSION_SEARCH,
        multi: bool = False,
    ):
        """Create a new empty index.

        Args:
            dimensions: Vector dimensionality (must match all vectors added)
            metric: Distance metric (default: cosine)
            quantization: Storage precision (default: f16)
            connectivity: Edges per node (M parameter)
            expansion_add: ef_construction parameter
            expansion_search: ef_search parameter
            multi: Allow multiple vectors per key

        Raises:
            InvalidArgumentError: If the configuration is out of range
            NativeError: If the engine fails to create the index
        """
        # Set first so close() and __del__ see a consistent state even if
        # initialization fails below
        self._handle: Optional[int] = None
        self._closed = True
        self._reserved = False
        self._backing: Optional[np.ndarray] = None

        self._config = IndexConfig(
            dimensions=dimensions,
            metric=metric,
            quantization=quantization,
            connectivity=connectivity,
            expansion_add=expansion_add,
            expansion_search=expansion_search,
            multi=multi,
        )
        self._config.validate()

        options = self._config.to_options()
        handle = _ffi.call("usearch_init", ctypes.byref(options))
        if not handle:
            raise NativeError("usearch_init returned no index handle")

        self._handle = handle
        self._closed = False
        logger.debug("Created index %r", self._config)

    @classmethod
    def from_config(cls, config: IndexConfig) -> "Index":
        """Create a new empty index from an IndexConfig."""
        return cls(**asdict(config))

    @classmethod
    def load(cls, path: PathLike, config: Optional[IndexConfig] = None) -> "Index":
        """Load an index saved with save(), copying it into memory.

        Args:
            path: Path to the saved index
            config: Configuration to create the index with. If None, it is
                read from the file header with metadata().
        """
        config = config or IndexConfig.from_metadata(metadata(path))
        index = cls._restore(config, "usearch_load", os.fsencode(path))
        logger.debug("Loaded index from %s", path)
        return index

    @classmethod
    def view(cls, path: PathLike, config: Optional[IndexConfig] = None) -> "Index":
        """Memory-map a saved index without copying it (read-only).

        The file must stay in place and unmodified while the index is open.
        """
        config = config or IndexConfig.from_metadata(metadata(path))
        index = cls._restore(config, "usearch_view", os.fsencode(path))
        logger.debug("Viewing index from %s", path)
        return index

    @classmethod
    def from_bytes(
        cls, buffer: BufferLike, config: Optional[IndexConfig] = None
    ) -> "Index":
        """Load an index from a buffer produced by to_bytes().

        The contents are copied into the engine; the buffer may be
        discarded afterwards.
        """
        config = config or IndexConfig.from_metadata(metadata(buffer))
        data = _as_byte_array(buffer)
        return cls._restore(
            config, "usearch_load_buffer", _buffers.void_ptr(data), data.nbytes
        )

    @classmethod
    def view_bytes(
        cls, buffer: BufferLike, config: Optional[IndexConfig] = None
    ) -> "Index":
        """Open an index directly over a buffer without copying (read-only).

        The index reads from ``buffer`` for its whole lifetime. A reference
        is held until close(), but the caller must not mutate a writable
        buffer (bytearray, NumPy array) while the index is open; doing so
        is undefined behavior and is not detected.
        """
        config = config or IndexConfig.from_metadata(metadata(buffer))
        data = _as_byte_array(buffer)
        index = cls._restore(
            config, "usearch_view_buffer", _buffers.void_ptr(data), data.nbytes
        )
        index._backing = data
        return index

    @classmethod
    def _restore(cls, config: IndexConfig, func: str, *args) -> "Index":
        index = cls.from_config(config)
        try:
            _ffi.call(func, index._handle, *args)
            # The persisted header wins over the requested configuration
            index._config.dimensions = int(
                _ffi.call("usearch_dimensions", index._handle)
            )
        except Exception:
            index.close()
            raise
        return index

    def __del__(self):
        """Release the native handle if close() was never called.

        This is a last resort; call close() or use the index as a context
        manager. Errors are logged and ignored here.
        """
        if getattr(self, "_closed", True):
            return
        try:
            self.close()
        except Exception:
            logger.warning("Ignoring error while finalizing index", exc_info=True)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
        return False

    def close(self) -> None:
        """Close the index and free the native handle.

        Safe to call multiple times. The index is marked closed before the
        handle is released, so it stays unusable even if the release
        reports an error.

        Raises:
            NativeError: If the engine reports an error while releasing
        """
        if self._closed:
            return
        handle = self._handle
        self._handle = None
        self._closed = True
        try:
            _ffi.call("usearch_free", handle)
        finally:
            self._backing = None
        logger.debug("Closed index")

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed

    def _check_closed(self) -> None:
        """Check if index is closed and raise error if so."""
        if self._closed:
            raise ClosedIndexError("Index is closed")

    @staticmethod
    def _check_key(key: int) -> int:
        if not 0 <= key <= MAX_KEY:
            raise InvalidArgumentError(f"key must fit in 64 bits, got {key}")
        return key

    def _ensure_capacity(self) -> None:
        """Reserve storage ahead of an insertion.

        The engine refuses insertions into an index without reserved
        slots. The first insertion reserves DEFAULT_RESERVE_CAPACITY slots
        beyond the current size; later insertions double the capacity
        once it is exhausted.
        """
        size = self.size
        if not self._reserved:
            logger.debug(
                "Reserving %d slots before first insertion",
                size + DEFAULT_RESERVE_CAPACITY,
            )
            self.reserve(size + DEFAULT_RESERVE_CAPACITY)
            return
        capacity = self.capacity
        if size >= capacity:
            self.reserve(max(capacity * 2, size + DEFAULT_RESERVE_CAPACITY))

    def add(self, key: int, vector: VectorLike) -> None:
        """Add a vector to the index.

        Args:
            key: Caller-chosen 64-bit key (e.g. a database row ID)
            vector: Vector to add (must match index dimensions).
                Can be a list, tuple, numpy array, or any sequence of floats

        Raises:
            ClosedIndexError: If index is closed
            DimensionMismatchError: If vector dimensions don't match
            NativeError: If the engine rejects the insertion

        Thread Safety:
            Single-writer only.
        """
        self._check_closed()
        self._check_key(key)
        vector = _buffers.as_vector(vector, self._config.dimensions)

        self._ensure_capacity()
        _ffi.call(
            "usearch_add",
            self._handle,
            key,
            _buffers.void_ptr(vector),
            ScalarKind.F32,
        )

    def search(self, query: VectorLike, k: int = 10) -> List[SearchResult]:
        """Search for k nearest neighbors.

        Args:
            query: Query vector (must match index dimensions)
            k: Number of nearest neighbors to return (default: 10)

        Returns:
            List of at most k SearchResult objects, sorted by distance
            (ascending). Fewer are returned when the index holds fewer
            vectors.

        Raises:
            ClosedIndexError: If index is closed
            InvalidArgumentError: If k < 1
            DimensionMismatchError: If query dimensions don't match
            NativeError: For engine errors
        """
        self._check_closed()
        k = _buffers.check_count("k", k)
        query = _buffers.as_vector(query, self._config.dimensions, "Query")

        keys, distances = _buffers.alloc_results(k)
        found = _ffi.call(
            "usearch_search",
            self._handle,
            _buffers.void_ptr(query),
            ScalarKind.F32,
            k,
            _buffers.keys_ptr(keys),
            _buffers.distances_ptr(distances),
        )
        return _buffers.to_results(keys, distances, found)

    def filtered_search(
        self, query: VectorLike, k: int, predicate: Predicate
    ) -> List[SearchResult]:
        """Search for k nearest neighbors accepted by a predicate.

        Args:
            query: Query vector (must match index dimensions)
            k: Maximum number of neighbors to return
            predicate: Called with candidate keys during the search;
                return True to include the key. It is only called while
                this method runs. It must not raise and must not search
                this index again.

        Example:
            >>> valid = {1, 5, 10}
            >>> index.filtered_search(query, 10, lambda key: key in valid)
        """
        self._check_closed()
        k = _buffers.check_count("k", k)
        query = _buffers.as_vector(query, self._config.dimensions, "Query")

        keys, distances = _buffers.alloc_results(k)
        with _filters.registered(predicate) as state:
            found = _ffi.call(
                "usearch_filtered_search",
                self._handle,
                _buffers.void_ptr(query),
                ScalarKind.F32,
                k,
                _filters.trampoline,
                state,
                _buffers.keys_ptr(keys),
                _buffers.distances_ptr(distances),
            )
        return _buffers.to_results(keys, distances, found)

    def distance(self, a: VectorLike, b: VectorLike) -> float:
        """Distance between two vectors under this index's metric."""
        self._check_closed()
        a = _buffers.as_vector(a, self._config.dimensions)
        b = _buffers.as_vector(b, self._config.dimensions)
        return exact.distance(a, b, self._config.metric)

    def get(self, key: int) -> Optional[npt.NDArray[np.float32]]:
        """Return the vector stored under ``key``, or None if absent.

        For multi-vector indexes a 2-D array with every vector stored under
        the key is returned.
        """
        self._check_closed()
        self._check_key(key)
        count = self.count(key) if self._config.multi else 1
        if count == 0:
            return None

        out = np.zeros((count, self._config.dimensions), dtype=np.float32)
        found = _ffi.call(
            "usearch_get",
            self._handle,
            key,
            count,
            _buffers.void_ptr(out),
            ScalarKind.F32,
        )
        if found == 0:
            return None
        return out[:found] if self._config.multi else out[0]

    def remove(self, key: int) -> int:
        """Remove every vector stored under ``key``.

        Returns:
            Number of removed entries
        """
        self._check_closed()
        self._check_key(key)
        return int(_ffi.call("usearch_remove", self._handle, key))

    def rename(self, from_key: int, to_key: int) -> int:
        """Move the vectors stored under ``from_key`` to ``to_key``.

        Returns:
            Number of renamed entries
        """
        self._check_closed()
        self._check_key(from_key)
        self._check_key(to_key)
        return int(_ffi.call("usearch_rename", self._handle, from_key, to_key))

    def contains(self, key: int) -> bool:
        """Check if a key exists in the index."""
        self._check_closed()
        self._check_key(key)
        return bool(_ffi.call("usearch_contains", self._handle, key))

    def __contains__(self, key: int) -> bool:
        return self.contains(key)

    def count(self, key: int) -> int:
        """Number of vectors stored under ``key``."""
        self._check_closed()
        self._check_key(key)
        return int(_ffi.call("usearch_count", self._handle, key))

    def clear(self) -> None:
        """Remove all vectors, keeping the reserved capacity."""
        self._check_closed()
        _ffi.call("usearch_clear", self._handle)

    def reserve(self, capacity: int) -> None:
        """Pre-allocate space for ``capacity`` vectors."""
        self._check_closed()
        if capacity < 0:
            raise InvalidArgumentError(f"capacity must be >= 0, got {capacity}")
        _ffi.call("usearch_reserve", self._handle, capacity)
        self._reserved = True

    def save(self, path: PathLike) -> None:
        """Save the index to a file."""
        self._check_closed()
        _ffi.call("usearch_save", self._handle, os.fsencode(path))
        logger.debug("Saved index to %s", path)

    def to_bytes(self) -> bytes:
        """Serialize the index into a new bytes object."""
        self._check_closed()
        length = self.serialized_length
        buffer = np.zeros(length, dtype=np.uint8)
        _ffi.call(
            "usearch_save_buffer",
            self._handle,
            _buffers.void_ptr(buffer),
            length,
        )
        return buffer.tobytes()

    def _query(self, func: str) -> int:
        self._check_closed()
        return int(_ffi.call(func, self._handle))

    @property
    def size(self) -> int:
        """Number of vectors in the index."""
        return self._query("usearch_size")

    def __len__(self) -> int:
        return self.size

    @property
    def capacity(self) -> int:
        """Number of vectors that fit without reallocation."""
        return self._query("usearch_capacity")

    @property
    def dimensions(self) -> int:
        """Vector dimensionality, fixed for the lifetime of the index."""
        self._check_closed()
        return self._config.dimensions

    @property
    def connectivity(self) -> int:
        return self._query("usearch_connectivity")

    @property
    def memory_usage(self) -> int:
        """Memory used by the index, in bytes."""
        return self._query("usearch_memory_usage")

    @property
    def serialized_length(self) -> int:
        """Length in bytes of the buffer to_bytes() produces."""
        return self._query("usearch_serialized_length")

    @property
    def expansion_add(self) -> int:
        return self._query("usearch_expansion_add")

    @property
    def expansion_search(self) -> int:
        return self._query("usearch_expansion_search")

    @property
    def metric(self) -> MetricKind:
        self._check_closed()
        return self._config.metric

    @property
    def quantization(self) -> ScalarKind:
        self._check_closed()
        return self._config.quantization

    @property
    def multi(self) -> bool:
        self._check_closed()
        return self._config.multi

    @property
    def hardware_acceleration(self) -> str:
        """Name of the SIMD backend the engine picked for this index."""
        self._check_closed()
        name = _ffi.call("usearch_hardware_acceleration", self._handle)
        return name.decode("utf-8") if name else ""

    def change_expansion_add(self, expansion: int) -> None:
        """Set the expansion factor used while adding vectors."""
        self._check_closed()
        expansion = _buffers.check_count("expansion_add", expansion)
        _ffi.call("usearch_change_expansion_add", self._handle, expansion)
        self._config.expansion_add = expansion

    def change_expansion_search(self, expansion: int) -> None:
        """Set the expansion factor for searches.

        Higher values = more accurate but slower. Default is 64.
        """
        self._check_closed()
        expansion = _buffers.check_count("expansion_search", expansion)
        _ffi.call("usearch_change_expansion_search", self._handle, expansion)
        self._config.expansion_search = expansion

    def change_threads_add(self, threads: int) -> None:
        """Set the number of engine threads used for add operations."""
        self._check_closed()
        threads = _buffers.check_count("threads", threads)
        _ffi.call("usearch_change_threads_add", self._handle, threads)

    def change_threads_search(self, threads: int) -> None:
        """Set the number of engine threads used for search operations."""
        self._check_closed()
        threads = _buffers.check_count("threads", threads)
        _ffi.call("usearch_change_threads_search", self._handle, threads)

    def change_metric(self, metric: Union[MetricKind, str]) -> None:
        """Switch the index to another built-in metric."""
        self._check_closed()
        metric = MetricKind.parse(metric)
        _ffi.call("usearch_change_metric_kind", self._handle, metric)
        self._config.metric = metric

    def __repr__(self) -> str:
        status = "closed" if self._closed else "open"
        return (
            f"Index(dimensions={self._config.dimensions}, "
            f"metric={self._config.metric.name.lower()}, "
            f"quantization={self._config.quantization.name.lower()}, "
            f"size={len(self) if not self._closed else '?'}, "
            f"status={status})"
        )
