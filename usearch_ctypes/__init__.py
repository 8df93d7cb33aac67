"""
usearch_ctypes - Python bindings for the USearch vector search engine

This package provides a Pythonic interface to the USearch C library
(libusearch_c), loaded through ctypes. The library is located on first use,
see USEARCH_LIB_PATH.

Example:
    >>> import usearch_ctypes
    >>> index = usearch_ctypes.Index(dimensions=768, metric="cos")
    >>> index.add(42, [0.1] * 768)
    >>> results = index.search([0.1] * 768, k=10)
    >>> for result in results:
    ...     print(f"Key: {result.key}, Distance: {result.distance}")
    >>> index.save("vectors.usearch")
    >>> index.close()
"""

import logging

from usearch_ctypes._ffi import MetricKind, ScalarKind
from usearch_ctypes.exact import distance, exact_search
from usearch_ctypes.index import (
    DEFAULT_RESERVE_CAPACITY,
    Index,
    metadata,
    version,
)
from usearch_ctypes.types import IndexConfig, IndexMetadata, SearchResult
from usearch_ctypes.exceptions import (
    USearchError,
    ClosedIndexError,
    DimensionMismatchError,
    InvalidArgumentError,
    SizeOverflowError,
    NativeError,
    LibraryNotFoundError,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"
__all__ = [
    "Index",
    "IndexConfig",
    "IndexMetadata",
    "SearchResult",
    "MetricKind",
    "ScalarKind",
    "DEFAULT_RESERVE_CAPACITY",
    "metadata",
    "exact_search",
    "distance",
    "version",
    "USearchError",
    "ClosedIndexError",
    "DimensionMismatchError",
    "InvalidArgumentError",
    "SizeOverflowError",
    "NativeError",
    "LibraryNotFoundError",
]
