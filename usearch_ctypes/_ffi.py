"""Low-level FFI bindings to libusearch_c.

This module provides direct ctypes bindings to the USearch C library and
the single place where the native error out-parameter is inspected.
Users should use the high-level Index class instead.
"""

import ctypes
import enum
import logging
import os
import platform
from pathlib import Path
from typing import Any, Optional, Union

from usearch_ctypes.exceptions import (
    InvalidArgumentError,
    LibraryNotFoundError,
    NativeError,
)

logger = logging.getLogger(__name__)

# Largest element count a native size_t can describe
SIZE_MAX = 2 ** (8 * ctypes.sizeof(ctypes.c_size_t)) - 1


class ScalarKind(enum.IntEnum):
    """Storage precision of vector elements (usearch_scalar_kind_t)."""

    UNKNOWN = 0
    F32 = 1
    F64 = 2
    F16 = 3
    I8 = 4
    B1 = 5
    BF16 = 6

    @classmethod
    def parse(cls, value: Union["ScalarKind", int, str]) -> "ScalarKind":
        return _parse_enum(cls, value)


class MetricKind(enum.IntEnum):
    """Distance metric (usearch_metric_kind_t)."""

    UNKNOWN = 0
    COS = 1
    IP = 2
    L2SQ = 3
    HAVERSINE = 4
    DIVERGENCE = 5
    PEARSON = 6
    JACCARD = 7
    HAMMING = 8
    TANIMOTO = 9
    SORENSEN = 10

    @classmethod
    def parse(cls, value: Union["MetricKind", int, str]) -> "MetricKind":
        return _parse_enum(cls, value)


def _parse_enum(cls, value):
    if isinstance(value, cls):
        return value
    try:
        if isinstance(value, str):
            return cls[value.strip().upper()]
        return cls(value)
    except (KeyError, ValueError):
        raise InvalidArgumentError(
            f"Unknown {cls.__name__}: {value!r}"
        ) from None


class InitOptions(ctypes.Structure):
    """usearch_init_options_t, also filled in by the metadata calls."""

    _fields_ = [
        ("metric_kind", ctypes.c_uint32),
        ("metric", ctypes.c_void_p),  # custom metric, NULL for built-ins
        ("quantization", ctypes.c_uint32),
        ("dimensions", ctypes.c_size_t),
        ("connectivity", ctypes.c_size_t),
        ("expansion_add", ctypes.c_size_t),
        ("expansion_search", ctypes.c_size_t),
        ("multi", ctypes.c_bool),
    ]


# Opaque index handle and the error out-parameter (char const**)
IndexHandle = ctypes.c_void_p
ErrorPtr = ctypes.POINTER(ctypes.c_char_p)

# int (*)(usearch_key_t key, void* state)
FilterCallback = ctypes.CFUNCTYPE(ctypes.c_int, ctypes.c_uint64, ctypes.c_void_p)

# usearch_distance_t (*)(void const* a, void const* b)
MetricCallback = ctypes.CFUNCTYPE(ctypes.c_float, ctypes.c_void_p, ctypes.c_void_p)

_c_size = ctypes.c_size_t
_c_kind = ctypes.c_uint32
_c_key = ctypes.c_uint64
_c_keys = ctypes.POINTER(ctypes.c_uint64)
_c_dists = ctypes.POINTER(ctypes.c_float)
_c_void = ctypes.c_void_p
_c_str = ctypes.c_char_p

# name -> (restype, argtypes without the trailing error out-parameter)
_SIGNATURES = {
    # Lifecycle
    "usearch_init": (IndexHandle, [ctypes.POINTER(InitOptions)]),
    "usearch_free": (None, [IndexHandle]),
    # Persistence (file)
    "usearch_save": (None, [IndexHandle, _c_str]),
    "usearch_load": (None, [IndexHandle, _c_str]),
    "usearch_view": (None, [IndexHandle, _c_str]),
    # Persistence (buffer)
    "usearch_save_buffer": (None, [IndexHandle, _c_void, _c_size]),
    "usearch_load_buffer": (None, [IndexHandle, _c_void, _c_size]),
    "usearch_view_buffer": (None, [IndexHandle, _c_void, _c_size]),
    # Metadata
    "usearch_metadata": (None, [_c_str, ctypes.POINTER(InitOptions)]),
    "usearch_metadata_buffer": (
        None,
        [_c_void, _c_size, ctypes.POINTER(InitOptions)],
    ),
    # Stats
    "usearch_size": (_c_size, [IndexHandle]),
    "usearch_capacity": (_c_size, [IndexHandle]),
    "usearch_dimensions": (_c_size, [IndexHandle]),
    "usearch_connectivity": (_c_size, [IndexHandle]),
    "usearch_memory_usage": (_c_size, [IndexHandle]),
    "usearch_serialized_length": (_c_size, [IndexHandle]),
    "usearch_hardware_acceleration": (_c_str, [IndexHandle]),
    # Configuration
    "usearch_reserve": (None, [IndexHandle, _c_size]),
    "usearch_expansion_add": (_c_size, [IndexHandle]),
    "usearch_expansion_search": (_c_size, [IndexHandle]),
    "usearch_change_expansion_add": (None, [IndexHandle, _c_size]),
    "usearch_change_expansion_search": (None, [IndexHandle, _c_size]),
    "usearch_change_threads_add": (None, [IndexHandle, _c_size]),
    "usearch_change_threads_search": (None, [IndexHandle, _c_size]),
    "usearch_change_metric_kind": (None, [IndexHandle, _c_kind]),
    "usearch_change_metric": (
        None,
        [IndexHandle, MetricCallback, _c_void, _c_kind],
    ),
    # Data
    "usearch_add": (None, [IndexHandle, _c_key, _c_void, _c_kind]),
    "usearch_get": (_c_size, [IndexHandle, _c_key, _c_size, _c_void, _c_kind]),
    "usearch_remove": (_c_size, [IndexHandle, _c_key]),
    "usearch_rename": (_c_size, [IndexHandle, _c_key, _c_key]),
    "usearch_contains": (ctypes.c_bool, [IndexHandle, _c_key]),
    "usearch_count": (_c_size, [IndexHandle, _c_key]),
    "usearch_clear": (None, [IndexHandle]),
    # Search
    "usearch_search": (
        _c_size,
        [IndexHandle, _c_void, _c_kind, _c_size, _c_keys, _c_dists],
    ),
    "usearch_filtered_search": (
        _c_size,
        [
            IndexHandle,
            _c_void,  # query
            _c_kind,  # query kind
            _c_size,  # count
            FilterCallback,
            _c_void,  # filter state
            _c_keys,
            _c_dists,
        ],
    ),
    # Standalone
    "usearch_distance": (
        ctypes.c_float,
        [_c_void, _c_void, _c_kind, _c_size, _c_kind],
    ),
    "usearch_exact_search": (
        None,
        [
            _c_void,  # dataset
            _c_size,  # dataset size
            _c_size,  # dataset stride (bytes)
            _c_void,  # queries
            _c_size,  # queries size
            _c_size,  # queries stride (bytes)
            _c_kind,  # scalar kind
            _c_size,  # dimensions
            _c_kind,  # metric kind
            _c_size,  # count
            _c_size,  # threads
            _c_keys,
            _c_size,  # keys stride (bytes)
            _c_dists,
            _c_size,  # distances stride (bytes)
        ],
    ),
}


# Determine library name based on platform
def _get_library_name() -> str:
    """Get the platform-specific library name."""
    system = platform.system()
    if system == "Linux":
        return "libusearch_c.so"
    elif system == "Darwin":
        return "libusearch_c.dylib"
    elif system == "Windows":
        return "usearch_c.dll"
    else:
        raise LibraryNotFoundError(f"Unsupported platform: {system}")


def _find_library() -> Path:
    """Find the USearch C library.

    Search order:
    1. USEARCH_LIB_PATH environment variable (directory or file)
    2. Next to this Python file
    3. vendor/usearch/build of a development checkout
    4. System library paths

    Returns:
        Path to the library

    Raises:
        LibraryNotFoundError: If library cannot be found
    """
    lib_name = _get_library_name()

    # 1. Environment variable
    if env_path := os.getenv("USEARCH_LIB_PATH"):
        candidate = Path(env_path)
        if candidate.is_file():
            return candidate
        lib_path = candidate / lib_name
        if lib_path.exists():
            return lib_path

    # 2. Next to this file
    this_dir = Path(__file__).parent
    lib_path = this_dir / lib_name
    if lib_path.exists():
        return lib_path

    # 3. Development location (built by cmake with USEARCH_BUILD_LIB_C=ON)
    dev_path = this_dir.parent / "vendor" / "usearch" / "build" / lib_name
    if dev_path.exists():
        return dev_path

    # 4. System paths
    from ctypes.util import find_library

    if lib_path_str := find_library("usearch_c"):
        return Path(lib_path_str)

    raise LibraryNotFoundError(
        f"Could not find {lib_name}. "
        "Set USEARCH_LIB_PATH environment variable or build the C library."
    )


def _configure(lib: ctypes.CDLL) -> ctypes.CDLL:
    """Attach argtypes/restype to every function of the table."""
    for name, (restype, argtypes) in _SIGNATURES.items():
        func = getattr(lib, name)
        func.argtypes = [*argtypes, ErrorPtr]
        func.restype = restype

    lib.usearch_version.argtypes = []
    lib.usearch_version.restype = ctypes.c_char_p
    return lib


# Loaded on first use so that importing the package never needs the library
_lib: Optional[Any] = None


def get_lib() -> Any:
    """Return the configured library, loading it on first use."""
    global _lib
    if _lib is None:
        lib_path = _find_library()
        logger.info("Loading USearch C library from %s", lib_path)
        _lib = _configure(ctypes.CDLL(str(lib_path)))
    return _lib


def is_available() -> bool:
    """Return True if the native library can be loaded."""
    try:
        get_lib()
    except (LibraryNotFoundError, OSError):
        return False
    return True


def check_error(error: ctypes.c_char_p) -> None:
    """Raise NativeError if the engine populated the error out-parameter.

    A NULL pointer and a pointer to an empty string both mean success. The
    message is engine-owned static text: it is copied, never freed.
    """
    message = error.value
    if message:
        raise NativeError(message.decode("utf-8", errors="replace"))


def call(name: str, *args: Any) -> Any:
    """Invoke a native function with a fresh error out-parameter.

    Every function of the table except ``usearch_version`` takes the error
    pointer as its last argument; this is the only caller of check_error.
    """
    func = getattr(get_lib(), name)
    error = ctypes.c_char_p()
    result = func(*args, ctypes.byref(error))
    check_error(error)
    return result


def get_version() -> str:
    """Get the USearch library version.

    Returns:
        Version string (e.g., "2.16.0")
    """
    version_ptr = get_lib().usearch_version()
    return version_ptr.decode("utf-8")


# Export public interface
__all__ = [
    "SIZE_MAX",
    "ScalarKind",
    "MetricKind",
    "InitOptions",
    "IndexHandle",
    "FilterCallback",
    "MetricCallback",
    "get_lib",
    "is_available",
    "check_error",
    "call",
    "get_version",
]
