"""Exception classes for usearch_ctypes."""


class USearchError(Exception):
    """Base exception for all USearch errors."""

    pass


class ClosedIndexError(USearchError):
    """Raised when an operation is attempted on a closed index."""

    pass


class DimensionMismatchError(USearchError):
    """Raised when vector dimensions don't match index dimensions."""

    def __init__(self, expected: int, actual: int, what: str = "Vector"):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{what} dimension mismatch: expected {expected}, got {actual}"
        )


class InvalidArgumentError(USearchError, ValueError):
    """Raised for non-positive counts, empty batches and bad options."""

    pass


class SizeOverflowError(USearchError, OverflowError):
    """Raised when a batch buffer size would overflow ``size_t``."""

    pass


class NativeError(USearchError):
    """Raised when the native engine reports an error.

    The message is the engine's own text, copied out of the error
    out-parameter.
    """

    pass


class LibraryNotFoundError(USearchError, FileNotFoundError):
    """Raised when the libusearch_c shared library cannot be located."""

    pass
