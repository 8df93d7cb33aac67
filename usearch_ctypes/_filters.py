"""Bridge between Python predicates and the native filter callback.

The engine calls a plain C function pointer with ``(key, state)``. A single
module-level trampoline serves every filtered search: the predicate is
registered under an integer token for the duration of one native call and
the token travels through the opaque ``state`` pointer.

Predicates must not raise. An exception cannot cross the native boundary,
so the trampoline logs it and reports the key as excluded.
Predicates must not start another search on the same index either; the
engine gives no guarantee for re-entrant calls.
"""

import itertools
import logging
import threading
from contextlib import contextmanager
from typing import Callable, Dict, Iterator

from usearch_ctypes._ffi import FilterCallback

logger = logging.getLogger(__name__)

Predicate = Callable[[int], bool]

_registry: Dict[int, Predicate] = {}
_registry_lock = threading.Lock()
# Token 0 would reach the trampoline as a NULL state pointer
_tokens = itertools.count(1)


def _trampoline(key: int, state: int) -> int:
    predicate = _registry.get(state)
    if predicate is None:
        # Deregistered: the owning search already returned
        return 0
    try:
        return 1 if predicate(key) else 0
    except Exception:
        logger.exception("Filter predicate raised for key %d, excluding it", key)
        return 0


# Module-level so the C function pointer outlives every native call
trampoline = FilterCallback(_trampoline)


@contextmanager
def registered(predicate: Predicate) -> Iterator[int]:
    """Register ``predicate`` and yield its state token.

    The predicate is deregistered when the block exits, whether the native
    call succeeded or raised.
    """
    if not callable(predicate):
        raise TypeError(f"predicate must be callable, got {predicate!r}")

    with _registry_lock:
        token = next(_tokens)
        _registry[token] = predicate
    try:
        yield token
    finally:
        with _registry_lock:
            del _registry[token]


def active_count() -> int:
    """Number of predicates currently registered."""
    return len(_registry)
