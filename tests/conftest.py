"""Shared fixtures for usearch_ctypes tests."""

import gc

import pytest

from usearch_ctypes import _ffi, _filters

from fake_engine import FakeEngine


@pytest.fixture
def engine(monkeypatch):
    """Install a fake native function table in place of libusearch_c."""
    fake = FakeEngine()
    monkeypatch.setattr(_ffi, "_lib", fake)
    yield fake
    # Finalize indexes dropped by the test while the fake is still installed
    gc.collect()
    assert _filters.active_count() == 0


@pytest.fixture
def native_lib():
    """Skip unless the real libusearch_c can be loaded."""
    if not _ffi.is_available():
        pytest.skip("libusearch_c not found (set USEARCH_LIB_PATH)")
    return _ffi.get_lib()
