"""Tests for the error channel and library discovery."""

import ctypes

import pytest

from usearch_ctypes import MetricKind, ScalarKind, _ffi, version
from usearch_ctypes.exceptions import (
    InvalidArgumentError,
    LibraryNotFoundError,
    NativeError,
)


class TestCheckError:
    """Only a non-empty message counts as a failure."""

    def test_null_pointer_is_success(self):
        _ffi.check_error(ctypes.c_char_p())

    def test_empty_string_is_success(self):
        _ffi.check_error(ctypes.c_char_p(b""))

    def test_message_is_raised(self):
        with pytest.raises(NativeError) as excinfo:
            _ffi.check_error(ctypes.c_char_p(b"Index is immutable"))
        assert str(excinfo.value) == "Index is immutable"

    def test_message_is_copied(self):
        raw = ctypes.create_string_buffer(b"transient message")
        error = ctypes.cast(raw, ctypes.c_char_p)
        with pytest.raises(NativeError) as excinfo:
            _ffi.check_error(error)
        raw.value = b"overwritten"
        assert str(excinfo.value) == "transient message"

    def test_invalid_utf8(self):
        with pytest.raises(NativeError, match="bad"):
            _ffi.check_error(ctypes.c_char_p(b"bad \xff byte"))


class TestCall:
    """call() appends the error out-parameter and checks it."""

    def test_success_returns_result(self, engine):
        assert _ffi.call("usearch_distance", *_pair([1.0, 0.0], [1.0, 0.0])) == 0.0

    def test_failure_raises(self, engine):
        engine.fail_next["usearch_distance"] = "Unsupported metric"
        with pytest.raises(NativeError, match="Unsupported metric"):
            _ffi.call("usearch_distance", *_pair([1.0], [1.0]))

    def test_version(self, engine):
        assert version() == "2.16.0"


def _pair(a, b):
    a = (ctypes.c_float * len(a))(*a)
    b = (ctypes.c_float * len(b))(*b)
    return (
        ctypes.cast(a, ctypes.c_void_p),
        ctypes.cast(b, ctypes.c_void_p),
        ScalarKind.F32,
        len(a),
        MetricKind.COS,
    )


class TestEnums:
    """Test metric and scalar kind parsing."""

    def test_parse_names(self):
        assert MetricKind.parse("cos") is MetricKind.COS
        assert MetricKind.parse(" L2SQ ") is MetricKind.L2SQ
        assert ScalarKind.parse("f16") is ScalarKind.F16

    def test_parse_values(self):
        assert MetricKind.parse(3) is MetricKind.L2SQ
        assert ScalarKind.parse(ScalarKind.B1) is ScalarKind.B1

    def test_parse_unknown(self):
        with pytest.raises(InvalidArgumentError):
            MetricKind.parse("euclid")
        with pytest.raises(InvalidArgumentError):
            ScalarKind.parse(99)


class TestFindLibrary:
    """Test library discovery."""

    def test_env_directory(self, tmp_path, monkeypatch):
        lib = tmp_path / _ffi._get_library_name()
        lib.write_bytes(b"")
        monkeypatch.setenv("USEARCH_LIB_PATH", str(tmp_path))
        assert _ffi._find_library() == lib

    def test_env_file(self, tmp_path, monkeypatch):
        lib = tmp_path / "custom_usearch.so"
        lib.write_bytes(b"")
        monkeypatch.setenv("USEARCH_LIB_PATH", str(lib))
        assert _ffi._find_library() == lib

    def test_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("USEARCH_LIB_PATH", str(tmp_path))
        monkeypatch.setattr("ctypes.util.find_library", lambda name: None)
        with pytest.raises(LibraryNotFoundError, match="USEARCH_LIB_PATH"):
            _ffi._find_library()

    def test_not_found_is_file_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("USEARCH_LIB_PATH", str(tmp_path))
        monkeypatch.setattr("ctypes.util.find_library", lambda name: None)
        monkeypatch.setattr(_ffi, "_lib", None)
        assert not _ffi.is_available()
        with pytest.raises(FileNotFoundError):
            _ffi.get_lib()

    def test_configure_sets_error_parameter(self):
        class Func:
            pass

        class Lib:
            def __getattr__(self, name):
                func = Func()
                setattr(self, name, func)
                return func

        lib = _ffi._configure(Lib())
        assert lib.usearch_add.argtypes[-1] is _ffi.ErrorPtr
        assert lib.usearch_search.restype is ctypes.c_size_t
        assert lib.usearch_version.argtypes == []
