"""Unit tests for wasmsql.values module."""

from __future__ import annotations

import pytest

from wasmsql.errors import ArityError
from wasmsql.values import CallRequest, ScalarKind, WasmKind, scalar_kind


class TestScalarKind:
    """Tests for scalar_kind function."""

    @pytest.mark.parametrize(
        ("value", "kind"),
        [
            (None, ScalarKind.NULL),
            (0, ScalarKind.INTEGER),
            (-(2**63), ScalarKind.INTEGER),
            (True, ScalarKind.INTEGER),
            (3.5, ScalarKind.FLOAT),
            ("abc", ScalarKind.TEXT),
            ("", ScalarKind.TEXT),
            (b"\x00\x01", ScalarKind.BLOB),
            (bytearray(b"x"), ScalarKind.BLOB),
            (memoryview(b"x"), ScalarKind.BLOB),
        ],
    )
    def test_sqlite_values(self, value, kind) -> None:
        """Test classification of every value sqlite3 can produce."""
        assert scalar_kind(value) is kind

    def test_non_sql_values(self) -> None:
        """Test that values sqlite3 never produces have no kind."""
        assert scalar_kind([1, 2]) is None
        assert scalar_kind(object()) is None
        assert scalar_kind(1j) is None


class TestWasmKind:
    """Tests for the mapping between WasmKind and runtime value types."""

    def test_valtype_round_trip(self) -> None:
        """Test that each kind maps back from its own value type."""
        for kind in WasmKind:
            assert WasmKind.from_valtype(kind.valtype()) is kind


class TestCallRequest:
    """Tests for CallRequest.from_arguments."""

    def test_no_arguments(self) -> None:
        """Test that an empty call is an arity error."""
        with pytest.raises(ArityError):
            CallRequest.from_arguments(())

    def test_one_argument(self) -> None:
        """Test that source alone is an arity error."""
        with pytest.raises(ArityError) as excinfo:
            CallRequest.from_arguments(("(module)",))
        assert "at least 2" in str(excinfo.value)

    def test_source_and_name_only(self) -> None:
        """Test a call with no function arguments."""
        request = CallRequest.from_arguments(("(module)", "f"))
        assert request.source == "(module)"
        assert request.export_name == "f"
        assert request.arguments == ()

    def test_arguments_keep_order(self) -> None:
        """Test that function arguments keep their call order."""
        request = CallRequest.from_arguments(["src", "f", 1, None, 2.5])
        assert request.arguments == (1, None, 2.5)
        assert len(request.arguments) == 3
