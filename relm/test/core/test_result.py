"""Tests for relm.core.result module."""

import pytest

from relm.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    """Tests for Ok type."""

    def test_ok_is_ok(self) -> None:
        result = Ok(42)
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_ok_unwrap(self) -> None:
        assert Ok("1.1.0").unwrap() == "1.1.0"

    def test_ok_unwrap_or(self) -> None:
        """Ok.unwrap_or() returns the value, ignoring default."""
        assert Ok(42).unwrap_or(0) == 42

    def test_ok_map(self) -> None:
        assert Ok(21).map(lambda x: x * 2) == Ok(42)

    def test_repr(self) -> None:
        assert repr(Ok("x")) == "Ok('x')"


class TestErr:
    """Tests for Err type."""

    def test_err_is_err(self) -> None:
        result = Err("boom")
        assert result.is_err() is True
        assert result.is_ok() is False

    def test_err_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err: boom"):
            Err("boom").unwrap()

    def test_err_unwrap_or(self) -> None:
        assert Err("boom").unwrap_or(7) == 7

    def test_err_map_is_noop(self) -> None:
        result = Err("boom")
        assert result.map(lambda x: x * 2) is result


class TestTypeGuards:
    def test_is_ok(self) -> None:
        result: Result[int, str] = Ok(1)
        assert is_ok(result)
        assert not is_err(result)

    def test_is_err(self) -> None:
        result: Result[int, str] = Err("no")
        assert is_err(result)
        assert not is_ok(result)

    def test_pattern_matching(self) -> None:
        result: Result[int, str] = Err("no")
        match result:
            case Ok(value):
                pytest.fail(f"unexpected Ok({value})")
            case Err(error):
                assert error == "no"
