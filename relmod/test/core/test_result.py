"""Tests for relmod.core.result module."""

import pytest

from relmod.core.result import Err, Ok, Result


def _parse_build_number(raw: str) -> Result[int, str]:
    if not raw.isdigit():
        return Err(f"not a build number: {raw}")
    return Ok(int(raw))


class TestOk:
    def test_holds_value(self) -> None:
        assert Ok(42).value == 42

    def test_equality(self) -> None:
        assert Ok(42) == Ok(42)
        assert Ok(42) != Ok(43)
        assert Ok(42) != Err(42)

    def test_frozen(self) -> None:
        result = Ok(42)
        with pytest.raises(AttributeError):
            result.value = 0  # type: ignore[misc]

    def test_repr(self) -> None:
        assert repr(Ok("x")) == "Ok('x')"


class TestErr:
    def test_holds_error(self) -> None:
        assert Err("boom").error == "boom"

    def test_repr(self) -> None:
        assert repr(Err("boom")) == "Err('boom')"


def test_isinstance_narrowing() -> None:
    result = _parse_build_number("12a")
    assert isinstance(result, Err)
    assert result.error == "not a build number: 12a"


def test_pattern_matching() -> None:
    match _parse_build_number("42"):
        case Ok(value):
            assert value == 42
        case Err(_):
            pytest.fail("expected Ok")
