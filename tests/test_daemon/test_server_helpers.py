from __future__ import annotations

from pydantic import BaseModel, ValidationError
import pytest

from copytrade_daemon.daemon.server import (
    KNOWN_COMMANDS,
    _command_schema_registry,
    _invalid_args_error,
    _parse_positive_int,
    _parse_trader_id,
    _unknown_command_error,
)
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode


def test_unknown_command_error_has_suggestion() -> None:
    error = _unknown_command_error("copy.setings.set")
    assert error.code.value == "INVALID_ARGS"
    assert error.suggestion
    assert "copy.settings.set" in error.suggestion


def test_invalid_args_error_from_keyerror() -> None:
    error = _invalid_args_error(KeyError("user_id"))
    assert error.code.value == "INVALID_ARGS"
    assert "missing required parameter" in error.message
    assert error.details["missing_param"] == "user_id"


def test_invalid_args_error_from_validation_error() -> None:
    class _Model(BaseModel):
        quantity: int

    with pytest.raises(ValidationError) as exc:
        _Model.model_validate({"quantity": "many"})

    error = _invalid_args_error(exc.value)
    assert error.message == "request validation failed"
    assert error.details["validation"]


def test_parse_trader_id_rejects_booleans_and_text() -> None:
    assert _parse_trader_id("7") == 7
    for raw in (None, True, "seven"):
        with pytest.raises(CopyTradeError) as exc:
            _parse_trader_id(raw)
        assert exc.value.code == ErrorCode.INVALID_ARGS


def test_parse_positive_int_enforces_minimum() -> None:
    assert _parse_positive_int("3", field_name="limit", min_value=1) == 3
    with pytest.raises(CopyTradeError):
        _parse_positive_int(0, field_name="limit", min_value=1)


def test_schema_registry_covers_every_command() -> None:
    registry = _command_schema_registry()
    assert set(registry) == set(KNOWN_COMMANDS)
    assert registry["trade.manual"]["params"]["required"] == ["user_id", "side", "symbol", "quantity"]
