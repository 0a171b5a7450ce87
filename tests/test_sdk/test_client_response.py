from __future__ import annotations

import pytest

from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.protocol import ErrorResponse, Response
from copytrade_sdk import COPY_SETTING_FIELDS, EVENT_TOPICS, Client
from copytrade_sdk.client import _unwrap_response


def test_unwrap_success() -> None:
    response = Response(request_id="1", ok=True, data={"user_id": "alice"})
    assert _unwrap_response(response) == {"user_id": "alice"}


def test_unwrap_error() -> None:
    response = Response(
        request_id="1",
        ok=False,
        error=ErrorResponse(code=ErrorCode.INSUFFICIENT_FUNDS.value, message="insufficient cash", details={"required": 500}),
    )
    with pytest.raises(CopyTradeError) as exc:
        _unwrap_response(response)
    assert exc.value.code == ErrorCode.INSUFFICIENT_FUNDS
    assert exc.value.details == {"required": 500}


def test_unwrap_unknown_error_code_maps_to_internal() -> None:
    response = Response(request_id="1", ok=False, error=ErrorResponse(code="SOMETHING_NEW", message="?"))
    with pytest.raises(CopyTradeError) as exc:
        _unwrap_response(response)
    assert exc.value.code == ErrorCode.INTERNAL_ERROR


def test_exported_constants_are_non_empty() -> None:
    assert "copy_trades" in EVENT_TOPICS
    assert "max_position_size" in COPY_SETTING_FIELDS


@pytest.mark.asyncio
async def test_missing_socket_raises_daemon_not_running(tmp_path, fake_home) -> None:
    client = Client(socket_path=tmp_path / "absent.sock", timeout_seconds=1)

    with pytest.raises(CopyTradeError) as exc:
        await client.daemon_status()

    assert exc.value.code == ErrorCode.DAEMON_NOT_RUNNING
    assert exc.value.exit_code == 3
