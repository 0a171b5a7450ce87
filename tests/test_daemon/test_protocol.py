from __future__ import annotations

import asyncio

import pytest

from copytrade_daemon.protocol import Request, decode_request, encode_model, frame_payload, read_framed


async def _roundtrip(payload: bytes) -> bytes:
    reader = asyncio.StreamReader()
    reader.feed_data(payload)
    reader.feed_eof()
    return await read_framed(reader)


def test_protocol_roundtrip() -> None:
    req = Request(command="trader.follow", params={"user_id": "alice", "trader_id": 3}, source="cli")
    framed = frame_payload(encode_model(req))

    out = decode_request(asyncio.run(_roundtrip(framed)))

    assert out.command == "trader.follow"
    assert out.params == {"user_id": "alice", "trader_id": 3}
    assert out.source == "cli"
    assert out.request_id == req.request_id


def test_truncated_frame_raises_incomplete_read() -> None:
    framed = frame_payload(encode_model(Request(command="daemon.status")))

    with pytest.raises(asyncio.IncompleteReadError):
        asyncio.run(_roundtrip(framed[:-2]))
