"""Async audit journal backed by SQLite."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite

from copytrade_daemon.audit.schema import SCHEMA_STATEMENTS
from copytrade_daemon.exceptions import CopyTradeError
from copytrade_daemon.models.trades import Trade


class AuditLogger:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def start(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row
        for statement in SCHEMA_STATEMENTS:
            await self._conn.execute(statement)
        await self._conn.commit()

    async def close(self) -> None:
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def _execute(self, query: str, params: tuple[Any, ...]) -> None:
        if not self._conn:
            raise RuntimeError("AuditLogger has not been started")
        await self._conn.execute(query, params)
        await self._conn.commit()

    async def log_command(
        self,
        source: str,
        command: str,
        arguments: dict[str, Any],
        result_code: int,
        *,
        request_id: str | None = None,
    ) -> None:
        await self._execute(
            "INSERT INTO commands (timestamp, source, command, arguments, result_code, request_id) VALUES (?, ?, ?, ?, ?, ?)",
            (
                datetime.now(UTC).isoformat(),
                source,
                command,
                json.dumps(arguments, sort_keys=True, default=str),
                result_code,
                request_id,
            ),
        )

    async def log_fill(self, user_id: str, trade: Trade) -> None:
        await self._execute(
            """
            INSERT OR IGNORE INTO fills (
                trade_id, user_id, trader_id, symbol, side, quantity, price,
                profit_loss, source, copied_from, timestamp
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                trade.id,
                user_id,
                trade.trader_id,
                trade.symbol,
                trade.side.value,
                trade.quantity,
                trade.price,
                trade.profit_loss,
                trade.source.value,
                trade.copied_from,
                trade.timestamp.isoformat(),
            ),
        )

    async def log_rejection(self, user_id: str, trade: Trade, error: CopyTradeError) -> None:
        await self._execute(
            """
            INSERT INTO rejections (
                timestamp, user_id, trader_id, symbol, side, quantity, code, message, details
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                datetime.now(UTC).isoformat(),
                user_id,
                trade.trader_id,
                trade.symbol,
                trade.side.value,
                trade.quantity,
                error.code.value,
                error.message,
                json.dumps(error.details, sort_keys=True, default=str),
            ),
        )

    async def fetch_all(self, query: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        if not self._conn:
            raise RuntimeError("AuditLogger has not been started")
        async with self._conn.execute(query, params) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]
