"""Audit query helpers."""

from __future__ import annotations

from typing import Any

from copytrade_daemon.audit.logger import AuditLogger


def _where_clause(filters: dict[str, Any]) -> tuple[str, list[Any]]:
    clauses: list[str] = []
    values: list[Any] = []
    for key, value in filters.items():
        if value is None:
            continue
        clauses.append(f"{key} = ?")
        values.append(value)
    if not clauses:
        return "", values
    return "WHERE " + " AND ".join(clauses), values


def _with_since(where: str, values: list[Any], since: str | None) -> str:
    if not since:
        return where
    values.append(since)
    return f"{where} {'AND' if where else 'WHERE'} timestamp >= ?"


def _limit_clause(values: list[Any], limit: int | None) -> str:
    if limit is None:
        return ""
    values.append(int(limit))
    return " LIMIT ?"


async def query_commands(
    logger: AuditLogger,
    *,
    source: str | None = None,
    since: str | None = None,
    request_id: str | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    where, values = _where_clause({"source": source, "request_id": request_id})
    where = _with_since(where, values, since)
    limit_sql = _limit_clause(values, limit)
    return await logger.fetch_all(
        f"SELECT timestamp, source, command, arguments, result_code, request_id FROM commands {where} ORDER BY id DESC{limit_sql}",
        tuple(values),
    )


async def query_fills(
    logger: AuditLogger,
    *,
    user_id: str | None = None,
    symbol: str | None = None,
    source: str | None = None,
    since: str | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    where, values = _where_clause(
        {"user_id": user_id, "symbol": symbol.upper() if symbol else None, "source": source}
    )
    where = _with_since(where, values, since)
    limit_sql = _limit_clause(values, limit)
    return await logger.fetch_all(
        f"SELECT * FROM fills {where} ORDER BY id DESC{limit_sql}",
        tuple(values),
    )


async def query_rejections(
    logger: AuditLogger,
    *,
    user_id: str | None = None,
    code: str | None = None,
    since: str | None = None,
    limit: int | None = None,
) -> list[dict[str, Any]]:
    where, values = _where_clause({"user_id": user_id, "code": code.upper() if code else None})
    where = _with_since(where, values, since)
    limit_sql = _limit_clause(values, limit)
    return await logger.fetch_all(
        f"SELECT timestamp, user_id, trader_id, symbol, side, quantity, code, message, details FROM rejections {where} ORDER BY id DESC{limit_sql}",
        tuple(values),
    )
