"""Error hierarchy and code mapping for copytrade."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    DAEMON_NOT_RUNNING = "DAEMON_NOT_RUNNING"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    INSUFFICIENT_SHARES = "INSUFFICIENT_SHARES"
    UNKNOWN_USER = "UNKNOWN_USER"
    UNKNOWN_TRADER = "UNKNOWN_TRADER"
    QUOTE_UNAVAILABLE = "QUOTE_UNAVAILABLE"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    INVALID_TRADE = "INVALID_TRADE"
    INVALID_ARGS = "INVALID_ARGS"
    TIMEOUT = "TIMEOUT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


EXIT_CODE_BY_ERROR: dict[ErrorCode, int] = {
    ErrorCode.INVALID_ARGS: 2,
    ErrorCode.DAEMON_NOT_RUNNING: 3,
    ErrorCode.UNKNOWN_USER: 4,
    ErrorCode.UNKNOWN_TRADER: 4,
    ErrorCode.INSUFFICIENT_FUNDS: 5,
    ErrorCode.INSUFFICIENT_SHARES: 5,
    ErrorCode.INVALID_TRADE: 6,
    ErrorCode.INVALID_CONFIGURATION: 6,
    ErrorCode.TIMEOUT: 10,
}

# Rejections that leave the portfolio untouched and are reported, never retried.
REJECTION_CODES = frozenset({ErrorCode.INSUFFICIENT_FUNDS, ErrorCode.INSUFFICIENT_SHARES, ErrorCode.INVALID_TRADE})


class CopyTradeError(Exception):
    """Base typed exception converted to protocol error responses."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.suggestion = suggestion

    @property
    def exit_code(self) -> int:
        return EXIT_CODE_BY_ERROR.get(self.code, 1)

    @property
    def is_rejection(self) -> bool:
        return self.code in REJECTION_CODES

    def to_error_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }
        if self.suggestion:
            payload["suggestion"] = self.suggestion
        return payload
