"""Async Python SDK for copytrade-daemon."""

from copytrade_sdk.client import Client
from copytrade_sdk.types import (
    AUDIT_SOURCES,
    COPY_SETTING_FIELDS,
    EVENT_TOPICS,
    POSITION_SIZE_TYPES,
    REJECTION_CODES,
    TRADE_SIDES,
)

__all__ = [
    "AUDIT_SOURCES",
    "COPY_SETTING_FIELDS",
    "Client",
    "EVENT_TOPICS",
    "POSITION_SIZE_TYPES",
    "REJECTION_CODES",
    "TRADE_SIDES",
]
