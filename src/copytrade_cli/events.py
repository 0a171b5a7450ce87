"""Event streaming commands."""

from __future__ import annotations

import asyncio
import json

import typer

from copytrade_cli._common import get_state, handle_error, parse_csv_items, validate_allowed_values
from copytrade_daemon.exceptions import CopyTradeError
from copytrade_daemon.models.events import EventTopic
from copytrade_sdk import Client

TOPICS = {topic.value for topic in EventTopic}


def events(
    ctx: typer.Context,
    topics: str = typer.Option(
        "all",
        "--topics",
        help="Comma-separated topic list or 'all'. Available: portfolio,copy_trades,follows,trades,market",
    ),
    user_id: str | None = typer.Option(None, "--user", help="Only stream user-scoped events for this user."),
) -> None:
    state = get_state(ctx)
    selected = _parse_topics(topics)

    async def _run() -> None:
        async with Client(socket_path=state.config.runtime.socket_path, timeout_seconds=state.config.runtime.request_timeout_seconds) as client:
            async for event in client.subscribe(selected, user_id=user_id):
                print(json.dumps(event, default=str, separators=(",", ":")), flush=True)

    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        return
    except CopyTradeError as exc:
        handle_error(exc, json_output=True)


def _parse_topics(raw: str) -> list[str]:
    text = raw.strip().lower()
    if text == "all":
        return sorted(TOPICS)

    topics = [topic.lower() for topic in parse_csv_items(raw, field_name="topics")]
    return validate_allowed_values(topics, allowed=TOPICS, field_name="topics")
