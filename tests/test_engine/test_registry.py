from __future__ import annotations

import pytest

from copytrade_daemon.engine.registry import FollowRegistry, PortfolioStore
from copytrade_daemon.exceptions import CopyTradeError, ErrorCode
from copytrade_daemon.models.copy import CopySettings


def test_create_uses_default_balance_and_reuses_existing_user() -> None:
    store = PortfolioStore(initial_balance=5_000.0)
    first = store.create("alice")
    second = store.create("alice", initial_balance=1.0)

    assert first is second
    assert first.cash_balance == 5_000.0
    assert len(store) == 1
    assert "alice" in store


def test_create_generates_user_id_and_rejects_negative_balance() -> None:
    store = PortfolioStore()
    portfolio = store.create()
    assert portfolio.user_id
    assert portfolio.cash_balance == 100_000.0

    with pytest.raises(CopyTradeError) as exc:
        store.create("bob", initial_balance=-1)
    assert exc.value.code == ErrorCode.INVALID_ARGS


def test_require_unknown_user_raises() -> None:
    with pytest.raises(CopyTradeError) as exc:
        PortfolioStore().require("ghost")
    assert exc.value.code == ErrorCode.UNKNOWN_USER
    assert exc.value.suggestion


def test_remove_drops_portfolio() -> None:
    store = PortfolioStore()
    store.create("alice")
    assert store.remove("alice") is True
    assert store.remove("alice") is False
    assert store.get("alice") is None


def test_follow_is_idempotent() -> None:
    store = PortfolioStore()
    store.create("alice")
    registry = FollowRegistry(store)

    assert registry.follow("alice", 1) is True
    assert registry.follow("alice", 1) is False
    assert registry.is_following("alice", 1)


def test_unfollow_disables_copy_settings() -> None:
    store = PortfolioStore()
    store.create("alice")
    registry = FollowRegistry(store)
    registry.update_copy_settings("alice", 2, CopySettings(position_size=500))

    assert registry.unfollow("alice", 2) is True

    assert not registry.is_following("alice", 2)
    settings = registry.get_copy_settings("alice", 2)
    assert settings is not None
    assert settings.enabled is False
    assert settings.position_size == 500


def test_update_copy_settings_also_follows() -> None:
    store = PortfolioStore()
    store.create("alice")
    registry = FollowRegistry(store)

    assert registry.update_copy_settings("alice", 3, CopySettings()) is True
    assert registry.is_following("alice", 3)


def test_stop_copying_keeps_follow() -> None:
    store = PortfolioStore()
    store.create("alice")
    registry = FollowRegistry(store)
    registry.update_copy_settings("alice", 4, CopySettings())

    assert registry.stop_copying("alice", 4) is True
    assert registry.stop_copying("alice", 4) is False
    assert registry.is_following("alice", 4)


def test_unknown_user_operations_are_noops() -> None:
    registry = FollowRegistry(PortfolioStore())

    assert registry.follow("ghost", 1) is False
    assert registry.unfollow("ghost", 1) is False
    assert registry.update_copy_settings("ghost", 1, CopySettings()) is False
    assert registry.stop_copying("ghost", 1) is False
    assert registry.get_copy_settings("ghost", 1) is None
