"""Tests for the ConnectionRegistry.

Covers:
- register / lookup / snapshot
- supersede semantics (last registration wins)
- stale release from a superseded connection is a no-op
- presence signal emitted on register and on effective release only
- send_to_identity with missing and dead connections
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from starhub.services.registry import Connection, ConnectionRegistry


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def listener(registry) -> AsyncMock:
    spy = AsyncMock()
    registry.add_listener(spy)
    return spy


class TestRegisterAndLookup:
    async def test_fresh_registry_is_empty(self, registry):
        assert registry.snapshot() == set()
        assert registry.lookup("alice") is None

    async def test_register_binds_identity(self, registry, make_ws):
        conn = Connection(make_ws())
        await registry.register("alice", conn)
        assert registry.lookup("alice") is conn
        assert registry.snapshot() == {"alice"}
        assert registry.is_online("alice")

    async def test_lookup_unknown_returns_none(self, registry, make_ws):
        await registry.register("alice", Connection(make_ws()))
        assert registry.lookup("bob") is None

    async def test_register_emits_online(self, registry, listener, make_ws):
        await registry.register("alice", Connection(make_ws()))
        listener.assert_awaited_once_with("alice", True)

    async def test_connections_have_distinct_ids(self, make_ws):
        assert Connection(make_ws()).connection_id != Connection(make_ws()).connection_id


class TestSupersede:
    async def test_second_registration_wins(self, registry, make_ws):
        first = Connection(make_ws(name="first"))
        second = Connection(make_ws(name="second"))
        await registry.register("alice", first)
        previous = await registry.register("alice", second)
        assert previous is first
        assert registry.lookup("alice") is second

    async def test_never_more_than_one_entry_per_identity(self, registry, make_ws):
        for _ in range(5):
            await registry.register("alice", Connection(make_ws()))
        assert registry.snapshot() == {"alice"}
        assert len(registry.connections()) == 1

    async def test_stale_release_does_not_evict_newer_binding(self, registry, listener, make_ws):
        first = Connection(make_ws())
        second = Connection(make_ws())
        await registry.register("alice", first)
        await registry.register("alice", second)
        listener.reset_mock()

        removed = await registry.release("alice", first)

        assert removed is False
        assert registry.lookup("alice") is second
        listener.assert_not_awaited()

    async def test_reregister_same_connection_returns_none(self, registry, make_ws):
        conn = Connection(make_ws())
        await registry.register("alice", conn)
        assert await registry.register("alice", conn) is None


class TestRelease:
    async def test_release_removes_binding_and_emits_offline(self, registry, listener, make_ws):
        conn = Connection(make_ws())
        await registry.register("alice", conn)
        listener.reset_mock()

        assert await registry.release("alice", conn) is True
        assert registry.lookup("alice") is None
        listener.assert_awaited_once_with("alice", False)

    async def test_release_unknown_identity_is_noop(self, registry, listener, make_ws):
        assert await registry.release("nobody", Connection(make_ws())) is False
        listener.assert_not_awaited()

    async def test_double_release_emits_once(self, registry, listener, make_ws):
        conn = Connection(make_ws())
        await registry.register("alice", conn)
        await registry.release("alice", conn)
        await registry.release("alice", conn)
        offline_calls = [c for c in listener.await_args_list if c.args == ("alice", False)]
        assert len(offline_calls) == 1


class TestSendToIdentity:
    async def test_sends_json_to_bound_connection(self, registry, make_ws):
        ws = make_ws()
        await registry.register("alice", Connection(ws))
        assert await registry.send_to_identity("alice", {"type": "x"}) is True
        ws.send_json.assert_awaited_once_with({"type": "x"})

    async def test_unknown_identity_returns_false(self, registry):
        assert await registry.send_to_identity("ghost", {"type": "x"}) is False

    async def test_dead_socket_returns_false(self, registry, make_ws):
        await registry.register("alice", Connection(make_ws(dead=True)))
        assert await registry.send_to_identity("alice", {"type": "x"}) is False
