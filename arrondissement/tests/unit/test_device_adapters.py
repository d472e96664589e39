"""Unit tests for device permission gate, pushed location provider and session registry."""

from __future__ import annotations

import asyncio

from arrondissement.infra.device.location_provider import DeviceLocationProvider
from arrondissement.infra.device.permission_gate import DevicePermissionGate
from arrondissement.resolver.events.replay_buffer import ReplayBuffer
from arrondissement.resolver.ports import Coordinates, LocationRequestConfig
from arrondissement.resolver.runtime.location_session import LocationSession
from arrondissement.resolver.runtime.session_registry import SessionRegistry

PARIS = Coordinates(latitude=48.8566, longitude=2.3522)


def test_request_permission_waits_for_prompt_answer() -> None:
    gate = DevicePermissionGate()

    async def scenario() -> bool:
        waiter = asyncio.create_task(gate.request_permission())
        await asyncio.sleep(0)
        gate.resolve(True)
        return await waiter

    assert asyncio.run(scenario()) is True
    assert gate.has_fine_location_permission() is True


def test_request_permission_returns_immediately_when_granted() -> None:
    gate = DevicePermissionGate(granted=True)

    assert asyncio.run(gate.request_permission()) is True
    gate.revoke()
    assert gate.has_fine_location_permission() is False


def test_pushed_fix_feeds_subscription_and_last_known() -> None:
    provider = DeviceLocationProvider()

    async def scenario():
        assert await provider.get_last_known_location() is None
        subscription = provider.request_location_updates(LocationRequestConfig())
        assert provider.active_subscriptions == 1
        delivered = provider.push_fix(PARIS)
        fix = await subscription.next_fix()
        return delivered, fix, await provider.get_last_known_location()

    delivered, fix, last_known = asyncio.run(scenario())

    assert delivered == 1
    assert fix == PARIS
    assert last_known == PARIS
    assert provider.active_subscriptions == 0


def test_cancelled_subscription_ignores_later_fixes() -> None:
    provider = DeviceLocationProvider()

    async def scenario() -> int:
        subscription = provider.request_location_updates(LocationRequestConfig())
        subscription.cancel()
        subscription.cancel()
        return provider.push_fix(PARIS)

    assert asyncio.run(scenario()) == 0


def test_registry_reuses_handles_and_stops_on_delete() -> None:
    buffer = ReplayBuffer()

    def factory(session_id, gate, provider) -> LocationSession:
        return LocationSession(
            session_id=session_id,
            permission_gate=gate,
            location_provider=provider,
            reverse_geocoder=None,  # type: ignore[arg-type]
            replay_buffer=buffer,
        )

    registry = SessionRegistry(factory=factory, replay_buffer=buffer, permission_granted_by_default=True)

    handle = registry.create("watch-1")
    assert registry.create("watch-1") is handle
    assert handle.permission_gate.has_fine_location_permission() is True
    assert registry.list_ids() == ["watch-1"]

    assert registry.delete("watch-1") is True
    assert handle.session.closed is True
    assert registry.get("watch-1") is None
    assert registry.delete("watch-1") is False
    assert buffer.list_events("watch-1") == []


def test_registry_evicts_sessions_left_idle() -> None:
    buffer = ReplayBuffer()
    now = [1000.0]

    def factory(session_id, gate, provider) -> LocationSession:
        return LocationSession(
            session_id=session_id,
            permission_gate=gate,
            location_provider=provider,
            reverse_geocoder=None,  # type: ignore[arg-type]
            replay_buffer=buffer,
        )

    registry = SessionRegistry(
        factory=factory, replay_buffer=buffer, idle_ttl_seconds=60, clock=lambda: now[0]
    )
    stale = registry.create("stale")
    fresh = registry.create("fresh")
    buffer.append("stale", "session.started")

    now[0] += 45
    assert registry.get("fresh") is fresh
    now[0] += 30

    assert registry.get("stale") is None
    assert stale.session.closed is True
    assert buffer.list_events("stale") == []
    assert registry.list_ids() == ["fresh"]
    assert fresh.session.closed is False


def test_replay_buffer_lists_events_after_cursor() -> None:
    buffer = ReplayBuffer(max_events_per_session=10)
    first = buffer.append("s", "session.started")
    buffer.append("s", "phase.changed", {"to": "locating"})

    newer = buffer.list_events("s", first.id)

    assert [item.event for item in newer] == ["phase.changed"]
    assert newer[0].data == {"to": "locating"}
    assert buffer.list_events("other") == []
