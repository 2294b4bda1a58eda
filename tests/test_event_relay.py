import asyncio

import pytest

from conftest import RecordingSocket, StalledSocket
from wcpilot.services.event_relay import EventRelay


@pytest.mark.asyncio
async def test_publish_reaches_every_connection_of_the_user():
    relay = EventRelay()
    first, second, other = RecordingSocket(), RecordingSocket(), RecordingSocket()
    await relay.register("user-a", first)
    await relay.register("user-a", second)
    await relay.register("user-b", other)

    delivered = await relay.publish("user-a", "instance-created", "bot1", status="created")

    assert delivered == 2
    expected = {"type": "instance-created", "instanceName": "bot1", "status": "created"}
    assert first.sent == [expected]
    assert second.sent == [expected]
    assert other.sent == []


@pytest.mark.asyncio
async def test_publish_without_session_is_a_noop():
    relay = EventRelay()
    assert await relay.publish("nobody", "instance-deleted", "bot1") == 0


@pytest.mark.asyncio
async def test_failing_connection_is_pruned_and_never_raises():
    relay = EventRelay()
    healthy, broken = RecordingSocket(), RecordingSocket(fail=True)
    await relay.register("user-a", healthy)
    await relay.register("user-a", broken)

    delivered = await relay.publish("user-a", "message-sent", "bot1", messageId="m1")

    assert delivered == 1
    assert await relay.connection_count("user-a") == 1


@pytest.mark.asyncio
async def test_unregister_last_connection_drops_channel():
    relay = EventRelay()
    socket = RecordingSocket()
    await relay.register("user-a", socket)
    await relay.unregister("user-a", socket)
    await relay.unregister("user-a", socket)

    assert await relay.connection_count("user-a") == 0
    assert await relay.publish("user-a", "instance-created", "bot1") == 0
    assert socket.sent == []


@pytest.mark.asyncio
async def test_unknown_event_type_is_dropped():
    relay = EventRelay()
    socket = RecordingSocket()
    await relay.register("user-a", socket)

    assert await relay.publish("user-a", "instance-exploded", "bot1") == 0
    assert socket.sent == []


@pytest.mark.asyncio
async def test_stalled_connection_times_out_and_is_pruned():
    relay = EventRelay(send_timeout=0.05)
    healthy, stalled = RecordingSocket(), StalledSocket()
    await relay.register("user-a", healthy)
    await relay.register("user-a", stalled)

    delivered = await asyncio.wait_for(relay.publish("user-a", "instance-created", "bot1"), 1)

    assert delivered == 1
    assert healthy.sent == [{"type": "instance-created", "instanceName": "bot1"}]
    assert await relay.connection_count("user-a") == 1
