import numpy as np
import pytest

from copaint.client import CanvasReplica
from copaint.models.actions import DrawSegment, Point
from copaint.models.events import EventName
from copaint.raster import reconstruct
from copaint.transport import LocalBusTransport

from factories import circle, clear, fill, rect

SIZE = (160, 140)


async def _participant(channel="replica_channel"):
    transport = LocalBusTransport(channel, segment_interval_ms=0)
    replica = CanvasReplica(transport, *SIZE)
    rooms = []
    transport.on(EventName.ROOM_JOINED, lambda e: rooms.append(e.room_id))
    await transport.connect()
    return transport, replica, rooms


@pytest.mark.asyncio
async def test_replicas_converge_after_undo_and_late_join():
    a, replica_a, rooms = await _participant()
    b, replica_b, _ = await _participant()
    await a.create_room("Ada")
    room_id = rooms[0]
    await b.join_room(room_id, "Bo")

    first = rect(user_id=a.current_user_id)
    second = circle(user_id=b.current_user_id)
    await a.submit_shape(room_id, first)
    await b.submit_shape(room_id, second)
    both = reconstruct([first, second], SIZE)
    assert np.array_equal(replica_a.pixels(), both)
    assert np.array_equal(replica_b.pixels(), both)

    await a.undo(room_id)

    expected = reconstruct([first], SIZE)
    assert replica_a.history == [first]
    assert np.array_equal(replica_a.pixels(), expected)
    assert np.array_equal(replica_b.pixels(), expected)

    c, replica_c, _ = await _participant()
    await c.join_room(room_id, "Cy")
    assert replica_c.history == [first]
    assert np.array_equal(replica_c.pixels(), expected)


@pytest.mark.asyncio
async def test_clear_fill_and_redo_stay_in_step():
    a, replica_a, rooms = await _participant()
    b, replica_b, _ = await _participant()
    await a.create_room("Ada")
    room_id = rooms[0]
    await b.join_room(room_id, "Bo")

    await a.submit_shape(room_id, rect(width=3))
    await b.submit_fill(room_id, fill((30, 25), "#00ff00"))
    await a.submit_clear(room_id, clear())
    await b.undo(room_id)
    await b.redo(room_id)
    await b.undo(room_id)

    assert replica_a.history == replica_b.history
    assert [x.type for x in replica_a.history] == ["shape", "fill"]
    assert np.array_equal(replica_a.pixels(), reconstruct(replica_a.history, SIZE))
    assert np.array_equal(replica_a.pixels(), replica_b.pixels())


@pytest.mark.asyncio
async def test_live_segments_vanish_on_resync():
    a, replica_a, rooms = await _participant()
    b, replica_b, _ = await _participant()
    await a.create_room("Ada")
    room_id = rooms[0]
    await b.join_room(room_id, "Bo")
    await a.submit_shape(room_id, rect())

    segment = DrawSegment(
        prev_point=Point(x=5, y=100), current_point=Point(x=150, y=100), color="#ff0000", width=4,
    )
    await a.submit_draw_segment(room_id, segment)
    assert replica_b.pixels().any(axis=-1)[100].sum() > 0
    assert not np.array_equal(replica_b.pixels(), replica_a.pixels())

    await a.undo(room_id)
    assert not replica_b.pixels().any()


@pytest.mark.asyncio
async def test_resize_replays_history():
    a, replica, rooms = await _participant()
    await a.create_room("Ada")
    action = rect()
    await a.submit_shape(rooms[0], action)

    replica.resize(300, 200)

    assert replica.raster.size == (300, 200)
    assert np.array_equal(replica.pixels(), reconstruct([action], (300, 200)))


@pytest.mark.asyncio
async def test_closed_replica_stops_listening():
    a, replica, rooms = await _participant()
    await a.create_room("Ada")
    replica.close()
    await a.submit_shape(rooms[0], rect())
    assert replica.history == []
    assert not replica.pixels().any()
