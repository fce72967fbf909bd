import asyncio

import pytest

from copaint.models.actions import CursorPosition, DrawSegment, Point
from copaint.models.events import ErrorCode
from copaint.models.intents import (
    CreateRoom,
    JoinRoom,
    KickUser,
    LeaveRoom,
    Redo,
    StartGame,
    SubmitChatMessage,
    SubmitClear,
    SubmitCursor,
    SubmitDrawSegment,
    SubmitShape,
    SubmitStroke,
    Undo,
)
from copaint.services.session_hub import SessionHub

from factories import circle, clear, rect, stroke


async def _room(hub, sink, host="A", *others):
    await hub.handle(host, CreateRoom(username=host))
    room_id = sink.deliveries[-1].event.room_id
    for other in others:
        await hub.handle(other, JoinRoom(room_id=room_id, username=other))
    sink.reset()
    return room_id


@pytest.mark.asyncio
async def test_create_room_announces_to_creator(hub, sink):
    deliveries = await hub.handle("A", CreateRoom(username="Ada"))

    assert len(deliveries) == 1
    event = deliveries[0].event
    assert deliveries[0].recipients == ("A",)
    assert event.type == "room_joined"
    assert [m.id for m in event.members] == ["A"]
    assert event.members[0].is_host


@pytest.mark.asyncio
async def test_join_notifies_existing_members_and_syncs_joiner(hub, sink):
    room_id = await _room(hub, sink, "A")
    await hub.handle("A", SubmitShape(room_id=room_id, payload=rect(user_id="A")))
    sink.reset()

    await hub.handle("B", JoinRoom(room_id=room_id, username="Bo"))

    assert sink.types_for("A") == ["member_joined"]
    assert sink.types_for("B") == ["room_joined", "history_sync"]
    joined, synced = sink.events_for("B")
    assert [m.id for m in joined.members] == ["A", "B"]
    assert [a.type for a in synced.history] == ["shape"]


@pytest.mark.asyncio
async def test_join_unknown_room_reports_only_to_caller(hub, sink):
    await _room(hub, sink, "A")

    deliveries = await hub.handle("B", JoinRoom(room_id="ZZZZZZ", username="Bo"))

    assert len(deliveries) == 1
    assert deliveries[0].recipients == ("B",)
    assert deliveries[0].event.type == "error"
    assert deliveries[0].event.code == ErrorCode.ROOM_NOT_FOUND
    assert sink.events_for("A") == []


@pytest.mark.asyncio
async def test_durable_action_echoes_to_author(hub, sink):
    room_id = await _room(hub, sink, "A", "B")
    action = stroke([(0, 0), (5, 5)], user_id="A")

    await hub.handle("A", SubmitStroke(room_id=room_id, payload=action))

    assert sink.deliveries[0].recipients == ("A", "B")
    assert sink.deliveries[0].event.action == action
    assert hub.actions_appended == 1


@pytest.mark.asyncio
async def test_clear_is_logged_not_truncating(hub, sink, registry):
    room_id = await _room(hub, sink, "A")
    await hub.handle("A", SubmitShape(room_id=room_id, payload=rect()))
    await hub.handle("A", SubmitClear(room_id=room_id, payload=clear()))
    assert [a.type for a in registry.history.history(room_id)] == ["shape", "clear"]


@pytest.mark.asyncio
async def test_undo_and_redo_broadcast_full_history(hub, sink):
    room_id = await _room(hub, sink, "A", "B")
    first, second = rect(user_id="A"), circle(user_id="B")
    await hub.handle("A", SubmitShape(room_id=room_id, payload=first))
    await hub.handle("B", SubmitShape(room_id=room_id, payload=second))
    sink.reset()

    await hub.handle("A", Undo(room_id=room_id))
    await hub.handle("B", Redo(room_id=room_id))

    undo_sync, redo_sync = sink.deliveries
    assert undo_sync.recipients == ("A", "B")
    assert undo_sync.event.history == [first]
    assert redo_sync.event.history == [first, second]


@pytest.mark.asyncio
async def test_empty_undo_and_redo_emit_nothing(hub, sink):
    room_id = await _room(hub, sink, "A", "B")

    assert await hub.handle("A", Undo(room_id=room_id)) == []
    assert await hub.handle("B", Redo(room_id=room_id)) == []
    assert sink.deliveries == []


@pytest.mark.asyncio
async def test_non_host_kick_is_silently_ignored(hub, sink, registry):
    room_id = await _room(hub, sink, "A", "B", "C")

    assert await hub.handle("B", KickUser(room_id=room_id, user_id="C")) == []

    assert sink.deliveries == []
    assert [m.id for m in registry.get_room(room_id).members] == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_kick_signals_target_then_updates_the_rest(hub, sink, registry):
    room_id = await _room(hub, sink, "A", "B", "C")

    await hub.handle("A", KickUser(room_id=room_id, user_id="B"))

    assert sink.types_for("B") == ["kicked"]
    assert sink.types_for("A") == ["member_left"]
    assert sink.events_for("C")[0].user_id == "B"
    assert [m.id for m in registry.get_room(room_id).members] == ["A", "C"]


@pytest.mark.asyncio
async def test_host_leaving_migrates_and_notifies(hub, sink):
    room_id = await _room(hub, sink, "H", "B", "C")

    await hub.handle("H", LeaveRoom(room_id=room_id))

    assert sink.types_for("B") == ["membership_updated", "member_left"]
    updated = sink.events_for("C")[0]
    assert [(m.id, m.is_host) for m in updated.members] == [("B", True), ("C", False)]
    assert sink.events_for("H") == []


@pytest.mark.asyncio
async def test_disconnect_runs_leave_for_every_room(hub, sink, registry):
    first = await _room(hub, sink, "H", "B")
    second = await _room(hub, sink, "B", "H")

    await hub.disconnect("B")

    assert [m.id for m in registry.get_room(first).members] == ["H"]
    second_room = registry.get_room(second)
    assert [(m.id, m.is_host) for m in second_room.members] == [("H", True)]


@pytest.mark.asyncio
async def test_last_member_leaving_closes_room_quietly(hub, sink, registry):
    room_id = await _room(hub, sink, "A")
    assert await hub.handle("A", LeaveRoom(room_id=room_id)) == []
    assert registry.get_room(room_id) is None


@pytest.mark.asyncio
async def test_start_game_requires_host(hub, sink):
    room_id = await _room(hub, sink, "A", "B")

    assert await hub.handle("B", StartGame(room_id=room_id)) == []
    deliveries = await hub.handle("A", StartGame(room_id=room_id))

    assert deliveries[0].event.type == "game_started"
    assert deliveries[0].recipients == ("A", "B")


@pytest.mark.asyncio
async def test_ephemeral_events_skip_the_sender(hub, sink):
    room_id = await _room(hub, sink, "A", "B", "C")
    segment = DrawSegment(prev_point=Point(x=0, y=0), current_point=Point(x=3, y=3), color="#000")
    position = CursorPosition(user_id="A", x=4, y=5)

    await hub.handle("A", SubmitDrawSegment(room_id=room_id, data=segment))
    await hub.handle("A", SubmitCursor(room_id=room_id, data=position))

    assert [d.recipients for d in sink.deliveries] == [("B", "C"), ("B", "C")]


@pytest.mark.asyncio
async def test_chat_echoes_to_sender(hub, sink):
    room_id = await _room(hub, sink, "A", "B")
    await hub.handle("A", SubmitChatMessage(room_id=room_id, message={"text": "hi"}))
    assert sink.deliveries[0].recipients == ("A", "B")
    assert sink.deliveries[0].event.message == {"text": "hi"}


@pytest.mark.asyncio
async def test_intents_from_non_members_are_ignored(hub, sink, registry):
    room_id = await _room(hub, sink, "A")

    assert await hub.handle("X", SubmitShape(room_id=room_id, payload=rect())) == []
    assert await hub.handle("X", Undo(room_id=room_id)) == []
    assert registry.history.history(room_id) == []


@pytest.mark.asyncio
async def test_room_ids_are_case_insensitive(hub, sink):
    room_id = await _room(hub, sink, "A")
    await hub.handle("B", JoinRoom(room_id=room_id.lower(), username="Bo"))
    assert sink.types_for("B") == ["room_joined", "history_sync"]


@pytest.mark.asyncio
async def test_concurrent_appends_reach_everyone_in_history_order(registry):
    order = []

    async def slow_sink(delivery):
        # Yield while delivering so interleaving would show if locking failed
        await asyncio.sleep(0)
        order.append(delivery.event.action.id)

    hub = SessionHub(registry)
    await hub.handle("A", CreateRoom(username="A"))
    room_id = registry.list_rooms()[0].id
    hub.sink = slow_sink

    actions = [rect(user_id="A") for _ in range(10)]
    await asyncio.gather(*(
        hub.handle("A", SubmitShape(room_id=room_id, payload=a)) for a in actions
    ))

    assert order == [a.id for a in registry.history.history(room_id)]
