"""
Tests for the relay protocol handler.

Tests:
- Room lifecycle over the message protocol
- Broadcast vs. requester-only rejection
- Request validation
- Disconnect teardown and dead connections
"""

import asyncio

from ..api.relay import RelayHandler
from ..session import SessionManager
from .conftest import FakeParticipant


OPENING = [4, 4, 4, 4, 4, 4, 0, 4, 4, 4, 4, 4, 4, 0]


async def _open_room(relay, first, second):
    await relay.handle(first, {"type": "create"})
    code = first.last["payload"]["code"]
    await relay.handle(second, {"type": "join", "code": code})
    first.clear()
    second.clear()
    return code


class TestLifecycle:
    """Create, join, move, reset."""

    def test_create(self, relay, alice):
        asyncio.run(relay.handle(alice, {"type": "create"}))

        message = alice.last
        assert message["type"] == "room_created"
        payload = message["payload"]
        assert len(payload["code"]) == 6
        assert payload["seat"] == "A"
        assert payload["seat_count"] == 1
        assert payload["state"]["board"] == OPENING
        assert payload["state"]["status_message"] == "PLAYER A TURN"

    def test_join_notifies_both_seats(self, relay, alice, bob):
        async def scenario():
            await relay.handle(alice, {"type": "create"})
            code = alice.last["payload"]["code"]
            await relay.handle(bob, {"type": "join", "code": code})
            return code

        code = asyncio.run(scenario())

        assert [m["type"] for m in alice.messages] == ["room_created", "game_starting", "game_update"]
        assert [m["type"] for m in bob.messages] == ["joined_room", "game_update"]

        joined = bob.of_type("joined_room")[0]["payload"]
        assert joined["seat"] == "B"
        assert joined["seat_count"] == 2
        assert alice.of_type("game_starting")[0]["payload"] == {"code": code, "seat_count": 2}
        assert alice.last == bob.last
        assert alice.last["payload"]["last_move"] is None

    def test_move_is_broadcast(self, relay, alice, bob):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.handle(alice, {"type": "move", "code": code, "pit_index": 2})

        asyncio.run(scenario())

        assert alice.messages == bob.messages
        update = alice.last
        assert update["type"] == "game_update"
        state = update["payload"]["state"]
        assert state["board"] == [4, 4, 0, 5, 5, 5, 1, 4, 4, 4, 4, 4, 4, 0]
        assert state["current_player"] == "A"
        assert state["status_message"] == "PLAYER A GOES AGAIN!"
        last_move = update["payload"]["last_move"]
        assert last_move["outcome"] == "extra_turn"
        assert last_move["sown_slots"] == [3, 4, 5, 6]

    def test_move_accepts_camel_case(self, relay, alice, bob):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.handle(alice, {"type": "move", "roomCode": code.lower(), "pitIndex": 0})

        asyncio.run(scenario())

        assert bob.last["type"] == "game_update"
        assert bob.last["payload"]["state"]["current_player"] == "B"

    def test_alternating_moves(self, relay, alice, bob):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.handle(alice, {"type": "move", "code": code, "pit_index": 0})
            await relay.handle(bob, {"type": "move", "code": code, "pit_index": 7})
            return code

        asyncio.run(scenario())

        assert len(alice.of_type("game_update")) == 2
        assert alice.last["payload"]["state"]["board"] == [0, 5, 5, 5, 5, 4, 0, 0, 5, 5, 5, 5, 4, 0]
        assert alice.last["payload"]["state"]["current_player"] == "A"

    def test_reset(self, relay, alice, bob):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.handle(alice, {"type": "move", "code": code, "pit_index": 0})
            await relay.handle(bob, {"type": "reset", "code": code})

        asyncio.run(scenario())

        assert alice.last == bob.last
        assert alice.last["type"] == "game_update"
        assert alice.last["payload"]["state"]["board"] == OPENING
        assert alice.last["payload"]["state"]["current_player"] == "A"

    def test_ping(self, relay, alice):
        asyncio.run(relay.handle(alice, {"type": "ping"}))
        assert alice.last == {"type": "pong", "payload": None}


class TestRejections:
    """Errors go only to the requester."""

    def test_wrong_turn(self, relay, alice, bob):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.handle(bob, {"type": "move", "code": code, "pit_index": 8})
            return code

        code = asyncio.run(scenario())

        assert alice.messages == []
        assert bob.last["type"] == "error"
        assert bob.last["payload"]["error_code"] == "NOT_YOUR_TURN"
        assert bob.last["payload"]["code"] == code

    def test_empty_pit(self, relay, alice, bob):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.handle(alice, {"type": "move", "code": code, "pit_index": 0})
            await relay.handle(bob, {"type": "move", "code": code, "pit_index": 7})
            alice.clear()
            bob.clear()
            await relay.handle(alice, {"type": "move", "code": code, "pit_index": 0})

        asyncio.run(scenario())

        assert bob.messages == []
        assert alice.last["payload"]["error_code"] == "EMPTY_PIT"

    def test_join_unknown_room(self, relay, bob):
        asyncio.run(relay.handle(bob, {"type": "join", "code": "nope00"}))

        assert bob.last["payload"]["error_code"] == "ROOM_NOT_FOUND"
        assert bob.last["payload"]["error"] == "Room not found!"
        assert bob.last["payload"]["code"] == "NOPE00"

    def test_room_full(self, relay, alice, bob, carol):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.handle(carol, {"type": "join", "code": code})

        asyncio.run(scenario())

        assert alice.messages == []
        assert bob.messages == []
        assert carol.last["payload"]["error_code"] == "ROOM_FULL"

    def test_move_in_lobby(self, relay, alice):
        async def scenario():
            await relay.handle(alice, {"type": "create"})
            code = alice.last["payload"]["code"]
            await relay.handle(alice, {"type": "move", "code": code, "pit_index": 0})

        asyncio.run(scenario())

        assert alice.last["payload"]["error_code"] == "WAITING_FOR_OPPONENT"

    def test_outsider_move(self, relay, alice, bob, carol):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.handle(carol, {"type": "move", "code": code, "pit_index": 0})

        asyncio.run(scenario())

        assert carol.last["payload"]["error_code"] == "NOT_SEATED"
        assert alice.messages == []

    def test_second_create_while_seated(self, relay, alice):
        async def scenario():
            await relay.handle(alice, {"type": "create"})
            await relay.handle(alice, {"type": "create"})

        asyncio.run(scenario())

        assert alice.last["payload"]["error_code"] == "ALREADY_SEATED"
        assert len(relay.sessions) == 1

    def test_code_exhaustion_is_internal_error(self, alice, bob):
        relay = RelayHandler(SessionManager(code_factory=lambda: "SAME00"))

        async def scenario():
            await relay.handle(alice, {"type": "create"})
            await relay.handle(bob, {"type": "create"})

        asyncio.run(scenario())

        assert bob.last["type"] == "error"
        assert bob.last["payload"]["error_code"] == "INTERNAL_ERROR"


class TestValidation:
    """Malformed frames."""

    def test_unknown_type(self, relay, alice):
        asyncio.run(relay.handle(alice, {"type": "dance"}))
        assert alice.last["payload"]["error_code"] == "INVALID_REQUEST"

    def test_missing_field(self, relay, alice):
        asyncio.run(relay.handle(alice, {"type": "move", "code": "ABCDEF"}))
        payload = alice.last["payload"]
        assert payload["error_code"] == "INVALID_REQUEST"
        assert payload["error"].startswith("Invalid request")

    def test_string_pit_index(self, relay, alice):
        asyncio.run(relay.handle(alice, {"type": "move", "code": "ABCDEF", "pit_index": "2"}))
        assert alice.last["payload"]["error_code"] == "INVALID_REQUEST"

    def test_not_an_object(self, relay, alice):
        asyncio.run(relay.handle(alice, ["create"]))
        assert alice.last["payload"]["error_code"] == "INVALID_REQUEST"

    def test_invalid_frame_changes_nothing(self, relay, alice):
        asyncio.run(relay.handle(alice, {"kind": "create"}))
        assert len(relay.sessions) == 0


class TestDisconnect:
    """Teardown on connection loss."""

    def test_opponent_notified_and_room_removed(self, relay, alice, bob):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.disconnect(alice)
            return code

        code = asyncio.run(scenario())

        assert bob.messages == [{"type": "opponent_disconnected", "payload": {"code": code}}]
        assert relay.sessions.get_session(code) is None
        assert code not in relay._room_locks

    def test_code_unreachable_after_teardown(self, relay, alice, bob, carol):
        async def scenario():
            code = await _open_room(relay, alice, bob)
            await relay.disconnect(bob)
            await relay.handle(carol, {"type": "join", "code": code})
            await relay.handle(alice, {"type": "move", "code": code, "pit_index": 0})

        asyncio.run(scenario())

        assert carol.last["payload"]["error_code"] == "ROOM_NOT_FOUND"
        assert alice.last["payload"]["error_code"] == "ROOM_NOT_FOUND"

    def test_lobby_creator_leaves(self, relay, alice):
        async def scenario():
            await relay.handle(alice, {"type": "create"})
            await relay.disconnect(alice)

        asyncio.run(scenario())

        assert len(relay.sessions) == 0

    def test_disconnect_without_room(self, relay, carol):
        asyncio.run(relay.disconnect(carol))
        assert carol.messages == []

    def test_dead_opponent_does_not_break_move(self, relay, alice):
        ghost = FakeParticipant("ghost", fail_sends=False)

        async def scenario():
            code = await _open_room(relay, alice, ghost)
            ghost.fail_sends = True
            await relay.handle(alice, {"type": "move", "code": code, "pit_index": 0})
            return code

        code = asyncio.run(scenario())

        assert alice.last["type"] == "game_update"
        assert relay.sessions.get_state(code).state.current_player.value == "B"

    def test_players_can_start_fresh_after_teardown(self, relay, alice, bob):
        async def scenario():
            await _open_room(relay, alice, bob)
            await relay.disconnect(alice)
            bob.clear()
            await relay.handle(bob, {"type": "create"})

        asyncio.run(scenario())

        assert bob.last["type"] == "room_created"
        assert bob.last["payload"]["seat"] == "A"


class TestRoomSerialization:
    """Requests for one room are applied and announced one at a time."""

    @staticmethod
    def _players():
        return FakeParticipant("alice", yield_on_send=True), FakeParticipant("bob", yield_on_send=True)

    def test_racing_moves_by_one_seat(self, relay):
        alice, bob = self._players()

        async def scenario():
            code = await _open_room(relay, alice, bob)
            await asyncio.gather(
                relay.handle(alice, {"type": "move", "code": code, "pit_index": 0}),
                relay.handle(alice, {"type": "move", "code": code, "pit_index": 1}),
            )
            return code

        code = asyncio.run(scenario())

        updates = alice.of_type("game_update")
        errors = alice.of_type("error")
        assert len(updates) == 1
        assert len(errors) == 1
        assert errors[0]["payload"]["error_code"] == "NOT_YOUR_TURN"
        assert bob.messages == updates
        assert relay.sessions.get_state(code).state.total_stones == 48

    def test_updates_arrive_in_applied_order(self, relay):
        alice, bob = self._players()

        async def scenario():
            code = await _open_room(relay, alice, bob)
            await asyncio.gather(
                relay.handle(alice, {"type": "move", "code": code, "pit_index": 0}),
                relay.handle(bob, {"type": "move", "code": code, "pit_index": 7}),
            )

        asyncio.run(scenario())

        for seat in (alice, bob):
            moves = [m["payload"]["last_move"]["pit_index"] for m in seat.of_type("game_update")]
            assert moves == [0, 7]
            assert seat.last["payload"]["state"]["board"] == [0, 5, 5, 5, 5, 4, 0, 0, 5, 5, 5, 5, 4, 0]

    def test_disconnect_waits_for_move_in_flight(self, relay):
        alice, bob = self._players()

        async def scenario():
            code = await _open_room(relay, alice, bob)
            await asyncio.gather(
                relay.handle(alice, {"type": "move", "code": code, "pit_index": 0}),
                relay.disconnect(bob),
            )
            return code

        code = asyncio.run(scenario())

        assert [m["type"] for m in alice.messages] == ["game_update", "opponent_disconnected"]
        assert code not in relay._room_locks
        assert len(relay.sessions) == 0

    def test_move_after_disconnect_leaves_no_lock(self, relay):
        alice, bob = self._players()

        async def scenario():
            code = await _open_room(relay, alice, bob)
            await asyncio.gather(
                relay.disconnect(bob),
                relay.handle(alice, {"type": "move", "code": code, "pit_index": 0}),
            )
            return code

        code = asyncio.run(scenario())

        assert alice.of_type("opponent_disconnected")
        assert alice.last["payload"]["error_code"] == "ROOM_NOT_FOUND"
        assert code not in relay._room_locks
        assert relay._room_locks == {}
