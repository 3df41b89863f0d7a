"""
Pytest fixtures for Mancala tests.
"""

import asyncio

import pytest

from ..engine_core.state import GameState, Player, initial_state
from ..session.manager import SessionManager
from ..api.relay import RelayHandler


class FakeParticipant:
    """Records every frame sent to it. Hashed by identity, like a real connection."""

    def __init__(self, name: str, fail_sends: bool = False, yield_on_send: bool = False):
        self.name = name
        self.fail_sends = fail_sends
        self.yield_on_send = yield_on_send
        self.messages: list[dict] = []

    async def send_json(self, message: dict) -> None:
        if self.yield_on_send:
            # Yields to the loop, as a real socket write does
            await asyncio.sleep(0)
        if self.fail_sends:
            raise ConnectionError(f"{self.name} is gone")
        self.messages.append(message)

    def of_type(self, message_type: str) -> list[dict]:
        return [m for m in self.messages if m["type"] == message_type]

    @property
    def last(self) -> dict:
        return self.messages[-1]

    def clear(self) -> None:
        self.messages.clear()

    def __repr__(self) -> str:
        return f"FakeParticipant({self.name})"


@pytest.fixture
def start_state() -> GameState:
    """Standard opening position."""
    return initial_state()


@pytest.fixture
def capture_state() -> GameState:
    """A to move; pit 2 sows one stone into empty pit 3, across from 4 stones in pit 9."""
    return GameState(
        board=(1, 0, 1, 0, 0, 0, 0, 4, 4, 4, 4, 4, 4, 0),
        current_player=Player.A,
    )


@pytest.fixture
def manager() -> SessionManager:
    """Fresh room registry."""
    return SessionManager()


@pytest.fixture
def relay(manager: SessionManager) -> RelayHandler:
    return RelayHandler(manager)


@pytest.fixture
def alice() -> FakeParticipant:
    return FakeParticipant("alice")


@pytest.fixture
def bob() -> FakeParticipant:
    return FakeParticipant("bob")


@pytest.fixture
def carol() -> FakeParticipant:
    return FakeParticipant("carol")
