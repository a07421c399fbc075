import asyncio

import pytest

from convo_stream.dispatcher import CallbackDispatcher
from convo_stream.models.session import SessionState


class RecordingObserver:
    def __init__(self):
        self.calls = []

    def on_message_update(self, messages):
        self.calls.append(("messages", [(m.kind, m.text) for m in messages]))

    def on_state_change(self, busy, loading, error):
        self.calls.append(("state", (busy, loading, error)))

    def on_session_id_received(self, session_id):
        self.calls.append(("session_id", session_id))

    def on_thinking_status_changed(self, is_thinking):
        self.calls.append(("thinking", is_thinking))

    def on_slash_commands_received(self, commands):
        self.calls.append(("commands", commands))

    def of(self, kind):
        return [value for name, value in self.calls if name == kind]


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def state():
    return SessionState()


@pytest.fixture
def dispatcher(observer):
    return CallbackDispatcher(observer)


@pytest.fixture
def observer_factory():
    return RecordingObserver


async def _iterate_events(events):
    for event in events:
        yield event
        await asyncio.sleep(0)


@pytest.fixture
def event_source():
    """Wrap an in-memory event list as an async source for ChatSession.run."""
    return _iterate_events
