import os

os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest  # noqa: E402

from config import Settings  # noqa: E402
from models import Goal, SessionData  # noqa: E402


class FakeChat:
    """Replays one scripted turn per send; a turn is a list of chunks or an exception to raise."""

    def __init__(self, model, turns):
        self.model = model
        self.turns = list(turns)
        self.sent = []

    def send_message_stream(self, message):
        self.sent.append(message)
        turn = self.turns.pop(0) if self.turns else []
        for item in turn:
            if isinstance(item, BaseException):
                raise item
            yield item


class FakeLanguageModelClient:
    def __init__(self, note="Note text.", note_error=None, chats=None):
        self.note = note
        self.note_error = note_error
        self.calls = []
        self.chat_scripts = list(chats or [])
        self.chats = []

    def generate_content(self, model, prompt):
        self.calls.append((model, prompt))
        if self.note_error is not None:
            raise self.note_error
        return self.note

    def create_chat(self, model):
        chat = FakeChat(model, self.chat_scripts.pop(0) if self.chat_scripts else [])
        self.chats.append(chat)
        return chat


@pytest.fixture
def settings():
    return Settings(OPENAI_API_KEY="test-key", NOTE_MODEL="note-model", IDEAS_MODEL="ideas-model")


@pytest.fixture
def fake_client():
    return FakeLanguageModelClient()


@pytest.fixture
def session():
    return SessionData(
        client_name="Jordan K.",
        session_date="2024-01-05",
        start_time="10:00",
        end_time="11:30",
        venue="Clinic room B",
        people_present="Client, RBT",
        client_health="Alert, no illness reported.",
        goals=[
            Goal(
                name="Requesting breaks",
                progress="Requested a break using a card on 6 of 8 opportunities.",
                methods="Visual card, differential reinforcement.",
            )
        ],
        next_session_plan="Introduce a verbal request for breaks.",
    )


@pytest.fixture
def make_client():
    return FakeLanguageModelClient
