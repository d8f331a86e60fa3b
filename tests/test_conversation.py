import pytest

from llm.conversation import (
    IDEAS_UNAVAILABLE_MESSAGE,
    ConversationBusyError,
    ConversationNotStartedError,
    ConversationState,
    IdeasConversation,
)
from llm.note_generator import INVALID_CREDENTIAL_MESSAGE
from llm.prompts import build_ideas_prompt
from models import ChatMessage


class TestStart:
    def test_accumulates_chunks_in_order(self, session, make_client):
        client = make_client(chats=[[["Hel", "lo", " world"]]])
        conversation = IdeasConversation(client, "ideas-model")

        seen = []
        for text in conversation.start(session):
            seen.append(text)
            assert conversation.transcript == [ChatMessage(role="model", text=text)]

        assert seen == ["Hel", "Hello", "Hello world"]
        assert conversation.transcript[-1].text == "Hello world"
        assert conversation.state == ConversationState.IDLE
        assert conversation.is_open
        assert conversation.error is None

    def test_uses_ideas_model_and_prompt(self, session, make_client):
        client = make_client(chats=[[["ok"]]])
        conversation = IdeasConversation(client, "ideas-model")
        list(conversation.start(session))
        chat = client.chats[0]
        assert chat.model == "ideas-model"
        assert chat.sent == [build_ideas_prompt(session)]

    def test_placeholder_before_first_chunk(self, session, make_client):
        client = make_client(chats=[[["a"]]])
        conversation = IdeasConversation(client, "ideas-model")
        stream = conversation.start(session)
        assert conversation.state == ConversationState.STREAMING_INITIAL
        assert conversation.transcript == [ChatMessage(role="model", text="")]
        list(stream)

    def test_error_keeps_partial_text_and_discards_handle(self, session, make_client):
        client = make_client(chats=[[["Part", "ial", ConnectionError("dropped")]]])
        conversation = IdeasConversation(client, "ideas-model")
        list(conversation.start(session))
        assert conversation.transcript[-1].text == "Partial"
        assert conversation.error == IDEAS_UNAVAILABLE_MESSAGE
        assert conversation.state == ConversationState.IDLE
        assert not conversation.is_open

    def test_credential_error_message(self, session, make_client):
        client = make_client(chats=[[[RuntimeError("Incorrect API key provided")]]])
        conversation = IdeasConversation(client, "ideas-model")
        list(conversation.start(session))
        assert conversation.error == INVALID_CREDENTIAL_MESSAGE

    def test_restart_clears_previous_transcript(self, session, make_client):
        client = make_client(chats=[[["first"]], [["second"]]])
        conversation = IdeasConversation(client, "ideas-model")
        list(conversation.start(session))
        list(conversation.start(session))
        assert conversation.transcript == [ChatMessage(role="model", text="second")]
        assert len(client.chats) == 2


class TestFollowUp:
    def test_appends_user_and_model_messages(self, session, make_client):
        client = make_client(chats=[[["Ideas."], ["More", " ideas."]]])
        conversation = IdeasConversation(client, "ideas-model")
        list(conversation.start(session))

        stream = conversation.send_follow_up("What about generalization?")
        assert conversation.state == ConversationState.STREAMING_FOLLOW_UP
        assert conversation.transcript[-2:] == [
            ChatMessage(role="user", text="What about generalization?"),
            ChatMessage(role="model", text=""),
        ]
        assert list(stream) == ["More", "More ideas."]
        assert [m.text for m in conversation.transcript] == ["Ideas.", "What about generalization?", "More ideas."]
        assert client.chats[0].sent[-1] == "What about generalization?"
        assert conversation.state == ConversationState.IDLE

    def test_requires_open_conversation(self, make_client):
        conversation = IdeasConversation(make_client(), "ideas-model")
        with pytest.raises(ConversationNotStartedError):
            conversation.send_follow_up("hello")
        assert conversation.transcript == []

    def test_refused_after_failed_start(self, session, make_client):
        client = make_client(chats=[[[ConnectionError("dropped")]]])
        conversation = IdeasConversation(client, "ideas-model")
        list(conversation.start(session))
        with pytest.raises(ConversationNotStartedError):
            conversation.send_follow_up("hello")

    def test_refused_while_streaming(self, session, make_client):
        client = make_client(chats=[[["a", "b"]]])
        conversation = IdeasConversation(client, "ideas-model")
        stream = conversation.start(session)
        next(stream)
        with pytest.raises(ConversationBusyError):
            conversation.send_follow_up("hello")
        list(stream)

    def test_failed_follow_up_keeps_handle(self, session, make_client):
        client = make_client(chats=[[["Ideas."], [ConnectionError("dropped")], ["Retry worked."]]])
        conversation = IdeasConversation(client, "ideas-model")
        list(conversation.start(session))
        list(conversation.send_follow_up("first try"))
        assert conversation.error == IDEAS_UNAVAILABLE_MESSAGE
        assert conversation.is_open

        list(conversation.send_follow_up("second try"))
        assert conversation.error is None
        assert conversation.transcript[-1].text == "Retry worked."


class TestStaleStreams:
    def test_superseded_stream_stops_without_mutating(self, session, make_client):
        client = make_client(chats=[[["old-1", "old-2", "old-3"]], [["new"]]])
        conversation = IdeasConversation(client, "ideas-model")

        old = conversation.start(session)
        assert next(old) == "old-1"

        new = conversation.start(session)
        assert list(new) == ["new"]
        assert list(old) == []

        assert conversation.transcript == [ChatMessage(role="model", text="new")]
        assert conversation.state == ConversationState.IDLE

    def test_superseded_failure_is_ignored(self, session, make_client):
        client = make_client(chats=[[["old", ConnectionError("late failure")]], [["new"]]])
        conversation = IdeasConversation(client, "ideas-model")

        old = conversation.start(session)
        next(old)
        list(conversation.start(session))
        list(old)

        assert conversation.error is None
        assert conversation.is_open

    def test_reset_abandons_stream(self, session, make_client):
        client = make_client(chats=[[["a", "b"]]])
        conversation = IdeasConversation(client, "ideas-model")
        stream = conversation.start(session)
        next(stream)
        conversation.reset()
        list(stream)
        assert conversation.transcript == []
        assert conversation.state == ConversationState.NO_SESSION


def test_format_transcript(session, make_client):
    client = make_client(chats=[[["Try a token board."], ["Yes."]]])
    conversation = IdeasConversation(client, "ideas-model")
    list(conversation.start(session))
    list(conversation.send_follow_up("Any more?"))
    assert conversation.format_transcript() == (
        "AI Assistant:\nTry a token board.\n\n---\n\nYou:\nAny more?\n\n---\n\nAI Assistant:\nYes."
    )
