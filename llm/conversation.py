from enum import Enum
from typing import Iterable, Iterator, List, Optional, Protocol

from llm.errors import InvalidCredentialError, translate_error
from llm.note_generator import INVALID_CREDENTIAL_MESSAGE
from llm.prompts import build_ideas_prompt
from models import ChatMessage, SessionData
from utils.logging_utils import get_logger

logger = get_logger(__name__)

IDEAS_UNAVAILABLE_MESSAGE = (
    "Failed to get session ideas. The AI service may be experiencing issues or the request may have been blocked."
)


class ChatSession(Protocol):
    def send_message_stream(self, message: str) -> Iterable[str]: ...


class ChatFactory(Protocol):
    def create_chat(self, model: str) -> ChatSession: ...


class ConversationState(str, Enum):
    NO_SESSION = "no_session"
    STREAMING_INITIAL = "streaming_initial"
    IDLE = "idle"
    STREAMING_FOLLOW_UP = "streaming_follow_up"


class ConversationNotStartedError(Exception):
    pass


class ConversationBusyError(Exception):
    pass


class IdeasConversation:
    """
    Brainstorming chat over a single conversation handle.

    Both `start` and `send_follow_up` set up the transcript immediately and
    return an iterator that drives the stream. Each step reassigns the last
    model message to everything received so far and yields that text.

    Every stream carries a sequence token. Once a newer stream has begun, an
    older one stops at its next chunk without touching the transcript.
    """

    def __init__(self, client: ChatFactory, model_name: str):
        self._client = client
        self._model_name = model_name
        self._handle: Optional[ChatSession] = None
        self._sequence = 0
        self.state = ConversationState.NO_SESSION
        self.transcript: List[ChatMessage] = []
        self.error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    @property
    def is_streaming(self) -> bool:
        return self.state in (ConversationState.STREAMING_INITIAL, ConversationState.STREAMING_FOLLOW_UP)

    def reset(self) -> None:
        self._sequence += 1
        self._handle = None
        self.transcript = []
        self.error = None
        self.state = ConversationState.NO_SESSION

    def start(self, data: SessionData) -> Iterator[str]:
        self._sequence += 1
        token = self._sequence
        self.error = None
        self._handle = self._client.create_chat(self._model_name)
        self.transcript = [ChatMessage(role="model", text="")]
        self.state = ConversationState.STREAMING_INITIAL
        logger.info("Starting ideas conversation for client %r (token=%s)", data.client_name, token)
        return self._stream(self._handle, build_ideas_prompt(data), token, initial=True)

    def send_follow_up(self, message: str) -> Iterator[str]:
        if self._handle is None:
            raise ConversationNotStartedError("Start a conversation before sending follow-up messages.")
        if self.is_streaming:
            raise ConversationBusyError("Wait for the current response to finish.")

        self._sequence += 1
        token = self._sequence
        self.error = None
        self.transcript.append(ChatMessage(role="user", text=message))
        self.transcript.append(ChatMessage(role="model", text=""))
        self.state = ConversationState.STREAMING_FOLLOW_UP
        return self._stream(self._handle, message, token, initial=False)

    def format_transcript(self) -> str:
        return "\n\n---\n\n".join(
            f"{'AI Assistant' if message.role == 'model' else 'You'}:\n{message.text}" for message in self.transcript
        )

    def _stream(self, handle: ChatSession, message: str, token: int, initial: bool) -> Iterator[str]:
        accumulated = ""
        try:
            for chunk in handle.send_message_stream(message):
                if token != self._sequence:
                    logger.info("Discarding chunks from superseded stream (token=%s)", token)
                    return
                accumulated += chunk
                self.transcript[-1] = ChatMessage(role="model", text=accumulated)
                yield accumulated
        except Exception as exc:
            if token != self._sequence:
                return
            failure = translate_error(exc)
            logger.error("Ideas stream failed after %s chars: %s", len(accumulated), failure)
            if isinstance(failure, InvalidCredentialError):
                self.error = INVALID_CREDENTIAL_MESSAGE
            else:
                self.error = IDEAS_UNAVAILABLE_MESSAGE
            if initial:
                self._handle = None
        finally:
            if token == self._sequence and self.is_streaming:
                self.state = ConversationState.IDLE
