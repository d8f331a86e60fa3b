from typing import Dict, Iterator, List

from openai import OpenAI

from llm.errors import translate_error
from utils.logging_utils import get_logger

logger = get_logger(__name__)


class ChatHandle:
    """
    A conversation with a fixed model that keeps its own message history.

    A turn is committed to the history only once its stream has finished, so a
    failed exchange can be retried without leaving a dangling user message.
    """

    def __init__(self, client: OpenAI, model_name: str):
        self._client = client
        self.model_name = model_name
        self.history: List[Dict[str, str]] = []

    def send_message_stream(self, message: str) -> Iterator[str]:
        messages = self.history + [{"role": "user", "content": message}]
        logger.info("Streaming chat turn %s via %s", len(messages), self.model_name)

        parts: List[str] = []
        try:
            stream = self._client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                stream=True,
            )
            for event in stream:
                if not event.choices:
                    continue
                text = event.choices[0].delta.content
                if not text:
                    continue
                parts.append(text)
                yield text
        except Exception as exc:
            logger.error("Chat stream failed after %s chunks: %s", len(parts), exc)
            raise translate_error(exc) from exc

        self.history.append({"role": "user", "content": message})
        self.history.append({"role": "assistant", "content": "".join(parts)})


class LanguageModelClient:
    """
    Explicitly constructed wrapper around the OpenAI SDK.

    One instance is created at startup and handed to whatever needs it, so
    tests can substitute a fake with the same two methods.
    """

    def __init__(self, api_key: str, timeout: float = 120.0):
        self._client = OpenAI(api_key=api_key, timeout=timeout)

    def generate_content(self, model: str, prompt: str) -> str:
        try:
            response = self._client.responses.create(model=model, input=prompt)
        except Exception as exc:
            raise translate_error(exc) from exc
        return response.output_text

    def create_chat(self, model: str) -> ChatHandle:
        return ChatHandle(self._client, model)
