from typing import Protocol

from llm.errors import InvalidCredentialError, translate_error
from llm.prompts import build_note_prompt
from models import SessionData
from utils.logging_utils import get_logger

logger = get_logger(__name__)

INVALID_CREDENTIAL = "invalid_credential"
SERVICE_UNAVAILABLE = "service_unavailable"

INVALID_CREDENTIAL_MESSAGE = "Invalid API Key. Please check your configuration."
SERVICE_UNAVAILABLE_MESSAGE = (
    "Failed to generate note. The AI service may be experiencing issues or the request may have been blocked."
)


class ContentGenerator(Protocol):
    def generate_content(self, model: str, prompt: str) -> str: ...


class NoteGenerationError(Exception):
    def __init__(self, message: str, kind: str = SERVICE_UNAVAILABLE):
        super().__init__(message)
        self.kind = kind


def generate_note(data: SessionData, client: ContentGenerator, model_name: str) -> str:
    """
    Generate the session note in a single round-trip.

    The session is sent as-is (form validation is the caller's concern) and the
    returned text is not checked. Failures are not retried.
    """
    prompt = build_note_prompt(data)
    logger.info(
        "Generating note for client %r (goals=%s, prompt_chars=%s, model=%s)",
        data.client_name,
        len(data.goals),
        len(prompt),
        model_name,
    )
    try:
        note = client.generate_content(model_name, prompt)
    except Exception as exc:
        failure = translate_error(exc)
        if isinstance(failure, InvalidCredentialError):
            logger.error("Note generation rejected credential: %s", failure)
            raise NoteGenerationError(INVALID_CREDENTIAL_MESSAGE, kind=INVALID_CREDENTIAL) from exc
        logger.error("Note generation failed: %s", failure)
        raise NoteGenerationError(SERVICE_UNAVAILABLE_MESSAGE, kind=SERVICE_UNAVAILABLE) from exc

    logger.info("Generated note length: %s", len(note or ""))
    return note
