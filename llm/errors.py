from typing import Optional

import openai

# Substrings the API uses when it rejects the configured key.
CREDENTIAL_ERROR_MARKERS = ("Incorrect API key", "invalid_api_key", "API key not valid")


class LanguageModelError(Exception):
    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.original_error = original_error


class InvalidCredentialError(LanguageModelError):
    """The language model API rejected the configured credential."""


class ServiceUnavailableError(LanguageModelError):
    """Any other failure: network, quota, blocked content, server errors."""


def is_credential_failure(exc: BaseException) -> bool:
    if isinstance(exc, openai.AuthenticationError):
        return True
    text = str(exc)
    return any(marker in text for marker in CREDENTIAL_ERROR_MARKERS)


def translate_error(exc: BaseException) -> LanguageModelError:
    if isinstance(exc, LanguageModelError):
        return exc
    if is_credential_failure(exc):
        return InvalidCredentialError(f"Language model rejected the credential: {exc}", original_error=exc)
    return ServiceUnavailableError(f"Language model request failed: {exc}", original_error=exc)
