"""
Exception hierarchy for DocReader.

Only ValidationError and ExtractionError are meant to reach the caller of
answer_question(). LLMError subclasses are raised by chat clients and caught
by the LLMGateway, which turns them into LLMFailure values.
"""


class DocReaderError(Exception):
    """Base class for all DocReader errors."""


class ValidationError(DocReaderError):
    """Invalid caller input, raised before any network call."""


class InvalidPath(ValidationError):
    """The document path does not exist."""


class EmptyQuestion(ValidationError):
    """The question is missing or blank after trimming."""


class UnknownMode(ValidationError):
    """A requested reading mode is not recognized."""


class ExtractionError(DocReaderError):
    """The document could not be read or yielded too little text."""


class UnsupportedFormat(ExtractionError):
    """The document's file extension has no loader."""


class ConfigurationError(DocReaderError):
    """Required configuration (such as the API key) is missing."""


class LLMError(DocReaderError):
    """Base class for errors raised while talking to the LLM provider."""


class TransportFailure(LLMError):
    """Connection-level failure (refused, reset, timed out). Retryable."""


class APIError(LLMError):
    """
    The provider answered with an error response. Not retried.

    Attributes:
        status_code: HTTP status returned by the provider
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class OperationCancelled(LLMError):
    """The cancellation token fired or its deadline passed."""
