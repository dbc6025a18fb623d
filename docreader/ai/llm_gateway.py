"""
LLM Gateway

The single seam between reading strategies and the LLM provider. Every
strategy call goes through LLMGateway.complete(), which:

- fills in max_tokens from the model's output budget when unset
- retries transport failures with exponential backoff
  (delay = backoff_base * 2**attempt seconds), but never API errors
- honors a CancellationToken before each attempt and during backoff
- collapses newline runs in the answer to single spaces

Failures come back as an LLMFailure value rather than an exception, so
strategies can fall back without try/except around every call. Only a
malformed request (no messages) raises.
"""

import re
import threading
import time
from dataclasses import dataclass
from typing import Callable

from docreader.ai.chat_client import LLMClient, OpenAIChatClient
from docreader.exceptions import (
    ConfigurationError,
    DocReaderError,
    LLMError,
    OperationCancelled,
    TransportFailure,
    ValidationError,
)
from docreader.logging_config import debug_log, error, warning
from docreader.strategy_config import StrategyConfig

_NEWLINE_RUN_PATTERN = re.compile(r'[\r\n]+')


@dataclass(frozen=True)
class Message:
    """One chat message; role is "system" or "user"."""
    role: str
    content: str

    @classmethod
    def system(cls, content: str) -> 'Message':
        return cls("system", content)

    @classmethod
    def user(cls, content: str) -> 'Message':
        return cls("user", content)

    def to_dict(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class LLMFailure:
    """
    A completion that produced no answer.

    Attributes:
        error: The last error seen (TransportFailure, APIError,
               OperationCancelled or ConfigurationError)
        attempts: Number of requests actually sent
    """
    error: DocReaderError
    attempts: int

    @property
    def message(self) -> str:
        return str(self.error)

    @property
    def cancelled(self) -> bool:
        return isinstance(self.error, OperationCancelled)


class CancellationToken:
    """
    Cooperative cancellation with an optional deadline.

    Args:
        timeout: Seconds from now after which the token counts as cancelled

    Example:
        token = CancellationToken(timeout=120)
        answer_question(path, question, "Chunked", cancel_token=token)
        # from another thread:
        token.cancel()
    """

    def __init__(self, timeout: float | None = None):
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self):
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, seconds: float) -> bool:
        """
        Sleep up to `seconds`, waking early on cancel.

        Returns:
            True if the token is cancelled when the wait ends
        """
        remaining = self.remaining()
        if remaining is not None:
            seconds = min(seconds, remaining)
        self._event.wait(seconds)
        return self.is_cancelled


def clean_completion(text: str) -> str:
    """Collapse newline runs to single spaces and trim."""
    return _NEWLINE_RUN_PATTERN.sub(' ', text or '').strip()


class LLMGateway:
    """
    Retrying, cancellable front end to an LLMClient.

    Args:
        client: LLMClient implementation (OpenAIChatClient when None)
        sleep: Replacement for the backoff wait, called with the delay in
               seconds. Used by tests to record delays without sleeping.
    """

    def __init__(self, client: LLMClient | None = None, sleep: Callable[[float], None] | None = None):
        self.client = client or OpenAIChatClient()
        self._sleep = sleep

    def complete(
        self,
        messages: list[Message],
        config: StrategyConfig,
        cancel_token: CancellationToken | None = None,
    ) -> str | LLMFailure:
        """
        Request one completion.

        Args:
            messages: System message(s) first, then user messages
            config: Model and sampling parameters plus retry policy
            cancel_token: Optional cancellation token

        Returns:
            The cleaned completion text, or LLMFailure

        Raises:
            ValidationError: If messages is empty
        """
        if not messages:
            raise ValidationError("At least one message is required")

        max_tokens = config.resolved_max_tokens()
        payload = [m.to_dict() for m in messages]
        prompt_chars = sum(len(m.content) for m in messages)
        debug_log(f"[LLM] Request model={config.model} messages={len(messages)} "
                  f"prompt_chars={prompt_chars} max_tokens={max_tokens}")

        attempts = 0
        last_error: DocReaderError | None = None

        for attempt in range(config.retries + 1):
            if cancel_token is not None and cancel_token.is_cancelled:
                return self._cancelled(attempts)

            attempts += 1
            try:
                text = self.client.chat(
                    payload,
                    model=config.model,
                    temperature=config.temperature,
                    max_tokens=max_tokens,
                    presence_penalty=config.presence_penalty,
                    frequency_penalty=config.frequency_penalty,
                )
            except TransportFailure as e:
                last_error = e
                if attempt == config.retries:
                    break
                delay = config.backoff_base * 2 ** attempt
                warning(f"[LLM] Transport failure (attempt {attempts}/{config.retries + 1}): {e}. "
                        f"Retrying in {delay:.1f}s")
                if self._wait(delay, cancel_token):
                    return self._cancelled(attempts)
                continue
            except ConfigurationError as e:
                error(f"[LLM] {e}")
                return LLMFailure(error=e, attempts=attempts)
            except LLMError as e:
                warning(f"[LLM] Request failed: {e}")
                return LLMFailure(error=e, attempts=attempts)

            return clean_completion(text)

        warning(f"[LLM] Giving up after {attempts} attempts: {last_error}")
        return LLMFailure(error=last_error, attempts=attempts)

    def complete_text(
        self,
        messages: list[Message],
        config: StrategyConfig,
        cancel_token: CancellationToken | None = None,
    ) -> str:
        """Like complete(), but returns "" instead of an LLMFailure."""
        result = self.complete(messages, config, cancel_token)
        if isinstance(result, LLMFailure):
            return ""
        return result

    def _wait(self, delay: float, cancel_token: CancellationToken | None) -> bool:
        """Back off for delay seconds; True if cancelled meanwhile."""
        if self._sleep is not None:
            self._sleep(delay)
            return cancel_token is not None and cancel_token.is_cancelled
        if cancel_token is not None:
            return cancel_token.wait(delay)
        time.sleep(delay)
        return False

    def _cancelled(self, attempts: int) -> LLMFailure:
        debug_log(f"[LLM] Cancelled after {attempts} attempts")
        return LLMFailure(error=OperationCancelled("Operation cancelled"), attempts=attempts)
