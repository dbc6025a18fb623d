"""
Chat Completion Client

Talks to an OpenAI-compatible /chat/completions endpoint over requests.
Works against api.openai.com and against local OpenAI-compatible servers
(Ollama's /v1 endpoint, llama.cpp server, vLLM) by changing api_base.

The client does one HTTP round-trip per call and maps failures onto the
package exceptions:
- ConnectionError, Timeout, truncated body -> TransportFailure (retryable)
- non-2xx response, malformed body or any
  other requests error                    -> APIError (not retried)
- missing API key or malformed api_base   -> ConfigurationError

Retries, backoff and cancellation live in LLMGateway, not here.
"""

import os
from typing import Protocol

import requests

from docreader.config import LLM_TIMEOUT_SECONDS, OPENAI_API_BASE, OPENAI_API_KEY_ENV
from docreader.exceptions import APIError, ConfigurationError, TransportFailure
from docreader.logging_config import debug_log


class LLMClient(Protocol):
    """Anything that can answer a chat completion request."""

    def chat(
        self,
        messages: list[dict],
        model: str,
        temperature: float,
        max_tokens: int,
        presence_penalty: float = 0.0,
        frequency_penalty: float = 0.0,
    ) -> str:
        ...


class OpenAIChatClient:
    """
    requests-based client for the chat completions API.

    Args:
        api_key: API key. Read from OPENAI_API_KEY at call time when None.
        api_base: Base URL up to and including /v1
        timeout: Request timeout in seconds
        session: Optional requests.Session (connection pooling, tests)
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str = OPENAI_API_BASE,
        timeout: float = LLM_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ):
        self._api_key = api_key
        self.api_base = api_base.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/chat/completions"

    def _get_api_key(self) -> str:
        key = self._api_key or os.environ.get(OPENAI_API_KEY_ENV, "")
        if not key:
            raise ConfigurationError(
                f"API key not found. Please set the {OPENAI_API_KEY_ENV} environment variable."
            )
        return key

    def chat(
        self,
        messages: list[dict],
        model: str,
        temperature: float,
        max_tokens: int,
        presence_penalty: float = 0.0,
        frequency_penalty: float = 0.0,
    ) -> str:
        """
        Send one chat completion request.

        Args:
            messages: [{"role": ..., "content": ...}, ...], system first
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Output token cap
            presence_penalty: Presence penalty
            frequency_penalty: Frequency penalty

        Returns:
            Content of the first choice, or "" when the response has no choices

        Raises:
            ConfigurationError: If no API key is available or api_base is
                not a usable URL
            TransportFailure: On connection errors, timeouts and truncated bodies
            APIError: On an error response, an unparseable body, or any other
                requests error
        """
        headers = {
            "Authorization": f"Bearer {self._get_api_key()}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "presence_penalty": presence_penalty,
            "frequency_penalty": frequency_penalty,
        }

        try:
            response = self.session.post(self.endpoint, json=payload, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransportFailure(f"Request timed out after {self.timeout} seconds") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportFailure(f"Cannot connect to {self.api_base}: {e}") from e
        except (requests.exceptions.ChunkedEncodingError, requests.exceptions.ContentDecodingError) as e:
            raise TransportFailure(f"Response from {self.api_base} was cut off: {e}") from e
        except (
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
            requests.exceptions.InvalidURL,
        ) as e:
            raise ConfigurationError(f"Invalid API base URL {self.api_base!r}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise APIError(f"Chat completion request failed: {e}") from e

        if not response.ok:
            raise APIError(
                f"Chat completion request failed with status {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise APIError("Chat completion response is not valid JSON", status_code=response.status_code) from e

        if not isinstance(data, dict):
            raise APIError("Chat completion response is not a JSON object", status_code=response.status_code)
        choices = data.get("choices") or []
        if not choices:
            debug_log(f"[ChatClient] Response for model={model} contained no choices")
            return ""
        return (choices[0].get("message") or {}).get("content") or ""
