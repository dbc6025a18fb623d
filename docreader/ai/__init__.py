"""
DocReader AI Module
Handles chat completion requests to the LLM provider.

Architecture:
=============
- OpenAIChatClient: one HTTP round-trip to an OpenAI-compatible
  /chat/completions endpoint (requests library only). Pointing
  OPENAI_API_BASE at a local server such as Ollama's /v1 endpoint
  runs everything offline.
- LLMGateway: retries, backoff, cancellation and answer cleanup on top of
  any client. Strategies only ever talk to the gateway.
"""

from .chat_client import LLMClient, OpenAIChatClient
from .llm_gateway import CancellationToken, LLMFailure, LLMGateway, Message, clean_completion

__all__ = [
    'LLMClient',
    'OpenAIChatClient',
    'LLMGateway',
    'LLMFailure',
    'Message',
    'CancellationToken',
    'clean_completion',
]
