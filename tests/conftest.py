"""
Shared fixtures.

DOCREADER_HOME points at a temporary directory before docreader is
imported, so log files never land in the user's real config directory.
"""

import os
import tempfile
import threading

os.environ.setdefault("DOCREADER_HOME", tempfile.mkdtemp(prefix="docreader-tests-"))

import pytest  # noqa: E402

from docreader.ai.llm_gateway import LLMGateway  # noqa: E402
from docreader.parallel import SequentialStrategy  # noqa: E402
from docreader.strategy_config import StrategyConfig  # noqa: E402


class ScriptedClient:
    """
    Fake LLMClient that answers from a script and records every call.

    The script is either a callable taking the message list and returning
    the answer (or raising), or a list of answers/exceptions consumed in
    order.
    """

    def __init__(self, script=None):
        self.script = script if script is not None else (lambda messages: "")
        self.calls = []
        self._lock = threading.Lock()

    def chat(self, messages, model, temperature, max_tokens, presence_penalty=0.0, frequency_penalty=0.0):
        with self._lock:
            self.calls.append({
                "messages": messages,
                "model": model,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "presence_penalty": presence_penalty,
                "frequency_penalty": frequency_penalty,
            })
            if callable(self.script):
                result = self.script(messages)
            else:
                result = self.script.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def call_count(self) -> int:
        return len(self.calls)

    def prompts(self) -> list[str]:
        """All message contents of each call joined, one string per call."""
        return ["\n".join(m["content"] for m in call["messages"]) for call in self.calls]


@pytest.fixture
def make_gateway():
    """Build (gateway, client) from a script; backoff waits are recorded, not slept."""
    def _make(script=None):
        client = ScriptedClient(script)
        delays = []
        gateway = LLMGateway(client, sleep=delays.append)
        gateway.delays = delays
        return gateway, client
    return _make


@pytest.fixture
def config():
    return StrategyConfig.from_options(use_settings=False, retries=0)


@pytest.fixture
def sequential():
    return SequentialStrategy()


@pytest.fixture
def paris_document(tmp_path):
    path = tmp_path / "france.txt"
    path.write_text(
        "France is a country in Western Europe. Its capital and largest city is Paris.\n\n"
        "The Eiffel Tower was completed in 1889 and stands on the Champ de Mars in Paris.\n",
        encoding="utf-8",
    )
    return path
