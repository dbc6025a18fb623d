"""
Shared pieces of the reading strategies.

- ChainOfThought: ordered, append-only record of one strategy invocation
  (parameters, prompts, responses) ending in exactly one final_answer.
- LLMTask: chunk mapping (sequential or thread pool) and gateway calls
  that degrade to "" on failure.
- ReadingStrategy: LLMTask plus question validation and the run() contract.
- looks_like_no_answer: the predicate deciding whether a partial answer
  says the text did not contain the answer.
"""

import json
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Sequence

from docreader.ai.llm_gateway import CancellationToken, LLMFailure, LLMGateway, Message
from docreader.exceptions import EmptyQuestion
from docreader.logging_config import debug_log
from docreader.parallel import ExecutorStrategy, create_strategy
from docreader.strategy_config import StrategyConfig

NO_ANSWER_MARKERS = ("not found", "no information", "not applicable")


def looks_like_no_answer(text: str) -> bool:
    """
    True if a partial answer says the text had nothing relevant.

    Case-insensitive substring match against NO_ANSWER_MARKERS.
    """
    lowered = (text or "").lower()
    return any(marker in lowered for marker in NO_ANSWER_MARKERS)


def validate_question(question: str | None) -> str:
    """
    Return the trimmed question.

    Raises:
        EmptyQuestion: If the question is None or blank
    """
    if question is None or not str(question).strip():
        raise EmptyQuestion("Please provide a non-empty question.")
    return str(question).strip()


class ChainOfThought:
    """
    Structured trace of one strategy invocation.

    Fields are kept in insertion order. Each field may be set once with
    record() or grown with append(); finish() sets the terminal
    final_answer, after which the trace is frozen.

    Example:
        trace = ChainOfThought("chunked")
        trace.record("question", question)
        trace.append("chunk_queries", {"chunk_index": 0, "response": "..."})
        trace.finish("Paris")
        trace.to_json()
    """

    FINAL_KEY = "final_answer"

    def __init__(self, phase: str):
        self._fields: dict[str, Any] = {"phase": phase}
        self._final_answer: str | None = None

    @property
    def phase(self) -> str:
        return self._fields["phase"]

    @property
    def final_answer(self) -> str | None:
        return self._final_answer

    @property
    def finished(self) -> bool:
        return self._final_answer is not None

    def _check_open(self, key: str):
        if self.finished:
            raise RuntimeError(f"Chain of thought is finished; cannot add {key!r}")
        if key == self.FINAL_KEY:
            raise ValueError("Use finish() to set the final answer")

    def record(self, key: str, value: Any) -> 'ChainOfThought':
        """Set a field once."""
        self._check_open(key)
        if key in self._fields:
            raise ValueError(f"Field {key!r} already recorded")
        self._fields[key] = value
        return self

    def append(self, key: str, item: Any) -> 'ChainOfThought':
        """Append to a list field, creating it on first use."""
        self._check_open(key)
        self._fields.setdefault(key, []).append(item)
        return self

    def finish(self, final_answer: str) -> 'ChainOfThought':
        """Set the terminal answer. Can only be called once."""
        if self.finished:
            raise RuntimeError("Chain of thought already has a final answer")
        self._final_answer = final_answer if final_answer is not None else ""
        return self

    def get(self, key: str, default: Any = None) -> Any:
        if key == self.FINAL_KEY:
            return self._final_answer
        return self._fields.get(key, default)

    def __getitem__(self, key: str) -> Any:
        if key == self.FINAL_KEY:
            return self._final_answer
        return self._fields[key]

    def __contains__(self, key: str) -> bool:
        return key in self._fields or (key == self.FINAL_KEY and self.finished)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self._fields)
        if self.finished:
            data[self.FINAL_KEY] = self._final_answer
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def __repr__(self) -> str:
        return f"ChainOfThought(phase={self.phase!r}, fields={list(self._fields)})"


def describe_step(messages: Sequence[Message], response: str, failure: LLMFailure | None = None) -> dict:
    """Chain-of-thought entry for one LLM call."""
    step = {
        "messages": [m.to_dict() for m in messages],
        "response": response,
    }
    if failure is not None:
        step["error"] = failure.message
        step["attempts"] = failure.attempts
    return step


class LLMTask:
    """
    Base class for anything that drives gateway calls over chunks.

    Args:
        gateway: LLMGateway used for every call
        config: Model and sampling parameters (defaults from reader.yaml)
        executor: Fixed execution strategy; when None, use_parallel picks
                  a thread pool or sequential execution per run
        cancel_token: Optional token passed to every gateway call
    """

    phase: str = "base"

    def __init__(
        self,
        gateway: LLMGateway,
        config: StrategyConfig | None = None,
        executor: ExecutorStrategy | None = None,
        cancel_token: CancellationToken | None = None,
    ):
        self.gateway = gateway
        self.config = config or StrategyConfig.from_options()
        self.executor = executor
        self.cancel_token = cancel_token

    def _map(self, fn: Callable, items: Sequence, use_parallel: bool) -> list:
        """Apply fn to items in input order; the return is a barrier."""
        if self.executor is not None:
            return self.executor.map(fn, items)
        with create_strategy(use_parallel and len(items) > 1) as executor:
            return executor.map(fn, items)

    def _ask(self, messages: list[Message], config: StrategyConfig | None = None) -> tuple[str, dict]:
        """
        One gateway call.

        Returns:
            (answer text or "" on failure, chain-of-thought step)
        """
        result = self.gateway.complete(messages, config or self.config, self.cancel_token)
        if isinstance(result, LLMFailure):
            debug_log(f"[{self.__class__.__name__}] LLM call failed: {result.message}")
            return "", describe_step(messages, "", result)
        return result, describe_step(messages, result)

    def _pause(self, seconds: float):
        """Sleep between calls, waking early on cancel."""
        if seconds <= 0:
            return
        if self.cancel_token is not None:
            self.cancel_token.wait(seconds)
        else:
            time.sleep(seconds)

    def _sibling(self, strategy_cls, **kwargs) -> 'ReadingStrategy':
        """Create another strategy sharing this one's gateway, executor and token."""
        config = kwargs.pop("config", self.config)
        return strategy_cls(
            self.gateway,
            config=config,
            executor=self.executor,
            cancel_token=self.cancel_token,
            **kwargs,
        )


class ReadingStrategy(LLMTask, ABC):
    """
    Base class for document reading strategies.

    Subclasses implement _read(); run() wraps it with validation and the
    chain-of-thought bookkeeping.
    """

    def run(
        self,
        chunks: Sequence[str],
        question: str,
        use_parallel: bool = False,
        return_chain_of_thought: bool = False,
    ) -> str | ChainOfThought:
        """
        Answer question from chunks.

        Args:
            chunks: Ordered document chunks
            question: The question (must not be blank)
            use_parallel: Run per-chunk calls on a thread pool
            return_chain_of_thought: Return the ChainOfThought instead of the answer

        Returns:
            The answer string, or the finished ChainOfThought

        Raises:
            EmptyQuestion: If question is blank (before any LLM call)
        """
        question = validate_question(question)
        trace = ChainOfThought(self.phase)
        trace.record("question", question)

        started = time.time()
        answer = (self._read(list(chunks), question, use_parallel, trace) or "").strip()
        debug_log(f"[{self.__class__.__name__}] Answered over {len(chunks)} chunks "
                  f"in {time.time() - started:.2f}s")

        trace.finish(answer)
        return trace if return_chain_of_thought else answer

    @abstractmethod
    def _read(self, chunks: list[str], question: str, use_parallel: bool, trace: ChainOfThought) -> str:
        """Produce the answer, recording intermediate steps on trace."""

