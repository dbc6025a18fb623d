"""
Chunked ("deep reading") strategy.

Asks the question of every chunk separately, then merges the partial
answers with one more call:

1. Budget: allowed_input_tokens = context_window - max_tokens
   - estimate_tokens(question) - CHUNK_SAFETY_MARGIN_TOKENS, unless the
   caller passes chunk_token_limit. A budget below 1 token raises
   ValidationError before any call.
2. Per chunk (parallelizable): a chunk over budget is split into word
   groups and each group is asked separately; the non-empty sub-answers
   are joined with a space.
3. If every chunk answer is empty, or every one reads as "not found",
   return NOT_FOUND_ANSWER without a merge call. Otherwise merge all the
   answers; a failed merge falls back to the space-joined non-empty ones.

The Semantic mode uses this same engine over relevance-sorted chunks.
"""

from docreader.ai.llm_gateway import Message
from docreader.config import CHUNK_SAFETY_MARGIN_TOKENS, NOT_FOUND_ANSWER
from docreader.exceptions import ValidationError
from docreader.logging_config import debug_log, info
from docreader.strategies.base import ChainOfThought, ReadingStrategy, looks_like_no_answer
from docreader.tokens import estimate_tokens, split_into_word_groups

DEFAULT_CHUNK_SYSTEM_MESSAGE = (
    "You are a helpful assistant. Answer the question using ONLY the given text. "
    "If the text does not contain the answer, say so."
)
DEFAULT_MERGE_SYSTEM_MESSAGE = (
    "You are a content editor who will merge multiple pieces of answers into one comprehensive answer."
)


class ChunkedStrategy(ReadingStrategy):
    """
    Per-chunk question answering with a final merge.

    Args:
        gateway, config, executor, cancel_token: See ReadingStrategy
        chunk_token_limit: Override for the per-query input budget
        system_message_1: System prompt for the per-chunk queries
        system_message_2: System prompt for the merge call
        delay_between_chunks: Seconds to pause after each chunk query
        no_answer_predicate: Decides whether a partial answer is a "not found"
    """

    phase = "chunked"

    def __init__(
        self,
        gateway,
        config=None,
        executor=None,
        cancel_token=None,
        chunk_token_limit: int | None = None,
        system_message_1: str = DEFAULT_CHUNK_SYSTEM_MESSAGE,
        system_message_2: str = DEFAULT_MERGE_SYSTEM_MESSAGE,
        delay_between_chunks: float = 0.0,
        no_answer_predicate=looks_like_no_answer,
    ):
        super().__init__(gateway, config, executor, cancel_token)
        self.chunk_token_limit = chunk_token_limit
        self.system_message_1 = system_message_1
        self.system_message_2 = system_message_2
        self.delay_between_chunks = delay_between_chunks
        self.no_answer_predicate = no_answer_predicate

    def allowed_input_tokens(self, question: str) -> int:
        """
        Per-query input budget for this question.

        Raises:
            ValidationError: If the budget is below 1 token
        """
        if self.chunk_token_limit is not None:
            if self.chunk_token_limit < 1:
                raise ValidationError(f"chunk_token_limit must be >= 1, got {self.chunk_token_limit!r}")
            return self.chunk_token_limit
        budget = (
            self.config.limits.context_window
            - self.config.resolved_max_tokens()
            - estimate_tokens(question)
            - CHUNK_SAFETY_MARGIN_TOKENS
        )
        if budget < 1:
            limits = self.config.limits
            raise ValidationError(
                f"No room for document text: model {self.config.model!r} has a "
                f"{limits.context_window}-token context window and max_tokens is "
                f"{self.config.resolved_max_tokens()}. Lower max_tokens or pass chunk_token_limit."
            )
        return budget

    def _read(self, chunks: list[str], question: str, use_parallel: bool, trace: ChainOfThought) -> str:
        max_tokens = self.config.resolved_max_tokens()
        query_config = self.config.with_overrides(max_tokens=max_tokens)
        allowed = self.allowed_input_tokens(question)

        trace.record("parameters", {
            **query_config.to_dict(),
            "chunk_token_limit": allowed,
            "system_message_1": self.system_message_1,
            "system_message_2": self.system_message_2,
            "delay_between_chunks": self.delay_between_chunks,
            "use_parallel": use_parallel,
        })

        def query_chunk(indexed_chunk):
            index, chunk = indexed_chunk
            if estimate_tokens(chunk) > allowed:
                pieces = split_into_word_groups(chunk, allowed)
            else:
                pieces = [chunk]

            answers, steps = [], []
            for piece in pieces:
                messages = [
                    Message.system(self.system_message_1),
                    Message.user(piece),
                    Message.user(question),
                ]
                answer, step = self._ask(messages, query_config)
                steps.append(step)
                if answer:
                    answers.append(answer)
                self._pause(self.delay_between_chunks)

            response = " ".join(answers)
            return {"chunk_index": index, "sub_chunks": len(pieces), "steps": steps, "response": response}

        info(f"[Chunked] Querying {len(chunks)} chunks (budget {allowed} tokens per query)")
        results = self._map(query_chunk, list(enumerate(chunks)), use_parallel)
        responses = [r["response"] for r in results]
        trace.record("chunk_queries", results)
        trace.record("final_chunk_responses", responses)

        if all(not r.strip() for r in responses) or all(self.no_answer_predicate(r) for r in responses):
            debug_log("[Chunked] No chunk contained the answer; skipping merge")
            trace.record("merge_step", None)
            return NOT_FOUND_ANSWER

        merge_messages = [
            Message.system(self.system_message_2),
            Message.user("\n\n".join(responses)),
            Message.user(f"Question: {question}"),
        ]
        merged, step = self._ask(merge_messages, query_config)
        trace.record("merge_step", step)

        if not merged:
            debug_log("[Chunked] Merge call returned nothing; joining partial answers")
            return " ".join(r for r in responses if r.strip())
        return merged


class SemanticStrategy(ChunkedStrategy):
    """
    The Chunked engine run over semantic chunks sorted by relevance.

    Chunking and sorting happen upstream in the orchestrator; only the
    chain-of-thought phase differs.
    """

    phase = "semantic"
