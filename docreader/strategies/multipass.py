"""
MultiPass strategy: Retrieval and Chunked answers combined.

The Retrieval pass runs with fallback disabled so it never quietly turns
into a second Chunked answer. Merge policy:
- one pass empty: the other pass is the answer, no merge call
- both empty: ""
- both non-empty: one merge call; on failure the two answers joined by
  MULTIPASS_DIVIDER
"""

from docreader.ai.llm_gateway import Message
from docreader.config import MULTIPASS_DIVIDER
from docreader.logging_config import debug_log, info
from docreader.parallel import ThreadPoolStrategy
from docreader.strategies.base import ChainOfThought, ReadingStrategy
from docreader.strategies.chunked import ChunkedStrategy
from docreader.strategies.retrieval import RetrievalStrategy

MERGE_SYSTEM_MESSAGE = "You are a moderator who combines answers from different approaches into one."


class MultiPassStrategy(ReadingStrategy):
    """
    Two independent passes plus a merge.

    Args:
        gateway, config, executor, cancel_token: See ReadingStrategy
        chunked_options: Keyword options for the Chunked pass
    """

    phase = "multi_pass"

    def __init__(self, gateway, config=None, executor=None, cancel_token=None, chunked_options: dict | None = None):
        super().__init__(gateway, config, executor, cancel_token)
        self.chunked_options = chunked_options or {}

    def _read(self, chunks: list[str], question: str, use_parallel: bool, trace: ChainOfThought) -> str:
        retrieval = self._sibling(RetrievalStrategy, fallback=False)
        chunked = self._sibling(ChunkedStrategy, **self.chunked_options)

        def run_pass(strategy):
            return strategy.run(chunks, question, use_parallel=use_parallel, return_chain_of_thought=True)

        info("[MultiPass] Running retrieval and chunked passes")
        if use_parallel and self.executor is None:
            with ThreadPoolStrategy(max_workers=2) as pool:
                retrieval_future = pool.submit(run_pass, retrieval)
                chunked_future = pool.submit(run_pass, chunked)
                retrieval_result = retrieval_future.result()
                chunked_result = chunked_future.result()
        else:
            retrieval_result = run_pass(retrieval)
            chunked_result = run_pass(chunked)

        trace.record("retrieval_pass", retrieval_result.to_dict())
        trace.record("chunked_pass", chunked_result.to_dict())

        answer1 = retrieval_result.final_answer.strip()
        answer2 = chunked_result.final_answer.strip()

        if not answer1 or not answer2:
            debug_log("[MultiPass] At least one pass was empty; skipping merge")
            trace.record("merge_step", None)
            return answer1 or answer2

        merge_config = self.config.with_overrides(
            temperature=0.0,
            max_tokens=self.config.limits.output_tokens,
            presence_penalty=0.0,
            frequency_penalty=0.0,
        )
        merge_prompt = (
            f"Answer from retrieval method:\n{answer1}"
            f"\n\nAnswer from chunked method:\n{answer2}"
            "\n\nMerge these answers into one comprehensive, accurate answer to the question."
            f"\n\nQuestion:\n{question}"
        )
        messages = [Message.system(MERGE_SYSTEM_MESSAGE), Message.user(merge_prompt)]
        merged, step = self._ask(messages, merge_config)
        trace.record("merge_step", step)

        if not merged.strip():
            debug_log("[MultiPass] Merge failed; concatenating both answers")
            return f"{answer1}{MULTIPASS_DIVIDER}{answer2}"
        return merged
