"""
Hierarchical (two-pass) strategy.

Pass 1 summarizes every chunk with respect to the question; pass 2 answers
from the combined summaries. If no summary survives, the Chunked strategy
answers over the original chunks instead; if the final call fails, the
combined summaries are returned as the answer.
"""

from docreader.ai.llm_gateway import Message
from docreader.chunking_engine import PARAGRAPH_SEPARATOR
from docreader.config import HIERARCHICAL_ANSWER_MAX_TOKENS, HIERARCHICAL_SUMMARY_MAX_TOKENS
from docreader.logging_config import info, warning
from docreader.strategies.base import ChainOfThought, ReadingStrategy
from docreader.strategies.chunked import ChunkedStrategy

SUMMARY_SYSTEM_MESSAGE = "You are a helpful assistant summarizing text for a question."
FINAL_SYSTEM_MESSAGE = "You are a knowledgeable assistant who uses summaries of a document to answer questions."


class HierarchicalStrategy(ReadingStrategy):
    """
    Summarize each chunk, then answer from the summaries.

    Args:
        gateway, config, executor, cancel_token: See ReadingStrategy
        summary_max_tokens: Output cap for each chunk summary
        answer_max_tokens: Output cap for the final answer (and the
                           Chunked fallback)
        chunked_options: Keyword options for the fallback ChunkedStrategy
    """

    phase = "hierarchical"

    def __init__(
        self,
        gateway,
        config=None,
        executor=None,
        cancel_token=None,
        summary_max_tokens: int = HIERARCHICAL_SUMMARY_MAX_TOKENS,
        answer_max_tokens: int = HIERARCHICAL_ANSWER_MAX_TOKENS,
        chunked_options: dict | None = None,
    ):
        super().__init__(gateway, config, executor, cancel_token)
        self.summary_max_tokens = summary_max_tokens
        self.answer_max_tokens = answer_max_tokens
        self.chunked_options = chunked_options or {}

    def _read(self, chunks: list[str], question: str, use_parallel: bool, trace: ChainOfThought) -> str:
        summary_config = self.config.with_overrides(
            max_tokens=self.summary_max_tokens,
            presence_penalty=0.0,
            frequency_penalty=0.0,
        )
        answer_config = summary_config.with_overrides(max_tokens=self.answer_max_tokens)

        trace.record("parameters", {
            **self.config.to_dict(),
            "summary_max_tokens": self.summary_max_tokens,
            "answer_max_tokens": self.answer_max_tokens,
            "use_parallel": use_parallel,
        })

        def summarize(chunk):
            prompt = (
                "Summarize the following document excerpt with respect to the question. "
                "Focus on any information that might be relevant to answering the question."
                f"\n\nExcerpt:\n{chunk}\n\nQuestion:\n{question}"
            )
            messages = [Message.system(SUMMARY_SYSTEM_MESSAGE), Message.user(prompt)]
            return self._ask(messages, summary_config)

        info(f"[Hierarchical] Summarizing {len(chunks)} chunks")
        results = self._map(summarize, chunks, use_parallel)
        trace.record("chunk_summaries", [step for _, step in results])

        summaries = [text for text, _ in results if text.strip()]
        if not summaries:
            warning("[Hierarchical] No relevant content found in summaries; "
                    "falling back to direct chunked answering")
            chunked = self._sibling(
                ChunkedStrategy,
                config=self.config.with_overrides(max_tokens=self.answer_max_tokens),
                **self.chunked_options,
            )
            result = chunked.run(chunks, question, use_parallel=use_parallel, return_chain_of_thought=True)
            trace.record("fallback", result.to_dict())
            return result.final_answer

        combined_summary = PARAGRAPH_SEPARATOR.join(summaries)
        trace.record("combined_summary", combined_summary)

        final_prompt = (
            "Based on the following summaries of a document, answer the question in detail."
            f"\n\nSummaries:\n{combined_summary}\n\nQuestion:\n{question}"
        )
        messages = [Message.system(FINAL_SYSTEM_MESSAGE), Message.user(final_prompt)]
        answer, step = self._ask(messages, answer_config)
        trace.record("final_step", step)

        if not answer:
            warning("[Hierarchical] Final answer generation failed; returning combined summaries")
            return combined_summary
        return answer
