"""
Retrieval strategy.

Reads the whole document at once when it fits the model:

1. Join the chunks and compare their size with
   context_window - max_tokens - RETRIEVAL_RESERVE_TOKENS.
2. If it fits: one call extracts the question-relevant text, a second
   answers from that extract alone. An empty extract falls back to the
   Chunked strategy.
3. If it does not fit: skim-and-merge. The text is re-chunked into as few
   pieces as fit one prompt, each piece is skimmed for relevant material,
   and one call answers from the combined skims. A budget below 1 token
   raises ValidationError before any call.

With fallback=False (the MultiPass first pass) both fallbacks are
disabled and the strategy answers "" instead, so a second opinion is
never silently a Chunked answer.
"""

from docreader.ai.llm_gateway import Message
from docreader.chunking_engine import PARAGRAPH_SEPARATOR, TextChunker
from docreader.config import RETRIEVAL_RESERVE_TOKENS
from docreader.exceptions import ValidationError
from docreader.logging_config import debug_log, info, warning
from docreader.strategies.base import ChainOfThought, ReadingStrategy
from docreader.strategies.chunked import ChunkedStrategy
from docreader.tokens import estimate_tokens

EXTRACTION_SYSTEM_MESSAGE = "You selectively extract relevant text for a question."
ANSWER_SYSTEM_MESSAGE = (
    "You are a research assistant who answers questions based solely on the provided excerpts."
)

EXTRACTION_INSTRUCTIONS = (
    "You are an assistant that helps extract only the sections of a document that are relevant "
    "to answering a given question. Return the text snippets that are most pertinent to the question, "
    "and omit any parts that are not helpful for answering."
)
SKIM_INSTRUCTIONS = (
    "Skim the following document excerpt and return only the text that is relevant to the question. "
    "If nothing in the excerpt is relevant, return an empty response."
)
SKIM_ANSWER_INSTRUCTIONS = (
    "Based on the following extracted text from a document, answer the question."
)


class RetrievalStrategy(ReadingStrategy):
    """
    Extract-then-answer over the whole document.

    Args:
        gateway, config, executor, cancel_token: See ReadingStrategy
        fallback: Allow skim-and-merge and the Chunked fallback
        reserve_tokens: Tokens held back from the context window
        chunked_options: Keyword options for the fallback ChunkedStrategy
    """

    phase = "retrieval"

    def __init__(
        self,
        gateway,
        config=None,
        executor=None,
        cancel_token=None,
        fallback: bool = True,
        reserve_tokens: int = RETRIEVAL_RESERVE_TOKENS,
        chunked_options: dict | None = None,
    ):
        super().__init__(gateway, config, executor, cancel_token)
        self.fallback = fallback
        self.reserve_tokens = reserve_tokens
        self.chunked_options = chunked_options or {}

    def allowed_input_tokens(self) -> int:
        limits = self.config.limits
        return limits.context_window - self.config.resolved_max_tokens() - self.reserve_tokens

    def _read(self, chunks: list[str], question: str, use_parallel: bool, trace: ChainOfThought) -> str:
        max_tokens = self.config.resolved_max_tokens()
        answer_config = self.config.with_overrides(max_tokens=max_tokens)
        allowed = self.allowed_input_tokens()
        full_text = PARAGRAPH_SEPARATOR.join(chunks)

        trace.record("parameters", {
            **answer_config.to_dict(),
            "fallback": self.fallback,
            "allowed_input_tokens": allowed,
            "use_parallel": use_parallel,
        })
        trace.record("combined_text", full_text)

        document_tokens = estimate_tokens(full_text)
        if document_tokens > allowed:
            info(f"[Retrieval] Document ({document_tokens} tokens) exceeds the "
                 f"single-prompt budget ({allowed} tokens)")
            if not self.fallback:
                trace.record("skipped", "document too large for a single retrieval prompt")
                return ""
            if allowed < 1:
                raise ValidationError(
                    f"No room for document text: model {self.config.model!r} leaves {allowed} tokens "
                    f"after max_tokens={max_tokens} and a {self.reserve_tokens}-token reserve. Lower max_tokens."
                )
            return self._skim_and_merge(full_text, question, allowed, use_parallel, trace)

        extraction_config = self.config.with_overrides(
            temperature=0.0,
            presence_penalty=0.0,
            frequency_penalty=0.0,
            max_tokens=max_tokens,
        )
        extraction_messages = [
            Message.system(EXTRACTION_SYSTEM_MESSAGE),
            Message.user(
                f"{EXTRACTION_INSTRUCTIONS}\n\nQuestion:\n{question}\n\nDocument:\n{full_text}"
            ),
        ]
        relevant_text, step = self._ask(extraction_messages, extraction_config)
        trace.record("extraction_step", step)

        if not relevant_text.strip():
            warning("[Retrieval] No relevant text extracted")
            if not self.fallback:
                return ""
            return self._chunked_fallback(chunks, question, use_parallel, trace)

        answer_messages = [
            Message.system(ANSWER_SYSTEM_MESSAGE),
            Message.user(f"Relevant Text:\n{relevant_text}"),
            Message.user(f"Question:\n{question}"),
        ]
        answer, step = self._ask(answer_messages, answer_config)
        trace.record("answer_step", step)
        return answer

    def _skim_and_merge(
        self,
        full_text: str,
        question: str,
        ceiling: int,
        use_parallel: bool,
        trace: ChainOfThought,
    ) -> str:
        """Skim minimal chunks for relevant text, then answer from the skims."""
        skim_config = self.config.with_overrides(
            temperature=0.0,
            presence_penalty=0.0,
            frequency_penalty=0.0,
            max_tokens=self.config.resolved_max_tokens(),
        )
        pieces = TextChunker(ceiling).chunk(full_text, method="minimal")
        info(f"[Retrieval] Skimming {len(pieces)} pieces")

        def skim(piece):
            messages = [
                Message.system(EXTRACTION_SYSTEM_MESSAGE),
                Message.user(f"{SKIM_INSTRUCTIONS}\n\nQuestion:\n{question}\n\nExcerpt:\n{piece}"),
            ]
            return self._ask(messages, skim_config)

        results = self._map(skim, pieces, use_parallel)
        trace.record("skim_steps", [step for _, step in results])

        skims = [text for text, _ in results if text.strip()]
        if not skims:
            debug_log("[Retrieval] No skim returned relevant text")
            trace.record("answer_step", None)
            return ""

        answer_messages = [
            Message.system(ANSWER_SYSTEM_MESSAGE),
            Message.user(
                f"{SKIM_ANSWER_INSTRUCTIONS}\n\nExtracted Text:\n{PARAGRAPH_SEPARATOR.join(skims)}"
                f"\n\nQuestion:\n{question}"
            ),
        ]
        answer, step = self._ask(answer_messages, self.config.with_overrides(
            max_tokens=self.config.resolved_max_tokens()))
        trace.record("answer_step", step)
        return answer

    def _chunked_fallback(self, chunks: list[str], question: str, use_parallel: bool, trace: ChainOfThought) -> str:
        chunked = self._sibling(ChunkedStrategy, **self.chunked_options)
        result = chunked.run(chunks, question, use_parallel=use_parallel, return_chain_of_thought=True)
        trace.record("fallback", result.to_dict())
        return result.final_answer
