"""
Answer refinement pass.

Fact-checks an existing answer against the document: the longer words of
the answer become search keywords, keyword-in-context snippets are pulled
from the chunks, and one call asks the model to correct and complete the
answer. Refinement never makes things worse on failure: an empty or failed
call returns the original answer unchanged.
"""

import re
from typing import Iterable, Sequence

from docreader.ai.llm_gateway import Message
from docreader.config import (
    REFINE_MAX_KEYWORDS,
    REFINE_MAX_SNIPPETS,
    REFINE_MAX_TOKENS,
    REFINE_MIN_KEYWORD_CHARS,
    REFINE_WINDOW_CHARS,
)
from docreader.logging_config import debug_log
from docreader.strategies.base import ChainOfThought, LLMTask, validate_question

REFINE_SYSTEM_MESSAGE = "You are a fact-checker and editor improving the answer using the document."


def search_text(text: str | Iterable[str], keywords: Iterable[str], window_chars: int = 200) -> list[str]:
    """
    Find keywords in text and return the surrounding passages.

    Matching is case-insensitive and literal. Each hit yields the text from
    window_chars before the match to window_chars after it.

    Args:
        text: A string or a sequence of chunks (joined with spaces)
        keywords: Words or phrases to look for
        window_chars: Context characters on each side of a hit

    Returns:
        Unique snippets in order of first appearance (keyword order, then
        position)
    """
    text_str = text if isinstance(text, str) else " ".join(text)
    snippets: list[str] = []
    seen = set()

    for keyword in keywords:
        if not keyword:
            continue
        for match in re.finditer(re.escape(keyword), text_str, re.IGNORECASE):
            start = max(0, match.start() - window_chars)
            end = min(len(text_str), match.end() + window_chars)
            snippet = text_str[start:end]
            if snippet not in seen:
                seen.add(snippet)
                snippets.append(snippet)
    return snippets


def extract_keywords(answer: str, max_keywords: int = REFINE_MAX_KEYWORDS) -> list[str]:
    """The first max_keywords words of answer with at least REFINE_MIN_KEYWORD_CHARS characters."""
    words = [w for w in (answer or "").split() if len(w) >= REFINE_MIN_KEYWORD_CHARS]
    return words[:max_keywords]


class AnswerRefiner(LLMTask):
    """
    Improves an answer with excerpts from the document.

    Args:
        gateway, config, executor, cancel_token: See LLMTask
        max_tokens: Output cap for the refined answer
        window_chars: Context characters around each keyword hit
        max_snippets: Maximum excerpts included in the prompt
    """

    phase = "refinement"

    def __init__(
        self,
        gateway,
        config=None,
        executor=None,
        cancel_token=None,
        max_tokens: int = REFINE_MAX_TOKENS,
        window_chars: int = REFINE_WINDOW_CHARS,
        max_snippets: int = REFINE_MAX_SNIPPETS,
    ):
        super().__init__(gateway, config, executor, cancel_token)
        self.max_tokens = max_tokens
        self.window_chars = window_chars
        self.max_snippets = max_snippets

    def refine(
        self,
        chunks: Sequence[str],
        question: str,
        current_answer: str,
        return_chain_of_thought: bool = False,
    ) -> str | ChainOfThought:
        """
        Refine current_answer.

        Returns:
            The refined answer (or current_answer unchanged on failure), or
            the finished ChainOfThought
        """
        question = validate_question(question)
        current_answer = current_answer or ""

        trace = ChainOfThought(self.phase)
        trace.record("question", question)
        trace.record("current_answer", current_answer)

        keywords = extract_keywords(current_answer)
        snippets = search_text(chunks, keywords, window_chars=self.window_chars)[:self.max_snippets]
        trace.record("keywords", keywords)
        trace.record("snippets", snippets)

        excerpts = "\n\n".join(snippets)
        prompt = (
            "Here is an initial answer to a question and some relevant excerpts from the document. "
            "Please refine the answer to be more accurate and complete using the provided document information."
            f"\n\nQuestion:\n{question}"
            f"\n\nCurrent Answer:\n{current_answer}"
            f"\n\nDocument Excerpts:\n{excerpts}"
        )
        messages = [Message.system(REFINE_SYSTEM_MESSAGE), Message.user(prompt)]
        refine_config = self.config.with_overrides(
            temperature=0.0,
            max_tokens=self.max_tokens,
            presence_penalty=0.0,
            frequency_penalty=0.0,
        )
        refined, step = self._ask(messages, refine_config)
        trace.record("refine_step", step)

        if refined.strip():
            final = refined.strip()
        else:
            debug_log("[Refine] Refinement produced nothing; keeping the current answer")
            final = current_answer

        trace.finish(final)
        return trace if return_chain_of_thought else final
