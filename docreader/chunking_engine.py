"""
Document Chunking Engine

Splits cleaned document text into ordered chunks that fit a token budget.
Three policies share one paragraph scan:

1. Naive: greedily packs consecutive paragraphs while the chunk fits.
2. Semantic: packs a paragraph only when it shares a word with the running
   chunk or is short; a coarse proxy for topical continuity.
3. Minimal: the naive packing, used with a ceiling equal to one prompt's
   input budget so a document needs as few chunks as possible.

Paragraphs are separated by blank lines. A paragraph that is larger than
the budget on its own is hard-split into word groups, so every chunk
satisfies estimate_tokens(chunk) <= token_limit.

Chunk lists are cached per document by ChunkCache, keyed by
(normalized path, method, token_limit).
"""

import re
import threading
from pathlib import Path

from docreader.config import DEFAULT_CHUNK_TOKEN_LIMIT, SEMANTIC_SHORT_PARAGRAPH_CHARS
from docreader.logging_config import debug_log
from docreader.tokens import estimate_tokens, split_into_word_groups

CHUNK_METHODS = ("naive", "semantic", "minimal")

PARAGRAPH_SEPARATOR = "\n\n"

_PARAGRAPH_BREAK_PATTERN = re.compile(r'\n{2,}')
_NON_WORD_PATTERN = re.compile(r'[^\w\s]')


def split_paragraphs(text: str) -> list[str]:
    """
    Split text on blank lines, dropping blank paragraphs.

    Args:
        text: Cleaned document text

    Returns:
        Non-empty paragraphs with boundary whitespace trimmed
    """
    paragraphs = (p.strip() for p in _PARAGRAPH_BREAK_PATTERN.split(text or ""))
    return [p for p in paragraphs if p]


def _word_set(text: str) -> set[str]:
    return set(_NON_WORD_PATTERN.sub('', text).lower().split())


class TextChunker:
    """
    Paragraph-aware chunker with a token budget.

    Attributes:
        token_limit: Maximum estimated tokens per chunk (>= 1)

    Example:
        chunker = TextChunker(token_limit=500)
        chunks = chunker.chunk(text, method="semantic")
    """

    def __init__(self, token_limit: int = DEFAULT_CHUNK_TOKEN_LIMIT):
        if token_limit < 1:
            raise ValueError(f"token_limit must be >= 1, got {token_limit}")
        self.token_limit = token_limit

    def chunk(self, text: str, method: str = "naive") -> list[str]:
        """
        Chunk text with the named policy.

        Args:
            text: Cleaned document text
            method: One of "naive", "semantic", "minimal"

        Returns:
            Ordered list of chunks (empty for blank text)
        """
        if method == "semantic":
            chunks = self.chunk_semantic(text)
        elif method == "naive":
            chunks = self.chunk_naive(text)
        elif method == "minimal":
            chunks = self.chunk_minimal(text)
        else:
            raise ValueError(f"Unknown chunk method: {method!r}. Expected one of {CHUNK_METHODS}")

        debug_log(f"[Chunker] {method}: {len(chunks)} chunks at token_limit={self.token_limit}")
        return chunks

    def chunk_naive(self, text: str) -> list[str]:
        """Greedily pack consecutive paragraphs into chunks."""
        chunks: list[str] = []
        current = ""

        for paragraph in split_paragraphs(text):
            if estimate_tokens(paragraph) > self.token_limit:
                if current:
                    chunks.append(current)
                    current = ""
                chunks.extend(split_into_word_groups(paragraph, self.token_limit))
                continue

            candidate = f"{current}{PARAGRAPH_SEPARATOR}{paragraph}" if current else paragraph
            if estimate_tokens(candidate) <= self.token_limit:
                current = candidate
            else:
                chunks.append(current)
                current = paragraph

        if current:
            chunks.append(current)
        return chunks

    def chunk_semantic(self, text: str) -> list[str]:
        """
        Pack a paragraph into the running chunk only if it is related.

        A paragraph is related when it shares at least one case-folded
        alphanumeric word with the running chunk, or is shorter than
        SEMANTIC_SHORT_PARAGRAPH_CHARS characters. The merged chunk must
        still fit the budget.
        """
        chunks: list[str] = []
        current = ""
        current_words: set[str] = set()

        for paragraph in split_paragraphs(text):
            if estimate_tokens(paragraph) > self.token_limit:
                if current:
                    chunks.append(current)
                    current, current_words = "", set()
                chunks.extend(split_into_word_groups(paragraph, self.token_limit))
                continue

            if not current:
                current, current_words = paragraph, _word_set(paragraph)
                continue

            paragraph_words = _word_set(paragraph)
            related = bool(current_words & paragraph_words) or len(paragraph) < SEMANTIC_SHORT_PARAGRAPH_CHARS
            candidate = f"{current}{PARAGRAPH_SEPARATOR}{paragraph}"

            if related and estimate_tokens(candidate) <= self.token_limit:
                current = candidate
                current_words |= paragraph_words
            else:
                chunks.append(current)
                current, current_words = paragraph, paragraph_words

        if current:
            chunks.append(current)
        return chunks

    def chunk_minimal(self, text: str) -> list[str]:
        """
        Fewest chunks under the budget.

        Callers pass the largest budget one prompt can hold as token_limit;
        the packing itself is the naive one.
        """
        return self.chunk_naive(text)


def chunk_text(text: str, method: str = "naive", token_limit: int = DEFAULT_CHUNK_TOKEN_LIMIT) -> list[str]:
    """Convenience wrapper around TextChunker(token_limit).chunk(text, method)."""
    return TextChunker(token_limit).chunk(text, method)


# =============================================================================
# Chunk Cache
# =============================================================================

def normalize_path(path: str | Path) -> str:
    """Absolute, resolved path with forward slashes, used as a cache key."""
    return Path(path).expanduser().resolve().as_posix()


class ChunkCache:
    """
    Thread-safe cache of chunk lists per document.

    Keys are (normalized path, chunk method, token_limit). Entries are
    stored as tuples and never replaced: the first put for a key wins.

    Example:
        cache = ChunkCache()
        key = cache.make_key("doc.txt", "naive", 3000)
        chunks = cache.get(key)
        if chunks is None:
            chunks = cache.put(key, chunker.chunk(text))
    """

    def __init__(self):
        self._entries: dict[tuple[str, str, int], tuple[str, ...]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(path: str | Path, method: str, token_limit: int) -> tuple[str, str, int]:
        return (normalize_path(path), method, token_limit)

    def get(self, key: tuple[str, str, int]) -> tuple[str, ...] | None:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: tuple[str, str, int], chunks) -> tuple[str, ...]:
        """
        Store chunks for key unless already present.

        Returns:
            The cached tuple for key (the existing one if another caller
            stored it first)
        """
        with self._lock:
            return self._entries.setdefault(key, tuple(chunks))

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __contains__(self, key) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
