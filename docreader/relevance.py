"""
Relevance Sorting

Orders chunks by similarity to the question so the most relevant text is
presented first to the merge step.

The default PseudoEmbeddingProvider is a placeholder: it derives a
deterministic random vector from the text length, so the resulting order
is stable but not meaningful. Any object with an `embed(text)` method
returning a sequence of floats can replace it.
"""

from typing import Protocol, Sequence

import numpy as np

from docreader.logging_config import debug_log

EMBEDDING_DIMENSIONS = 768


class EmbeddingProvider(Protocol):
    """Anything that turns text into a vector."""

    def embed(self, text: str) -> Sequence[float]:
        ...


class PseudoEmbeddingProvider:
    """
    Deterministic stand-in for a real embedding model.

    The vector is drawn uniformly from [0, 1) with the text length as seed,
    so equal-length texts embed identically.
    """

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS):
        self.dimensions = dimensions

    def embed(self, text: str) -> np.ndarray:
        rng = np.random.RandomState(len(text))
        return rng.uniform(size=self.dimensions)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two vectors.

    Returns:
        Similarity in [-1, 1], or 0.0 when either vector has zero norm
    """
    vec_a = np.asarray(a, dtype=float)
    vec_b = np.asarray(b, dtype=float)
    norm = np.linalg.norm(vec_a) * np.linalg.norm(vec_b)
    if norm == 0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / norm)


def sort_by_relevance(
    chunks: Sequence[str],
    query: str,
    provider: EmbeddingProvider | None = None,
) -> list[str]:
    """
    Sort chunks by descending cosine similarity to the query.

    The sort is stable: chunks with equal scores keep their original order.

    Args:
        chunks: Ordered chunks
        query: The question
        provider: Embedding provider (PseudoEmbeddingProvider when None)

    Returns:
        New list with the same chunks, most similar first
    """
    if provider is None:
        provider = PseudoEmbeddingProvider()

    query_vector = provider.embed(query)
    scores = [cosine_similarity(query_vector, provider.embed(chunk)) for chunk in chunks]
    order = sorted(range(len(chunks)), key=lambda i: -scores[i])

    debug_log(f"[Relevance] Sorted {len(chunks)} chunks, new order {order}")
    return [chunks[i] for i in order]
