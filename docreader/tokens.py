"""
Token Estimation

Whitespace-based token approximation and the static model limit table.

Token counts here are deliberately approximate: one token per
whitespace-separated word. Every budget in the package (chunk limits,
retrieval thresholds, sub-chunk splits) is expressed in these units, so
the approximation is consistent even where it is not exact.
"""

from typing import NamedTuple


class ModelLimits(NamedTuple):
    """Context window and maximum output tokens for a model."""
    context_window: int
    output_tokens: int


# Exact-match table of known model identifiers
_KNOWN_MODEL_LIMITS: dict[str, ModelLimits] = {
    "gpt-3.5-turbo": ModelLimits(16385, 4096),
    "gpt-3.5-turbo-1106": ModelLimits(16385, 4096),
    "gpt-4.5-preview-2025-02-27": ModelLimits(128000, 16384),
    "gpt-4o-2024-08-06": ModelLimits(128000, 16384),
    "chatgpt-4o-latest": ModelLimits(128000, 16384),
    "gpt-4o-mini-2024-07-18": ModelLimits(128000, 16384),
    "gpt-4o": ModelLimits(128000, 16384),
    "gpt-4o-mini": ModelLimits(128000, 16384),
    "gpt-4-turbo": ModelLimits(128000, 4096),
}

# Any other id containing this marker gets the family limits
_FAMILY_MARKER = "gpt-4"
_FAMILY_LIMITS = ModelLimits(8192, 2048)

_DEFAULT_LIMITS = ModelLimits(4096, 4096)


def estimate_tokens(text: str) -> int:
    """
    Approximate the token count of text as its whitespace word count.

    Args:
        text: Text to measure (empty string gives 0)

    Returns:
        Number of whitespace-separated words
    """
    if not text:
        return 0
    return len(text.split())


def model_limits(model_id: str) -> ModelLimits:
    """
    Look up the context window and output token limit for a model.

    Args:
        model_id: Provider model identifier, e.g. "gpt-4o"

    Returns:
        ModelLimits for the model (4096/4096 when the model is unknown)
    """
    if model_id in _KNOWN_MODEL_LIMITS:
        return _KNOWN_MODEL_LIMITS[model_id]
    if model_id and _FAMILY_MARKER in model_id:
        return _FAMILY_LIMITS
    return _DEFAULT_LIMITS


def split_into_word_groups(text: str, group_size: int) -> list[str]:
    """
    Hard-split text into groups of at most group_size words.

    Used when a single paragraph or chunk exceeds a token budget. Groups are
    rejoined with single spaces, so original line breaks inside the text are
    not preserved.

    Args:
        text: Text to split
        group_size: Maximum words per group (must be >= 1)

    Returns:
        List of word groups in document order (empty for blank text)

    Raises:
        ValueError: If group_size is less than 1
    """
    if group_size < 1:
        raise ValueError(f"group_size must be >= 1, got {group_size}")

    words = text.split()
    return [
        " ".join(words[start:start + group_size])
        for start in range(0, len(words), group_size)
    ]
