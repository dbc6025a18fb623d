"""
Document reading strategies.

Each strategy answers a question from an ordered list of chunks through
an LLMGateway and can return its ChainOfThought instead of the answer:

    RetrievalStrategy    - extract relevant text, then answer (skim-and-merge
                           when the document is too large)
    ChunkedStrategy      - ask every chunk, merge the partial answers
    SemanticStrategy     - ChunkedStrategy over relevance-sorted semantic chunks
    HierarchicalStrategy - summarize every chunk, answer from the summaries
    MultiPassStrategy    - Retrieval and Chunked combined
    AnswerRefiner        - fact-check pass over any strategy's answer
"""

from docreader.strategies.base import (
    NO_ANSWER_MARKERS,
    ChainOfThought,
    LLMTask,
    ReadingStrategy,
    looks_like_no_answer,
    validate_question,
)
from docreader.strategies.chunked import ChunkedStrategy, SemanticStrategy
from docreader.strategies.hierarchical import HierarchicalStrategy
from docreader.strategies.multipass import MultiPassStrategy
from docreader.strategies.refine import AnswerRefiner, extract_keywords, search_text
from docreader.strategies.retrieval import RetrievalStrategy

__all__ = [
    'NO_ANSWER_MARKERS',
    'ChainOfThought',
    'LLMTask',
    'ReadingStrategy',
    'looks_like_no_answer',
    'validate_question',
    'RetrievalStrategy',
    'ChunkedStrategy',
    'SemanticStrategy',
    'HierarchicalStrategy',
    'MultiPassStrategy',
    'AnswerRefiner',
    'extract_keywords',
    'search_text',
]
