"""
Question answering over documents.

Components:
- DocumentQAOrchestrator / answer_question: validate, load, chunk, run
  the selected reading strategies, log the answers
- ReaderSession: conversation and chain-of-thought history with JSON export
"""

from docreader.qa.orchestrator import (
    MODES,
    DocumentQAOrchestrator,
    answer_question,
    get_default_orchestrator,
    resolve_modes,
    split_options,
)
from docreader.qa.session import ConversationEntry, ReaderSession, append_query_log

__all__ = [
    'MODES',
    'DocumentQAOrchestrator',
    'answer_question',
    'get_default_orchestrator',
    'resolve_modes',
    'split_options',
    'ConversationEntry',
    'ReaderSession',
    'append_query_log',
]
