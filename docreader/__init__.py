"""
DocReader: answer questions about documents with an LLM.

    from docreader import answer_question
    answer_question("report.pdf", "What was Q3 revenue?", ["Retrieval", "Chunked"])
"""

from docreader.qa import DocumentQAOrchestrator, ReaderSession, answer_question

__version__ = "0.1.0"

__all__ = ['answer_question', 'DocumentQAOrchestrator', 'ReaderSession', '__version__']
