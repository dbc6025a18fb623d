"""
Reader session: conversation history, chain-of-thought history and the
plain-text query log.

A ReaderSession keeps what an interactive front end shows: every question
with its modes and answers, plus the chain-of-thought of each run. The
whole history can be exported as JSON:

    {
      "conversation": [{"question", "modes", "answer", "timestamp"}, ...],
      "json_chain_of_thought": [{"question", "modes", "json_chain"}, ...]
    }
"""

import json
import threading
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path

from docreader.config import QA_LOG_FILE
from docreader.logging_config import debug_log, warning

_log_lock = threading.Lock()


def format_query_log_entry(question: str, answer: str, timestamp: datetime | None = None) -> str:
    """'<timestamp> Q: <question>\\nA: <answer>\\n---\\n'"""
    stamp = (timestamp or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return f"{stamp} Q: {question}\nA: {answer}\n---\n"


def append_query_log(question: str, answer: str, log_file: str | Path = QA_LOG_FILE) -> bool:
    """
    Append a question/answer pair to the query log.

    A log that cannot be written never fails the question; it is reported
    as a warning.

    Returns:
        True if the entry was written
    """
    log_file = Path(log_file)
    entry = format_query_log_entry(question, answer)
    try:
        with _log_lock:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(log_file, 'a', encoding='utf-8') as f:
                f.write(entry)
    except OSError as e:
        warning(f"[QueryLog] Could not write to {log_file}: {e}")
        return False
    return True


@dataclass
class ConversationEntry:
    """
    One question asked in a session.

    Attributes:
        question: The question text
        modes: Modes the question was answered with
        answer: The answer, or {mode: answer} for several modes
        timestamp: ISO timestamp of when the answer arrived
    """
    question: str
    modes: list[str]
    answer: str | dict[str, str]
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat(timespec="seconds"))

    def to_dict(self) -> dict:
        return asdict(self)


class ReaderSession:
    """
    Linear conversation over one or more documents.

    Args:
        orchestrator: DocumentQAOrchestrator to answer with (default one
                      created on first use)

    Example:
        session = ReaderSession()
        session.ask("report.pdf", "Who wrote it?", ["Retrieval", "Chunked"])
        session.export_json("history.json")
    """

    def __init__(self, orchestrator=None):
        if orchestrator is None:
            # Lazy import: the orchestrator imports append_query_log from here
            from docreader.qa.orchestrator import DocumentQAOrchestrator
            orchestrator = DocumentQAOrchestrator()
        self.orchestrator = orchestrator
        self.conversation: list[ConversationEntry] = []
        self.chain_history: list[dict] = []

    def ask(self, file_path, question: str, modes="Retrieval", use_parallel: bool = False,
            refine: bool = False, **options):
        """
        Answer a question and record it in the history.

        The question is answered once with chain-of-thought enabled; the
        plain answers are taken from the traces.

        Returns:
            The answer string for one mode, or {mode: answer} for several
        """
        from docreader.qa.orchestrator import resolve_modes

        result = self.orchestrator.answer_question(
            file_path,
            question,
            modes,
            use_parallel=use_parallel,
            refine=refine,
            return_chain_of_thought=True,
            **options,
        )
        selected = resolve_modes(modes)

        if isinstance(result, dict):
            answer = {mode: trace.final_answer for mode, trace in result.items()}
            chain = {mode: trace.to_dict() for mode, trace in result.items()}
        else:
            answer = result.final_answer
            chain = result.to_dict()

        self.conversation.append(ConversationEntry(question=question.strip(), modes=selected, answer=answer))
        self.chain_history.append({"question": question.strip(), "modes": selected, "json_chain": chain})
        debug_log(f"[Session] Recorded entry {len(self.conversation)}")
        return answer

    def to_dict(self) -> dict:
        return {
            "conversation": [entry.to_dict() for entry in self.conversation],
            "json_chain_of_thought": list(self.chain_history),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False, default=str)

    def export_json(self, path: str | Path) -> Path:
        """Write the session history to path as UTF-8 JSON."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding='utf-8')
        return path

    def clear(self):
        self.conversation.clear()
        self.chain_history.clear()

    def __len__(self) -> int:
        return len(self.conversation)
