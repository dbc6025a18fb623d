"""
Tests for ReaderSession history and the query log helpers.
"""

import json
from datetime import datetime

from docreader.qa import DocumentQAOrchestrator, ReaderSession, append_query_log
from docreader.qa.session import format_query_log_entry


def _session(make_gateway, reply="Paris"):
    gateway, client = make_gateway(lambda messages: reply)
    orchestrator = DocumentQAOrchestrator(gateway=gateway, query_log_path=None)
    return ReaderSession(orchestrator), client


class TestQueryLogFormat:
    """Tests for the query log entry layout."""

    def test_entry_layout(self):
        entry = format_query_log_entry("Who?", "Her.", datetime(2024, 3, 5, 14, 7, 9))
        assert entry == "2024-03-05 14:07:09 Q: Who?\nA: Her.\n---\n"

    def test_append_creates_file(self, tmp_path):
        log_file = tmp_path / "nested" / "qa.log"
        assert append_query_log("Q1", "A1", log_file)
        assert append_query_log("Q2", "A2", log_file)
        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert lines[0].endswith("Q: Q1")
        assert lines[1:3] == ["A: A1", "---"]
        assert lines[3].endswith("Q: Q2")

    def test_unwritable_log_is_not_fatal(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        assert append_query_log("Q", "A", blocker / "qa.log") is False


class TestReaderSession:
    """Tests for conversation history and export."""

    def test_ask_records_conversation(self, make_gateway, paris_document):
        session, _ = _session(make_gateway)
        answer = session.ask(paris_document, "  What is the capital?  ", "chunked")

        assert answer == "Paris"
        assert len(session) == 1
        entry = session.conversation[0]
        assert entry.question == "What is the capital?"
        assert entry.modes == ["Chunked"]
        assert entry.answer == "Paris"

    def test_several_modes(self, make_gateway, paris_document):
        session, _ = _session(make_gateway)
        answer = session.ask(paris_document, "Capital?", ["Chunked", "Retrieval"])
        assert answer == {"Retrieval": "Paris", "Chunked": "Paris"}
        assert session.chain_history[0]["modes"] == ["Retrieval", "Chunked"]
        assert set(session.chain_history[0]["json_chain"]) == {"Retrieval", "Chunked"}

    def test_export_json_structure(self, make_gateway, paris_document, tmp_path):
        session, _ = _session(make_gateway)
        session.ask(paris_document, "Capital?", "Chunked")
        path = session.export_json(tmp_path / "out" / "history.json")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"conversation", "json_chain_of_thought"}
        assert data["conversation"][0]["question"] == "Capital?"
        assert data["conversation"][0]["answer"] == "Paris"
        assert "timestamp" in data["conversation"][0]
        chain = data["json_chain_of_thought"][0]
        assert chain["question"] == "Capital?"
        assert chain["json_chain"]["phase"] == "chunked"
        assert chain["json_chain"]["final_answer"] == "Paris"

    def test_clear(self, make_gateway, paris_document):
        session, _ = _session(make_gateway)
        session.ask(paris_document, "Capital?", "Chunked")
        session.clear()
        assert len(session) == 0
        assert session.to_dict() == {"conversation": [], "json_chain_of_thought": []}
