"""
Tests for the Document Q&A Orchestrator.

Tests the question answering entry point:
1. Input validation (before any document load or LLM call)
2. Mode resolution and option routing
3. Chunk caching across questions and modes
4. End-to-end answers through each mode with a scripted LLM
5. Refinement and the query log
"""

from unittest.mock import MagicMock

import pytest

from docreader.exceptions import EmptyQuestion, InvalidPath, UnknownMode, ValidationError
from docreader.extraction import DocumentLoader
from docreader.qa import DocumentQAOrchestrator, resolve_modes, split_options
from docreader.strategies import ChainOfThought
from docreader.strategies.chunked import DEFAULT_CHUNK_SYSTEM_MESSAGE, DEFAULT_MERGE_SYSTEM_MESSAGE
from docreader.strategies.refine import REFINE_SYSTEM_MESSAGE
from docreader.strategies.retrieval import ANSWER_SYSTEM_MESSAGE, EXTRACTION_SYSTEM_MESSAGE

QUESTION = "What is the capital of France?"


def paris_script(messages):
    """Answers like a model that has read the France document."""
    system = messages[0]["content"]
    user_text = "\n".join(m["content"] for m in messages[1:])
    if system == EXTRACTION_SYSTEM_MESSAGE:
        return "Its capital and largest city is Paris."
    if system == ANSWER_SYSTEM_MESSAGE:
        return "The capital of France is Paris."
    if system == DEFAULT_CHUNK_SYSTEM_MESSAGE:
        return "Paris" if "capital and largest city is Paris" in user_text else "Not found."
    if system == REFINE_SYSTEM_MESSAGE:
        return "Paris is the capital of France."
    return "Paris"


@pytest.fixture
def loader():
    return MagicMock(wraps=DocumentLoader())


@pytest.fixture
def orchestrator(make_gateway, loader, sequential, tmp_path):
    gateway, client = make_gateway(paris_script)
    orchestrator = DocumentQAOrchestrator(
        gateway=gateway,
        loader=loader,
        executor=sequential,
        query_log_path=tmp_path / "logs" / "qa.log",
    )
    orchestrator.client = client
    return orchestrator


class TestResolveModes:
    """Tests for mode name handling."""

    def test_single_mode_string(self):
        assert resolve_modes("Chunked") == ["Chunked"]

    def test_case_insensitive_canonical_order(self):
        assert resolve_modes(["multipass", "RETRIEVAL", "chunked"]) == ["Retrieval", "Chunked", "MultiPass"]

    def test_duplicates_collapse(self):
        assert resolve_modes(["Chunked", "chunked"]) == ["Chunked"]

    def test_unknown_mode(self):
        with pytest.raises(UnknownMode):
            resolve_modes(["Chunked", "Fancy"])

    def test_empty_selection(self):
        with pytest.raises(UnknownMode):
            resolve_modes([])
        with pytest.raises(UnknownMode):
            resolve_modes(None)


class TestSplitOptions:
    """Tests for option routing."""

    def test_routes_options(self):
        config, routed = split_options({"model": "gpt-4o", "num_retries": 1, "token_limit": 500,
                                        "chunk_token_limit": 200, "fallback": False})
        assert config == {"model": "gpt-4o", "num_retries": 1}
        assert routed == {"token_limit": 500, "chunk_token_limit": 200, "fallback": False}

    def test_unknown_option(self):
        with pytest.raises(ValidationError, match="top_p"):
            split_options({"top_p": 0.9})


class TestValidation:
    """Invalid input fails before the document is loaded or the LLM is called."""

    def test_missing_file(self, orchestrator, loader, tmp_path):
        with pytest.raises(InvalidPath):
            orchestrator.answer_question(tmp_path / "nope.txt", QUESTION)
        loader.load.assert_not_called()
        assert orchestrator.client.call_count == 0

    def test_none_path(self, orchestrator):
        with pytest.raises(InvalidPath):
            orchestrator.answer_question(None, QUESTION)

    def test_blank_question(self, orchestrator, loader, paris_document):
        with pytest.raises(EmptyQuestion):
            orchestrator.answer_question(paris_document, "  \n ")
        loader.load.assert_not_called()
        assert orchestrator.client.call_count == 0

    def test_unknown_mode(self, orchestrator, loader, paris_document):
        with pytest.raises(UnknownMode):
            orchestrator.answer_question(paris_document, QUESTION, ["Retrieval", "Guess"])
        loader.load.assert_not_called()

    def test_unknown_option(self, orchestrator, loader, paris_document):
        with pytest.raises(ValidationError):
            orchestrator.answer_question(paris_document, QUESTION, "Chunked", top_p=0.5)
        loader.load.assert_not_called()

    def test_invalid_option_value(self, orchestrator, paris_document):
        with pytest.raises(ValidationError):
            orchestrator.answer_question(paris_document, QUESTION, "Chunked", max_tokens=0)

    def test_invalid_token_limit(self, orchestrator, loader, paris_document):
        with pytest.raises(ValidationError):
            orchestrator.answer_question(paris_document, QUESTION, "Chunked", token_limit=0)
        loader.load.assert_not_called()


class TestAnswering:
    """End-to-end answers through the orchestrator."""

    def test_retrieval_end_to_end(self, orchestrator, paris_document):
        answer = orchestrator.answer_question(paris_document, QUESTION, "Retrieval", retries=0)
        assert "Paris" in answer
        assert orchestrator.client.call_count == 2

    def test_single_mode_returns_string(self, orchestrator, paris_document):
        assert isinstance(orchestrator.answer_question(paris_document, QUESTION, "Chunked"), str)

    def test_several_modes_return_dict_in_canonical_order(self, orchestrator, paris_document):
        answers = orchestrator.answer_question(paris_document, QUESTION, ["multipass", "chunked", "Retrieval"])
        assert list(answers) == ["Retrieval", "Chunked", "MultiPass"]
        assert all("Paris" in answer for answer in answers.values())

    def test_every_mode_answers(self, orchestrator, paris_document):
        from docreader.qa import MODES

        answers = orchestrator.answer_question(paris_document, QUESTION, list(MODES))
        assert list(answers) == list(MODES)
        assert all(answers.values())

    def test_chain_of_thought(self, orchestrator, paris_document):
        trace = orchestrator.answer_question(paris_document, QUESTION, "Chunked", return_chain_of_thought=True)
        assert isinstance(trace, ChainOfThought)
        assert trace.phase == "chunked"
        assert trace.final_answer == "Paris"

    def test_config_options_reach_the_client(self, orchestrator, paris_document):
        orchestrator.answer_question(paris_document, QUESTION, "Chunked", model="gpt-4o", temperature=0.4)
        chunk_call = orchestrator.client.calls[0]
        assert chunk_call["model"] == "gpt-4o"
        assert chunk_call["temperature"] == 0.4

    def test_chunk_token_limit_option(self, orchestrator, paris_document):
        """A tiny per-query budget splits each chunk into word groups."""
        orchestrator.answer_question(paris_document, QUESTION, "Chunked", chunk_token_limit=5)
        chunk_calls = [c for c in orchestrator.client.calls
                       if c["messages"][0]["content"] == DEFAULT_CHUNK_SYSTEM_MESSAGE]
        assert len(chunk_calls) > 2
        assert all(len(c["messages"][1]["content"].split()) <= 5 for c in chunk_calls)

    def test_parallel_chunked(self, make_gateway, paris_document, tmp_path):
        gateway, client = make_gateway(paris_script)
        orchestrator = DocumentQAOrchestrator(gateway=gateway, query_log_path=None)
        answer = orchestrator.answer_question(paris_document, QUESTION, "Chunked", use_parallel=True,
                                              token_limit=20)
        assert answer == "Paris"
        assert any(c["messages"][0]["content"] == DEFAULT_MERGE_SYSTEM_MESSAGE for c in client.calls)


class TestChunkCache:
    """Tests for chunk reuse across questions."""

    def test_second_question_reuses_chunks(self, orchestrator, loader, paris_document):
        orchestrator.answer_question(paris_document, QUESTION, "Chunked")
        orchestrator.answer_question(paris_document, "When was the tower completed?", "Chunked")
        assert loader.load.call_count == 1

    def test_modes_share_one_load(self, orchestrator, loader, paris_document):
        orchestrator.answer_question(paris_document, QUESTION, ["Chunked", "Semantic", "Hierarchical"])
        assert loader.load.call_count == 1
        assert len(orchestrator.cache) == 2

    def test_new_token_limit_rechunks(self, orchestrator, paris_document):
        orchestrator.answer_question(paris_document, QUESTION, "Chunked")
        orchestrator.answer_question(paris_document, QUESTION, "Chunked", token_limit=10)
        assert len(orchestrator.cache) == 2

    def test_get_chunks(self, orchestrator, paris_document):
        chunks = orchestrator.get_chunks(paris_document, "naive", token_limit=20)
        assert len(chunks) == 2
        assert chunks[0].startswith("France is a country")


class TestRefinement:
    """Tests for the refine option."""

    def test_refine_replaces_answer(self, orchestrator, paris_document):
        answer = orchestrator.answer_question(paris_document, QUESTION, "Retrieval", refine=True)
        assert answer == "Paris is the capital of France."

    def test_refine_chain_of_thought(self, orchestrator, paris_document):
        trace = orchestrator.answer_question(paris_document, QUESTION, "Retrieval", refine=True,
                                             return_chain_of_thought=True)
        assert trace.phase == "refined"
        assert trace["initial"]["phase"] == "retrieval"
        assert trace["refinement"]["phase"] == "refinement"
        assert trace.final_answer == "Paris is the capital of France."

    def test_refine_max_tokens_option(self, orchestrator, paris_document):
        orchestrator.answer_question(paris_document, QUESTION, "Retrieval", refine=True, refine_max_tokens=77)
        assert orchestrator.client.calls[-1]["max_tokens"] == 77


class TestQueryLog:
    """Tests for the plain-text Q&A log."""

    def test_each_mode_is_logged(self, orchestrator, paris_document, tmp_path):
        orchestrator.answer_question(paris_document, QUESTION, ["Retrieval", "Chunked"])
        content = (tmp_path / "logs" / "qa.log").read_text(encoding="utf-8")
        assert content.count(f"Q: {QUESTION}\n") == 2
        assert "A: The capital of France is Paris.\n---\n" in content
        assert "A: Paris\n---\n" in content

    def test_logging_disabled(self, make_gateway, paris_document, tmp_path):
        gateway, _ = make_gateway(paris_script)
        orchestrator = DocumentQAOrchestrator(gateway=gateway, query_log_path=None)
        orchestrator.answer_question(paris_document, QUESTION, "Chunked")
        assert not (tmp_path / "logs").exists()


class TestModuleLevelEntryPoint:
    """Tests for docreader.answer_question()."""

    def test_uses_default_orchestrator(self, monkeypatch, orchestrator, paris_document):
        import docreader
        from docreader.qa import orchestrator as orchestrator_module

        monkeypatch.setattr(orchestrator_module, "_default_orchestrator", orchestrator)
        assert docreader.answer_question(paris_document, QUESTION, "Chunked") == "Paris"
        assert orchestrator_module.get_default_orchestrator() is orchestrator
