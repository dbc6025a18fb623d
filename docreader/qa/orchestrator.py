"""
Document Q&A Orchestrator for DocReader.

Entry point for answering a question about a document:

1. Validate the path, the question, the modes and the options (nothing
   touches the network before this passes)
2. Load and clean the document once, chunk it per mode (naive, or semantic
   for the Semantic mode), reusing the ChunkCache across calls
3. Sort chunks by relevance for the Semantic mode
4. Run each selected reading strategy, optionally refine its answer
5. Append every question/answer pair to the query log

Modes (case-insensitive, results in this order):
    Retrieval, Chunked, Semantic, Hierarchical, MultiPass

Example:
    orchestrator = DocumentQAOrchestrator()
    answer = orchestrator.answer_question("report.pdf", "Who wrote it?", "Retrieval")

    answers = orchestrator.answer_question(
        "report.pdf", "Who wrote it?", ["Chunked", "MultiPass"], model="gpt-4o"
    )
    answers["MultiPass"]
"""

import threading
from pathlib import Path

from docreader.ai.llm_gateway import CancellationToken, LLMGateway
from docreader.chunking_engine import ChunkCache, TextChunker
from docreader.config import DEFAULT_CHUNK_TOKEN_LIMIT, QA_LOG_FILE
from docreader.exceptions import InvalidPath, UnknownMode, ValidationError
from docreader.extraction import DocumentLoader
from docreader.logging_config import Timer, debug_log, info
from docreader.parallel import ExecutorStrategy
from docreader.qa.session import append_query_log
from docreader.relevance import EmbeddingProvider, sort_by_relevance
from docreader.strategies import (
    AnswerRefiner,
    ChainOfThought,
    ChunkedStrategy,
    HierarchicalStrategy,
    MultiPassStrategy,
    RetrievalStrategy,
    SemanticStrategy,
    validate_question,
)
from docreader.strategy_config import OPTION_ALIASES, StrategyConfig

MODES = ("Retrieval", "Chunked", "Semantic", "Hierarchical", "MultiPass")

# Options routed to strategy constructors rather than StrategyConfig
CHUNKED_OPTIONS = ("chunk_token_limit", "delay_between_chunks", "system_message_1", "system_message_2")
HIERARCHICAL_OPTIONS = ("summary_max_tokens", "answer_max_tokens")
RETRIEVAL_OPTIONS = ("fallback",)
REFINE_OPTIONS = ("refine_max_tokens",)
DOCUMENT_OPTIONS = ("token_limit",)

_ROUTED_OPTIONS = CHUNKED_OPTIONS + HIERARCHICAL_OPTIONS + RETRIEVAL_OPTIONS + REFINE_OPTIONS + DOCUMENT_OPTIONS


def resolve_modes(modes) -> list[str]:
    """
    Normalize requested modes to canonical names in canonical order.

    Args:
        modes: A mode name or an iterable of mode names (any case)

    Returns:
        Unique canonical mode names ordered as in MODES

    Raises:
        UnknownMode: For an unknown name or an empty selection
    """
    if modes is None:
        raise UnknownMode(f"No mode selected. Choose from: {', '.join(MODES)}")
    if isinstance(modes, str):
        modes = [modes]

    lookup = {mode.lower(): mode for mode in MODES}
    selected = set()
    for name in modes:
        canonical = lookup.get(str(name).strip().lower())
        if canonical is None:
            raise UnknownMode(f"Unknown mode: {name!r}. Choose from: {', '.join(MODES)}")
        selected.add(canonical)

    if not selected:
        raise UnknownMode(f"No mode selected. Choose from: {', '.join(MODES)}")
    return [mode for mode in MODES if mode in selected]


def split_options(options: dict) -> tuple[dict, dict]:
    """
    Separate StrategyConfig options from strategy/document options.

    Returns:
        (config options, routed options)

    Raises:
        ValidationError: For option names nobody accepts
    """
    config_names = set(StrategyConfig.option_names()) | set(OPTION_ALIASES)
    config_options, routed = {}, {}
    for key, value in options.items():
        if key in _ROUTED_OPTIONS:
            routed[key] = value
        elif key in config_names:
            config_options[key] = value
        else:
            allowed = sorted(config_names | set(_ROUTED_OPTIONS))
            raise ValidationError(f"Unknown option: {key!r}. Allowed options: {', '.join(allowed)}")
    return config_options, routed


class DocumentQAOrchestrator:
    """
    Coordinates loading, chunking, strategy selection and logging.

    Args:
        gateway: LLMGateway for every strategy (default: OpenAI client)
        loader: DocumentLoader (default: special characters removed, digits kept)
        cache: ChunkCache shared across calls (a new one when None)
        embedding_provider: Provider for the Semantic mode's relevance sort
        executor: Fixed execution strategy for all per-chunk work (tests)
        query_log_path: Q&A log file; None disables logging
    """

    def __init__(
        self,
        gateway: LLMGateway | None = None,
        loader: DocumentLoader | None = None,
        cache: ChunkCache | None = None,
        embedding_provider: EmbeddingProvider | None = None,
        executor: ExecutorStrategy | None = None,
        query_log_path: Path | None = QA_LOG_FILE,
    ):
        self.gateway = gateway or LLMGateway()
        self.loader = loader or DocumentLoader()
        self.cache = cache if cache is not None else ChunkCache()
        self.embedding_provider = embedding_provider
        self.executor = executor
        self.query_log_path = query_log_path

    # -------------------------------------------------------------------------
    # Chunks
    # -------------------------------------------------------------------------

    def get_chunks(self, file_path: str | Path, method: str = "naive",
                   token_limit: int = DEFAULT_CHUNK_TOKEN_LIMIT, text: str | None = None) -> tuple[str, ...]:
        """
        Chunks for a document, from the cache when available.

        Args:
            file_path: Document path
            method: Chunk policy ("naive" or "semantic")
            token_limit: Chunk budget
            text: Already-loaded cleaned text (skips the loader)

        Returns:
            Tuple of chunks
        """
        key = self.cache.make_key(file_path, method, token_limit)
        cached = self.cache.get(key)
        if cached is not None:
            debug_log(f"[Orchestrator] Using cached {method} chunks for {Path(file_path).name}")
            return cached

        if text is None:
            text = self.loader.load(file_path)
        chunks = TextChunker(token_limit).chunk(text, method=method)
        return self.cache.put(key, chunks)

    # -------------------------------------------------------------------------
    # Strategies
    # -------------------------------------------------------------------------

    def build_strategy(self, mode: str, config: StrategyConfig, routed: dict,
                       cancel_token: CancellationToken | None = None):
        """Construct the reading strategy for a canonical mode name."""
        common = {
            "config": config,
            "executor": self.executor,
            "cancel_token": cancel_token,
        }
        chunked_options = {k: routed[k] for k in CHUNKED_OPTIONS if k in routed}

        if mode == "Retrieval":
            return RetrievalStrategy(self.gateway, fallback=routed.get("fallback", True),
                                     chunked_options=chunked_options, **common)
        if mode == "Chunked":
            return ChunkedStrategy(self.gateway, **chunked_options, **common)
        if mode == "Semantic":
            return SemanticStrategy(self.gateway, **chunked_options, **common)
        if mode == "Hierarchical":
            hierarchical_options = {k: routed[k] for k in HIERARCHICAL_OPTIONS if k in routed}
            return HierarchicalStrategy(self.gateway, chunked_options=chunked_options,
                                        **hierarchical_options, **common)
        if mode == "MultiPass":
            return MultiPassStrategy(self.gateway, chunked_options=chunked_options, **common)
        raise UnknownMode(f"Unknown mode: {mode!r}")

    # -------------------------------------------------------------------------
    # Entry point
    # -------------------------------------------------------------------------

    def answer_question(
        self,
        file_path: str | Path,
        question: str,
        modes="Retrieval",
        use_parallel: bool = False,
        refine: bool = False,
        return_chain_of_thought: bool = False,
        cancel_token: CancellationToken | None = None,
        **options,
    ):
        """
        Answer a question about a document.

        Args:
            file_path: Path to a .txt, .md or .pdf document
            question: The question
            modes: One mode name or a list of them (case-insensitive)
            use_parallel: Run per-chunk LLM calls on a thread pool
            refine: Run the fact-check refinement pass on each answer
            return_chain_of_thought: Return ChainOfThought objects instead of strings
            cancel_token: Optional CancellationToken for every LLM call
            **options: StrategyConfig fields (model, temperature, max_tokens,
                presence_penalty, frequency_penalty, retries, backoff_base)
                and strategy options (chunk_token_limit, delay_between_chunks,
                system_message_1, system_message_2, summary_max_tokens,
                answer_max_tokens, fallback, refine_max_tokens, token_limit)

        Returns:
            For one mode, the answer (or ChainOfThought); for several, a dict
            {mode: answer} in canonical mode order

        Raises:
            InvalidPath: If the file does not exist
            EmptyQuestion: If the question is blank
            UnknownMode: If a mode is unknown or none is selected
            ValidationError: For unknown or invalid options
            ExtractionError: If the document cannot be read
        """
        if file_path is None or not Path(file_path).is_file():
            raise InvalidPath(f"Please provide a valid file path (got {file_path!r}).")
        question = validate_question(question)
        selected = resolve_modes(modes)
        config_options, routed = split_options(options)
        config = StrategyConfig.from_options(**config_options)
        token_limit = routed.get("token_limit", DEFAULT_CHUNK_TOKEN_LIMIT)
        if not isinstance(token_limit, int) or token_limit < 1:
            raise ValidationError(f"token_limit must be a positive integer, got {token_limit!r}")

        info(f"[Orchestrator] Question on {Path(file_path).name} with modes {selected}")

        text = None
        results = {}
        for mode in selected:
            method = "semantic" if mode == "Semantic" else "naive"
            key = self.cache.make_key(file_path, method, token_limit)
            if text is None and key not in self.cache:
                text = self.loader.load(file_path)
            chunks = list(self.get_chunks(file_path, method, token_limit, text=text))

            if mode == "Semantic":
                chunks = sort_by_relevance(chunks, question, self.embedding_provider)

            strategy = self.build_strategy(mode, config, routed, cancel_token)
            with Timer(f"{mode} reading"):
                result = strategy.run(chunks, question, use_parallel=use_parallel,
                                      return_chain_of_thought=return_chain_of_thought)

            if refine:
                result = self._refine(chunks, question, result, config, routed, cancel_token)

            answer = result.final_answer if isinstance(result, ChainOfThought) else result
            self._log_query(question, answer)
            results[mode] = result

        if len(selected) == 1:
            return results[selected[0]]
        return results

    def _refine(self, chunks, question, result, config, routed, cancel_token):
        refiner_options = {}
        if "refine_max_tokens" in routed:
            refiner_options["max_tokens"] = routed["refine_max_tokens"]
        refiner = AnswerRefiner(self.gateway, config=config, executor=self.executor,
                                cancel_token=cancel_token, **refiner_options)

        if not isinstance(result, ChainOfThought):
            return refiner.refine(chunks, question, result)

        refinement = refiner.refine(chunks, question, result.final_answer, return_chain_of_thought=True)
        combined = ChainOfThought("refined")
        combined.record("question", question)
        combined.record("initial", result.to_dict())
        combined.record("refinement", refinement.to_dict())
        return combined.finish(refinement.final_answer)

    def _log_query(self, question: str, answer: str):
        if self.query_log_path is not None:
            append_query_log(question, answer, self.query_log_path)


_default_orchestrator: DocumentQAOrchestrator | None = None
_default_lock = threading.Lock()


def get_default_orchestrator() -> DocumentQAOrchestrator:
    """Process-wide orchestrator (and chunk cache) used by answer_question()."""
    global _default_orchestrator
    with _default_lock:
        if _default_orchestrator is None:
            _default_orchestrator = DocumentQAOrchestrator()
        return _default_orchestrator


def answer_question(
    file_path: str | Path,
    question: str,
    modes="Retrieval",
    use_parallel: bool = False,
    refine: bool = False,
    return_chain_of_thought: bool = False,
    **options,
):
    """
    Answer a question about a document with the default orchestrator.

    See DocumentQAOrchestrator.answer_question for arguments and errors.
    """
    return get_default_orchestrator().answer_question(
        file_path,
        question,
        modes,
        use_parallel=use_parallel,
        refine=refine,
        return_chain_of_thought=return_chain_of_thought,
        **options,
    )
